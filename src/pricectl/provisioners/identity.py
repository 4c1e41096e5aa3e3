"""Identity tags written to Stripe metadata and helpers to query them."""

import copy
from typing import Any, Dict, Optional

from pricectl.core.manifest import ResourceManifestEntry

ID_TAG = 'pricectl_id'
PATH_TAG = 'pricectl_path'

# Written by earlier releases; still matched on lookup and stripped on compare
LEGACY_ID_TAG = 'fillet_id'
LEGACY_PATH_TAG = 'fillet_path'

INTERNAL_TAGS = frozenset({ID_TAG, PATH_TAG, LEGACY_ID_TAG, LEGACY_PATH_TAG})


def escape_search_query(value: str) -> str:
    """Escape a value for embedding in a quoted Stripe search clause.

    Backslashes are doubled before quotes are escaped, so the backslash added
    for a quote is never escaped a second time.
    """
    return value.replace('\\', '\\\\').replace('"', '\\"')


def build_tag_query(logical_id: str) -> str:
    """Search query matching objects tagged with a logical id."""
    escaped = escape_search_query(logical_id)
    return f'metadata["{ID_TAG}"]:"{escaped}" OR metadata["{LEGACY_ID_TAG}"]:"{escaped}"'


def identity_tags(entry: ResourceManifestEntry) -> Dict[str, str]:
    return {ID_TAG: entry.id, PATH_TAG: entry.path}


def with_identity_tags(params: Dict[str, Any], entry: ResourceManifestEntry) -> Dict[str, Any]:
    """Copy of params whose metadata also carries the identity tags."""
    tagged = copy.deepcopy(params)
    tagged['metadata'] = {**(tagged.get('metadata') or {}), **identity_tags(entry)}
    return tagged


def strip_internal_metadata(metadata: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Remove identity tags; None when no user keys remain."""
    if not metadata:
        return None
    user_metadata = {k: v for k, v in metadata.items() if k not in INTERNAL_TAGS}
    return user_metadata or None


def compact(value: Any) -> Any:
    """Recursively drop None values from dicts. List order is kept."""
    if isinstance(value, dict):
        return {k: compact(v) for k, v in value.items() if v is not None}
    if isinstance(value, list):
        return [compact(item) for item in value]
    return value
