"""Resolve manifest entries to remote objects and diff desired against actual."""

import difflib
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pricectl.core.manifest import ResourceManifestEntry, StackManifest
from pricectl.orchestrator.context import DeployContext
from pricectl.provisioners import BaseProvisioner, build_provisioners
from pricectl.provisioners.identity import (
    build_tag_query,
    escape_search_query,
    strip_internal_metadata,
)
from pricectl.state.manager import StateManager
from pricectl.utils.errors import UnknownResourceKindError, error_handler
from pricectl.utils.logging import LogContext, get_logger

logger = get_logger(__name__)

__all__ = [
    'DiffReport',
    'ResourceDiff',
    'Resolver',
    'build_tag_query',
    'escape_search_query',
    'strip_internal_metadata',
]

CREATE = 'create'
UPDATE = 'update'
NO_CHANGE = 'no_change'


@dataclass
class ResourceDiff:
    """Desired versus actual state of one manifest entry."""

    entry: ResourceManifestEntry
    action: str
    desired: Dict[str, Any]
    current: Optional[Dict[str, Any]] = None
    physical_id: Optional[str] = None
    replacement: bool = False
    patch: str = ''

    def has_changes(self) -> bool:
        return self.action != NO_CHANGE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.entry.id,
            'kind': self.entry.kind,
            'action': self.action,
            'physical_id': self.physical_id,
            'replacement': self.replacement,
            'desired': self.desired,
            'current': self.current,
        }


@dataclass
class DiffReport:
    """Diff of a whole stack, in manifest order."""

    stack_id: str
    diffs: List[ResourceDiff] = field(default_factory=list)
    errors: List[Dict[str, str]] = field(default_factory=list)

    def has_changes(self) -> bool:
        return any(diff.has_changes() for diff in self.diffs)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def summary(self) -> Dict[str, int]:
        """Get a summary of changes by action."""
        summary = {CREATE: 0, UPDATE: 0, NO_CHANGE: 0}
        for diff in self.diffs:
            summary[diff.action] += 1
        return summary

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stack_id': self.stack_id,
            'summary': self.summary(),
            'resources': [diff.to_dict() for diff in self.diffs],
            'errors': list(self.errors),
        }


def _snapshot(properties: Optional[Dict[str, Any]]) -> List[str]:
    if properties is None:
        return []
    return json.dumps(properties, indent=2, sort_keys=True, default=str).splitlines(keepends=True)


def unified_patch(
    logical_id: str,
    current: Optional[Dict[str, Any]],
    desired: Dict[str, Any]
) -> str:
    """Unified text diff between two property bags."""
    return ''.join(difflib.unified_diff(
        _snapshot(current),
        _snapshot(desired),
        fromfile=f'{logical_id} (remote)',
        tofile=f'{logical_id} (desired)',
    ))


class Resolver:
    """Finds the remote object behind each manifest entry and compares it.

    Comparison runs on canonical forms: the remote object is normalized to
    its user-configurable fields, then both sides drop None values and fold
    the defaults Stripe fills in, so equality is structural.
    """

    def __init__(
        self,
        client: Any,
        state_manager: Optional[StateManager] = None,
        skip_unchanged_products: bool = True,
        provisioners: Optional[Dict[str, BaseProvisioner]] = None
    ):
        """Initialize resolver.

        Args:
            client: Stripe client
            state_manager: State store consulted for known physical ids
            skip_unchanged_products: Passed to the Product provisioner
            provisioners: Override the provisioner registry (keyed by kind)
        """
        self.client = client
        self.state_manager = state_manager
        self.provisioners = provisioners or build_provisioners(
            client, state_manager, skip_unchanged_products
        )

    def provisioner_for(self, kind: str) -> BaseProvisioner:
        """
        Raises:
            UnknownResourceKindError: If no provisioner handles kind
        """
        provisioner = self.provisioners.get(kind)
        if provisioner is None:
            raise UnknownResourceKindError(kind)
        return provisioner

    def find_existing(self, entry: ResourceManifestEntry, stack_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the remote object behind entry, or None if there is none."""
        return self.provisioner_for(entry.kind).find_existing(stack_id, entry)

    def normalize(self, remote: Dict[str, Any], kind: str) -> Dict[str, Any]:
        """Canonical user-configurable property bag of a remote object."""
        provisioner = self.provisioner_for(kind)
        return provisioner.canonicalize(provisioner.normalize(remote))

    def canonicalize(self, properties: Dict[str, Any], kind: str) -> Dict[str, Any]:
        return self.provisioner_for(kind).canonicalize(properties)

    def diff(
        self,
        entry: ResourceManifestEntry,
        stack_id: str,
        context: Optional[DeployContext] = None
    ) -> ResourceDiff:
        """Compare one entry against its remote object.

        Args:
            entry: Manifest entry
            stack_id: Owning stack ID
            context: Physical ids found earlier in the same run

        Returns:
            ResourceDiff with action create, update or no_change
        """
        context = context or DeployContext()
        provisioner = self.provisioner_for(entry.kind)
        desired = context.resolve_properties(entry)
        current = provisioner.find_existing(stack_id, entry)

        canonical_desired = provisioner.canonicalize(desired)
        if current is None:
            return ResourceDiff(
                entry=entry,
                action=CREATE,
                desired=canonical_desired,
                patch=unified_patch(entry.id, None, canonical_desired),
            )

        canonical_current = provisioner.canonicalize(provisioner.normalize(current))
        changed = provisioner.has_changes(desired, current)
        return ResourceDiff(
            entry=entry,
            action=UPDATE if changed else NO_CHANGE,
            desired=canonical_desired,
            current=canonical_current,
            physical_id=current.get('id'),
            replacement=changed and entry.kind == 'Price',
            patch=unified_patch(entry.id, canonical_current, canonical_desired) if changed else '',
        )

    def diff_manifest(self, manifest: StackManifest) -> DiffReport:
        """Diff every entry in manifest order.

        Physical ids of objects found along the way resolve references in
        later entries, as a deploy would. A lookup failure is recorded for
        that entry and the walk continues.
        """
        report = DiffReport(stack_id=manifest.stack_id)
        context = DeployContext()

        for entry in manifest.resources:
            with LogContext(logger, resource_id=entry.id, resource_type=entry.kind, operation='diff'):
                try:
                    resource_diff = self.diff(entry, manifest.stack_id, context)
                except Exception as e:
                    error = error_handler.handle_exception(e)
                    logger.error(f"Failed to diff {entry.kind} {entry.id}: {error.message}")
                    report.errors.append({'id': entry.id, 'kind': entry.kind, 'error': error.message})
                    continue

            if resource_diff.physical_id:
                context.record(entry.id, resource_diff.physical_id)
            report.diffs.append(resource_diff)

        return report
