"""Run-scoped table of logical to physical ids."""

import copy
from typing import Any, Dict, Optional

from pricectl.core.manifest import ResourceKind, ResourceManifestEntry


class DeployContext:
    """Physical ids produced so far in one deploy or diff run.

    Only declared reference fields are rewritten: ``product`` on a Price and
    ``applies_to.products`` on a Coupon. A reference that names no resource
    seen in this run is assumed to already be a Stripe ID and is kept.
    """

    def __init__(self):
        self._physical_ids: Dict[str, str] = {}

    def record(self, logical_id: str, physical_id: str) -> None:
        self._physical_ids[logical_id] = physical_id

    def physical_id(self, logical_id: str) -> Optional[str]:
        return self._physical_ids.get(logical_id)

    def resolve(self, reference: str) -> str:
        return self._physical_ids.get(reference, reference)

    def resolve_properties(self, entry: ResourceManifestEntry) -> Dict[str, Any]:
        """Copy of the entry's properties with reference fields resolved."""
        properties = copy.deepcopy(entry.properties)

        if entry.kind == ResourceKind.PRICE.value:
            product = properties.get('product')
            if isinstance(product, str):
                properties['product'] = self.resolve(product)

        elif entry.kind == ResourceKind.COUPON.value:
            applies_to = properties.get('applies_to')
            if isinstance(applies_to, dict) and applies_to.get('products'):
                applies_to['products'] = [
                    self.resolve(product) if isinstance(product, str) else product
                    for product in applies_to['products']
                ]

        return properties

    def __len__(self) -> int:
        return len(self._physical_ids)
