"""Stripe Entitlements Feature construct."""

from typing import Any, Dict, Optional

from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import Resource, omit_unset


class EntitlementFeature(Resource):
    """A feature that can be attached to products and granted to customers.

    Features are matched remotely by ``lookup_key``, which Stripe treats as
    the business key for this kind.
    """

    kind = ResourceKind.ENTITLEMENT_FEATURE

    def __init__(
        self,
        scope: Construct,
        id: str,
        name: str,
        lookup_key: str,
        metadata: Optional[Dict[str, str]] = None,
        physical_id: Optional[str] = None
    ):
        super().__init__(scope, id, physical_id=physical_id)
        self.name = name
        self.lookup_key = lookup_key
        self.metadata = metadata

        self._finalize()

    def synthesize_properties(self) -> Dict[str, Any]:
        return omit_unset({
            'name': self.name,
            'lookup_key': self.lookup_key,
            'metadata': dict(self.metadata) if self.metadata is not None else None,
        })
