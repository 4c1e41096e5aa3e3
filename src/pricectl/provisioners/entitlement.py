"""Stripe Entitlements Feature provisioner."""

from typing import Any, Dict, Optional

from pricectl.core.manifest import ResourceKind, ResourceManifestEntry
from pricectl.provisioners.base import (
    BaseProvisioner,
    ChangeType,
    DeployStatus,
    DestroyStatus,
    ProvisionPlan,
    ProvisionResult,
)
from pricectl.provisioners.identity import strip_internal_metadata, with_identity_tags
from pricectl.utils.logging import get_logger

logger = get_logger(__name__)


class EntitlementFeatureProvisioner(BaseProvisioner):
    """Provisioner for entitlement features, matched by lookup_key."""

    kind = ResourceKind.ENTITLEMENT_FEATURE

    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        return self._find_by_key(
            self.client.features, 'lookup_key', entry.properties.get('lookup_key')
        )

    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'name': remote.get('name'),
            'lookup_key': remote.get('lookup_key'),
            'metadata': strip_internal_metadata(remote.get('metadata')),
        }

    def plan(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        current: Optional[Dict[str, Any]]
    ) -> ProvisionPlan:
        change_type = ChangeType.CREATE if current is None else ChangeType.UPDATE
        return ProvisionPlan(entry=entry, desired=desired, change_type=change_type, current=current)

    def provision(self, plan: ProvisionPlan) -> ProvisionResult:
        entry = plan.entry

        if plan.change_type == ChangeType.CREATE:
            created = self.client.features.create(with_identity_tags(plan.desired, entry))
            logger.info(f"Created entitlement feature {entry.id} ({created['id']})")
            return ProvisionResult(physical_id=created['id'], status=DeployStatus.CREATED)

        # lookup_key is immutable once created
        params = with_identity_tags(
            {'name': plan.desired['name'], 'metadata': plan.desired.get('metadata')}, entry
        )
        updated = self.client.features.update(plan.current['id'], params)
        logger.info(f"Updated entitlement feature {entry.id} ({updated['id']})")
        return ProvisionResult(physical_id=updated['id'], status=DeployStatus.UPDATED)

    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        existing = self.find_existing(stack_id, entry)
        if existing is None or existing.get('active') is False:
            return None

        self.client.features.update(existing['id'], {'active': False})
        logger.info(f"Deactivated entitlement feature {entry.id} ({existing['id']})")
        return DestroyStatus.DEACTIVATED
