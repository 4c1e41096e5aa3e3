"""Stripe Product provisioner."""

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
from pricectl.state.manager import StateManager
from pricectl.utils.logging import get_logger

logger = get_logger(__name__)

PRODUCT_FIELDS = (
    'name', 'active', 'description', 'images', 'url',
    'unit_label', 'statement_descriptor', 'tax_code',
)


class ProductProvisioner(BaseProvisioner):
    """Provisioner for Stripe Products."""

    kind = ResourceKind.PRODUCT

    def __init__(
        self,
        client: Any,
        state_manager: Optional[StateManager] = None,
        skip_unchanged: bool = True
    ):
        """Initialize Product provisioner.

        Args:
            client: Stripe client
            state_manager: State store used for lookups and the unchanged check
            skip_unchanged: Skip the update call when the recorded properties
                hash matches the desired bag for the same object
        """
        super().__init__(client, state_manager)
        self.skip_unchanged = skip_unchanged

    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        return self._find_by_identity(self.client.products, stack_id, entry)

    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        normalized = {field: remote.get(field) for field in PRODUCT_FIELDS}
        normalized['metadata'] = strip_internal_metadata(remote.get('metadata'))
        return normalized

    def canonicalize(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        canonical = super().canonicalize(properties)
        if not canonical.get('images'):
            canonical.pop('images', None)
        return canonical

    def plan(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        current: Optional[Dict[str, Any]]
    ) -> ProvisionPlan:
        """Create when missing; otherwise update unless recorded state is current.

        Products are always updated in place. The update is skipped only when
        the state store recorded the same properties hash for this very
        object, so drift made outside pricectl is overwritten on the next
        deploy once the state entry is gone or stale.
        """
        if current is None:
            change_type = ChangeType.CREATE
        elif self._state_is_current(stack_id, entry, desired, current['id']):
            change_type = ChangeType.NO_CHANGE
        else:
            change_type = ChangeType.UPDATE

        return ProvisionPlan(entry=entry, desired=desired, change_type=change_type, current=current)

    def provision(self, plan: ProvisionPlan) -> ProvisionResult:
        entry = plan.entry

        if plan.change_type == ChangeType.CREATE:
            created = self.client.products.create(with_identity_tags(plan.desired, entry))
            logger.info(f"Created product {entry.id} ({created['id']})")
            return ProvisionResult(physical_id=created['id'], status=DeployStatus.CREATED)

        if plan.change_type == ChangeType.NO_CHANGE:
            return ProvisionResult(physical_id=plan.current['id'], status=DeployStatus.UNCHANGED)

        updated = self.client.products.update(
            plan.current['id'], with_identity_tags(plan.desired, entry)
        )
        logger.info(f"Updated product {entry.id} ({updated['id']})")
        return ProvisionResult(physical_id=updated['id'], status=DeployStatus.UPDATED)

    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        existing = self.find_existing(stack_id, entry)
        if existing is None:
            return None

        self.client.products.delete(existing['id'])
        logger.info(f"Deleted product {entry.id} ({existing['id']})")
        return DestroyStatus.DELETED

    def _state_is_current(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        physical_id: str
    ) -> bool:
        if not self.skip_unchanged or self.state_manager is None:
            return False

        state = self.state_manager.get_resource(stack_id, entry.id)
        return (
            state is not None
            and state.physical_id == physical_id
            and state.properties_hash == StateManager.compute_properties_hash(desired)
        )
