"""Stripe Coupon provisioner."""

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
from pricectl.utils.errors import is_not_found
from pricectl.utils.logging import get_logger

logger = get_logger(__name__)

COUPON_FIELDS = (
    'duration', 'amount_off', 'currency', 'percent_off', 'duration_in_months',
    'max_redemptions', 'name', 'redeem_by',
)


class CouponProvisioner(BaseProvisioner):
    """Provisioner for Stripe Coupons.

    The logical id is used as the coupon ID, so lookup is a direct retrieve.
    Coupons are never updated: an existing coupon is left as it is.
    """

    kind = ResourceKind.COUPON

    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        try:
            return self.client.coupons.retrieve(entry.id)
        except Exception as e:
            if is_not_found(e):
                return None
            raise

    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        normalized = {field: remote.get(field) for field in COUPON_FIELDS}

        applies_to = remote.get('applies_to')
        if applies_to:
            normalized['applies_to'] = {'products': list(applies_to.get('products') or [])}

        normalized['metadata'] = strip_internal_metadata(remote.get('metadata'))
        return normalized

    def plan(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        current: Optional[Dict[str, Any]]
    ) -> ProvisionPlan:
        change_type = ChangeType.CREATE if current is None else ChangeType.NO_CHANGE
        return ProvisionPlan(entry=entry, desired=desired, change_type=change_type, current=current)

    def provision(self, plan: ProvisionPlan) -> ProvisionResult:
        entry = plan.entry

        if plan.change_type == ChangeType.NO_CHANGE:
            if self.has_changes(plan.desired, plan.current):
                logger.warning(
                    f"Coupon {entry.id} differs from its definition; coupons cannot be "
                    f"updated, delete it to apply changes"
                )
            return ProvisionResult(physical_id=plan.current['id'], status=DeployStatus.UNCHANGED)

        params = with_identity_tags(plan.desired, entry)
        params['id'] = entry.id
        created = self.client.coupons.create(params)
        logger.info(f"Created coupon {entry.id}")
        return ProvisionResult(physical_id=created['id'], status=DeployStatus.CREATED)

    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        existing = self.find_existing(stack_id, entry)
        if existing is None:
            return None

        self.client.coupons.delete(existing['id'])
        logger.info(f"Deleted coupon {entry.id}")
        return DestroyStatus.DELETED
