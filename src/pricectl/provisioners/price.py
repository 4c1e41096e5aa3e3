"""Stripe Price provisioner."""

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

# Fields that identify a price; any difference requires a new Price object
COMPARED_FIELDS = (
    'product', 'currency', 'unit_amount', 'unit_amount_decimal', 'active',
    'nickname', 'recurring', 'billing_scheme', 'tiers_mode', 'tiers',
    'transform_quantity', 'lookup_key', 'tax_behavior',
)

RECURRING_FIELDS = ('interval', 'interval_count', 'usage_type', 'trial_period_days')
TIER_FIELDS = ('up_to', 'unit_amount', 'unit_amount_decimal', 'flat_amount', 'flat_amount_decimal')

# Values Stripe reports when the field was never set
SERVER_DEFAULTS = {
    'billing_scheme': 'per_unit',
    'tax_behavior': 'unspecified',
}
RECURRING_DEFAULTS = {
    'interval_count': 1,
    'usage_type': 'licensed',
}


def _fold_decimal(block: Dict[str, Any], amount_key: str, decimal_key: str) -> None:
    """Drop a decimal amount that only restates its integer counterpart."""
    amount = block.get(amount_key)
    decimal = block.get(decimal_key)
    if amount is not None and decimal is not None and str(decimal) == str(amount):
        del block[decimal_key]


class PriceProvisioner(BaseProvisioner):
    """Provisioner for Stripe Prices.

    Prices are immutable for every compared field. A changed price is
    replaced: the old object is archived and a new one created, and the
    resource reports ``created`` with the new id.
    """

    kind = ResourceKind.PRICE

    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        return self._find_by_identity(self.client.prices, stack_id, entry)

    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        product = remote.get('product')
        if isinstance(product, dict):
            product = product.get('id')

        normalized: Dict[str, Any] = {
            'product': product,
            'currency': remote.get('currency'),
            'unit_amount': remote.get('unit_amount'),
            'unit_amount_decimal': remote.get('unit_amount_decimal'),
            'active': remote.get('active'),
            'nickname': remote.get('nickname'),
            'lookup_key': remote.get('lookup_key'),
            'tax_behavior': remote.get('tax_behavior'),
            'billing_scheme': remote.get('billing_scheme'),
            'tiers_mode': remote.get('tiers_mode'),
            'metadata': strip_internal_metadata(remote.get('metadata')),
        }

        recurring = remote.get('recurring')
        if recurring:
            normalized['recurring'] = {field: recurring.get(field) for field in RECURRING_FIELDS}

        tiers = remote.get('tiers')
        if tiers:
            normalized['tiers'] = [
                {field: tier.get(field) for field in TIER_FIELDS} for tier in tiers
            ]

        transform = remote.get('transform_quantity')
        if transform:
            normalized['transform_quantity'] = {
                'divide_by': transform.get('divide_by'),
                'round': transform.get('round'),
            }

        return normalized

    def canonicalize(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        canonical = super().canonicalize(properties)

        for key, default in SERVER_DEFAULTS.items():
            if canonical.get(key) == default:
                del canonical[key]
        _fold_decimal(canonical, 'unit_amount', 'unit_amount_decimal')

        recurring = canonical.get('recurring')
        if recurring:
            for key, default in RECURRING_DEFAULTS.items():
                if recurring.get(key) == default:
                    del recurring[key]

        for tier in canonical.get('tiers') or []:
            if tier.get('up_to') is None:
                tier['up_to'] = 'inf'
            _fold_decimal(tier, 'unit_amount', 'unit_amount_decimal')
            _fold_decimal(tier, 'flat_amount', 'flat_amount_decimal')

        return canonical

    def has_changes(self, desired: Dict[str, Any], current: Dict[str, Any]) -> bool:
        wanted = self.canonicalize(desired)
        actual = self.canonicalize(self.normalize(current))
        return any(wanted.get(field) != actual.get(field) for field in COMPARED_FIELDS)

    def plan(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        current: Optional[Dict[str, Any]]
    ) -> ProvisionPlan:
        plan = super().plan(stack_id, entry, desired, current)
        if plan.change_type == ChangeType.UPDATE:
            plan.change_type = ChangeType.REPLACE
        return plan

    def provision(self, plan: ProvisionPlan) -> ProvisionResult:
        entry = plan.entry

        if plan.change_type == ChangeType.NO_CHANGE:
            return ProvisionResult(physical_id=plan.current['id'], status=DeployStatus.UNCHANGED)

        if plan.change_type == ChangeType.REPLACE:
            old_id = plan.current['id']
            self.client.prices.update(old_id, {'active': False})
            logger.info(f"Archived price {entry.id} ({old_id}) for replacement")

        created = self.client.prices.create(with_identity_tags(plan.desired, entry))

        if plan.change_type == ChangeType.REPLACE:
            logger.info(f"Replaced price {entry.id}: {plan.current['id']} -> {created['id']}")
        else:
            logger.info(f"Created price {entry.id} ({created['id']})")

        return ProvisionResult(physical_id=created['id'], status=DeployStatus.CREATED)

    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        existing = self.find_existing(stack_id, entry)
        if existing is None or existing.get('active') is False:
            return None

        # Prices cannot be deleted, only archived
        self.client.prices.update(existing['id'], {'active': False})
        logger.info(f"Deactivated price {entry.id} ({existing['id']})")
        return DestroyStatus.DEACTIVATED
