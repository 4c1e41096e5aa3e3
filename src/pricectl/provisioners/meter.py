"""Stripe Billing Meter provisioner."""

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
from pricectl.utils.logging import get_logger

logger = get_logger(__name__)

# Settings Stripe fills in when a meter is created without them
DEFAULT_CUSTOMER_MAPPING = {'event_payload_key': 'stripe_customer_id', 'type': 'by_id'}
DEFAULT_VALUE_SETTINGS = {'event_payload_key': 'value'}

IMMUTABLE_FIELDS = ('default_aggregation', 'customer_mapping', 'value_settings', 'event_time_window')


class MeterProvisioner(BaseProvisioner):
    """Provisioner for billing meters, matched by event_name.

    Only ``display_name`` can change on an existing meter.
    """

    kind = ResourceKind.BILLING_METER

    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        return self._find_by_key(
            self.client.meters, 'event_name', entry.properties.get('event_name')
        )

    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        normalized: Dict[str, Any] = {
            'display_name': remote.get('display_name'),
            'event_name': remote.get('event_name'),
            'event_time_window': remote.get('event_time_window'),
        }

        aggregation = remote.get('default_aggregation')
        if aggregation:
            normalized['default_aggregation'] = {'formula': aggregation.get('formula')}

        mapping = remote.get('customer_mapping')
        if mapping:
            normalized['customer_mapping'] = {
                'event_payload_key': mapping.get('event_payload_key'),
                'type': mapping.get('type'),
            }

        value_settings = remote.get('value_settings')
        if value_settings:
            normalized['value_settings'] = {
                'event_payload_key': value_settings.get('event_payload_key'),
            }

        return normalized

    def canonicalize(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        canonical = super().canonicalize(properties)
        if canonical.get('customer_mapping') == DEFAULT_CUSTOMER_MAPPING:
            del canonical['customer_mapping']
        if canonical.get('value_settings') == DEFAULT_VALUE_SETTINGS:
            del canonical['value_settings']
        return canonical

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
            created = self.client.meters.create(dict(plan.desired))
            logger.info(f"Created billing meter {entry.id} ({created['id']})")
            return ProvisionResult(physical_id=created['id'], status=DeployStatus.CREATED)

        wanted = self.canonicalize(plan.desired)
        actual = self.canonicalize(self.normalize(plan.current))
        frozen = [key for key in IMMUTABLE_FIELDS if wanted.get(key) != actual.get(key)]
        if frozen:
            logger.warning(
                f"Billing meter {entry.id}: {', '.join(frozen)} cannot be changed "
                f"after creation and will be left as is"
            )

        updated = self.client.meters.update(
            plan.current['id'], {'display_name': plan.desired['display_name']}
        )
        logger.info(f"Updated billing meter {entry.id} ({updated['id']})")
        return ProvisionResult(physical_id=updated['id'], status=DeployStatus.UPDATED)

    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        existing = self.find_existing(stack_id, entry)
        if existing is None or existing.get('status') == 'inactive':
            return None

        self.client.meters.deactivate(existing['id'])
        logger.info(f"Deactivated billing meter {entry.id} ({existing['id']})")
        return DestroyStatus.DEACTIVATED
