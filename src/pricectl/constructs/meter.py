"""Stripe Billing Meter construct."""

from typing import Any, Dict, Optional, Union

from pricectl.constructs.models import (
    CustomerMapping,
    DefaultAggregation,
    ValueSettings,
    coerce_block,
    dump_block,
)
from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import Resource, omit_unset


class Meter(Resource):
    """A billing meter that records usage events for metered prices.

    Meters are matched remotely by ``event_name``. Only ``display_name`` can
    be changed after creation.

    Example:
        Meter(stack, 'ApiCalls', display_name='API Calls', event_name='api_call',
              default_aggregation={'formula': 'count'})
    """

    kind = ResourceKind.BILLING_METER

    def __init__(
        self,
        scope: Construct,
        id: str,
        display_name: str,
        event_name: str,
        default_aggregation: Union[DefaultAggregation, Dict[str, Any]],
        customer_mapping: Optional[Union[CustomerMapping, Dict[str, Any]]] = None,
        event_time_window: Optional[str] = None,
        value_settings: Optional[Union[ValueSettings, Dict[str, Any]]] = None,
        physical_id: Optional[str] = None
    ):
        aggregation_block = coerce_block(
            DefaultAggregation, default_aggregation, 'default_aggregation'
        )
        mapping_block = coerce_block(CustomerMapping, customer_mapping, 'customer_mapping')
        value_block = coerce_block(ValueSettings, value_settings, 'value_settings')

        super().__init__(scope, id, physical_id=physical_id)
        self.display_name = display_name
        self.event_name = event_name
        self.default_aggregation = aggregation_block
        self.customer_mapping = mapping_block
        self.event_time_window = event_time_window
        self.value_settings = value_block

        self._finalize()

    def synthesize_properties(self) -> Dict[str, Any]:
        return omit_unset({
            'display_name': self.display_name,
            'event_name': self.event_name,
            'default_aggregation': dump_block(self.default_aggregation),
            'customer_mapping': dump_block(self.customer_mapping),
            'event_time_window': self.event_time_window,
            'value_settings': dump_block(self.value_settings),
        })
