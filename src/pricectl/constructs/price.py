"""Stripe Price construct."""

from typing import Any, Dict, List, Optional, Union

from pricectl.constructs.models import (
    PriceTier,
    Recurring,
    TransformQuantity,
    coerce_block,
    dump_block,
)
from pricectl.constructs.product import Product
from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import Resource, omit_unset

RecurringInput = Union[Recurring, Dict[str, Any]]
PriceTierInput = Union[PriceTier, Dict[str, Any]]
TransformQuantityInput = Union[TransformQuantity, Dict[str, Any]]


class Price(Resource):
    """A Stripe Price attached to a Product.

    ``product`` may be a Product construct from the same stack, the logical
    id of one, or the Stripe ID of a product managed elsewhere. Logical ids
    are replaced with physical ids at deploy time.

    Prices are immutable in Stripe for most fields, so a changed Price is
    deployed by archiving the old object and creating a new one.

    Example:
        Price(stack, 'Monthly', product=product, currency='usd',
              unit_amount=1999, recurring={'interval': 'month'})
    """

    kind = ResourceKind.PRICE

    def __init__(
        self,
        scope: Construct,
        id: str,
        product: Union[Product, str],
        currency: str,
        unit_amount: Optional[int] = None,
        unit_amount_decimal: Optional[str] = None,
        active: bool = True,
        nickname: Optional[str] = None,
        recurring: Optional[RecurringInput] = None,
        metadata: Optional[Dict[str, str]] = None,
        lookup_key: Optional[str] = None,
        tax_behavior: Optional[str] = None,
        transform_quantity: Optional[TransformQuantityInput] = None,
        tiers_mode: Optional[str] = None,
        tiers: Optional[List[PriceTierInput]] = None,
        physical_id: Optional[str] = None
    ):
        recurring_block = coerce_block(Recurring, recurring, 'recurring')
        transform_block = coerce_block(
            TransformQuantity, transform_quantity, 'transform_quantity'
        )
        tier_blocks = [
            coerce_block(PriceTier, tier, f'tiers[{index}]')
            for index, tier in enumerate(tiers or [])
        ]

        super().__init__(scope, id, physical_id=physical_id)
        self.product = product
        self.currency = currency
        self.unit_amount = unit_amount
        self.unit_amount_decimal = unit_amount_decimal
        self.active = active
        self.nickname = nickname
        self.recurring = recurring_block
        self.metadata = metadata
        self.lookup_key = lookup_key
        self.tax_behavior = tax_behavior
        self.transform_quantity = transform_block
        self.tiers_mode = tiers_mode
        self.tiers = tier_blocks

        self._finalize()

    @property
    def product_reference(self) -> str:
        """Product id as written to the manifest."""
        if isinstance(self.product, Product):
            return self.product.physical_id or self.product.id
        return self.product

    def synthesize_properties(self) -> Dict[str, Any]:
        params = omit_unset({
            'product': self.product_reference,
            'currency': self.currency,
            'active': self.active,
            'unit_amount': self.unit_amount,
            'unit_amount_decimal': self.unit_amount_decimal,
            'nickname': self.nickname,
            'metadata': dict(self.metadata) if self.metadata is not None else None,
            'lookup_key': self.lookup_key,
            'tax_behavior': self.tax_behavior,
            'tiers_mode': self.tiers_mode,
            'transform_quantity': dump_block(self.transform_quantity),
            'recurring': dump_block(self.recurring),
        })

        if self.tiers:
            params['billing_scheme'] = 'tiered'
            params['tiers'] = [dump_block(tier) for tier in self.tiers]

        return params
