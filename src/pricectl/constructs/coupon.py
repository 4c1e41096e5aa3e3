"""Stripe Coupon construct."""

from typing import Any, Dict, List, Optional

from pricectl.constructs.product import Product
from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind
from pricectl.core.resource import Resource, omit_unset
from pricectl.utils.errors import (
    CouponCurrencyError,
    CouponDiscountError,
    CouponDurationError,
)

VALID_DURATIONS = ('forever', 'once', 'repeating')


def validate_discount(
    duration: str,
    amount_off: Optional[int],
    percent_off: Optional[float],
    currency: Optional[str],
    duration_in_months: Optional[int]
) -> None:
    """Check coupon discount and duration settings before construction."""
    if (amount_off is None) == (percent_off is None):
        raise CouponDiscountError()

    if duration not in VALID_DURATIONS:
        raise CouponDurationError(
            f"Invalid duration '{duration}'; expected one of {', '.join(VALID_DURATIONS)}"
        )

    if duration == 'repeating' and duration_in_months is None:
        raise CouponDurationError(
            "duration_in_months is required when duration is 'repeating'"
        )

    if amount_off is not None and currency is None:
        raise CouponCurrencyError()


class Coupon(Resource):
    """A Stripe Coupon.

    The logical id doubles as the Stripe coupon ID, so coupons are found
    remotely by direct retrieval. Coupons cannot be edited after creation.

    Raises:
        CouponDiscountError: Unless exactly one of amount_off and percent_off is set
        CouponDurationError: For an unknown duration, or 'repeating' without
            duration_in_months
        CouponCurrencyError: If amount_off is set without currency
    """

    kind = ResourceKind.COUPON

    def __init__(
        self,
        scope: Construct,
        id: str,
        duration: str,
        amount_off: Optional[int] = None,
        currency: Optional[str] = None,
        percent_off: Optional[float] = None,
        duration_in_months: Optional[int] = None,
        max_redemptions: Optional[int] = None,
        metadata: Optional[Dict[str, str]] = None,
        name: Optional[str] = None,
        redeem_by: Optional[int] = None,
        applies_to_products: Optional[List[Any]] = None,
        physical_id: Optional[str] = None
    ):
        validate_discount(duration, amount_off, percent_off, currency, duration_in_months)

        super().__init__(scope, id, physical_id=physical_id)
        self.duration = duration
        self.amount_off = amount_off
        self.currency = currency
        self.percent_off = percent_off
        self.duration_in_months = duration_in_months
        self.max_redemptions = max_redemptions
        self.metadata = metadata
        self.name = name
        self.redeem_by = redeem_by
        self.applies_to_products = applies_to_products

        self._finalize()

    def _product_references(self) -> Optional[List[str]]:
        if self.applies_to_products is None:
            return None

        return [
            (item.physical_id or item.id) if isinstance(item, Product) else item
            for item in self.applies_to_products
        ]

    def synthesize_properties(self) -> Dict[str, Any]:
        products = self._product_references()
        return omit_unset({
            'duration': self.duration,
            'amount_off': self.amount_off,
            'currency': self.currency,
            'percent_off': self.percent_off,
            'duration_in_months': self.duration_in_months,
            'max_redemptions': self.max_redemptions,
            'metadata': dict(self.metadata) if self.metadata is not None else None,
            'name': self.name,
            'redeem_by': self.redeem_by,
            'applies_to': {'products': products} if products is not None else None,
        })
