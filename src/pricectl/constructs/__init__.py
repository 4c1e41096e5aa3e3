"""Stripe resource constructs."""

from .coupon import Coupon
from .entitlement import EntitlementFeature
from .meter import Meter
from .models import (
    CustomerMapping,
    DefaultAggregation,
    PriceTier,
    Recurring,
    TransformQuantity,
    ValueSettings,
)
from .price import Price
from .product import Product

__all__ = [
    "Coupon",
    "CustomerMapping",
    "DefaultAggregation",
    "EntitlementFeature",
    "Meter",
    "Price",
    "PriceTier",
    "Product",
    "Recurring",
    "TransformQuantity",
    "ValueSettings",
]
