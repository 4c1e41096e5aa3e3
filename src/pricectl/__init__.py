"""pricectl: declare Stripe products, prices, coupons, features and meters in Python."""

from pricectl.config import Config, PricectlConfig
from pricectl.constructs import (
    Coupon,
    CustomerMapping,
    DefaultAggregation,
    EntitlementFeature,
    Meter,
    Price,
    PriceTier,
    Product,
    Recurring,
    TransformQuantity,
    ValueSettings,
)
from pricectl.core import (
    Construct,
    Resource,
    ResourceKind,
    ResourceManifestEntry,
    Stack,
    StackManifest,
)
from pricectl.orchestrator import Deployer, PricingOrchestrator, Resolver
from pricectl.state import StateManager
from pricectl.utils.stripe_client import StripeClient

__version__ = "0.1.0"

__all__ = [
    # Tree
    "Construct",
    "Resource",
    "Stack",

    # Resources
    "Coupon",
    "EntitlementFeature",
    "Meter",
    "Price",
    "Product",

    # Nested blocks
    "CustomerMapping",
    "DefaultAggregation",
    "PriceTier",
    "Recurring",
    "TransformQuantity",
    "ValueSettings",

    # Manifest
    "ResourceKind",
    "ResourceManifestEntry",
    "StackManifest",

    # Reconciliation
    "Config",
    "Deployer",
    "PricectlConfig",
    "PricingOrchestrator",
    "Resolver",
    "StateManager",
    "StripeClient",
]
