"""Provisioners module for Stripe resource management."""

from typing import Any, Dict, Optional

from pricectl.state.manager import StateManager

from .base import (
    BaseProvisioner,
    ChangeType,
    DeployStatus,
    DestroyStatus,
    ProvisionPlan,
    ProvisionResult,
)
from .coupon import CouponProvisioner
from .entitlement import EntitlementFeatureProvisioner
from .meter import MeterProvisioner
from .price import PriceProvisioner
from .product import ProductProvisioner


def build_provisioners(
    client: Any,
    state_manager: Optional[StateManager] = None,
    skip_unchanged_products: bool = True
) -> Dict[str, BaseProvisioner]:
    """Create one provisioner per supported kind, keyed by kind name."""
    provisioners = [
        ProductProvisioner(client, state_manager, skip_unchanged=skip_unchanged_products),
        PriceProvisioner(client, state_manager),
        CouponProvisioner(client, state_manager),
        EntitlementFeatureProvisioner(client, state_manager),
        MeterProvisioner(client, state_manager),
    ]
    return {provisioner.kind.value: provisioner for provisioner in provisioners}


__all__ = [
    'BaseProvisioner',
    'ChangeType',
    'CouponProvisioner',
    'DeployStatus',
    'DestroyStatus',
    'EntitlementFeatureProvisioner',
    'MeterProvisioner',
    'PriceProvisioner',
    'ProductProvisioner',
    'ProvisionPlan',
    'ProvisionResult',
    'build_provisioners',
]
