"""Orchestrator module for diffing and reconciling stacks."""

from pricectl.orchestrator.context import DeployContext
from pricectl.orchestrator.executor import (
    Deployer,
    DeployedResource,
    DeployResult,
    DestroyedResource,
    DestroyResult,
    ProgressCallback,
    ResourceError,
)
from pricectl.orchestrator.orchestrator import PricingOrchestrator
from pricectl.orchestrator.resolver import (
    DiffReport,
    Resolver,
    ResourceDiff,
    build_tag_query,
    escape_search_query,
    strip_internal_metadata,
)

__all__ = [
    # Resolution and diff
    'Resolver',
    'ResourceDiff',
    'DiffReport',
    'build_tag_query',
    'escape_search_query',
    'strip_internal_metadata',

    # Execution
    'DeployContext',
    'Deployer',
    'DeployedResource',
    'DeployResult',
    'DestroyedResource',
    'DestroyResult',
    'ResourceError',
    'ProgressCallback',

    # Main orchestrator
    'PricingOrchestrator',
]
