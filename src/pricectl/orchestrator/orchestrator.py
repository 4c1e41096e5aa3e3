"""Main orchestrator that coordinates diffing, deployment and state persistence."""

from typing import Any, Optional

from pricectl.core.manifest import StackManifest
from pricectl.orchestrator.executor import (
    Deployer,
    DeployResult,
    DestroyResult,
    ProgressCallback,
)
from pricectl.orchestrator.resolver import DiffReport, Resolver
from pricectl.state.manager import StateManager
from pricectl.utils.errors import StateError
from pricectl.utils.logging import get_logger

logger = get_logger(__name__)


class PricingOrchestrator:
    """Runs diff, deploy and destroy for a manifest and saves state afterwards."""

    def __init__(
        self,
        client: Any,
        state_manager: StateManager,
        skip_unchanged_products: bool = True
    ):
        """Initialize pricing orchestrator.

        Args:
            client: Stripe client
            state_manager: State store shared by resolver and deployer
            skip_unchanged_products: Skip Product updates whose recorded hash matches
        """
        self.client = client
        self.state_manager = state_manager
        self.resolver = Resolver(client, state_manager, skip_unchanged_products)
        self.deployer = Deployer(client, state_manager, resolver=self.resolver)

    def diff(self, manifest: StackManifest) -> DiffReport:
        """Show what a deploy would change. Makes no remote writes."""
        logger.info(f"Diffing stack {manifest.stack_id}...")
        return self.resolver.diff_manifest(manifest)

    def deploy(
        self,
        manifest: StackManifest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DeployResult:
        """Deploy the manifest, then persist state even if entries failed."""
        try:
            return self.deployer.deploy(manifest, progress_callback=progress_callback)
        finally:
            self._save_state()

    def destroy(
        self,
        manifest: StackManifest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DestroyResult:
        """Destroy the manifest; a clean run also drops the stack from state."""
        try:
            result = self.deployer.destroy(manifest, progress_callback=progress_callback)
            if not result.has_errors():
                self.state_manager.remove_stack(manifest.stack_id)
            return result
        finally:
            self._save_state()

    def _save_state(self) -> None:
        try:
            self.state_manager.save()
        except StateError as e:
            logger.warning(f"Could not save state: {e.message}")
