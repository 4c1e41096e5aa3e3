"""Deployer: reconcile a stack manifest against Stripe."""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from pricectl.core.manifest import ResourceManifestEntry, StackManifest
from pricectl.orchestrator.context import DeployContext
from pricectl.orchestrator.resolver import Resolver
from pricectl.provisioners.base import ChangeType
from pricectl.state.manager import StateManager
from pricectl.state.models import ResourceState
from pricectl.utils.errors import ErrorContext, error_handler
from pricectl.utils.logging import LogContext, get_logger

logger = get_logger(__name__)


@dataclass
class DeployedResource:
    """Outcome of deploying one resource."""

    id: str
    kind: str
    physical_id: str
    status: str


@dataclass
class DestroyedResource:
    """Outcome of tearing down one resource."""

    id: str
    kind: str
    status: str


@dataclass
class ResourceError:
    """Failure recorded for one manifest entry."""

    id: str
    kind: str
    error: str


def _count_statuses(items: List[Any]) -> Dict[str, int]:
    summary: Dict[str, int] = {}
    for item in items:
        summary[item.status] = summary.get(item.status, 0) + 1
    return summary


@dataclass
class DeployResult:
    """Result of a deploy: exactly one outcome or error per manifest entry."""

    stack_id: str
    deployed: List[DeployedResource] = field(default_factory=list)
    errors: List[ResourceError] = field(default_factory=list)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def summary(self) -> Dict[str, int]:
        """Count of deployed resources per status."""
        return _count_statuses(self.deployed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stack_id': self.stack_id,
            'deployed': [vars(item) for item in self.deployed],
            'errors': [vars(item) for item in self.errors],
        }


@dataclass
class DestroyResult:
    """Result of a destroy. Entries that were already gone are not listed."""

    stack_id: str
    destroyed: List[DestroyedResource] = field(default_factory=list)
    errors: List[ResourceError] = field(default_factory=list)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def summary(self) -> Dict[str, int]:
        """Count of destroyed resources per status."""
        return _count_statuses(self.destroyed)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'stack_id': self.stack_id,
            'destroyed': [vars(item) for item in self.destroyed],
            'errors': [vars(item) for item in self.errors],
        }


# Type alias for progress callback: (logical id, status or 'failed')
ProgressCallback = Callable[[str, str], None]


class Deployer:
    """Applies and tears down manifests one entry at a time.

    Entries are processed strictly in manifest order for deploy and in
    reverse for destroy. A failure on one entry is recorded in the result
    and processing continues with the next entry; nothing is rolled back.
    """

    def __init__(
        self,
        client: Any,
        state_manager: Optional[StateManager] = None,
        skip_unchanged_products: bool = True,
        resolver: Optional[Resolver] = None
    ):
        """Initialize deployer.

        Args:
            client: Stripe client
            state_manager: State store updated after each successful entry
            skip_unchanged_products: Skip Product updates whose recorded hash matches
            resolver: Override the resolver (and its provisioners)
        """
        self.client = client
        self.state_manager = state_manager
        self.resolver = resolver or Resolver(client, state_manager, skip_unchanged_products)

    def deploy(
        self,
        manifest: StackManifest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DeployResult:
        """Create or update every resource in the manifest.

        Args:
            manifest: Stack manifest to apply
            progress_callback: Called with (logical id, status) per entry

        Returns:
            DeployResult with one outcome or error per entry
        """
        logger.info(f"Deploying stack {manifest.stack_id} ({len(manifest.resources)} resources)")

        result = DeployResult(stack_id=manifest.stack_id)
        context = DeployContext()

        for entry in manifest.resources:
            with LogContext(logger, resource_id=entry.id, resource_type=entry.kind,
                            operation='deploy', stack_id=manifest.stack_id):
                try:
                    deployed = self._deploy_entry(manifest.stack_id, entry, context)
                except Exception as e:
                    self._record_error(result.errors, entry, e, 'deploy')
                    if progress_callback:
                        progress_callback(entry.id, 'failed')
                    continue

            result.deployed.append(deployed)
            if progress_callback:
                progress_callback(entry.id, deployed.status)

        logger.info(f"Deploy of {manifest.stack_id} finished: {result.summary()}, "
                    f"{len(result.errors)} error(s)")
        return result

    def destroy(
        self,
        manifest: StackManifest,
        progress_callback: Optional[ProgressCallback] = None
    ) -> DestroyResult:
        """Delete or deactivate every resource in reverse manifest order.

        Args:
            manifest: Stack manifest to tear down
            progress_callback: Called with (logical id, status) per entry

        Returns:
            DestroyResult listing the resources that were removed
        """
        logger.info(f"Destroying stack {manifest.stack_id} ({len(manifest.resources)} resources)")

        result = DestroyResult(stack_id=manifest.stack_id)

        for entry in reversed(manifest.resources):
            with LogContext(logger, resource_id=entry.id, resource_type=entry.kind,
                            operation='destroy', stack_id=manifest.stack_id):
                try:
                    provisioner = self.resolver.provisioner_for(entry.kind)
                    status = provisioner.destroy(manifest.stack_id, entry)
                except Exception as e:
                    self._record_error(result.errors, entry, e, 'destroy')
                    if progress_callback:
                        progress_callback(entry.id, 'failed')
                    continue

                # The entry is gone either way, so its state goes too
                if self.state_manager is not None:
                    self.state_manager.remove_resource(manifest.stack_id, entry.id)

                if status is None:
                    logger.info(f"{entry.kind} {entry.id} not found, nothing to destroy")
                    if progress_callback:
                        progress_callback(entry.id, 'skipped')
                    continue

            result.destroyed.append(
                DestroyedResource(id=entry.id, kind=entry.kind, status=status.value)
            )
            if progress_callback:
                progress_callback(entry.id, status.value)

        logger.info(f"Destroy of {manifest.stack_id} finished: {result.summary()}, "
                    f"{len(result.errors)} error(s)")
        return result

    def _deploy_entry(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        context: DeployContext
    ) -> DeployedResource:
        provisioner = self.resolver.provisioner_for(entry.kind)
        desired = context.resolve_properties(entry)
        current = provisioner.find_existing(stack_id, entry)
        plan = provisioner.plan(stack_id, entry, desired, current)

        if plan.change_type == ChangeType.NO_CHANGE:
            logger.debug(f"{entry.kind} {entry.id} is up to date")

        outcome = provisioner.provision(plan)
        context.record(entry.id, outcome.physical_id)

        if self.state_manager is not None:
            self.state_manager.set_resource(stack_id, ResourceState(
                logical_id=entry.id,
                physical_id=outcome.physical_id,
                kind=entry.kind,
                path=entry.path,
                properties_hash=StateManager.compute_properties_hash(desired),
            ))

        return DeployedResource(
            id=entry.id,
            kind=entry.kind,
            physical_id=outcome.physical_id,
            status=outcome.status.value,
        )

    def _record_error(
        self,
        errors: List[ResourceError],
        entry: ResourceManifestEntry,
        exception: Exception,
        operation: str
    ) -> None:
        error = error_handler.handle_exception(exception, ErrorContext(
            resource_id=entry.id,
            resource_type=entry.kind,
            operation=operation,
        ))
        error_handler.log_error(error)
        errors.append(ResourceError(id=entry.id, kind=entry.kind, error=error.message))
