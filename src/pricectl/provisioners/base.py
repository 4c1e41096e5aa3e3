"""Base provisioner interface and shared lookup logic."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional

from pricectl.core.manifest import ResourceKind, ResourceManifestEntry
from pricectl.provisioners.identity import build_tag_query, compact
from pricectl.state.manager import StateManager
from pricectl.utils.errors import is_not_found
from pricectl.utils.logging import get_logger
from pricectl.utils.stripe_client import StripeService

logger = get_logger(__name__)


class ChangeType(Enum):
    """Type of change for a resource."""
    CREATE = "create"
    UPDATE = "update"
    REPLACE = "replace"
    NO_CHANGE = "no_change"


class DeployStatus(str, Enum):
    """Outcome of applying one resource."""
    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


class DestroyStatus(str, Enum):
    """Outcome of tearing down one resource."""
    DELETED = "deleted"
    DEACTIVATED = "deactivated"


@dataclass
class ProvisionPlan:
    """Plan for provisioning a resource."""
    entry: ResourceManifestEntry
    desired: Dict[str, Any]
    change_type: ChangeType
    current: Optional[Dict[str, Any]]


@dataclass
class ProvisionResult:
    """Stripe object left in place by a provision call."""
    physical_id: str
    status: DeployStatus


class BaseProvisioner(ABC):
    """Base class for all resource provisioners.

    A provisioner owns everything kind-specific: how an existing object is
    found, how a remote object is reduced to a comparable property bag, how
    a change is decided and which calls apply or tear it down.
    """

    kind: ResourceKind

    def __init__(self, client: Any, state_manager: Optional[StateManager] = None):
        """Initialize provisioner with a Stripe client.

        Args:
            client: Client exposing per-kind services (see StripeClient)
            state_manager: State store used for physical id lookups
        """
        self.client = client
        self.state_manager = state_manager

    @abstractmethod
    def find_existing(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[Dict[str, Any]]:
        """Fetch the remote object managed by entry.

        Args:
            stack_id: Owning stack ID
            entry: Manifest entry

        Returns:
            Remote object as a dict, or None if it does not exist
        """
        pass

    @abstractmethod
    def normalize(self, remote: Dict[str, Any]) -> Dict[str, Any]:
        """Reduce a remote object to the user-configurable property bag."""
        pass

    @abstractmethod
    def provision(self, plan: ProvisionPlan) -> ProvisionResult:
        """Execute the provisioning plan."""
        pass

    @abstractmethod
    def destroy(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[DestroyStatus]:
        """Tear down the remote object.

        Returns:
            Status of the teardown, or None when there was nothing to remove
        """
        pass

    def canonicalize(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """Comparable form of a property bag: no None values, no empty metadata."""
        canonical = compact(properties)
        if not canonical.get('metadata'):
            canonical.pop('metadata', None)
        return canonical

    def has_changes(self, desired: Dict[str, Any], current: Dict[str, Any]) -> bool:
        """Whether the remote object differs from the desired bag."""
        return self.canonicalize(desired) != self.canonicalize(self.normalize(current))

    def plan(
        self,
        stack_id: str,
        entry: ResourceManifestEntry,
        desired: Dict[str, Any],
        current: Optional[Dict[str, Any]]
    ) -> ProvisionPlan:
        """Determine what changes are needed for the resource.

        Args:
            stack_id: Owning stack ID
            entry: Manifest entry
            desired: Property bag with references resolved
            current: Remote object, or None if it does not exist

        Returns:
            ProvisionPlan describing the changes needed
        """
        if current is None:
            change_type = ChangeType.CREATE
        elif self.has_changes(desired, current):
            change_type = ChangeType.UPDATE
        else:
            change_type = ChangeType.NO_CHANGE

        return ProvisionPlan(entry=entry, desired=desired, change_type=change_type, current=current)

    def _known_physical_id(self, stack_id: str, entry: ResourceManifestEntry) -> Optional[str]:
        """Physical id from the state store, else the one imported on the entry."""
        if self.state_manager is not None:
            state = self.state_manager.get_resource(stack_id, entry.id)
            if state is not None and state.physical_id:
                return state.physical_id
        return entry.physical_id

    def _find_by_identity(
        self,
        service: StripeService,
        stack_id: str,
        entry: ResourceManifestEntry
    ) -> Optional[Dict[str, Any]]:
        """Retrieve by known physical id, falling back to a tag search.

        A not-found on the known id means the state entry is stale; any other
        failure propagates.
        """
        physical_id = self._known_physical_id(stack_id, entry)
        if physical_id:
            try:
                return service.retrieve(physical_id)
            except Exception as e:
                if not is_not_found(e):
                    raise
                logger.warning(
                    f"{entry.kind} {entry.id}: recorded id {physical_id} no longer exists, "
                    f"searching by tag"
                )

        results = service.search(build_tag_query(entry.id), limit=1)
        return results[0] if results else None

    def _find_by_key(
        self,
        service: StripeService,
        key: str,
        value: Any
    ) -> Optional[Dict[str, Any]]:
        """First object of a listing whose ``key`` equals value."""
        items: List[Dict[str, Any]] = service.list(limit=100)
        for item in items:
            if item.get(key) == value:
                return item
        return None
