"""Base class for Stripe resources declared in a stack."""

from abc import abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Optional

from pricectl.core.construct import Construct
from pricectl.core.manifest import ResourceKind, ResourceManifestEntry
from pricectl.utils.errors import MissingStackAncestorError, ResourceNotFinalizedError

if TYPE_CHECKING:
    from pricectl.core.stack import Stack

# Metadata key under which a finalized resource records its kind and properties
RESOURCE_METADATA_KEY = 'resource'


def omit_unset(params: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None; falsy values such as False or 0 stay."""
    return {key: value for key, value in params.items() if value is not None}


class Resource(Construct):
    """A construct that contributes one entry to the stack manifest.

    Initialization is two-phase. Subclass constructors call
    ``super().__init__`` first, assign all of their own fields, and call
    ``self._finalize()`` as their last statement. Only then is the property
    bag derived, so ``synthesize_properties`` always sees a fully populated
    object.
    """

    kind: ResourceKind

    def __init__(self, scope: Construct, id: str, physical_id: Optional[str] = None):
        """Create a resource.

        Args:
            scope: Owning construct; must have a Stack ancestor
            id: Logical id, unique within scope
            physical_id: Stripe ID of an existing object to adopt

        Raises:
            MissingStackAncestorError: If no ancestor of scope is a Stack
        """
        super().__init__(scope, id)
        self.physical_id = physical_id
        self.stack: "Stack" = self._find_stack()
        self._properties: Optional[Dict[str, Any]] = None

    @abstractmethod
    def synthesize_properties(self) -> Dict[str, Any]:
        """Build the Stripe-facing property bag from typed fields."""

    @property
    def finalized(self) -> bool:
        return self._properties is not None

    @property
    def properties(self) -> Dict[str, Any]:
        if self._properties is None:
            raise ResourceNotFinalizedError(self.path)
        return self._properties

    def _finalize(self) -> None:
        """Derive the property bag and register resource metadata."""
        self._properties = self.synthesize_properties()
        self.add_metadata(RESOURCE_METADATA_KEY, {
            'kind': self.kind.value,
            'properties': self._properties,
        })

    def to_manifest_entry(self) -> ResourceManifestEntry:
        return ResourceManifestEntry(
            id=self.id,
            path=self.path,
            kind=self.kind.value,
            properties=self.properties,
            physical_id=self.physical_id,
        )

    def _find_stack(self) -> "Stack":
        from pricectl.core.stack import Stack

        scope = self.scope
        while scope is not None:
            if isinstance(scope, Stack):
                return scope
            scope = scope.scope

        raise MissingStackAncestorError(self.path)
