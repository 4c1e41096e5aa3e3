"""Construct tree: hierarchical naming and ownership for stack definitions."""

from typing import Any, Dict, List, Optional

from pricectl.utils.errors import DuplicateIdentifierError, EmptyIdentifierError


class Construct:
    """A node in the construct tree.

    Every construct has a logical id that is unique among its siblings and an
    optional owning scope. Identity is fixed at construction: the tree only
    ever grows by appending children, so it can never contain a cycle.
    """

    def __init__(self, scope: Optional["Construct"], id: str):
        """Create a construct and attach it to its scope.

        Args:
            scope: Owning construct, or None for a root
            id: Logical id, unique within scope

        Raises:
            EmptyIdentifierError: If id is empty or whitespace
            DuplicateIdentifierError: If scope already has a child named id
        """
        if not isinstance(id, str) or not id.strip():
            raise EmptyIdentifierError()

        if scope is not None and scope.find_child(id) is not None:
            raise DuplicateIdentifierError(id, scope.path)

        self._id = id
        self._scope = scope
        self._children: List[Construct] = []
        self._metadata: Dict[str, Any] = {}

        if scope is not None:
            scope._children.append(self)

    @property
    def id(self) -> str:
        return self._id

    @property
    def scope(self) -> Optional["Construct"]:
        return self._scope

    @property
    def children(self) -> List["Construct"]:
        return list(self._children)

    @property
    def path(self) -> str:
        """Slash-joined ids from the root down to this construct."""
        parts = []
        current: Optional[Construct] = self
        while current is not None:
            parts.append(current.id)
            current = current.scope
        return '/'.join(reversed(parts))

    def find_child(self, id: str) -> Optional["Construct"]:
        for child in self._children:
            if child.id == id:
                return child
        return None

    def add_metadata(self, key: str, value: Any) -> None:
        self._metadata[key] = value

    def get_metadata(self, key: str) -> Any:
        return self._metadata.get(key)

    def find_all(self) -> List["Construct"]:
        """Return this construct and all descendants in pre-order."""
        result: List[Construct] = [self]
        for child in self._children:
            result.extend(child.find_all())
        return result

    def __str__(self) -> str:
        return self.path

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.path}>"
