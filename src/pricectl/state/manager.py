"""State manager for loading, saving and querying deployment state."""

import hashlib
import json
from pathlib import Path
from typing import Any, Dict, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from pricectl.utils.errors import StateCorruptionError, StateError
from pricectl.utils.logging import get_logger

from .models import STATE_VERSION, ResourceState, StackState, StateFile

logger = get_logger(__name__)

STATE_FILE_NAME = "pricectl.state.json"


class StateManager:
    """Maps (stack id, logical id) to the last deployed Stripe object.

    The file is read once at construction. An unreadable, malformed or
    version-mismatched file is discarded with a warning and the manager
    starts from an empty state; construction never fails. Changes are held
    in memory until ``save()``.
    """

    def __init__(self, state_dir: Optional[Union[str, Path]] = None):
        """
        Initialize StateManager.

        Args:
            state_dir: Directory holding the state file (defaults to cwd)
        """
        self.state_path = Path(state_dir or Path.cwd()).resolve() / STATE_FILE_NAME
        self._state = self._load()

    @property
    def file_path(self) -> Path:
        return self.state_path

    def _load(self) -> StateFile:
        if not self.state_path.exists():
            return StateFile()

        try:
            return self._read()
        except StateCorruptionError as e:
            logger.warning(f"{e.message}; starting from empty state")
            return StateFile()

    def _read(self) -> StateFile:
        """
        Parse the state file.

        Raises:
            StateCorruptionError: If the file cannot be used
        """
        try:
            with open(self.state_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StateCorruptionError(f"Failed to read state file {self.state_path}: {e}")

        if not isinstance(data, dict) or data.get("version") != STATE_VERSION:
            version = data.get("version") if isinstance(data, dict) else None
            raise StateCorruptionError(
                f"Unsupported state file version {version!r} in {self.state_path}"
            )

        try:
            return StateFile.model_validate(data)
        except PydanticValidationError as e:
            raise StateCorruptionError(f"Invalid state file {self.state_path}: {e}")

    def save(self) -> None:
        """
        Write state to disk via a temporary file and rename.

        Raises:
            StateError: If state cannot be saved
        """
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)

            temp_path = self.state_path.with_name(self.state_path.name + ".tmp")
            with open(temp_path, "w", encoding="utf-8") as f:
                json.dump(self._state.to_dict(), f, indent=2)
                f.write("\n")

            temp_path.replace(self.state_path)
        except OSError as e:
            raise StateError(f"Failed to save state file {self.state_path}: {e}", cause=e)

        logger.debug(f"Saved state to {self.state_path}")

    def get_resource(self, stack_id: str, logical_id: str) -> Optional[ResourceState]:
        stack = self._state.stacks.get(stack_id)
        return stack.get_resource(logical_id) if stack else None

    def set_resource(self, stack_id: str, resource: ResourceState) -> None:
        stack = self._state.stacks.setdefault(stack_id, StackState())
        stack.resources[resource.logical_id] = resource

    def remove_resource(self, stack_id: str, logical_id: str) -> None:
        """Remove a resource, pruning the stack entry once it is empty."""
        stack = self._state.stacks.get(stack_id)
        if stack is None:
            return

        stack.resources.pop(logical_id, None)
        if not stack.resources:
            del self._state.stacks[stack_id]

    def remove_stack(self, stack_id: str) -> None:
        self._state.stacks.pop(stack_id, None)

    def get_stack(self, stack_id: str) -> Optional[StackState]:
        return self._state.stacks.get(stack_id)

    @staticmethod
    def compute_properties_hash(properties: Dict[str, Any]) -> str:
        """
        Digest a property bag independently of key order.

        Object keys are sorted at every depth; list order is preserved.

        Args:
            properties: Property bag

        Returns:
            First 16 hex characters of the SHA-256 of the canonical JSON
        """
        canonical = json.dumps(
            properties, sort_keys=True, separators=(",", ":"), ensure_ascii=False
        )
        return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]
