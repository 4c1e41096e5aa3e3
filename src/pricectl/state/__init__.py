"""State management module for tracking deployed resources."""

from .manager import STATE_FILE_NAME, StateManager
from .models import STATE_VERSION, ResourceState, StackState, StateFile

__all__ = [
    "ResourceState",
    "StackState",
    "StateFile",
    "StateManager",
    "STATE_FILE_NAME",
    "STATE_VERSION",
]
