"""Construct tree, resource base class, stacks and manifest models."""

from .construct import Construct
from .manifest import ResourceKind, ResourceManifestEntry, StackManifest
from .resource import Resource
from .stack import Stack

__all__ = [
    "Construct",
    "Resource",
    "ResourceKind",
    "ResourceManifestEntry",
    "Stack",
    "StackManifest",
]
