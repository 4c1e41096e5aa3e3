"""Stack: root of a construct tree and entry point for synthesis."""

from typing import Dict, Optional

from pricectl.core.construct import Construct
from pricectl.core.manifest import StackManifest
from pricectl.core.resource import Resource
from pricectl.utils.logging import get_logger
from pricectl.utils.stripe_client import DEFAULT_API_VERSION

logger = get_logger(__name__)


class Stack(Construct):
    """A collection of Stripe resources deployed together.

    The API key is only carried here; it is never read from the environment
    by the stack itself. Leaving it unset lets the CLI configuration supply it.
    """

    def __init__(
        self,
        scope: Optional[Construct],
        id: str,
        api_key: Optional[str] = None,
        api_version: Optional[str] = None,
        description: Optional[str] = None,
        tags: Optional[Dict[str, str]] = None
    ):
        super().__init__(scope, id)
        self.api_key = api_key
        self.api_version = api_version
        self.description = description
        self.tags = dict(tags or {})

    def synth(self) -> StackManifest:
        """Flatten the tree into a manifest in declaration order."""
        resources = [
            construct.to_manifest_entry()
            for construct in self.find_all()
            if construct is not self and isinstance(construct, Resource)
        ]

        logger.debug(f"Synthesized stack {self.id} with {len(resources)} resource(s)")

        return StackManifest(
            stack_id=self.id,
            api_version=self.api_version or DEFAULT_API_VERSION,
            description=self.description,
            tags=self.tags,
            resources=resources,
        )
