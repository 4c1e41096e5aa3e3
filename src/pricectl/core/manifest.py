"""Manifest data models produced by Stack.synth()."""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ResourceKind(str, Enum):
    """Resource kinds pricectl knows how to reconcile."""

    PRODUCT = "Product"
    PRICE = "Price"
    COUPON = "Coupon"
    ENTITLEMENT_FEATURE = "EntitlementFeature"
    BILLING_METER = "BillingMeter"


class ResourceManifestEntry(BaseModel):
    """Snapshot of one resource at synth time."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(..., description="Logical resource ID")
    path: str = Field(..., description="Construct path from the stack root")
    kind: str = Field(..., description="Resource kind (see ResourceKind)")
    properties: Dict[str, Any] = Field(
        default_factory=dict, description="Stripe-facing property bag"
    )
    physical_id: Optional[str] = Field(
        None, description="Stripe ID supplied when importing an existing object"
    )


class StackManifest(BaseModel):
    """Flat, ordered list of resources plus stack-level config."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    stack_id: str = Field(..., description="Stack logical ID")
    api_version: Optional[str] = Field(None, description="Pinned Stripe API version")
    description: Optional[str] = Field(None, description="Stack description")
    tags: Dict[str, str] = Field(default_factory=dict, description="Stack tags")
    resources: List[ResourceManifestEntry] = Field(
        default_factory=list, description="Resources in declaration order"
    )

    def get_resource(self, logical_id: str) -> Optional[ResourceManifestEntry]:
        """Get a manifest entry by logical ID."""
        for entry in self.resources:
            if entry.id == logical_id:
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def write(self, path: Path) -> Path:
        """Write the manifest as JSON, creating parent directories."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "StackManifest":
        """Load a manifest previously written by write()."""
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate(json.load(f))
