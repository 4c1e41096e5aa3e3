"""State file data models."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

STATE_VERSION = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResourceState(BaseModel):
    """Last deployed identity of one resource."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    logical_id: str = Field(..., description="Logical resource ID")
    physical_id: str = Field(..., description="Stripe object ID")
    kind: str = Field(
        ...,
        validation_alias=AliasChoices("kind", "type"),
        description="Resource kind",
    )
    path: str = Field(..., description="Construct path at deploy time")
    last_deployed_at: datetime = Field(
        default_factory=utc_now, description="Timestamp of the last successful deploy"
    )
    properties_hash: str = Field(..., description="Digest of the deployed property bag")


class StackState(BaseModel):
    """Resources deployed for one stack, keyed by logical ID."""

    resources: Dict[str, ResourceState] = Field(default_factory=dict)

    def get_resource(self, logical_id: str) -> Optional[ResourceState]:
        return self.resources.get(logical_id)


class StateFile(BaseModel):
    """Complete on-disk state."""

    version: int = Field(STATE_VERSION, description="State file format version")
    stacks: Dict[str, StackState] = Field(
        default_factory=dict, description="Stacks keyed by stack ID"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json", by_alias=True)
