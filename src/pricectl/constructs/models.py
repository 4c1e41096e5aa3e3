"""Pydantic models for nested resource property blocks.

Constructs accept either these models or plain dicts with the same keys;
``coerce_block`` turns both into a validated model.
"""

from typing import Any, Literal, Optional, Type, TypeVar, Union

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError

from pricectl.utils.errors import ValidationError

BlockT = TypeVar("BlockT", bound=BaseModel)


class Recurring(BaseModel):
    """Recurring components of a Price."""

    interval: Literal["day", "week", "month", "year"]
    interval_count: Optional[int] = Field(None, ge=1, description="Intervals between billings")
    usage_type: Optional[Literal["metered", "licensed"]] = None
    trial_period_days: Optional[int] = Field(None, ge=0)


class PriceTier(BaseModel):
    """One tier of a tiered Price. ``up_to='inf'`` marks the last tier."""

    up_to: Union[int, Literal["inf"]]
    unit_amount: Optional[int] = Field(None, ge=0)
    unit_amount_decimal: Optional[str] = None
    flat_amount: Optional[int] = Field(None, ge=0)
    flat_amount_decimal: Optional[str] = None


class TransformQuantity(BaseModel):
    """Transformation applied to reported quantity before billing."""

    divide_by: int = Field(..., ge=1)
    round: Literal["up", "down"]


class DefaultAggregation(BaseModel):
    """How a Meter aggregates its events."""

    formula: Literal["count", "sum", "last"]


class CustomerMapping(BaseModel):
    """How a Meter event is mapped to a customer."""

    event_payload_key: str = Field(..., min_length=1)
    type: Literal["by_id"] = "by_id"


class ValueSettings(BaseModel):
    """Where a Meter reads the value of a usage event."""

    event_payload_key: str = Field(..., min_length=1)


def coerce_block(
    model_cls: Type[BlockT],
    value: Any,
    field_name: str
) -> Optional[BlockT]:
    """Validate a nested block given as a model instance or a dict.

    Args:
        model_cls: Target pydantic model
        value: Model instance, dict or None
        field_name: Property name used in the error message

    Returns:
        Validated model, or None when value is None

    Raises:
        ValidationError: If value does not match the model
    """
    if value is None or isinstance(value, model_cls):
        return value

    try:
        return model_cls.model_validate(value)
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(loc) for loc in err['loc']) or field_name}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {field_name}: {errors}") from e


def dump_block(block: Optional[BaseModel]) -> Optional[dict]:
    """Serialize a block to its wire shape, omitting unset keys."""
    if block is None:
        return None
    return block.model_dump(exclude_none=True)
