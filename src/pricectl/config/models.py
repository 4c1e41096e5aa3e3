"""Pydantic models for configuration schema."""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from pricectl.utils.stripe_client import DEFAULT_API_VERSION

LOG_LEVELS = ("debug", "info", "warning", "error")


class PricectlConfig(BaseModel):
    """Settings read from pricectl.yaml and the environment."""

    app: str = Field("pricectl.py", min_length=1, description="Python file defining the stack")
    output_dir: str = Field("pricectl.out", min_length=1, description="Directory for synth output")
    state_dir: str = Field(".", min_length=1, description="Directory holding pricectl.state.json")
    api_key: Optional[str] = Field(None, description="Stripe secret key")
    api_version: str = Field(DEFAULT_API_VERSION, description="Stripe API version to pin")
    log_level: str = Field("info", description="Console log level")
    log_dir: Optional[str] = Field(".pricectl/logs", description="Directory for JSON log files")
    skip_unchanged_products: bool = Field(
        True, description="Skip Product updates when the recorded properties hash matches"
    )
    max_retries: int = Field(3, ge=0, le=10, description="Retries for transient API failures")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level name."""
        level = v.lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of: {', '.join(LOG_LEVELS)}")
        return level

    @field_validator("api_key")
    @classmethod
    def validate_api_key(cls, v: Optional[str]) -> Optional[str]:
        """Validate Stripe key prefix."""
        if v is None or v == "":
            return None
        if not v.startswith(("sk_", "rk_")):
            raise ValueError("Stripe API key must be a secret (sk_) or restricted (rk_) key")
        return v
