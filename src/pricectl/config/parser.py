"""YAML configuration parser for pricectl."""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from pricectl.utils.errors import ConfigurationError

from .models import PricectlConfig

DEFAULT_CONFIG_FILE = "pricectl.yaml"

# Environment variable -> config field
ENV_OVERRIDES = {
    "STRIPE_SECRET_KEY": "api_key",
    "PRICECTL_STATE_DIR": "state_dir",
    "PRICECTL_LOG_LEVEL": "log_level",
}


class ConfigValidationError(ConfigurationError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message)
        self.errors = errors or []

    def __str__(self) -> str:
        """Format validation errors for display."""
        if not self.errors:
            return self.message

        error_lines = [self.message, ""]
        for error in self.errors:
            location = " -> ".join(str(loc) for loc in error.get("loc", []))
            msg = error.get("msg", "Unknown error")
            error_lines.append(f"  - {location}: {msg}")

        return "\n".join(error_lines)


class Config:
    """Configuration manager for pricectl.

    Values are layered: model defaults, then pricectl.yaml, then environment
    variables, then explicit overrides (command line flags).
    """

    def __init__(self, config_path: str = DEFAULT_CONFIG_FILE):
        """Initialize configuration manager.

        Args:
            config_path: Path to pricectl.yaml; a missing file means defaults
        """
        self.config_path = Path(config_path)
        self.data: Dict[str, Any] = {}
        self.settings: PricectlConfig = PricectlConfig()

    def load(self, overrides: Optional[Dict[str, Any]] = None) -> "Config":
        """Load and validate configuration.

        Args:
            overrides: Values that win over file and environment (None values ignored)

        Returns:
            Self for method chaining

        Raises:
            ConfigValidationError: If configuration is invalid
        """
        self.data = self._read_file()

        for env_var, field_name in ENV_OVERRIDES.items():
            value = os.environ.get(env_var)
            if value:
                self.data[field_name] = value

        for key, value in (overrides or {}).items():
            if value is not None:
                self.data[key] = value

        try:
            self.settings = PricectlConfig(**self.data)
        except ValidationError as e:
            errors = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
            raise ConfigValidationError(
                f"Configuration validation failed with {len(errors)} error(s)", errors
            )

        return self

    def _read_file(self) -> Dict[str, Any]:
        if not self.config_path.exists():
            return {}

        try:
            with open(self.config_path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigValidationError(f"Failed to parse YAML: {e}")

        if not isinstance(data, dict):
            raise ConfigValidationError(
                f"{self.config_path} must contain a mapping of settings"
            )
        return data

    def resolve_api_key(self, stack_api_key: Optional[str] = None) -> str:
        """Pick the Stripe key: the stack's own key, else configuration.

        Raises:
            ConfigurationError: If no key is available
        """
        api_key = stack_api_key or self.settings.api_key
        if not api_key:
            raise ConfigurationError(
                "No Stripe API key configured",
                suggestions=[
                    "Pass api_key to the Stack",
                    "Set the STRIPE_SECRET_KEY environment variable",
                    f"Set api_key in {self.config_path}",
                ],
            )
        return api_key

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, with the API key masked."""
        data = self.settings.model_dump()
        if data.get("api_key"):
            data["api_key"] = data["api_key"][:8] + "..."
        return data
