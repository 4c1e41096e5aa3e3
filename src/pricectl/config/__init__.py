"""Configuration management for pricectl."""

from .models import PricectlConfig
from .parser import Config, ConfigValidationError

__all__ = [
    "PricectlConfig",
    "Config",
    "ConfigValidationError",
]
