"""Configuration management for the keygen CLI."""

from .manager import ConfigManager
from .schemas import DEFAULT_SETTINGS, KEYGEN_CONFIG_SCHEMA
from .validator import ConfigValidationError, ConfigValidator

__all__ = [
    "ConfigManager",
    "ConfigValidationError",
    "ConfigValidator",
    "DEFAULT_SETTINGS",
    "KEYGEN_CONFIG_SCHEMA",
]
