"""Settings validation for the keygen CLI."""

from typing import Any, Dict, List

import jsonschema

from ..utils.timeutils import parse_duration
from .schemas import KEYGEN_CONFIG_SCHEMA


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    def __init__(self, errors: List[str]):
        self.errors = errors
        super().__init__(f"Configuration validation failed: {'; '.join(errors)}")


class ConfigValidator:
    """Validates keygen settings files."""

    def validate_config(self, config: Dict[str, Any]) -> List[str]:
        """
        Validate keygen settings.

        Args:
            config: Configuration dictionary to validate

        Returns:
            List[str]: List of validation errors (empty if valid)
        """
        errors = []

        try:
            jsonschema.validate(config, KEYGEN_CONFIG_SCHEMA)
        except jsonschema.ValidationError as e:
            errors.append(f"Schema validation failed: {e.message}")
        except jsonschema.SchemaError as e:
            errors.append(f"Schema error: {e.message}")

        if isinstance(config, dict) and isinstance(config.get("keygen"), dict):
            settings = config["keygen"]

            if "max_age" in settings:
                errors.extend(self._validate_max_age(settings["max_age"]))

        return errors

    def _validate_max_age(self, value: Any) -> List[str]:
        """Validate the retention window."""
        errors = []

        if not isinstance(value, str):
            return errors

        try:
            duration = parse_duration(value)
        except ValueError:
            errors.append(f"max_age must be a duration like 2160h or 90d: {value}")
            return errors

        if duration.total_seconds() <= 0:
            errors.append(f"max_age must be positive: {value}")

        return errors
