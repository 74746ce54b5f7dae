"""Configuration management for the keygen CLI."""

import os
from typing import Any, Dict, Optional

import yaml
from jinja2 import Environment, FileSystemLoader

from .schemas import DEFAULT_SETTINGS
from .validator import ConfigValidationError, ConfigValidator

SETTINGS_FILENAME = "keygen.yml"

# Environment variables read when the CLI option is not given
ENV_VARS = {
    "project": "DOPPLER_PROJECT",
    "config": "DOPPLER_CONFIG",
    "key_prefix": "KEYGEN_KEY_PREFIX",
}


class ConfigManager:
    """Loads keygen settings and merges them with defaults."""

    def __init__(self, path: Optional[str] = None, settings_file: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            path: Directory searched for keygen.yml (defaults to current directory)
            settings_file: Explicit settings file, overrides the search
        """
        self.path = path or os.getcwd()
        self.settings_file = settings_file
        self.validator = ConfigValidator()
        self._config_cache: Dict[str, Dict[str, Any]] = {}

        templates_dir = os.path.join(os.path.dirname(__file__), "..", "templates")
        self.jinja_env = Environment(loader=FileSystemLoader(templates_dir), trim_blocks=True, lstrip_blocks=True)

    def get_config_path(self) -> Optional[str]:
        """Get path to the settings file, or None if there is none."""
        if self.settings_file:
            return self.settings_file

        candidate = os.path.join(self.path, SETTINGS_FILENAME)
        if os.path.exists(candidate):
            return candidate

        return None

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """
        Load the settings file.

        Args:
            validate: Whether to validate the configuration

        Returns:
            Dict[str, Any]: Parsed file contents (empty when there is no file)

        Raises:
            ConfigValidationError: If validation fails
            FileNotFoundError: If an explicit settings file doesn't exist
            yaml.YAMLError: If YAML parsing fails
        """
        config_path = self.get_config_path()
        if not config_path:
            return {}

        if config_path in self._config_cache:
            return self._config_cache[config_path]

        try:
            with open(config_path, encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"Error parsing YAML file {config_path}: {e}")

        if config is None:
            config = {}

        if validate:
            errors = self.validator.validate_config(config)
            if errors:
                raise ConfigValidationError(errors)

        self._config_cache[config_path] = config
        return config

    def get_settings(self, overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Resolve effective settings.

        Precedence: overrides (CLI options) > environment variables >
        settings file > defaults. ``None`` overrides are ignored.

        Args:
            overrides: Values given on the command line

        Returns:
            Dict[str, Any]: Effective settings

        Raises:
            ConfigValidationError: If the file or an environment value is invalid
        """
        settings = dict(DEFAULT_SETTINGS)
        settings.update(self.load_config().get("keygen", {}))

        env_settings = {key: os.environ[env_var] for key, env_var in ENV_VARS.items() if os.environ.get(env_var)}
        errors = self.validator.validate_config({"keygen": env_settings})
        if errors:
            names = ", ".join(ENV_VARS[key] for key in env_settings)
            raise ConfigValidationError([f"{error} (from environment: {names})" for error in errors])
        settings.update(env_settings)

        for key, value in (overrides or {}).items():
            if value is not None:
                settings[key] = value

        return settings

    def create_default_config(self, template_vars: Optional[Dict[str, Any]] = None) -> str:
        """
        Render the default settings file.

        Args:
            template_vars: Variables for template rendering

        Returns:
            str: Rendered YAML
        """
        template_vars = dict(DEFAULT_SETTINGS, **(template_vars or {}))
        template = self.jinja_env.get_template(f"{SETTINGS_FILENAME}.j2")
        return template.render(**template_vars)

    def initialize_config(self, project: str, config: str, force: bool = False, **template_vars) -> str:
        """
        Write a keygen.yml into the working directory.

        Args:
            project: Doppler project name
            config: Doppler config name
            force: Overwrite an existing file

        Returns:
            str: Path to created configuration file

        Raises:
            FileExistsError: If the file exists and force is not set
            ConfigValidationError: If the rendered file does not validate
        """
        config_path = os.path.join(self.path, SETTINGS_FILENAME)
        if os.path.exists(config_path) and not force:
            raise FileExistsError(f"Configuration file already exists: {config_path}")

        rendered = self.create_default_config(dict(template_vars, project=project, config=config))

        errors = self.validator.validate_config(yaml.safe_load(rendered))
        if errors:
            raise ConfigValidationError(errors)

        with open(config_path, "w", encoding="utf-8") as f:
            f.write(rendered)

        self._config_cache.pop(config_path, None)
        return config_path
