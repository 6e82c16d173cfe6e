"""Configuration loading.

The loading hierarchy is:
1. Default values from Pydantic models
2. Configuration file (YAML)
3. Environment variables
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .exceptions import ConfigurationFileError, ConfigurationValidationError
from .models import Config

CONFIG_PATH_ENV_VAR = "CI_RUN_STATUS_CONFIG"

# Environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "GITHUB_TOKEN": ("github", "token"),
    "GITHUB_API_URL": ("github", "base_url"),
    "GITHUB_APP_ID": ("github", "app_id"),
    "GITHUB_APP_PRIVATE_KEY": ("github", "private_key"),
    "GITHUB_APP_INSTALLATION_ID": ("github", "installation_id"),
    "CI_RUN_STATUS_LOG_LEVEL": ("system", "log_level"),
}


class ConfigurationLoader:
    """Handles loading and validation of configuration from various sources."""

    def __init__(self) -> None:
        self._config: Config | None = None
        self._config_file_path: Path | None = None

    @property
    def config(self) -> Config | None:
        return self._config

    @property
    def config_file_path(self) -> Path | None:
        return self._config_file_path

    def load_from_file(self, config_path: str | Path) -> Config:
        """Load configuration from a YAML file, then apply environment overrides.

        Args:
            config_path: Path to the YAML configuration file

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationFileError: If file cannot be read or parsed
            ConfigurationValidationError: If configuration validation fails
        """
        config_path = Path(config_path)

        if not config_path.is_file():
            raise ConfigurationFileError(
                f"Configuration file not found: {config_path}",
                file_path=str(config_path),
            )

        try:
            with open(config_path, encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationFileError(
                f"Failed to parse YAML configuration: {e}", file_path=str(config_path)
            ) from e
        except OSError as e:
            raise ConfigurationFileError(
                f"Failed to read configuration file: {e}", file_path=str(config_path)
            ) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise ConfigurationFileError(
                "Configuration file must contain a mapping",
                file_path=str(config_path),
            )

        config = self.load_from_dict(_merge(config_data, self._env_overrides()))
        self._config_file_path = config_path.resolve()
        return config

    def load_from_dict(self, config_data: dict[str, Any]) -> Config:
        """Load configuration from a dictionary.

        Raises:
            ConfigurationValidationError: If configuration validation fails
        """
        try:
            self._config = Config(**config_data)
        except ValidationError as e:
            raise ConfigurationValidationError(
                f"Configuration validation failed: {e}",
                validation_errors=e.errors(),
            ) from e
        return self._config

    def load_from_env(self) -> Config:
        """Load configuration from defaults and environment variables only."""
        return self.load_from_dict(self._env_overrides())

    def _env_overrides(self) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for var_name, (section, key) in ENV_OVERRIDES.items():
            value = os.getenv(var_name)
            if value:
                overrides.setdefault(section, {})[key] = value
        return overrides


def _merge(base: dict[str, Any], overrides: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a file or, failing that, the environment.

    Without an explicit path, ``CI_RUN_STATUS_CONFIG`` names the file.
    """
    loader = ConfigurationLoader()
    path = config_path or os.getenv(CONFIG_PATH_ENV_VAR)
    if path:
        return loader.load_from_file(path)
    return loader.load_from_env()
