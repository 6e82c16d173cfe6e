"""Configuration for ci-run-status.

Example:
    >>> from ci_run_status.config import load_config
    >>> config = load_config("config.yaml")
    >>> config.evaluator.page_size
    100
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
)
from .loader import CONFIG_PATH_ENV_VAR, ConfigurationLoader, load_config
from .models import Config, EvaluatorConfig, GitHubConfig, LogLevel, SystemConfig

__all__ = [
    "CONFIG_PATH_ENV_VAR",
    "Config",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "EvaluatorConfig",
    "GitHubConfig",
    "LogLevel",
    "SystemConfig",
    "load_config",
]
