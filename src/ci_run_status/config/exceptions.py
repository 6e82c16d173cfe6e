"""Errors raised while loading ci-run-status configuration."""

from typing import Any


class ConfigurationError(Exception):
    """Configuration could not be loaded; the CLI exits with status 2."""


class ConfigurationFileError(ConfigurationError):
    """The YAML file is missing, unreadable, or not a mapping."""

    def __init__(self, message: str, file_path: str | None = None):
        super().__init__(message)
        self.file_path = file_path


class ConfigurationValidationError(ConfigurationError):
    """Values failed model validation.

    ``validation_errors`` holds pydantic's ``errors()`` list, one entry per
    offending field.
    """

    def __init__(self, message: str, validation_errors: list[Any] | None = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []
