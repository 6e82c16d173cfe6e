"""Pydantic configuration models.

Environment variables are substituted in string values using the format
``${VAR_NAME}`` with optional defaults: ``${VAR_NAME:default_value}``.
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

ENV_VAR_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(validate_assignment=True, extra="forbid")

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute environment variables in string values.

        Raises:
            ValueError: If a required environment variable is missing
        """
        if not isinstance(values, dict):
            return values

        def replacer(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ValueError(f"Required environment variable '{var_name}' not found")

        def substitute_value(value: Any) -> Any:
            if isinstance(value, str):
                return ENV_VAR_PATTERN.sub(replacer, value)
            elif isinstance(value, dict):
                return {k: substitute_value(v) for k, v in value.items()}
            elif isinstance(value, list):
                return [substitute_value(item) for item in value]
            return value

        return {key: substitute_value(value) for key, value in values.items()}


class SystemConfig(BaseConfigModel):
    """Process-wide settings."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")


class GitHubConfig(BaseConfigModel):
    """GitHub API connection and credentials."""

    base_url: str = Field(
        default="https://api.github.com", description="GitHub REST API base URL"
    )

    token: str | None = Field(
        default=None, description="Personal access token or Actions GITHUB_TOKEN"
    )

    app_id: str | None = Field(default=None, description="GitHub App ID")

    private_key: str | None = Field(
        default=None, description="GitHub App private key (PEM)"
    )

    installation_id: str | None = Field(
        default=None, description="GitHub App installation ID"
    )

    timeout: int = Field(
        default=30, ge=1, le=300, description="Request timeout in seconds"
    )

    max_retries: int = Field(
        default=3, ge=0, le=10, description="Retries for transient request failures"
    )

    retry_backoff_factor: float = Field(
        default=2.0, ge=0.0, le=60.0, description="Exponential backoff base in seconds"
    )

    rate_limit_buffer: int = Field(
        default=100,
        ge=0,
        description="Requests to hold back before the rate limit resets",
    )

    user_agent: str = Field(default="ci-run-status/0.1", description="User-Agent")

    max_concurrent_requests: int = Field(
        default=10, ge=1, le=100, description="Concurrent in-flight requests"
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("token", "app_id", "private_key", "installation_id")
    @classmethod
    def empty_as_none(cls, v: str | None) -> str | None:
        return v or None

    @model_validator(mode="after")
    def validate_app_credentials(self) -> "GitHubConfig":
        if bool(self.app_id) != bool(self.private_key):
            raise ValueError("app_id and private_key must be configured together")
        return self


class EvaluatorConfig(BaseConfigModel):
    """Run status evaluation settings."""

    page_size: int = Field(
        default=100, ge=1, le=100, description="Check runs per page request"
    )

    latest_only: bool = Field(
        default=True,
        description="Only consider the latest run of each check (ignore reruns)",
    )

    max_pages: int | None = Field(
        default=None, ge=1, description="Upper bound on check-run pages per query"
    )


class Config(BaseConfigModel):
    """Root configuration."""

    system: SystemConfig = Field(default_factory=SystemConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    evaluator: EvaluatorConfig = Field(default_factory=EvaluatorConfig)
