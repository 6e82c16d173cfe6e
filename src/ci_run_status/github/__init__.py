"""GitHub API client package."""

from .auth import (
    AuthProvider,
    AuthToken,
    GitHubAppAuth,
    PersonalAccessTokenAuth,
    create_auth_provider,
)
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubResponseFormatError,
    GitHubResultTruncatedError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .pagination import (
    AsyncPaginator,
    PaginatedResponse,
    cancellable,
    raise_if_cancelled,
)
from .rate_limiting import RateLimitInfo, RateLimitManager

__all__ = [
    "AsyncPaginator",
    "AuthProvider",
    "AuthToken",
    "GitHubAppAuth",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubResponseFormatError",
    "GitHubResultTruncatedError",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "PaginatedResponse",
    "PersonalAccessTokenAuth",
    "RateLimitInfo",
    "RateLimitManager",
    "cancellable",
    "create_auth_provider",
    "raise_if_cancelled",
]
