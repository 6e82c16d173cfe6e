"""GitHub API rate limit tracking."""

import logging
import time
from collections.abc import Mapping
from dataclasses import dataclass, field

from .exceptions import GitHubRateLimitError

logger = logging.getLogger(__name__)


@dataclass
class RateLimitInfo:
    """Rate limit snapshot parsed from X-RateLimit-* headers."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"

    @property
    def seconds_until_reset(self) -> float:
        return max(0, self.reset - time.time())


@dataclass
class RateLimitManager:
    """Tracks the most recent rate limit per resource and refuses requests
    that would eat into the reserved buffer.

    The check-runs and commit status endpoints both count against ``core``.
    """

    buffer: int = 100
    _rate_limits: dict[str, RateLimitInfo] = field(default_factory=dict)

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        return self._rate_limits.get(resource)

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        """Update rate limit info from response headers.

        Args:
            headers: HTTP response headers from GitHub API
        """
        if "X-RateLimit-Limit" not in headers:
            return

        try:
            rate_limit = RateLimitInfo(
                limit=int(headers.get("X-RateLimit-Limit", 5000)),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except (ValueError, TypeError):
            logger.debug(f"Ignoring unparseable rate limit headers: {dict(headers)}")
            return

        self._rate_limits[rate_limit.resource] = rate_limit

    def check_rate_limit(self, resource: str = "core") -> None:
        """Raise if the remaining budget is inside the reserved buffer.

        Raises:
            GitHubRateLimitError: If the request should not be sent before reset
        """
        rate_limit = self.get_rate_limit(resource)
        if not rate_limit:
            return

        if rate_limit.remaining <= self.buffer and rate_limit.seconds_until_reset > 0:
            raise GitHubRateLimitError(
                f"Rate limit approaching for {resource}. "
                f"Remaining: {rate_limit.remaining}, "
                f"Reset in {rate_limit.seconds_until_reset:.0f} seconds",
                reset_time=rate_limit.reset,
                remaining=rate_limit.remaining,
                limit=rate_limit.limit,
            )
