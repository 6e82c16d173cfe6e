"""Async GitHub REST API client with authentication, rate limiting, and pagination."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubResponseFormatError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .pagination import MAX_PER_PAGE, AsyncPaginator, PaginatedResponse
from .rate_limiting import RateLimitManager

if TYPE_CHECKING:
    from ..config.models import GitHubConfig

logger = logging.getLogger(__name__)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    timeout: int = 30
    max_retries: int = 3
    retry_backoff_factor: float = 2.0
    rate_limit_buffer: int = 100
    user_agent: str = "ci-run-status/0.1"
    max_concurrent_requests: int = 10

    @classmethod
    def from_config(cls, config: "GitHubConfig") -> "GitHubClientConfig":
        return cls(
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            retry_backoff_factor=config.retry_backoff_factor,
            rate_limit_buffer=config.rate_limit_buffer,
            user_agent=config.user_agent,
            max_concurrent_requests=config.max_concurrent_requests,
        )


@dataclass
class GitHubResponse:
    """Decoded response: status, headers, and parsed JSON body (None if empty)."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""


class GitHubClient:
    """Async GitHub API client.

    Transient faults (timeouts, connection errors, 5xx) are retried with
    exponential backoff; every other error status is raised immediately as the
    matching ``GitHubError`` subclass.
    """

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager(buffer=self.config.rate_limit_buffer)

        # HTTP session will be initialized on first use
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> None:
        """Ensure HTTP session is initialized."""
        if self._session is None or self._session.closed:
            async with self._session_lock:
                if self._session is None or self._session.closed:
                    timeout = aiohttp.ClientTimeout(total=self.config.timeout)
                    connector = aiohttp.TCPConnector(limit=100, limit_per_host=30)

                    self._session = aiohttp.ClientSession(
                        timeout=timeout,
                        connector=connector,
                        headers={
                            "User-Agent": self.config.user_agent,
                            "Accept": "application/vnd.github+json",
                            "X-GitHub-Api-Version": "2022-11-28",
                        },
                    )

    async def close(self) -> None:
        """Close HTTP session and cleanup resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _generate_correlation_id(self) -> str:
        return str(uuid.uuid4())[:8]

    def _url(self, path: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{path.lstrip('/')}"

    async def _make_request(
        self,
        method: str,
        url: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        correlation_id: str | None = None,
    ) -> GitHubResponse:
        """Make HTTP request with retry logic and error handling.

        Args:
            method: HTTP method
            url: Request URL
            params: Query parameters
            headers: Additional headers
            correlation_id: Request correlation ID

        Returns:
            Decoded response

        Raises:
            GitHubError: Various GitHub API errors
        """
        if not correlation_id:
            correlation_id = self._generate_correlation_id()

        self.rate_limiter.check_rate_limit()

        request_headers = dict(headers or {})
        auth_token = await self.auth.get_token()
        request_headers.update(auth_token.to_header())

        await self._ensure_session()
        if not self._session:
            raise GitHubConnectionError("Failed to initialize HTTP session")

        last_exception: GitHubError | None = None
        for attempt in range(self.config.max_retries + 1):
            try:
                async with self._request_semaphore:
                    start_time = time.monotonic()

                    logger.debug(
                        f"GitHub API request [{correlation_id}] {method} {url} "
                        f"params={params} (attempt {attempt + 1})"
                    )

                    async with self._session.request(
                        method, url, params=params, headers=request_headers
                    ) as response:
                        request_time = time.monotonic() - start_time
                        response_headers = dict(response.headers)
                        self.rate_limiter.update_rate_limit(response.headers)

                        logger.debug(
                            f"GitHub API response [{correlation_id}] "
                            f"{response.status} in {request_time:.2f}s"
                        )

                        if response.status in (200, 201, 204):
                            data = await self._read_body(response, url)
                            return GitHubResponse(
                                status=response.status,
                                data=data,
                                headers=response_headers,
                                url=url,
                            )

                        await self._handle_error_response(response, correlation_id)

            except GitHubServerError as e:
                last_exception = e

            except TimeoutError:
                last_exception = GitHubTimeoutError(
                    f"Request timeout for {method} {url}"
                )

            except aiohttp.ClientError as e:
                last_exception = GitHubConnectionError(
                    f"Connection error for {method} {url}: {e}"
                )

            if attempt < self.config.max_retries:
                backoff_time = self.config.retry_backoff_factor**attempt
                logger.warning(
                    f"Request [{correlation_id}] failed (attempt {attempt + 1}), "
                    f"retrying in {backoff_time:.1f}s: {last_exception}"
                )
                await asyncio.sleep(backoff_time)

        if last_exception:
            raise last_exception
        raise GitHubError(f"Request failed after {self.config.max_retries} retries")

    async def _read_body(self, response: aiohttp.ClientResponse, url: str) -> Any:
        """Decode a successful response body; an empty body decodes to None."""
        if response.status == 204:
            return None

        text = await response.text()
        if not text.strip():
            return None

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise GitHubResponseFormatError(
                f"Malformed JSON from {url}: {e}", status_code=response.status
            ) from e

    async def _handle_error_response(
        self, response: aiohttp.ClientResponse, correlation_id: str
    ) -> None:
        """Raise the exception matching an error response.

        Raises:
            GitHubError: Appropriate error based on status code
        """
        text = await response.text()
        try:
            error_data = json.loads(text) if text else {}
        except json.JSONDecodeError:
            error_data = {"message": text}
        if not isinstance(error_data, dict):
            error_data = {"message": str(error_data)}

        error_message = error_data.get("message") or f"HTTP {response.status}"

        logger.warning(
            f"GitHub API error [{correlation_id}] {response.status}: {error_message}"
        )

        status = response.status
        remaining = response.headers.get("X-RateLimit-Remaining")
        is_rate_limited = status == 429 or (
            status == 403
            and ("rate limit" in error_message.lower() or remaining == "0")
        )

        if is_rate_limited:
            reset_time = response.headers.get("X-RateLimit-Reset")
            raise GitHubRateLimitError(
                error_message,
                reset_time=int(reset_time) if reset_time else None,
                remaining=int(remaining or 0),
                limit=int(response.headers.get("X-RateLimit-Limit", "0")),
                status_code=status,
            )
        elif status in (401, 403):
            raise GitHubAuthenticationError(error_message, status)
        elif status == 404:
            raise GitHubNotFoundError(error_message, status)
        elif status == 422:
            raise GitHubValidationError(error_message, status)
        elif 500 <= status < 600:
            raise GitHubServerError(error_message, status)
        else:
            raise GitHubError(error_message, status)

    async def get(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Make GET request to GitHub API.

        Args:
            path: API path (e.g., '/repos/owner/repo/pulls/1')
            params: Query parameters
            headers: Additional headers

        Returns:
            Decoded JSON body, or None for an empty body
        """
        response = await self._make_request("GET", self._url(path), params, headers)
        return response.data

    async def get_page(
        self,
        path: str,
        params: dict[str, Any],
        items_key: str | None = None,
    ) -> PaginatedResponse:
        """Fetch a single page of a collection (used by AsyncPaginator).

        Args:
            path: API path
            params: Query parameters including ``page`` and ``per_page``
            items_key: Key of the item array when the page is a wrapped object

        Returns:
            PaginatedResponse with the page's items

        Raises:
            GitHubResponseFormatError: If the body is not the expected shape
        """
        response = await self._make_request("GET", self._url(path), params)
        data = response.data
        per_page = int(params.get("per_page", MAX_PER_PAGE))
        page = int(params.get("page", 1))

        items: Any = []
        total_count = None
        if data is None:
            pass
        elif items_key is None:
            items = data
        elif isinstance(data, dict):
            items = data.get(items_key) or []
            total_count = data.get("total_count")
        else:
            raise GitHubResponseFormatError(
                f"Expected an object with '{items_key}' from {path}, "
                f"got {type(data).__name__}"
            )

        if not isinstance(items, list):
            raise GitHubResponseFormatError(
                f"Expected a list of items from {path}, got {type(items).__name__}"
            )
        if total_count is not None and not isinstance(total_count, int):
            raise GitHubResponseFormatError(
                f"Expected integer total_count from {path}, got {total_count!r}"
            )

        return PaginatedResponse(
            items=items,
            page=page,
            per_page=per_page,
            total_count=total_count,
            headers=response.headers,
            url=response.url,
        )

    def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        items_key: str | None = None,
        per_page: int = MAX_PER_PAGE,
        max_pages: int | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncPaginator:
        """Create async paginator for a GitHub API collection.

        Args:
            path: API path
            params: Query parameters
            items_key: Key of the item array in wrapped pages
            per_page: Items per page (max 100)
            max_pages: Maximum pages to fetch
            cancel_event: Aborts the pending page request when set

        Returns:
            AsyncPaginator for iterating through results
        """
        return AsyncPaginator(
            client=self,
            path=path,
            params=params,
            items_key=items_key,
            per_page=per_page,
            max_pages=max_pages,
            cancel_event=cancel_event,
        )

    # Endpoint helpers

    @staticmethod
    def check_runs_path(owner: str, repo: str, ref: str) -> str:
        return f"/repos/{owner}/{repo}/commits/{ref}/check-runs"

    @staticmethod
    def combined_status_path(owner: str, repo: str, ref: str) -> str:
        return f"/repos/{owner}/{repo}/commits/{ref}/status"

    async def get_pull(self, owner: str, repo: str, pull_number: int) -> dict[str, Any]:
        """Get specific pull request.

        Args:
            owner: Repository owner
            repo: Repository name
            pull_number: Pull request number

        Returns:
            Pull request data
        """
        return await self.get(f"/repos/{owner}/{repo}/pulls/{pull_number}")
