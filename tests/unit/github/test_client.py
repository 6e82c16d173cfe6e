"""
Unit tests for GitHub API client.

Why: Ensure the client maps GitHub responses onto the exception hierarchy,
     retries only transient faults, and decodes page bodies the way the
     check-run fetcher expects.

What: Tests GitHubClient HTTP handling, error mapping, retries, rate limit
      tracking, page decoding, and endpoint helpers.

How: Uses aioresponses to stub aiohttp at the transport level so the real
     request path runs without contacting GitHub.
"""

import asyncio
import re
import time
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock, patch

import aiohttp
import pytest
import pytest_asyncio
from aioresponses import aioresponses

from ci_run_status.config.models import GitHubConfig
from ci_run_status.github.auth import PersonalAccessTokenAuth
from ci_run_status.github.client import GitHubClient, GitHubClientConfig
from ci_run_status.github.exceptions import (
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
from ci_run_status.github.pagination import AsyncPaginator

API = "https://api.github.com"
USER_URL = re.compile(r"^https://api\.github\.com/user")
CHECK_RUNS_URL = re.compile(r"^https://api\.github\.com/repos/o/r/commits/.+/check-runs")


def recorded_calls(mocked: aioresponses) -> list[Any]:
    return [call for calls in mocked.requests.values() for call in calls]


class TestGitHubClientConfig:
    """Test GitHubClientConfig data class."""

    def test_defaults(self) -> None:
        config = GitHubClientConfig()

        assert config.base_url == "https://api.github.com"
        assert config.timeout == 30
        assert config.max_retries == 3
        assert config.retry_backoff_factor == 2.0
        assert config.rate_limit_buffer == 100
        assert config.user_agent == "ci-run-status/0.1"
        assert config.max_concurrent_requests == 10

    def test_from_config(self) -> None:
        github_config = GitHubConfig(
            base_url="https://ghe.example.com/api/v3/",
            token="t",
            timeout=10,
            max_retries=1,
            max_concurrent_requests=4,
        )

        config = GitHubClientConfig.from_config(github_config)

        assert config.base_url == "https://ghe.example.com/api/v3"
        assert config.timeout == 10
        assert config.max_retries == 1
        assert config.max_concurrent_requests == 4


class TestGitHubClient:
    """Test GitHubClient request handling."""

    @pytest_asyncio.fixture
    async def github_client(self) -> AsyncGenerator[GitHubClient, None]:
        client = GitHubClient(
            auth=PersonalAccessTokenAuth("test-token"),
            config=GitHubClientConfig(max_retries=0),
        )
        yield client
        await client.close()

    @pytest_asyncio.fixture
    async def retrying_client(self) -> AsyncGenerator[GitHubClient, None]:
        client = GitHubClient(
            auth=PersonalAccessTokenAuth("test-token"),
            config=GitHubClientConfig(max_retries=2),
        )
        yield client
        await client.close()

    def test_creation(self) -> None:
        auth = PersonalAccessTokenAuth("test-token")
        client = GitHubClient(auth=auth)

        assert client.auth is auth
        assert client.config == GitHubClientConfig()
        assert client._session is None

    @pytest.mark.asyncio
    async def test_context_manager(self, github_client: GitHubClient) -> None:
        async with github_client as client:
            assert client._session is not None
            assert not client._session.closed

        assert github_client._session is None

    @pytest.mark.asyncio
    async def test_get_sends_auth_and_params(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, payload={"login": "octocat"})

            result = await github_client.get("/user", params={"per_page": 5})

            assert result == {"login": "octocat"}
            (call,) = recorded_calls(mocked)
            assert call.kwargs["headers"]["Authorization"] == "token test-token"
            assert call.kwargs["params"] == {"per_page": 5}

    @pytest.mark.asyncio
    async def test_empty_body_is_none(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, status=200, body="")

            assert await github_client.get("/user") is None

    @pytest.mark.asyncio
    async def test_no_content_is_none(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, status=204)

            assert await github_client.get("/user") is None

    @pytest.mark.asyncio
    async def test_malformed_json(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, status=200, body="<html>", content_type="text/html")

            with pytest.raises(GitHubResponseFormatError):
                await github_client.get("/user")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "message", "error_type"),
        [
            (401, "Bad credentials", GitHubAuthenticationError),
            (403, "Resource not accessible by integration", GitHubAuthenticationError),
            (404, "Not Found", GitHubNotFoundError),
            (422, "No commit found for SHA: deadbeef", GitHubValidationError),
            (418, "I'm a teapot", GitHubError),
        ],
    )
    async def test_error_mapping(
        self,
        github_client: GitHubClient,
        status: int,
        message: str,
        error_type: type[GitHubError],
    ) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, status=status, payload={"message": message})

            with pytest.raises(error_type) as exc_info:
                await github_client.get("/user")

        assert exc_info.value.status_code == status
        assert message in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_primary_rate_limit(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                USER_URL,
                status=403,
                payload={"message": "API rate limit exceeded for user ID 1."},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": "1234567890",
                },
            )

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await github_client.get("/user")

        assert exc_info.value.remaining == 0
        assert exc_info.value.limit == 5000
        assert exc_info.value.reset_time == 1234567890

    @pytest.mark.asyncio
    async def test_secondary_rate_limit(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, status=429, payload={"message": "slow down"})

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await github_client.get("/user")

        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_connection_error(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, exception=aiohttp.ClientConnectionError("refused"))

            with pytest.raises(GitHubConnectionError):
                await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_timeout_error(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, exception=asyncio.TimeoutError())

            with pytest.raises(GitHubTimeoutError):
                await github_client.get("/user")

    @pytest.mark.asyncio
    async def test_server_error_retried(self, retrying_client: GitHubClient) -> None:
        """
        Why: A 5xx is usually transient and retrying beats failing the gate.
        What: First response 502, second 200.
        How: Patches sleep so backoff is instant and counts calls.
        """
        with aioresponses() as mocked, patch(
            "ci_run_status.github.client.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            mocked.get(USER_URL, status=502, payload={"message": "Bad Gateway"})
            mocked.get(USER_URL, payload={"login": "octocat"})

            result = await retrying_client.get("/user")

            assert result == {"login": "octocat"}
            assert len(recorded_calls(mocked)) == 2
            sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_retry_exhaustion(self, retrying_client: GitHubClient) -> None:
        with aioresponses() as mocked, patch(
            "ci_run_status.github.client.asyncio.sleep", new_callable=AsyncMock
        ):
            mocked.get(
                USER_URL, status=500, payload={"message": "boom"}, repeat=True
            )

            with pytest.raises(GitHubServerError):
                await retrying_client.get("/user")

            assert len(recorded_calls(mocked)) == 3

    @pytest.mark.asyncio
    async def test_client_errors_not_retried(self, retrying_client: GitHubClient) -> None:
        with aioresponses() as mocked, patch(
            "ci_run_status.github.client.asyncio.sleep", new_callable=AsyncMock
        ) as sleep:
            mocked.get(USER_URL, status=404, payload={"message": "Not Found"}, repeat=True)

            with pytest.raises(GitHubNotFoundError):
                await retrying_client.get("/user")

            assert len(recorded_calls(mocked)) == 1
            sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rate_limit_headers_tracked(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                USER_URL,
                payload={"login": "octocat"},
                headers={
                    "x-ratelimit-limit": "5000",
                    "x-ratelimit-remaining": "4500",
                    "x-ratelimit-reset": "1234567890",
                    "x-ratelimit-used": "500",
                    "x-ratelimit-resource": "core",
                },
            )

            await github_client.get("/user")

        rate_limit = github_client.rate_limiter.get_rate_limit("core")
        assert rate_limit is not None
        assert rate_limit.remaining == 4500
        assert rate_limit.used == 500

    @pytest.mark.asyncio
    async def test_request_refused_inside_rate_limit_buffer(
        self, github_client: GitHubClient
    ) -> None:
        reset = str(int(time.time()) + 3600)
        with aioresponses() as mocked:
            mocked.get(
                USER_URL,
                payload={"login": "octocat"},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "50",
                    "X-RateLimit-Reset": reset,
                },
            )

            await github_client.get("/user")

            with pytest.raises(GitHubRateLimitError):
                await github_client.get("/user")

            assert len(recorded_calls(mocked)) == 1


class TestGetPage:
    """Test page decoding."""

    @pytest_asyncio.fixture
    async def github_client(self) -> AsyncGenerator[GitHubClient, None]:
        client = GitHubClient(
            auth=PersonalAccessTokenAuth("test-token"),
            config=GitHubClientConfig(max_retries=0),
        )
        yield client
        await client.close()

    @pytest.mark.asyncio
    async def test_wrapped_page(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                CHECK_RUNS_URL,
                payload={"total_count": 3, "check_runs": [{"id": 1}, {"id": 2}]},
            )

            page = await github_client.get_page(
                "/repos/o/r/commits/abc/check-runs",
                {"per_page": 2, "page": 1},
                items_key="check_runs",
            )

        assert page.items == [{"id": 1}, {"id": 2}]
        assert page.total_count == 3
        assert page.page == 1
        assert page.per_page == 2
        assert not page.is_short

    @pytest.mark.asyncio
    async def test_missing_items_key_is_empty(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(CHECK_RUNS_URL, payload={"total_count": 0})

            page = await github_client.get_page(
                "/repos/o/r/commits/abc/check-runs",
                {"per_page": 100, "page": 1},
                items_key="check_runs",
            )

        assert page.items == []
        assert page.is_short

    @pytest.mark.asyncio
    async def test_absent_body_is_empty(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(CHECK_RUNS_URL, status=200, body="")

            page = await github_client.get_page(
                "/repos/o/r/commits/abc/check-runs",
                {"per_page": 100, "page": 1},
                items_key="check_runs",
            )

        assert page.items == []
        assert page.total_count is None

    @pytest.mark.asyncio
    async def test_list_endpoint(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(USER_URL, payload=[{"id": 1}])

            page = await github_client.get_page("/user/repos", {"per_page": 100})

        assert page.items == [{"id": 1}]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            [{"id": 1}],
            {"total_count": 1, "check_runs": {"id": 1}},
            {"total_count": "many", "check_runs": []},
        ],
    )
    async def test_malformed_page(
        self, github_client: GitHubClient, payload: Any
    ) -> None:
        with aioresponses() as mocked:
            mocked.get(CHECK_RUNS_URL, payload=payload)

            with pytest.raises(GitHubResponseFormatError):
                await github_client.get_page(
                    "/repos/o/r/commits/abc/check-runs",
                    {"per_page": 100, "page": 1},
                    items_key="check_runs",
                )


class TestEndpointHelpers:
    """Test path builders and convenience methods."""

    def test_paths(self) -> None:
        assert (
            GitHubClient.check_runs_path("o", "r", "abc")
            == "/repos/o/r/commits/abc/check-runs"
        )
        assert (
            GitHubClient.combined_status_path("o", "r", "abc")
            == "/repos/o/r/commits/abc/status"
        )

    def test_paginate(self) -> None:
        client = GitHubClient(auth=PersonalAccessTokenAuth("test-token"))

        paginator = client.paginate(
            "/repos/o/r/commits/abc/check-runs",
            params={"filter": "latest"},
            items_key="check_runs",
            per_page=500,
            max_pages=3,
        )

        assert isinstance(paginator, AsyncPaginator)
        assert paginator.per_page == 100
        assert paginator.max_pages == 3
        assert paginator.params == {"filter": "latest"}

    @pytest.mark.asyncio
    async def test_get_pull(self) -> None:
        client = GitHubClient(auth=PersonalAccessTokenAuth("test-token"))
        client.get = AsyncMock(return_value={"number": 7})  # type: ignore[method-assign]

        result = await client.get_pull("o", "r", 7)

        assert result == {"number": 7}
        client.get.assert_awaited_once_with("/repos/o/r/pulls/7")
