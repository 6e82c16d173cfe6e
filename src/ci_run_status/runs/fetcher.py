"""Fetchers for check runs and legacy combined statuses.

Both fetchers are read-only and hold no per-call state; errors from the
GitHub client propagate unchanged.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from ..github.client import GitHubClient
from ..github.exceptions import GitHubResultTruncatedError
from ..github.pagination import MAX_PER_PAGE, cancellable, raise_if_cancelled
from .models import CheckRun, CombinedStatus
from .policy import any_failing

logger = logging.getLogger(__name__)

CHECK_RUNS_KEY = "check_runs"


@dataclass(frozen=True)
class FailureScan:
    """Result of scanning a commit's completed check runs for a failure."""

    failed: bool
    run_count: int
    pages_fetched: int


class CheckRunFetcher:
    """Fetches check runs for a commit from the check-runs endpoint.

    With ``latest_only`` (the default) GitHub returns only the most recent run
    of each check in a suite, so a failure superseded by a passing rerun is not
    reported.
    """

    def __init__(
        self,
        client: GitHubClient,
        page_size: int = MAX_PER_PAGE,
        latest_only: bool = True,
        max_pages: int | None = None,
    ):
        """Initialize check run fetcher.

        Args:
            client: GitHub API client
            page_size: Items per page request (1-100)
            latest_only: Ask GitHub for the latest run per check only
            max_pages: Upper bound on pages fetched per query
        """
        self.client = client
        self.page_size = page_size
        self.latest_only = latest_only
        self.max_pages = max_pages

    def _params(self, completed_only: bool = False) -> dict[str, Any]:
        params: dict[str, Any] = {"filter": "latest" if self.latest_only else "all"}
        if completed_only:
            params["status"] = "completed"
        return params

    async def get_all_runs(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> list[CheckRun]:
        """Fetch every check run for a commit, following pagination."""
        paginator = self.client.paginate(
            self.client.check_runs_path(owner, repo, sha),
            params=self._params(),
            items_key=CHECK_RUNS_KEY,
            per_page=self.page_size,
            max_pages=self.max_pages,
            cancel_event=cancel_event,
        )
        runs = [CheckRun.from_api(item) async for item in paginator]

        logger.debug(
            f"Fetched {len(runs)} check runs for {owner}/{repo}@{sha[:7]} "
            f"in {paginator.pages_fetched} page(s)"
        )
        return runs

    async def scan_for_failure(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> FailureScan:
        """Page through completed check runs, stopping at the first failing page.

        ``run_count`` is the number of completed runs GitHub reported, which
        is exact unless the scan stopped early.

        Raises:
            GitHubResultTruncatedError: If ``max_pages`` ran out before every
                completed run was seen and none of those seen failed
        """
        paginator = self.client.paginate(
            self.client.check_runs_path(owner, repo, sha),
            params=self._params(completed_only=True),
            items_key=CHECK_RUNS_KEY,
            per_page=self.page_size,
            max_pages=self.max_pages,
            cancel_event=cancel_event,
        )

        run_count = 0
        items_seen = 0
        async for page in paginator.pages():
            runs = [CheckRun.from_api(item) for item in page.items]
            items_seen += len(runs)
            run_count = max(page.total_count or 0, items_seen)

            if any_failing(runs):
                failing = [run.name for run in runs if run.is_failing]
                logger.debug(
                    f"Failing check runs on {owner}/{repo}@{sha[:7]} "
                    f"(page {page.page}): {', '.join(failing)}"
                )
                return FailureScan(True, run_count, paginator.pages_fetched)

        if paginator.truncated:
            raise GitHubResultTruncatedError(
                f"Scanned {items_seen} of {run_count} completed check runs on "
                f"{owner}/{repo}@{sha[:7]} without a failure before reaching "
                f"max_pages={self.max_pages}"
            )

        return FailureScan(False, run_count, paginator.pages_fetched)

    async def has_failing_run(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        scan = await self.scan_for_failure(owner, repo, sha, cancel_event)
        return scan.failed

    async def count_runs(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> int:
        """Count check runs in any state with a single one-item page request."""
        raise_if_cancelled(cancel_event)
        page = await cancellable(
            self.client.get_page(
                self.client.check_runs_path(owner, repo, sha),
                {**self._params(), "per_page": 1, "page": 1},
                items_key=CHECK_RUNS_KEY,
            ),
            cancel_event,
        )
        return max(page.total_count or 0, len(page.items))

    async def has_any_runs(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        return await self.count_runs(owner, repo, sha, cancel_event) > 0


class StatusFetcher:
    """Fetches the legacy combined status for a commit."""

    def __init__(self, client: GitHubClient):
        self.client = client

    async def get_combined_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> CombinedStatus:
        # One page of contexts is enough: only the aggregate state and
        # whether any context exists matter.
        raise_if_cancelled(cancel_event)
        data = await cancellable(
            self.client.get(
                self.client.combined_status_path(owner, repo, sha),
                params={"per_page": MAX_PER_PAGE},
            ),
            cancel_event,
        )
        status = CombinedStatus.from_api(data, sha=sha)
        logger.debug(f"Combined status for {owner}/{repo}@{sha[:7]}: {status}")
        return status

    async def has_any_statuses(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        status = await self.get_combined_status(owner, repo, sha, cancel_event)
        return status.has_statuses

    async def has_failing_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        status = await self.get_combined_status(owner, repo, sha, cancel_event)
        return status.is_failing
