"""Run status evaluator: answers "is this pull request or commit broken?".

A pull request is judged by its test-merge commit when CI has reported on it,
because that commit is what would land on the base branch. The branch head is
consulted only when nothing has reported on the merge commit yet.
"""

import asyncio
import logging
from typing import TYPE_CHECKING

from ..github.client import GitHubClient
from ..github.exceptions import GitHubNotFoundError, GitHubValidationError
from ..github.pagination import MAX_PER_PAGE, raise_if_cancelled
from .fetcher import CheckRunFetcher, StatusFetcher
from .models import CheckRun, CommitEvaluation, PullRequestRef, RepositoryRef
from .policy import MergeDecision, reconcile

if TYPE_CHECKING:
    from ..config.models import EvaluatorConfig

logger = logging.getLogger(__name__)


class RunStatusEvaluator:
    """Aggregates check runs and legacy statuses into failure verdicts.

    Instances keep no state between calls; concurrent calls for different
    commits may share one evaluator. Every operation re-fetches from GitHub.
    """

    def __init__(
        self,
        client: GitHubClient,
        page_size: int = MAX_PER_PAGE,
        latest_only: bool = True,
        max_pages: int | None = None,
    ):
        """Initialize the evaluator.

        Args:
            client: Authenticated GitHub API client
            page_size: Check runs per page request (1-100)
            latest_only: Ignore check runs superseded by a rerun
            max_pages: Upper bound on check-run pages per query
        """
        self.client = client
        self.check_runs = CheckRunFetcher(
            client, page_size=page_size, latest_only=latest_only, max_pages=max_pages
        )
        self.statuses = StatusFetcher(client)

    @classmethod
    def from_config(
        cls, client: GitHubClient, config: "EvaluatorConfig"
    ) -> "RunStatusEvaluator":
        return cls(
            client,
            page_size=config.page_size,
            latest_only=config.latest_only,
            max_pages=config.max_pages,
        )

    async def has_failed_run(
        self,
        repository: RepositoryRef,
        pull_request: PullRequestRef,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Check whether a pull request has failing CI.

        Args:
            repository: Repository the pull request belongs to
            pull_request: Head and merge commit of the pull request
            cancel_event: Aborts outstanding requests when set

        Returns:
            True if the authoritative commit has a failing check run or status

        Raises:
            GitHubError: If GitHub could not be queried
        """
        return await self.has_failed_run_for(
            repository.owner, repository.name, pull_request, cancel_event
        )

    async def has_failed_run_for(
        self,
        owner: str,
        name: str,
        pull_request: PullRequestRef,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        head_sha = pull_request.head_sha
        merge_sha = pull_request.merge_commit_sha

        if not pull_request.is_evaluable:
            logger.debug(f"{owner}/{name} {pull_request} has no commits to evaluate")
            return False

        if merge_sha:
            merge_evaluation = await self._evaluate_merge_commit(
                owner, name, merge_sha, cancel_event
            )
            decision = reconcile(merge_evaluation)

            if decision is MergeDecision.FAILED:
                logger.info(
                    f"{owner}/{name} {pull_request} failed on merge commit: "
                    f"{merge_evaluation}"
                )
                return True
            if decision is MergeDecision.PASSED:
                logger.debug(
                    f"{owner}/{name} {pull_request} clean on merge commit: "
                    f"{merge_evaluation}"
                )
                return False

            logger.debug(
                f"No CI recorded on merge commit {merge_sha[:7]} of "
                f"{owner}/{name} {pull_request}; falling back to head"
            )

        if not head_sha:
            return False

        raise_if_cancelled(cancel_event)
        failed = await self.has_commit_failure(owner, name, head_sha, cancel_event)
        if failed:
            logger.info(f"{owner}/{name} {pull_request} failed on head commit")
        return failed

    async def _evaluate_merge_commit(
        self,
        owner: str,
        name: str,
        sha: str,
        cancel_event: asyncio.Event | None,
    ) -> CommitEvaluation:
        # GitHub answers 404/422 for a test-merge commit it has not created or
        # has already discarded; that is "nothing ran", not an outage.
        try:
            return await self.evaluate_commit(owner, name, sha, cancel_event)
        except (GitHubNotFoundError, GitHubValidationError) as e:
            logger.info(
                f"Merge commit {sha[:7]} of {owner}/{name} could not be "
                f"evaluated: {e}"
            )
            return CommitEvaluation.unavailable(sha, str(e))

    async def evaluate_commit(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
        probe_signal: bool = True,
    ) -> CommitEvaluation:
        """Evaluate both CI reporting APIs for one commit.

        Check runs are scanned first and a failure there skips the legacy
        status request. With ``probe_signal``, a commit that shows no completed
        runs and no status contexts gets one extra request counting runs in
        any state, so in-progress CI still counts as recorded signal.
        """
        scan = await self.check_runs.scan_for_failure(owner, repo, sha, cancel_event)
        if scan.failed:
            return CommitEvaluation(
                sha=sha, check_runs_failed=True, check_run_count=scan.run_count
            )

        status = await self.statuses.get_combined_status(owner, repo, sha, cancel_event)
        check_run_count = scan.run_count

        if (
            probe_signal
            and check_run_count == 0
            and not status.has_statuses
            and not status.is_failing
        ):
            check_run_count = await self.check_runs.count_runs(
                owner, repo, sha, cancel_event
            )

        return CommitEvaluation(
            sha=sha,
            status_failed=status.is_failing,
            check_run_count=check_run_count,
            status_count=len(status.statuses),
        )

    async def has_commit_failure(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        """Check whether a commit has a failing check run or legacy status."""
        evaluation = await self.evaluate_commit(
            owner, repo, sha, cancel_event, probe_signal=False
        )
        return evaluation.has_failure

    async def has_any_runs(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        return await self.check_runs.has_any_runs(owner, repo, sha, cancel_event)

    async def has_any_statuses(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> bool:
        return await self.statuses.has_any_statuses(owner, repo, sha, cancel_event)

    async def get_all_runs(
        self,
        owner: str,
        repo: str,
        sha: str,
        cancel_event: asyncio.Event | None = None,
    ) -> list[CheckRun]:
        return await self.check_runs.get_all_runs(owner, repo, sha, cancel_event)
