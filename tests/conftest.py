"""
Shared fixtures for ci-run-status tests.

Provides an in-memory GitHub client double, an evaluator wired to it, and
well-known commit SHAs for head and merge commits.
"""

import pytest

from ci_run_status.runs import PullRequestRef, RepositoryRef, RunStatusEvaluator
from tests.fixtures.github import OWNER, REPO, FakeGitHubClient, make_sha


@pytest.fixture
def fake_client() -> FakeGitHubClient:
    """
    In-memory GitHub client.

    Why: Lets fetch and reconciliation tests run without network access
    What: Serves canned check runs and statuses, records every request
    How: Subclasses GitHubClient and overrides only get/get_page
    """
    return FakeGitHubClient()


@pytest.fixture
def evaluator(fake_client: FakeGitHubClient) -> RunStatusEvaluator:
    return RunStatusEvaluator(fake_client)


@pytest.fixture
def repository() -> RepositoryRef:
    return RepositoryRef(owner=OWNER, name=REPO)


@pytest.fixture
def head_sha() -> str:
    return make_sha("head")


@pytest.fixture
def merge_sha() -> str:
    return make_sha("merge")


@pytest.fixture
def pull_request(head_sha: str, merge_sha: str) -> PullRequestRef:
    return PullRequestRef(head_sha=head_sha, merge_commit_sha=merge_sha, number=42)
