"""GitHub API test doubles and payload builders."""

from .fake_client import (
    OWNER,
    REPO,
    FakeGitHubClient,
    check_run_payload,
    combined_status_payload,
    make_sha,
)

__all__ = [
    "OWNER",
    "REPO",
    "FakeGitHubClient",
    "check_run_payload",
    "combined_status_payload",
    "make_sha",
]
