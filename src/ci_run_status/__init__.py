"""Determine whether a GitHub pull request or commit has failing CI."""

from .github import GitHubClient, GitHubClientConfig, GitHubError
from .runs import (
    CheckRun,
    CombinedStatus,
    PullRequestRef,
    RepositoryRef,
    RunStatusEvaluator,
)

__version__ = "0.1.0"

__all__ = [
    "CheckRun",
    "CombinedStatus",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubError",
    "PullRequestRef",
    "RepositoryRef",
    "RunStatusEvaluator",
    "__version__",
]
