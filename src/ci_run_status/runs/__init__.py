"""Check-run and commit status evaluation."""

from .enums import CheckConclusion, CheckStatus, CommitState
from .evaluator import RunStatusEvaluator
from .fetcher import CheckRunFetcher, FailureScan, StatusFetcher
from .models import (
    CheckRun,
    CombinedStatus,
    CommitEvaluation,
    PullRequestRef,
    RepositoryRef,
    StatusContext,
)
from .policy import (
    FAILING_COMMIT_STATES,
    FAILING_CONCLUSIONS,
    MergeDecision,
    is_failing_conclusion,
    is_failing_state,
    reconcile,
)

__all__ = [
    "FAILING_COMMIT_STATES",
    "FAILING_CONCLUSIONS",
    "CheckConclusion",
    "CheckRun",
    "CheckRunFetcher",
    "CheckStatus",
    "CombinedStatus",
    "CommitEvaluation",
    "CommitState",
    "FailureScan",
    "MergeDecision",
    "PullRequestRef",
    "RepositoryRef",
    "RunStatusEvaluator",
    "StatusContext",
    "StatusFetcher",
    "is_failing_conclusion",
    "is_failing_state",
    "reconcile",
]
