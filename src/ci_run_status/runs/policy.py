"""Failure classification and merge-commit reconciliation policy.

Which conclusions and states count as "broken" is a gating decision, not a
GitHub default, so it is defined here and nowhere else.
"""

import enum
from collections.abc import Iterable
from typing import TYPE_CHECKING

from .enums import CheckConclusion, CommitState

if TYPE_CHECKING:
    from .models import CheckRun, CommitEvaluation

FAILING_CONCLUSIONS: frozenset[CheckConclusion] = frozenset(
    {
        CheckConclusion.FAILURE,
        CheckConclusion.TIMED_OUT,
        CheckConclusion.CANCELLED,
        CheckConclusion.ACTION_REQUIRED,
    }
)

FAILING_COMMIT_STATES: frozenset[CommitState] = frozenset(
    {CommitState.FAILURE, CommitState.ERROR}
)


class MergeDecision(str, enum.Enum):
    """Outcome of evaluating a pull request's merge commit."""

    FAILED = "failed"
    PASSED = "passed"
    FALLBACK = "fallback"


def is_failing_conclusion(conclusion: CheckConclusion | None) -> bool:
    """A missing conclusion means the run has not finished and is not failing."""
    return conclusion in FAILING_CONCLUSIONS


def is_failing_state(state: CommitState) -> bool:
    return state in FAILING_COMMIT_STATES


def any_failing(check_runs: Iterable["CheckRun"]) -> bool:
    return any(is_failing_conclusion(run.conclusion) for run in check_runs)


def has_recorded_signal(check_run_count: int, status_count: int) -> bool:
    """True when CI reported anything against a commit through either API.

    Both sources must be consulted: a repository may report only through
    legacy statuses, only through check runs, or through both.
    """
    return check_run_count > 0 or status_count > 0


def reconcile(merge_evaluation: "CommitEvaluation") -> MergeDecision:
    """Decide whether a merge commit's result settles the pull request.

    A failing merge commit fails the PR. A clean merge commit that CI has
    reported on is authoritative. A merge commit nothing has reported on
    defers to the branch head.
    """
    if merge_evaluation.has_failure:
        return MergeDecision.FAILED
    if merge_evaluation.has_signal:
        return MergeDecision.PASSED
    return MergeDecision.FALLBACK
