"""Closed enumerations for check-run and commit status values.

Wire strings are parsed into these enums at the edge so the failing-set policy
never compares raw strings.
"""

import enum


class CheckStatus(str, enum.Enum):
    """Check run lifecycle status."""

    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    WAITING = "waiting"
    REQUESTED = "requested"
    PENDING = "pending"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "CheckStatus":
        if not value:
            return cls.UNKNOWN
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


class CheckConclusion(str, enum.Enum):
    """Terminal outcome of a completed check run."""

    SUCCESS = "success"
    FAILURE = "failure"
    NEUTRAL = "neutral"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"
    ACTION_REQUIRED = "action_required"
    STALE = "stale"
    SKIPPED = "skipped"
    # Any conclusion GitHub adds after this list was written
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: str | None) -> "CheckConclusion | None":
        """Parse a wire conclusion; null (run still going) parses to None."""
        if not value:
            return None
        try:
            return cls(value.lower())
        except ValueError:
            return cls.UNKNOWN


class CommitState(str, enum.Enum):
    """Aggregate or per-context state of legacy commit statuses."""

    SUCCESS = "success"
    FAILURE = "failure"
    ERROR = "error"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: str | None) -> "CommitState":
        """Parse a wire state; a missing state means nothing has reported yet.

        Raises:
            ValueError: If the state is not one GitHub documents
        """
        if not value:
            return cls.PENDING
        return cls(value.lower())
