"""Data models for check runs, commit statuses, and pull request references.

Every model is an immutable snapshot built from a GitHub API payload for the
duration of one query. ``from_api`` constructors treat an absent payload as
"nothing reported" and raise ``GitHubResponseFormatError`` for payloads that
are present but not the documented shape.
"""

import re
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from ..github.exceptions import GitHubResponseFormatError
from .enums import CheckConclusion, CheckStatus, CommitState
from .policy import has_recorded_signal, is_failing_conclusion, is_failing_state

SHA_PATTERN = re.compile(r"^[0-9a-f]{40}$")


def normalize_sha(sha: str | None) -> str | None:
    """Lowercase and validate a commit SHA; empty values normalise to None.

    Raises:
        ValueError: If the SHA is not 40 hex characters
    """
    if not sha:
        return None
    normalized = sha.strip().lower()
    if not SHA_PATTERN.match(normalized):
        raise ValueError(f"Invalid commit SHA: {sha!r}")
    return normalized


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _require_mapping(data: Any, what: str) -> dict[str, Any]:
    if not isinstance(data, dict):
        raise GitHubResponseFormatError(
            f"Expected {what} object, got {type(data).__name__}"
        )
    return data


@dataclass(frozen=True)
class RepositoryRef:
    """Owner and name of a GitHub repository."""

    owner: str
    name: str

    def __post_init__(self) -> None:
        if not self.owner or not self.name:
            raise ValueError("Repository owner and name are required")

    def __str__(self) -> str:
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"

    @classmethod
    def from_full_name(cls, full_name: str) -> "RepositoryRef":
        """Parse ``owner/name``.

        Raises:
            ValueError: If the value is not in owner/name form
        """
        owner, sep, name = full_name.strip().partition("/")
        if not sep or "/" in name:
            raise ValueError(f"Expected 'owner/name', got {full_name!r}")
        return cls(owner=owner, name=name)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "RepositoryRef":
        data = _require_mapping(data, "repository")
        owner = data.get("owner") or {}
        return cls(owner=owner.get("login", ""), name=data.get("name", ""))


@dataclass(frozen=True)
class PullRequestRef:
    """The commits of a pull request that CI may have run against.

    ``merge_commit_sha`` is the test-merge commit GitHub synthesises for an
    open pull request; it is absent until GitHub has computed mergeability.
    """

    head_sha: str | None = None
    merge_commit_sha: str | None = None
    number: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "head_sha", normalize_sha(self.head_sha))
        object.__setattr__(
            self, "merge_commit_sha", normalize_sha(self.merge_commit_sha)
        )

    def __str__(self) -> str:
        label = f"#{self.number}" if self.number is not None else "PR"
        return f"{label}(head={self.head_sha}, merge={self.merge_commit_sha})"

    @property
    def is_evaluable(self) -> bool:
        return self.head_sha is not None or self.merge_commit_sha is not None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "PullRequestRef":
        data = _require_mapping(data, "pull request")
        head = data.get("head") or {}
        return cls(
            head_sha=head.get("sha"),
            merge_commit_sha=data.get("merge_commit_sha"),
            number=data.get("number"),
        )


@dataclass(frozen=True)
class CheckRun:
    """One CI job result reported against a commit."""

    id: int
    name: str
    status: CheckStatus
    conclusion: CheckConclusion | None = None
    check_suite_id: int | None = None
    head_sha: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    details_url: str | None = None

    def __str__(self) -> str:
        outcome = self.conclusion.value if self.conclusion else self.status.value
        return f"CheckRun({self.name}: {outcome})"

    @property
    def is_completed(self) -> bool:
        return self.status == CheckStatus.COMPLETED

    @property
    def is_failing(self) -> bool:
        return is_failing_conclusion(self.conclusion)

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "CheckRun":
        """Build a CheckRun from a check-runs API item.

        Raises:
            GitHubResponseFormatError: If the item is not an object with an id
        """
        data = _require_mapping(data, "check run")
        if "id" not in data:
            raise GitHubResponseFormatError("Check run is missing its id")

        suite = data.get("check_suite") or {}
        try:
            return cls(
                id=int(data["id"]),
                name=data.get("name") or "",
                status=CheckStatus.parse(data.get("status")),
                conclusion=CheckConclusion.parse(data.get("conclusion")),
                check_suite_id=suite.get("id"),
                head_sha=data.get("head_sha"),
                started_at=_parse_timestamp(data.get("started_at")),
                completed_at=_parse_timestamp(data.get("completed_at")),
                details_url=data.get("details_url"),
            )
        except (AttributeError, TypeError, ValueError) as e:
            raise GitHubResponseFormatError(
                f"Malformed check run {data.get('id')!r}: {e}"
            ) from e


@dataclass(frozen=True)
class StatusContext:
    """A single named legacy status, e.g. ``ci/jenkins``."""

    context: str
    state: CommitState
    description: str | None = None
    target_url: str | None = None

    @classmethod
    def from_api(cls, data: dict[str, Any]) -> "StatusContext":
        data = _require_mapping(data, "status context")
        try:
            state = CommitState.parse(data.get("state"))
        except ValueError as e:
            raise GitHubResponseFormatError(f"Unknown status state: {e}") from e
        return cls(
            context=data.get("context") or "",
            state=state,
            description=data.get("description"),
            target_url=data.get("target_url"),
        )


@dataclass(frozen=True)
class CombinedStatus:
    """Legacy roll-up of all status contexts reported for a commit."""

    state: CommitState = CommitState.PENDING
    sha: str | None = None
    statuses: tuple[StatusContext, ...] = ()

    def __str__(self) -> str:
        return f"CombinedStatus({self.state.value}, contexts={len(self.statuses)})"

    @property
    def has_statuses(self) -> bool:
        """An aggregate ``pending`` with no contexts means nothing has reported."""
        return len(self.statuses) > 0

    @property
    def is_failing(self) -> bool:
        return is_failing_state(self.state)

    @classmethod
    def from_api(cls, data: Any, sha: str | None = None) -> "CombinedStatus":
        """Build from a combined status payload; an absent body is empty.

        Raises:
            GitHubResponseFormatError: If the payload is malformed
        """
        if data is None:
            return cls(sha=sha)

        data = _require_mapping(data, "combined status")
        raw_statuses = data.get("statuses") or []
        if not isinstance(raw_statuses, list):
            raise GitHubResponseFormatError(
                f"Expected a list of statuses, got {type(raw_statuses).__name__}"
            )

        try:
            state = CommitState.parse(data.get("state"))
        except ValueError as e:
            raise GitHubResponseFormatError(f"Unknown combined state: {e}") from e

        return cls(
            state=state,
            sha=data.get("sha") or sha,
            statuses=tuple(StatusContext.from_api(item) for item in raw_statuses),
        )


@dataclass(frozen=True)
class CommitEvaluation:
    """What both CI reporting APIs said about one commit.

    When a failing check run short-circuits the evaluation, the legacy status
    is never fetched and ``status_count`` stays 0.
    """

    sha: str
    check_runs_failed: bool = False
    status_failed: bool = False
    check_run_count: int = 0
    status_count: int = 0
    errors: tuple[str, ...] = field(default=(), compare=False)

    def __str__(self) -> str:
        return (
            f"CommitEvaluation({self.sha[:7]}, failed={self.has_failure}, "
            f"check_runs={self.check_run_count}, statuses={self.status_count})"
        )

    @property
    def has_failure(self) -> bool:
        return self.check_runs_failed or self.status_failed

    @property
    def has_signal(self) -> bool:
        return has_recorded_signal(self.check_run_count, self.status_count)

    @classmethod
    def unavailable(cls, sha: str, reason: str) -> "CommitEvaluation":
        """A commit GitHub could not report on, treated as having no signal."""
        return cls(sha=sha, errors=(reason,))
