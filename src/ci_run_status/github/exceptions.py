"""Errors raised while querying GitHub for check runs and statuses.

Every failure to obtain CI data surfaces as a ``GitHubError``; none of them
is ever turned into a "not failed" verdict.
"""


class GitHubError(Exception):
    """A GitHub request could not produce usable CI data.

    ``status_code`` is the HTTP status when the error came from a response.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class GitHubAuthenticationError(GitHubError):
    """Credentials were rejected (401) or lack access to the repository (403)."""


class GitHubRateLimitError(GitHubError):
    """The request budget is spent, or too close to the reserved buffer to spend.

    Attributes:
        reset_time: Unix time at which GitHub refills the budget, if known
        remaining: Requests left in the current window
        limit: Size of the window
    """

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
        status_code: int | None = None,
    ):
        super().__init__(message, status_code)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit


class GitHubNotFoundError(GitHubError):
    """Repository, pull request or commit does not exist (404)."""


class GitHubValidationError(GitHubError):
    """GitHub refused the ref as unprocessable (422), e.g. an unknown SHA."""


class GitHubServerError(GitHubError):
    """5xx from GitHub; retried by the client before being raised."""


class GitHubConnectionError(GitHubError):
    """The API host could not be reached."""


class GitHubTimeoutError(GitHubError):
    """No response within the configured timeout."""


class GitHubResponseFormatError(GitHubError):
    """A body that is not the JSON shape the endpoint documents."""


class GitHubResultTruncatedError(GitHubError):
    """The page limit was reached before every check run had been seen.

    Raised instead of reporting "no failure" for a partially scanned commit.
    """
