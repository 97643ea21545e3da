"""Exception taxonomy for funcbench.

Library code raises these; the CLI is the only place that turns them into
an exit status.
"""

from __future__ import annotations


class FuncbenchError(Exception):
    """Base class for all funcbench failures."""

    error_code: str = "FUNCBENCH_ERROR"

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class NotARepositoryError(FuncbenchError):
    """Neither the directory nor any of its ancestors is a git work tree."""

    error_code = "NOT_A_REPOSITORY"

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Not a git repository (or any parent directory): {path}")


class UnsupportedEventError(FuncbenchError):
    """The inbound event is not an issue comment, or not on a pull request."""

    error_code = "UNSUPPORTED_EVENT"


class CloneError(FuncbenchError):
    error_code = "CLONE_FAILED"


class FetchError(FuncbenchError):
    error_code = "FETCH_FAILED"


class CheckoutError(FuncbenchError):
    error_code = "CHECKOUT_FAILED"


class CommentPostError(FuncbenchError):
    """Creating an issue comment through the hosted API failed."""

    error_code = "COMMENT_POST_FAILED"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class MissingRequiredVariableError(FuncbenchError):
    """A required environment variable is unset or empty."""

    error_code = "MISSING_VARIABLE"

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Required environment variable {name} is not set")


class BenchmarkError(FuncbenchError):
    """The external benchmark runner failed or timed out."""

    error_code = "BENCHMARK_FAILED"


class ConfigError(FuncbenchError):
    """A benchmark request or profile is malformed."""

    error_code = "INVALID_CONFIG"
