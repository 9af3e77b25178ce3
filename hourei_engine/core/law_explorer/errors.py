"""
Typed errors for the law explorer.

- LawClientError: validation failures raised before any I/O, never retried
- ProxyTargetError: outbound target outside the allow-list (400-class)
- LawApiError: transport, upstream and normalization failures
- QuizGenerationError / InvalidQuizQuestionError: quiz generation failures
"""

from typing import Optional


class LawClientError(ValueError):
    """Raised when a request cannot be built from the caller's input."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ProxyTargetError(LawClientError):
    """Raised when a target URL is missing, malformed or not allow-listed."""

    def __init__(self, message: str):
        super().__init__(message, status=400)


class LawApiError(RuntimeError):
    """
    Raised when the upstream API cannot deliver a usable payload.

    Attributes:
        status: Last HTTP status received, None for transport failures
        cause: The exception that triggered this error, if any
        upstream_code: Error code reported by the upstream body, if parseable
        upstream_message: Error message reported by the upstream body, if parseable
    """

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        cause: Optional[BaseException] = None,
        upstream_code: Optional[str] = None,
        upstream_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.cause = cause
        self.upstream_code = upstream_code
        self.upstream_message = upstream_message

    @property
    def retryable(self) -> bool:
        """Whether the end user may sensibly try the same call again."""
        if self.status is None:
            return self.cause is not None
        return self.status >= 500 or self.status == 429


class QuizGenerationError(RuntimeError):
    """Raised when no quiz question can be produced for the request."""


class InvalidQuizQuestionError(AssertionError):
    """Raised when a generated question breaks the four-distinct-choices contract."""
