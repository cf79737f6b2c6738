"""Typed operation errors.

Failures are tagged with an ``ErrorKind`` once, at the failure site, so the
classifier matches on a closed set instead of inspecting messages.
"""

from enum import Enum
from typing import Optional


class ErrorKind(Enum):
    """Closed set of failure kinds.

    Attributes:
        NETWORK: Connection refused/reset, timeout, unresolved host, store down
        RATE_LIMITED: HTTP 429 or an explicit throttling signal
        SERVER_ERROR: HTTP 5xx or a remote dependency reporting failure
        VALIDATION: Bad input, HTTP 4xx other than 429, programming errors
        UNKNOWN: Anything that could not be classified
    """

    NETWORK = "network"
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class OperationError(Exception):
    """Exception carrying an explicit ``ErrorKind``.

    Attributes:
        message: Human-friendly error message
        kind: Classified failure kind
        error_code: Optional machine error code
        status_code: HTTP status when the failure came from an HTTP call
        retry_after: Seconds until retry when rate-limited
    """

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        retry_after: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.error_code = error_code
        self.status_code = status_code
        self.retry_after = retry_after

    @property
    def retryable(self) -> bool:
        # Local import: classifiers imports this module.
        from infrastructure.operations.classifiers import is_retryable

        return is_retryable(self.kind)

    @classmethod
    def network(
        cls, message: str, error_code: Optional[str] = "CONNECTION_ERROR"
    ) -> "OperationError":
        return cls(message, kind=ErrorKind.NETWORK, error_code=error_code)

    @classmethod
    def rate_limited(
        cls, message: str, retry_after: Optional[int] = None
    ) -> "OperationError":
        return cls(
            message,
            kind=ErrorKind.RATE_LIMITED,
            error_code="RATE_LIMITED",
            status_code=429,
            retry_after=retry_after,
        )

    @classmethod
    def server_error(
        cls, message: str, status_code: Optional[int] = None
    ) -> "OperationError":
        return cls(
            message,
            kind=ErrorKind.SERVER_ERROR,
            error_code="SERVER_ERROR",
            status_code=status_code,
        )

    @classmethod
    def validation(
        cls, message: str, status_code: Optional[int] = None
    ) -> "OperationError":
        return cls(
            message,
            kind=ErrorKind.VALIDATION,
            error_code="VALIDATION_ERROR",
            status_code=status_code,
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(message={self.message!r}, kind={self.kind.name}, "
            f"error_code={self.error_code!r}, status_code={self.status_code!r})"
        )


class OperationTimeoutError(OperationError):
    """Raised by the timeout guard when an attempt exceeds its deadline."""

    def __init__(self, operation_name: str, timeout_seconds: float):
        super().__init__(
            f"Operation {operation_name} timed out after {timeout_seconds}s",
            kind=ErrorKind.NETWORK,
            error_code="TIMEOUT",
        )
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
