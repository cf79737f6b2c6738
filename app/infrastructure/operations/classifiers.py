"""Error classification for resilient execution.

Single source of truth for deciding whether a failure is retryable. Raised
exceptions and non-success ``OperationResult`` returns are both converted
into a typed ``OperationError`` whose ``ErrorKind`` the retry executor
pattern-matches on.

Key Functions:
- is_retryable(): ErrorKind → retry decision
- classify_http_status(): HTTP status code → ErrorKind
- classify_exception(): arbitrary exception → OperationError
- classify_result(): non-success OperationResult → OperationError
- status_for_kind(): ErrorKind → OperationStatus for fallback results

Usage:
    from infrastructure.operations.classifiers import classify_exception

    try:
        response = session.get(url, timeout=10)
        response.raise_for_status()
    except Exception as exc:
        error = classify_exception(exc)
        if error.retryable:
            ...
"""

import asyncio
import socket
from typing import Optional

import requests
from redis.exceptions import ConnectionError as RedisConnectionError  # type: ignore
from redis.exceptions import RedisError  # type: ignore
from redis.exceptions import TimeoutError as RedisTimeoutError  # type: ignore

from infrastructure.operations.errors import ErrorKind, OperationError
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

RETRYABLE_KINDS = frozenset(
    {ErrorKind.NETWORK, ErrorKind.RATE_LIMITED, ErrorKind.SERVER_ERROR}
)

DEFAULT_RETRY_AFTER_SECONDS = 60


def is_retryable(kind: ErrorKind) -> bool:
    """Return True if failures of this kind should be retried."""
    return kind in RETRYABLE_KINDS


def classify_http_status(status_code: Optional[int]) -> ErrorKind:
    """Classify an HTTP status code.

    Status Code Mapping:
    - 429: Rate limiting → RATE_LIMITED
    - 5xx: Server error → SERVER_ERROR
    - Other 4xx: Client error → VALIDATION
    - Anything else (including None) → UNKNOWN

    Args:
        status_code: HTTP status code, if any

    Returns:
        The ErrorKind for the status
    """
    if status_code is None:
        return ErrorKind.UNKNOWN
    if status_code == 429:
        return ErrorKind.RATE_LIMITED
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    if 400 <= status_code < 500:
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


def _retry_after_from_response(response) -> Optional[int]:
    header_value = None
    if response is not None and getattr(response, "headers", None):
        header_value = response.headers.get("Retry-After")
    if header_value is None:
        return DEFAULT_RETRY_AFTER_SECONDS
    try:
        return int(header_value)
    except (ValueError, TypeError):
        return DEFAULT_RETRY_AFTER_SECONDS


def _classify_http_error(exc: requests.HTTPError) -> OperationError:
    response = exc.response
    status_code = response.status_code if response is not None else None
    kind = classify_http_status(status_code)

    if kind == ErrorKind.RATE_LIMITED:
        return OperationError(
            f"Rate limited: {exc}",
            kind=kind,
            error_code="RATE_LIMITED",
            status_code=status_code,
            retry_after=_retry_after_from_response(response),
        )
    if kind == ErrorKind.SERVER_ERROR:
        return OperationError(
            f"Server error ({status_code}): {exc}",
            kind=kind,
            error_code="SERVER_ERROR",
            status_code=status_code,
        )
    if kind == ErrorKind.VALIDATION:
        return OperationError(
            f"Client error ({status_code}): {exc}",
            kind=kind,
            error_code="HTTP_ERROR",
            status_code=status_code,
        )
    return OperationError(
        f"HTTP error: {exc}",
        kind=kind,
        error_code="UNKNOWN_ERROR",
        status_code=status_code,
    )


def classify_exception(exc: BaseException) -> OperationError:
    """Classify an exception raised by an operation.

    Mapping:
    - OperationError: returned unchanged (already tagged at the failure site)
    - requests.HTTPError: by response status (see classify_http_status)
    - requests ConnectionError / Timeout: NETWORK
    - builtin TimeoutError / ConnectionError, socket.gaierror: NETWORK
    - redis ConnectionError / TimeoutError (durable store unreachable): NETWORK
    - other redis errors: UNKNOWN
    - ValueError / TypeError / KeyError: VALIDATION (bad input, programming error)
    - Other: UNKNOWN (not retried)

    Args:
        exc: Exception raised by the operation

    Returns:
        OperationError with an explicit kind; the original exception is
        chained as ``__cause__`` when a new error is built
    """
    if isinstance(exc, OperationError):
        return exc

    if isinstance(exc, requests.HTTPError):
        error = _classify_http_error(exc)
    elif isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        error = OperationError(
            f"Connection error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.NETWORK,
            error_code="CONNECTION_ERROR",
        )
    elif isinstance(exc, (RedisConnectionError, RedisTimeoutError)):
        error = OperationError(
            f"Redis connection error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.NETWORK,
            error_code="STORE_CONNECTION_ERROR",
        )
    elif isinstance(exc, RedisError):
        error = OperationError(
            f"Redis error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.UNKNOWN,
            error_code="STORE_ERROR",
        )
    elif isinstance(
        exc, (TimeoutError, asyncio.TimeoutError, ConnectionError, socket.gaierror)
    ):
        error = OperationError(
            f"Connection error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.NETWORK,
            error_code="CONNECTION_ERROR",
        )
    elif isinstance(exc, (ValueError, TypeError, KeyError)):
        error = OperationError(
            f"Validation error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.VALIDATION,
            error_code="VALIDATION_ERROR",
        )
    else:
        error = OperationError(
            f"Unexpected error: {type(exc).__name__}: {exc}",
            kind=ErrorKind.UNKNOWN,
            error_code="UNKNOWN_ERROR",
        )

    error.__cause__ = exc
    return error


def classify_result(result: OperationResult) -> OperationError:
    """Classify a non-success OperationResult returned by an operation.

    The HTTP clients in this codebase report failures by returning an
    OperationResult instead of raising, so the executor converts them here.

    Mapping:
    - TRANSIENT_ERROR with error_code RATE_LIMITED → RATE_LIMITED
    - TRANSIENT_ERROR with error_code CONNECTION_ERROR or TIMEOUT → NETWORK
    - other TRANSIENT_ERROR → SERVER_ERROR
    - CIRCUIT_OPEN → SERVER_ERROR
    - PERMANENT_ERROR, UNAUTHORIZED, NOT_FOUND → VALIDATION

    Args:
        result: A result whose status is not SUCCESS

    Returns:
        OperationError describing the failure
    """
    if result.status == OperationStatus.TRANSIENT_ERROR:
        if result.error_code == "RATE_LIMITED":
            kind = ErrorKind.RATE_LIMITED
        elif result.error_code in ("CONNECTION_ERROR", "TIMEOUT"):
            kind = ErrorKind.NETWORK
        else:
            kind = ErrorKind.SERVER_ERROR
    elif result.status == OperationStatus.CIRCUIT_OPEN:
        kind = ErrorKind.SERVER_ERROR
    elif result.status == OperationStatus.SUCCESS:
        kind = ErrorKind.UNKNOWN
    else:
        kind = ErrorKind.VALIDATION

    return OperationError(
        result.message,
        kind=kind,
        error_code=result.error_code,
        retry_after=result.retry_after,
    )


def status_for_kind(kind: ErrorKind) -> OperationStatus:
    """Map an ErrorKind back to an OperationStatus for fallback results."""
    if is_retryable(kind):
        return OperationStatus.TRANSIENT_ERROR
    return OperationStatus.PERMANENT_ERROR
