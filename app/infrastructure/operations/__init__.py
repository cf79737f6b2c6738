"""Operation result types, status enums and error classification.

This module contains standardized result types for operations across
the application, the typed OperationError carrying an ErrorKind, and the
classifier that decides which failures are retried.
"""

from infrastructure.operations.classifiers import (
    RETRYABLE_KINDS,
    classify_exception,
    classify_http_status,
    classify_result,
    is_retryable,
    status_for_kind,
)
from infrastructure.operations.errors import (
    ErrorKind,
    OperationError,
    OperationTimeoutError,
)
from infrastructure.operations.result import OperationResult
from infrastructure.operations.status import OperationStatus

__all__ = [
    "OperationResult",
    "OperationStatus",
    "ErrorKind",
    "OperationError",
    "OperationTimeoutError",
    "RETRYABLE_KINDS",
    "is_retryable",
    "classify_http_status",
    "classify_exception",
    "classify_result",
    "status_for_kind",
]
