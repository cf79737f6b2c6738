"""Operation status enumeration.

Status codes for operation results, used to classify outcomes of resilient
executions for appropriate error handling, retries and fallbacks.
"""

from enum import Enum


class OperationStatus(Enum):
    """Status codes for operation results.

    Attributes:
        SUCCESS: Operation completed successfully
        TRANSIENT_ERROR: Retryable error (network, timeout, rate limit, 5xx)
        PERMANENT_ERROR: Non-retryable error (validation, bad request)
        UNAUTHORIZED: Authentication or authorization failure
        NOT_FOUND: Resource not found
        CIRCUIT_OPEN: No attempt was made because the circuit breaker is open
    """

    SUCCESS = "success"
    TRANSIENT_ERROR = "transient_error"
    PERMANENT_ERROR = "permanent_error"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CIRCUIT_OPEN = "circuit_open"
