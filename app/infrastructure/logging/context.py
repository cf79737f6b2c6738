"""Operation context binding for structured logging.

Binds per-execution metadata (operation name, correlation ID, caller
context identifiers) so every log entry emitted while an operation is being
retried carries it. Context lives in ``structlog.contextvars``, so each
asyncio task sees its own copy.

Usage:
    from infrastructure.logging import bind_operation_context

    with bind_operation_context(operation_name="batch_job_performer_sync", job_id=42):
        logger.info("recovery_started")

Dependencies:
    - structlog.contextvars
"""

import uuid
from contextlib import contextmanager
from typing import Optional, Any, Generator
import structlog


@contextmanager
def bind_operation_context(
    operation_name: Optional[str] = None,
    correlation_id: Optional[str] = None,
    **extra_context: Any,
) -> Generator[str, None, None]:
    """Bind operation-scoped context to all logs within the context manager.

    An already bound correlation ID is reused so nested executions (e.g. a
    sweep re-entering ``execute_with_retry``) stay correlated.

    Args:
        operation_name: Name of the operation being executed.
        correlation_id: Explicit correlation ID. Falls back to the one already
            bound, then to a new UUID.
        **extra_context: Additional key-value pairs to include in logs.

    Yields:
        The correlation ID in effect for the block.
    """
    context: dict[str, Any] = {}

    effective_id = correlation_id or get_correlation_id() or str(uuid.uuid4())
    context["correlation_id"] = effective_id

    if operation_name is not None:
        context["operation_name"] = operation_name

    context.update(extra_context)

    previous = structlog.contextvars.get_contextvars()
    structlog.contextvars.bind_contextvars(**context)
    try:
        yield effective_id
    finally:
        structlog.contextvars.unbind_contextvars(*context.keys())
        restored = {key: previous[key] for key in context if key in previous}
        if restored:
            structlog.contextvars.bind_contextvars(**restored)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from the logging context.

    Returns:
        The correlation ID if set, None otherwise.
    """
    ctx = structlog.contextvars.get_contextvars()
    return ctx.get("correlation_id")


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID in the current logging context.

    Args:
        correlation_id: The correlation ID to set.
    """
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)


def clear_operation_context() -> None:
    """Clear all operation-scoped context from the logging context."""
    structlog.contextvars.clear_contextvars()
