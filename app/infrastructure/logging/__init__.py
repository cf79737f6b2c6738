"""Structured logging infrastructure.

This package provides centralized logging configuration and utilities
for the recovery service using structlog.

Public API:
    - configure_logging(): Initialize logging for the application
    - get_logger(): Get a logger instance with a specific name
    - get_module_logger(): Get a logger for the calling module
    - bind_operation_context(): Context manager for operation-scoped logging
    - get_correlation_id(): Get current correlation ID from context
    - set_correlation_id(): Set correlation ID in context
    - clear_operation_context(): Clear all operation context

Example:
    from infrastructure.logging import (
        configure_logging,
        get_module_logger,
        bind_operation_context,
    )

    # At application startup
    configure_logging(settings)

    # In a module
    logger = get_module_logger()
    logger.info("module_initialized")

    # Around one resilient execution
    with bind_operation_context(operation_name="integration_health_7"):
        logger.info("health_check_started")
"""

from infrastructure.logging.setup import (
    configure_logging,
    get_logger,
    get_module_logger,
)

from infrastructure.logging.context import (
    bind_operation_context,
    get_correlation_id,
    set_correlation_id,
    clear_operation_context,
)

from infrastructure.logging.formatters import (
    add_app_info,
    mask_sensitive_data,
    truncate_large_values,
    SENSITIVE_PATTERNS,
)

__all__ = [
    # Setup
    "configure_logging",
    "get_logger",
    "get_module_logger",
    # Context
    "bind_operation_context",
    "get_correlation_id",
    "set_correlation_id",
    "clear_operation_context",
    # Formatters
    "add_app_info",
    "mask_sensitive_data",
    "truncate_large_values",
    "SENSITIVE_PATTERNS",
]
