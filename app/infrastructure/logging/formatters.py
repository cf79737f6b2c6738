"""Custom log processors for structured logging.

These processors are appended to the production structlog pipeline.
Integration configurations and retry contexts are logged as nested
dictionaries, so masking walks mappings recursively.

Usage:
    from infrastructure.logging.formatters import add_app_info, mask_sensitive_data
"""

from typing import Any, Mapping


def add_app_info(app_name: str, app_version: str = "unknown"):
    """Create a processor that adds application info to log entries.

    Args:
        app_name: Name of the application.
        app_version: Version string (usually the deployed GIT_SHA).

    Returns:
        A structlog processor function.
    """

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["app_name"] = app_name
        event_dict["app_version"] = app_version
        return event_dict

    return processor


# Key fragments whose values never reach the log output
SENSITIVE_PATTERNS = frozenset(
    {
        "password",
        "secret",
        "token",
        "api_key",
        "apikey",
        "authorization",
        "credential",
        "private_key",
        "privatekey",
        "session_id",
        "cookie",
        "jwt",
        "bearer",
    }
)


def _is_sensitive(key: str, patterns: frozenset[str]) -> bool:
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in patterns)


def _mask(value: Any, patterns: frozenset[str], mask_value: str) -> Any:
    if isinstance(value, Mapping):
        return {
            key: (
                mask_value
                if isinstance(key, str)
                and _is_sensitive(key, patterns)
                and item is not None
                else _mask(item, patterns, mask_value)
            )
            for key, item in value.items()
        }
    return value


def mask_sensitive_data(
    mask_value: str = "***REDACTED***",
    additional_patterns: frozenset[str] | None = None,
):
    """Create a processor that masks sensitive data in log entries.

    Keys are matched case-insensitively against ``SENSITIVE_PATTERNS``.
    Nested mappings (e.g. ``configuration={"api_key": ...}``) are masked too.

    Args:
        mask_value: The string to replace sensitive values with.
        additional_patterns: Extra patterns to consider sensitive.

    Returns:
        A structlog processor function.
    """
    patterns = SENSITIVE_PATTERNS
    if additional_patterns:
        patterns = patterns | additional_patterns

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        return _mask(event_dict, patterns, mask_value)

    return processor


def truncate_large_values(max_length: int = 500):
    """Create a processor that truncates overly large string values.

    Error messages from remote services can embed whole response bodies.

    Args:
        max_length: Maximum string length before truncation.

    Returns:
        A structlog processor function.
    """

    def processor(
        logger: Any, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        for key, value in event_dict.items():
            if isinstance(value, str) and len(value) > max_length:
                event_dict[key] = (
                    value[:max_length] + f"...[truncated, {len(value)} chars total]"
                )
        return event_dict

    return processor
