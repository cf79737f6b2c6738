"""Retry record and retry event models.

A ``RetryRecord`` is written to the durable store on every failed but
retryable attempt. The retry sweep turns due records into ``RetryEvent``s
on the retry channel.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


@dataclass
class RetryRecord:
    """Pending retry of a failed operation.

    Fields:
        operation_name: Name of the operation class (breaker key)
        attempt_number: Attempt that failed (1-based)
        last_error_message: Message of the failure that triggered the retry
        next_retry_at: When the next attempt is due
        caller_context: Caller-supplied data needed to resume the call
        id: Store key (assigned by the store)
        created_at: When the record was created

    Example:
        record = RetryRecord(
            operation_name="batch_job_performer_sync",
            attempt_number=2,
            last_error_message="Server error (503)",
            next_retry_at=now + timedelta(seconds=4),
            caller_context={"job_id": 42},
        )
    """

    operation_name: str
    attempt_number: int
    last_error_message: str
    next_retry_at: datetime
    caller_context: Dict[str, Any] = field(default_factory=dict)

    id: Optional[str] = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate required fields."""
        if not self.operation_name:
            raise ValueError("operation_name is required")
        if self.attempt_number < 1:
            raise ValueError("attempt_number must be at least 1")
        if self.caller_context is None:
            self.caller_context = {}
        if not isinstance(self.caller_context, dict):
            raise ValueError("caller_context must be a dictionary")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "operation_name": self.operation_name,
            "attempt_number": self.attempt_number,
            "last_error_message": self.last_error_message,
            "next_retry_at": self.next_retry_at.isoformat(),
            "caller_context": self.caller_context,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RetryRecord":
        return cls(
            id=data.get("id"),
            operation_name=data["operation_name"],
            attempt_number=int(data["attempt_number"]),
            last_error_message=data.get("last_error_message") or "",
            next_retry_at=datetime.fromisoformat(data["next_retry_at"]),
            caller_context=data.get("caller_context") or {},
            created_at=datetime.fromisoformat(data["created_at"]),
        )


@dataclass(frozen=True)
class RetryEvent:
    """Notification that a persisted retry is due.

    The component owning the operation re-enters ``execute_with_retry`` with
    ``context`` in response.
    """

    operation_name: str
    context: Dict[str, Any]
    attempt: int
    record_id: Optional[str] = None
    last_error: Optional[str] = None
