"""Durable retry bookkeeping.

Retry records persisted by the executor, the channel delivering due records
to their owners, and the sweep connecting the two.
"""

from infrastructure.resilience.retry.channel import RetryChannel, RetryHandler
from infrastructure.resilience.retry.models import RetryEvent, RetryRecord
from infrastructure.resilience.retry.store import DurableRetryStore
from infrastructure.resilience.retry.sweep import RetrySweep

__all__ = [
    "RetryRecord",
    "RetryEvent",
    "DurableRetryStore",
    "RetryChannel",
    "RetryHandler",
    "RetrySweep",
]
