"""Persistence layer for the resilience core.

Provides the durable key-value store contract used for retry records and
fallback cache entries, an in-memory implementation, and the backend factory.
"""

from infrastructure.persistence.factory import create_key_value_store
from infrastructure.persistence.kv import InMemoryKeyValueStore, KeyValueStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "create_key_value_store",
]
