"""Durable retry record storage.

Records are stored as JSON in the key-value store under
``retry:{operation_name}:{created_ms}-{suffix}`` with a TTL, so records
nobody consumes expire on their own.
"""

import json
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from infrastructure.logging import get_module_logger
from infrastructure.persistence.kv import KeyValueStore
from infrastructure.resilience.retry.models import RetryRecord

logger = get_module_logger()

KEY_PREFIX = "retry"


class DurableRetryStore:
    """Retry record persistence over a ``KeyValueStore``.

    Each record has its own key and is written once and deleted once, so
    concurrent retry loops and the sweep never contend on the same key.

    Attributes:
        ttl_seconds: Default lifetime of a record
    """

    def __init__(self, kv: KeyValueStore, ttl_seconds: int = 3600) -> None:
        self._kv = kv
        self.ttl_seconds = ttl_seconds

    @staticmethod
    def build_key(record: RetryRecord) -> str:
        created_ms = int(record.created_at.timestamp() * 1000)
        return f"{KEY_PREFIX}:{record.operation_name}:{created_ms}-{uuid.uuid4().hex[:8]}"

    async def save(self, record: RetryRecord, ttl_seconds: Optional[int] = None) -> str:
        """Persist a record and return its key."""
        key = self.build_key(record)
        record.id = key
        await self._kv.set(
            key,
            json.dumps(record.to_dict(), default=str),
            ttl_seconds or self.ttl_seconds,
        )
        logger.info(
            "retry_record_saved",
            record_id=key,
            operation_name=record.operation_name,
            attempt=record.attempt_number,
            next_retry_at=record.next_retry_at.isoformat(),
        )
        return key

    async def get(self, record_id: str) -> Optional[RetryRecord]:
        raw = await self._kv.get(record_id)
        if raw is None:
            return None
        return self._decode(record_id, raw)

    async def list_pending(self) -> List[RetryRecord]:
        """Return every stored record, oldest due first.

        Keys that vanish between scan and read (expired or consumed) and
        records that can not be decoded are skipped.
        """
        records = []
        for key in await self._kv.scan(f"{KEY_PREFIX}:*"):
            raw = await self._kv.get(key)
            if raw is None:
                continue
            record = self._decode(key, raw)
            if record is not None:
                records.append(record)
        records.sort(key=lambda r: r.next_retry_at)
        return records

    async def fetch_due(self, now: datetime) -> List[RetryRecord]:
        """Return records whose ``next_retry_at`` is at or before ``now``."""
        return [r for r in await self.list_pending() if r.next_retry_at <= now]

    async def delete(self, record_id: str) -> bool:
        deleted = await self._kv.delete(record_id)
        if deleted:
            logger.debug("retry_record_deleted", record_id=record_id)
        return deleted

    async def get_stats(self) -> Dict[str, Any]:
        pending = await self.list_pending()
        by_operation: Dict[str, int] = {}
        for record in pending:
            by_operation[record.operation_name] = (
                by_operation.get(record.operation_name, 0) + 1
            )
        return {"pending": len(pending), "by_operation": by_operation}

    def _decode(self, key: str, raw: str) -> Optional[RetryRecord]:
        try:
            record = RetryRecord.from_dict(json.loads(raw))
        except (ValueError, KeyError, TypeError) as e:
            logger.warning("retry_record_corrupt", record_id=key, error=str(e))
            return None
        record.id = key
        return record
