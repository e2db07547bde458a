"""Storage for received analytics batches."""

import time
from abc import ABC, abstractmethod
from collections.abc import Callable

from autodemo.collector.models import AnalyticsRecord


class AnalyticsStore(ABC):
    """Interface for analytics batch persistence."""

    @abstractmethod
    async def put(self, record: AnalyticsRecord, ttl_seconds: int) -> str:
        """Store a record under its key, expiring after ttl_seconds.

        Returns:
            The storage key
        """
        pass

    @abstractmethod
    async def get(self, key: str) -> AnalyticsRecord | None:
        """Get a record by key, or None if missing or expired."""
        pass

    @abstractmethod
    async def list_by_session(self, session_id: str) -> list[AnalyticsRecord]:
        """All live records for a session, oldest first."""
        pass


class InMemoryAnalyticsStore(AnalyticsStore):
    """In-memory implementation of AnalyticsStore for testing and development.

    Expiry is evaluated lazily on read.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._records: dict[str, tuple[AnalyticsRecord, float]] = {}
        self._clock = clock

    async def put(self, record: AnalyticsRecord, ttl_seconds: int) -> str:
        key = record.key
        self._records[key] = (record, self._clock() + ttl_seconds)
        return key

    async def get(self, key: str) -> AnalyticsRecord | None:
        entry = self._records.get(key)
        if entry is None:
            return None
        record, expires_at = entry
        if expires_at <= self._clock():
            del self._records[key]
            return None
        return record

    async def list_by_session(self, session_id: str) -> list[AnalyticsRecord]:
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._records.items() if expires_at <= now]
        for key in expired:
            del self._records[key]
        records = [
            record for record, _ in self._records.values() if record.session_id == session_id
        ]
        return sorted(records, key=lambda r: r.received_at)
