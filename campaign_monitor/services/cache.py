"""Monitor result cache keyed by (campaign dataset, source dataset)."""

import threading
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

from ..models.monitor import MonitorRow

CacheKey = tuple[str, str]


@dataclass(frozen=True)
class CacheEntry:
    rows: tuple[MonitorRow, ...]
    updated_at: datetime


class MonitorCacheStore(Protocol):
    """Key-value persistence for aggregated monitor rows."""

    def get_rows(self, key: CacheKey) -> list[MonitorRow]: ...

    def updated_at(self, key: CacheKey) -> datetime | None: ...

    def replace_rows(
        self, key: CacheKey, rows: Sequence[MonitorRow], updated_at: datetime
    ) -> None: ...


class InMemoryMonitorCacheStore:
    """Process-local store; each key's rows are swapped as a whole under a lock.

    Replacing with an empty row list clears the key, so it reads as never
    computed.
    """

    def __init__(self) -> None:
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._lock = threading.Lock()

    def get_rows(self, key: CacheKey) -> list[MonitorRow]:
        with self._lock:
            entry = self._entries.get(key)
        return list(entry.rows) if entry else []

    def updated_at(self, key: CacheKey) -> datetime | None:
        with self._lock:
            entry = self._entries.get(key)
        return entry.updated_at if entry else None

    def replace_rows(
        self, key: CacheKey, rows: Sequence[MonitorRow], updated_at: datetime
    ) -> None:
        entry = CacheEntry(rows=tuple(rows), updated_at=updated_at)
        with self._lock:
            if entry.rows:
                self._entries[key] = entry
            else:
                self._entries.pop(key, None)


def is_stale(updated_at: datetime | None, now: datetime, ttl: timedelta) -> bool:
    """Never-written entries are stale; otherwise stale once older than ``ttl``."""
    if updated_at is None:
        return True
    return now - updated_at > ttl
