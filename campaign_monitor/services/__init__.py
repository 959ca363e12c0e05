from .cache import CacheEntry, InMemoryMonitorCacheStore, MonitorCacheStore, is_stale
from .monitor_service import MonitorService, RefreshEvent, done_message
from .repository import (
    DatasetRepository,
    InMemoryDatasetRepository,
    fetch_all_pages,
    iter_pages,
)

__all__ = [
    "CacheEntry",
    "DatasetRepository",
    "InMemoryDatasetRepository",
    "InMemoryMonitorCacheStore",
    "MonitorCacheStore",
    "MonitorService",
    "RefreshEvent",
    "done_message",
    "fetch_all_pages",
    "is_stale",
    "iter_pages",
]
