"""Monitor service: cached aggregation, refresh streams and dimension queries."""

import json
import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Any

from ..aggregation import CrossSourceAggregator
from ..export import export_long_by_io, export_wide_pivot, select_campaigns
from ..models.monitor import (
    DataMonthRow,
    DimensionRow,
    Granularity,
    MonitorPayload,
    MonitorRow,
)
from ..rollup import (
    booked_by_month,
    dimension_lookup,
    merge_monitor_rows,
    per_campaign_by_month,
    rollup_by_dimension,
    rollup_by_time,
)
from ..settings import Settings, load_settings
from .cache import InMemoryMonitorCacheStore, MonitorCacheStore, is_stale
from .repository import DatasetRepository, iter_pages

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def done_message(count: int) -> str:
    return f"Done. Aggregated into {count} month{'s' if count != 1 else ''}."


@dataclass(frozen=True)
class RefreshEvent:
    """One server-sent event of a refresh stream."""

    event: str  # status | progress | done | error
    data: dict[str, Any] = field(default_factory=dict)

    def to_sse(self) -> str:
        payload = json.dumps(self.data, separators=(",", ":"), ensure_ascii=False)
        return f"event: {self.event}\ndata: {payload}\n\n"


def _progress(batch: int, batches: int, processed: int, total: int) -> RefreshEvent:
    percent = round(100 * processed / total) if total else 100
    return RefreshEvent(
        "progress",
        {
            "batch": batch,
            "batches": batches,
            "processed": processed,
            "total": total,
            "percent": percent,
        },
    )


def _sum_months(series: Iterable[DataMonthRow], into: dict[str, float]) -> None:
    for row in series:
        into[row.year_month] = into.get(row.year_month, 0.0) + row.sum_impressions


class MonitorService:
    """Facade over the repository, the aggregator and the result cache.

    Aggregation itself stays pure; this class owns I/O, caching and the
    refresh event protocol.

    Attributes:
        repository: Source of campaign/source rows and stored join mappings.
        cache: Monitor row store keyed by (campaign dataset, source dataset).
        aggregator: Cross-source aggregator.
        settings: Cache TTL, export axis and page size.
        clock: Returns the current time; injectable for tests.
    """

    def __init__(
        self,
        repository: DatasetRepository,
        cache: MonitorCacheStore | None = None,
        aggregator: CrossSourceAggregator | None = None,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.settings = settings or load_settings()
        self.repository = repository
        self.cache = cache if cache is not None else InMemoryMonitorCacheStore()
        self.aggregator = aggregator or CrossSourceAggregator(self.settings.columns)
        self.clock = clock

    @property
    def ttl(self) -> timedelta:
        return timedelta(minutes=self.settings.cache.ttl_minutes)

    # =========================================================================
    # PAIRED MONITOR DATA
    # =========================================================================

    def compute(self, campaign_dataset: str, source_dataset: str) -> list[MonitorRow]:
        """Aggregate one dataset pair without touching the cache."""
        campaign_rows = self.repository.campaign_rows(campaign_dataset)
        source_rows = self.repository.source_rows(source_dataset)
        join = self.repository.join_config(campaign_dataset, source_dataset)
        return self.aggregator.aggregate(campaign_rows, source_rows, join)

    def get_or_compute(self, campaign_dataset: str, source_dataset: str) -> MonitorPayload:
        """Cached rows when present and fresh; otherwise compute.

        Only non-empty results are written back.
        """
        key = (campaign_dataset, source_dataset)
        cached = self.cache.get_rows(key)
        if cached and not is_stale(self.cache.updated_at(key), self.clock(), self.ttl):
            return MonitorPayload.from_rows(cached)

        rows = self.compute(campaign_dataset, source_dataset)
        if rows:
            self.cache.replace_rows(key, rows, self.clock())
        return MonitorPayload.from_rows(rows)

    def refresh(self, campaign_dataset: str, source_dataset: str) -> list[MonitorRow]:
        """Recompute and overwrite the cache entry, even with an empty result."""
        rows = self.compute(campaign_dataset, source_dataset)
        self.cache.replace_rows((campaign_dataset, source_dataset), rows, self.clock())
        logger.info(
            "Refreshed monitor cache for %s/%s: %d months",
            campaign_dataset,
            source_dataset,
            len(rows),
        )
        return rows

    def rollup(
        self,
        campaign_dataset: str,
        source_dataset: str,
        granularity: Granularity | str = Granularity.YEAR_MONTH,
    ) -> MonitorPayload:
        """Paired monitor data regrouped by month, quarter or year."""
        monthly = self.get_or_compute(campaign_dataset, source_dataset)
        return MonitorPayload.from_rows(rollup_by_time(monthly.rows, granularity))

    # =========================================================================
    # REFRESH STREAM
    # =========================================================================

    def refresh_events(
        self, campaign_dataset: str | None = None, source_dataset: str | None = None
    ) -> Iterator[RefreshEvent]:
        """Run a refresh and report it as status, progress, then done or error.

        With both ids the pair is recomputed and cached. Otherwise delivered
        impressions are summed by month for ``source_dataset``, or for every
        source dataset when it is None.
        """
        try:
            if campaign_dataset and source_dataset:
                yield from self._targeted_refresh(campaign_dataset, source_dataset)
            else:
                yield from self._global_refresh(source_dataset)
        except Exception as e:
            logger.exception(
                "Monitor refresh failed for %s/%s", campaign_dataset, source_dataset
            )
            yield RefreshEvent("error", {"message": str(e)})

    def _targeted_refresh(
        self, campaign_dataset: str, source_dataset: str
    ) -> Iterator[RefreshEvent]:
        yield RefreshEvent("status", {"message": "Aggregating monitor data…"})
        rows = self.refresh(campaign_dataset, source_dataset)
        yield _progress(1, 1, 1, 1)
        yield RefreshEvent(
            "done",
            {
                "message": done_message(len(rows)),
                "count": len(rows),
                "rows": [r.to_dict() for r in rows],
            },
        )

    def _global_refresh(self, source_dataset: str | None) -> Iterator[RefreshEvent]:
        yield RefreshEvent("status", {"message": "Aggregating impressions by month…"})

        dataset_ids = [source_dataset] if source_dataset else self.repository.source_dataset_ids()
        pages = [
            page
            for dataset_id in dataset_ids
            for page in iter_pages(
                self.repository.source_rows(dataset_id), self.settings.repository.page_size
            )
        ]
        total = sum(len(page) for page in pages)

        by_month: dict[str, float] = {}
        processed = 0
        for batch, page in enumerate(pages, start=1):
            _sum_months(self.aggregator.data_impressions_by_month(page), by_month)
            processed += len(page)
            yield _progress(batch, len(pages), processed, total)
        if not pages:
            yield _progress(1, 1, 1, 1)

        rows = [DataMonthRow(year_month=ym, sum_impressions=by_month[ym]) for ym in sorted(by_month)]
        yield RefreshEvent(
            "done",
            {
                "message": done_message(len(rows)),
                "count": len(rows),
                "rows": [r.to_dict() for r in rows],
            },
        )

    # =========================================================================
    # CAMPAIGN-ONLY VIEWS
    # =========================================================================

    def overview(
        self, campaign_dataset: str, source_dataset: str | None = None
    ) -> MonitorPayload:
        """Booked impressions by month, merged with delivered impressions if a
        source dataset is given."""
        booked = booked_by_month(self.repository.campaigns(campaign_dataset))
        data = (
            self.aggregator.data_impressions_by_month(self.repository.source_rows(source_dataset))
            if source_dataset
            else []
        )
        rows = merge_monitor_rows(booked.rows, data)
        return MonitorPayload.from_rows(rows, booked.total_unique_campaign_count)

    def by_dimension(self, campaign_dataset: str, dimension: str) -> list[DimensionRow]:
        """Booked impressions and distinct campaigns per value of one column."""
        campaigns = self.repository.campaigns(campaign_dataset)
        return rollup_by_dimension(
            per_campaign_by_month(campaigns), dimension_lookup(campaigns, dimension)
        )

    def export_pivot(
        self,
        campaign_dataset: str,
        campaign_ids: Iterable[int] | None = None,
        today: date | None = None,
    ) -> str:
        campaigns = select_campaigns(
            self.repository.campaigns(campaign_dataset), campaign_ids, bookable_only=False
        )
        return export_wide_pivot(campaigns, today=today, axis_start=self.settings.export.axis_start)

    def export_by_io(
        self, campaign_dataset: str, campaign_ids: Iterable[int] | None = None
    ) -> str:
        campaigns = select_campaigns(self.repository.campaigns(campaign_dataset), campaign_ids)
        return export_long_by_io(campaigns, io_column=self.settings.export.insertion_order_column)
