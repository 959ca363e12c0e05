"""Cross-Source Aggregator - booked vs delivered impressions, cost and revenue.

Campaign rows and source rows are plain mappings of column name to value, as
read from an imported table. They are left-joined on the insertion-order id:

- Booked impressions: each campaign's goal spread evenly over its own flight
- Booked revenue = (booked impressions / 1000) * CPM
- Celtra cost = (delivered impressions / 1000) * CPM Celtra
- Total cost = media cost + Celtra cost
"""

import logging
import math
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..allocation import allocate_even
from ..calendar import parse_date, parse_year_month, year_month
from ..models.monitor import DataMonthRow, JoinConfig, MonitorRow, round_money
from ..settings import ColumnCandidates, load_settings
from .columns import CampaignColumns, ColumnResolver, SourceColumns, auto_detect_join

logger = logging.getLogger(__name__)

Record = Mapping[str, Any]

_NUMBER_NOISE = re.compile(r"[$,\s]")
_FLOAT_PREFIX = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?")
_INT_PREFIX = re.compile(r"^[+-]?\d+")


# =============================================================================
# VALUE PARSING
# =============================================================================


def parse_number(value: Any) -> float:
    """Lenient numeric parse: strips ``$``, ``,`` and whitespace.

    The longest numeric prefix is used (``"12.5 USD"`` -> 12.5). Empty,
    unparseable and non-finite input all give 0.
    """
    if value is None or value == "" or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        try:
            number = float(value)
        except OverflowError:
            return 0.0
    else:
        match = _FLOAT_PREFIX.match(_NUMBER_NOISE.sub("", str(value)))
        number = float(match.group(0)) if match else 0.0
    return number if math.isfinite(number) else 0.0


def parse_goal(value: Any) -> int:
    """Integer goal: integer prefix after stripping ``$``, ``,`` and whitespace."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, float):
        return 0 if not math.isfinite(value) else int(value)
    if isinstance(value, int):
        return value
    match = _INT_PREFIX.match(_NUMBER_NOISE.sub("", str(value)))
    return int(match.group(0)) if match else 0


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def join_values(rows: Sequence[Record], column: str) -> list[str]:
    """Distinct non-empty trimmed values of ``column``, in first-seen order."""
    return list(dict.fromkeys(v for v in (_text(r.get(column)) for r in rows) if v))


def apply_left_join(
    source_rows: Sequence[Record],
    campaign_rows: Sequence[Record],
    join: JoinConfig,
    resolver: ColumnResolver | None = None,
) -> list[Record]:
    """Keep source rows whose join value is among the campaign join values.

    Input is returned unchanged when either column cannot be resolved or the
    campaign side carries no join values at all.
    """
    resolver = resolver or ColumnResolver()
    campaign_col = resolver.resolve(campaign_rows[0].keys(), join.campaign) if campaign_rows else None
    source_col = resolver.resolve(source_rows[0].keys(), join.source) if source_rows else None
    if not campaign_col or not source_col:
        return list(source_rows)

    ids = set(join_values(campaign_rows, campaign_col))
    if not ids:
        return list(source_rows)
    return [r for r in source_rows if _text(r.get(source_col)) in ids]


# =============================================================================
# AGGREGATION
# =============================================================================


@dataclass
class _MonthTotals:
    booked: int = 0
    delivered: float = 0.0
    media_cost: float = 0.0
    celtra_cost: float = 0.0
    booked_revenue: float = 0.0
    lines: set[str] = field(default_factory=set)


@dataclass
class _Delivery:
    delivered: float = 0.0
    media_cost: float = 0.0


class CrossSourceAggregator:
    """Joins campaign allocations against delivered/cost source rows by month.

    Attributes:
        columns: Candidate column names per role.
        resolver: Column matching strategy.
    """

    def __init__(
        self,
        columns: ColumnCandidates | None = None,
        resolver: ColumnResolver | None = None,
    ):
        self.columns = columns if columns is not None else load_settings().columns
        self.resolver = resolver or ColumnResolver()

    def resolve_join(
        self,
        campaign_rows: Sequence[Record],
        source_rows: Sequence[Record],
        join_config: JoinConfig | None = None,
    ) -> JoinConfig | None:
        """Explicit mapping if given, else auto-detected when both sides have rows."""
        if join_config and join_config.campaign and join_config.source:
            return join_config
        if campaign_rows and source_rows:
            return auto_detect_join(campaign_rows, source_rows, self.columns, self.resolver)
        return None

    def aggregate(
        self,
        campaign_rows: Sequence[Record],
        source_rows: Sequence[Record],
        join_config: JoinConfig | None = None,
    ) -> list[MonitorRow]:
        """Monthly monitor rows for one campaign/source dataset pair.

        An unresolvable join yields ``[]``; that is "no data", not an error.

        Args:
            campaign_rows: Campaign dataset rows (attribute bags).
            source_rows: Delivery/cost rows.
            join_config: Explicit insertion-order column mapping, if stored.

        Returns:
            Rows sorted by ``YYYY-MM`` with monetary fields rounded to cents.
        """
        join = self.resolve_join(campaign_rows, source_rows, join_config)
        if join is None:
            logger.info(
                "No join mapping for %d campaign rows / %d source rows",
                len(campaign_rows),
                len(source_rows),
            )
            return []

        if campaign_rows and source_rows:
            source_rows = apply_left_join(source_rows, campaign_rows, join, self.resolver)
        return self._aggregate_by_month(campaign_rows, source_rows, join)

    def _aggregate_by_month(
        self,
        campaign_rows: Sequence[Record],
        source_rows: Sequence[Record],
        join: JoinConfig,
    ) -> list[MonitorRow]:
        if not campaign_rows:
            return []

        c_cols = CampaignColumns.detect(campaign_rows[0], join.campaign, self.columns, self.resolver)
        s_cols = (
            SourceColumns.detect(source_rows[0], join.source, self.columns, self.resolver)
            if source_rows
            else None
        )

        if not c_cols.join_key:
            logger.info("Campaign join column %r not found", join.campaign)
            return []
        if s_cols is not None and not s_cols.is_complete:
            logger.info("Source columns unresolved: %s", s_cols)
            return []

        booked = self.booked_by_join_key(campaign_rows, c_cols)
        ids = join_values(campaign_rows, c_cols.join_key)
        cpm, cpm_celtra = self._rates(campaign_rows, c_cols)
        deliveries = self._deliveries(source_rows, s_cols, set(ids)) if s_cols else {}

        months = set(deliveries)
        if ids:
            for by_month in booked.values():
                months.update(by_month)

        rows = []
        for ym in sorted(months):
            by_key = deliveries.get(ym, {})
            totals = _MonthTotals()
            for key in ids:
                delivery = by_key.get(key, _Delivery())
                booked_for_key = booked.get(key, {}).get(ym, 0)

                totals.booked += booked_for_key
                totals.delivered += delivery.delivered
                totals.media_cost += delivery.media_cost
                totals.celtra_cost += delivery.delivered / 1000 * cpm_celtra.get(key, 0.0)
                totals.booked_revenue += booked_for_key / 1000 * cpm.get(key, 0.0)
                if delivery.delivered > 0 or booked_for_key > 0:
                    totals.lines.add(key)

            rows.append(
                MonitorRow(
                    year_month=ym,
                    sum_impressions=totals.booked,
                    # 0/1 flag, not a per-month distinct count
                    active_campaign_count=1 if ids else 0,
                    data_impressions=totals.delivered,
                    delivered_lines=len(totals.lines),
                    media_cost=round_money(totals.media_cost),
                    media_fees=0.0,
                    celtra_cost=round_money(totals.celtra_cost),
                    total_cost=round_money(totals.media_cost + totals.celtra_cost),
                    booked_revenue=round_money(totals.booked_revenue),
                )
            )
        return rows

    def booked_by_join_key(
        self, campaign_rows: Sequence[Record], cols: CampaignColumns
    ) -> dict[str, dict[str, int]]:
        """Join key -> month -> booked impressions (even split over each flight).

        Rows with no key, unparseable or inverted dates, or a goal <= 0 are
        skipped. Several rows sharing a key accumulate.
        """
        booked: dict[str, dict[str, int]] = {}
        if not cols.can_book:
            return booked

        skipped = 0
        for row in campaign_rows:
            key = _text(row.get(cols.join_key))
            if not key:
                continue
            start = parse_date(row.get(cols.start_date))
            end = parse_date(row.get(cols.end_date))
            goal = parse_goal(row.get(cols.impressions_goal))
            if start is None or end is None or end < start or goal <= 0:
                skipped += 1
                logger.debug("Skipping campaign row %s: start=%s end=%s goal=%s", key, start, end, goal)
                continue

            by_month = booked.setdefault(key, {})
            for day, impressions in allocate_even(start, end, goal).items():
                ym = year_month(day)
                by_month[ym] = by_month.get(ym, 0) + impressions

        if skipped:
            logger.info("Skipped %d campaign rows with no bookable flight", skipped)
        return booked

    def _rates(
        self, campaign_rows: Sequence[Record], cols: CampaignColumns
    ) -> tuple[dict[str, float], dict[str, float]]:
        """CPM and CPM Celtra per join key, taken from the key's first row."""
        cpm: dict[str, float] = {}
        cpm_celtra: dict[str, float] = {}
        seen: set[str] = set()
        for row in campaign_rows:
            key = _text(row.get(cols.join_key))
            if not key or key in seen:
                continue
            seen.add(key)
            if cols.cpm:
                cpm[key] = parse_number(row.get(cols.cpm))
            if cols.cpm_celtra:
                cpm_celtra[key] = parse_number(row.get(cols.cpm_celtra))
        return cpm, cpm_celtra

    def _deliveries(
        self, source_rows: Sequence[Record], cols: SourceColumns, ids: set[str]
    ) -> dict[str, dict[str, _Delivery]]:
        """Month -> join key -> delivered impressions and media cost."""
        deliveries: dict[str, dict[str, _Delivery]] = {}
        skipped = 0
        for row in source_rows:
            key = _text(row.get(cols.join_key))
            if not key or key not in ids:
                continue
            ym = parse_year_month(row.get(cols.date))
            if ym is None:
                skipped += 1
                continue
            delivery = deliveries.setdefault(ym, {}).setdefault(key, _Delivery())
            delivery.delivered += parse_number(row.get(cols.impressions))
            delivery.media_cost += parse_number(row.get(cols.media_cost))

        if skipped:
            logger.debug("Skipped %d source rows with unparseable dates", skipped)
        return deliveries

    def data_impressions_by_month(self, source_rows: Sequence[Record]) -> list[DataMonthRow]:
        """Delivered impressions per month, independent of any campaign pairing.

        Returns ``[]`` when the date or impressions column cannot be found.
        """
        if not source_rows:
            return []
        keys = list(source_rows[0].keys())
        date_col = self.resolver.find(keys, self.columns.source_date)
        impressions_col = self.resolver.find(keys, self.columns.source_impressions)
        if not date_col or not impressions_col:
            logger.info("Source date/impressions columns unresolved in %s", keys)
            return []

        by_month: dict[str, float] = {}
        for row in source_rows:
            ym = parse_year_month(row.get(date_col))
            if ym is None:
                continue
            by_month[ym] = by_month.get(ym, 0.0) + parse_number(row.get(impressions_col))

        return [DataMonthRow(year_month=ym, sum_impressions=by_month[ym]) for ym in sorted(by_month)]
