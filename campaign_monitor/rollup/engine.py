"""Rollup/Grouping Engine - month, quarter, year and dimension aggregates.

Booked series are produced by the Allocation Engine and grouped with Polars.
Even-mode campaigns record every flight day (zeros included); custom-mode
campaigns record only days with impressions, so a month made entirely of
dark days contributes no booked row.
"""

from collections.abc import Iterable, Mapping, Sequence

import polars as pl

from ..allocation import allocate_campaign
from ..calendar import year_month
from ..models.campaign import Campaign, DistributionMode
from ..models.monitor import (
    MONEY_FIELDS,
    BookedByMonth,
    BookedMonthRow,
    CampaignMonthRow,
    DataMonthRow,
    DimensionRow,
    Granularity,
    MonitorRow,
    round_money,
)
from .expressions import (
    bucket_key_expr,
    dimension_aggregates_expr,
    dimension_value_expr,
    monitor_sum_exprs,
)

DAILY_SCHEMA = {
    "campaign_index": pl.Int64,
    "campaign_id": pl.Int64,
    "year_month": pl.Utf8,
    "impressions": pl.Int64,
    "goal": pl.Int64,
    "recorded": pl.Boolean,
}


# =============================================================================
# TIME ROLLUP
# =============================================================================


def _monitor_frame(rows: Sequence[MonitorRow]) -> pl.DataFrame:
    data: dict[str, list] = {
        "year_month": [r.year_month for r in rows],
        "sum_impressions": [int(r.sum_impressions) for r in rows],
        "active_campaign_count": [int(r.active_campaign_count) for r in rows],
        "data_impressions": [float(r.data_impressions) for r in rows],
        "delivered_lines": [int(r.delivered_lines) for r in rows],
    }
    for name in MONEY_FIELDS:
        data[name] = [float(getattr(r, name)) for r in rows]
    return pl.DataFrame(data)


def rollup_by_time(
    rows: Sequence[MonitorRow], granularity: Granularity | str = Granularity.YEAR_MONTH
) -> list[MonitorRow]:
    """Group monthly rows into ``yearMonth``, ``quarter`` or ``year`` buckets.

    Every numeric field is summed per bucket; monetary fields are rounded
    after summation. Output is sorted ascending by bucket key.

    Raises:
        ValueError: If ``granularity`` is not a known bucket.
    """
    granularity = Granularity(granularity)
    if not rows:
        return []

    grouped = (
        _monitor_frame(rows)
        .with_columns(bucket_key_expr(granularity.value))
        .group_by("bucket", maintain_order=True)
        .agg(monitor_sum_exprs())
        .sort("bucket")
    )

    return [
        MonitorRow(
            year_month=row["bucket"],
            sum_impressions=row["sum_impressions"],
            active_campaign_count=row["active_campaign_count"],
            data_impressions=row["data_impressions"],
            delivered_lines=row["delivered_lines"],
            **{name: round_money(row[name]) for name in MONEY_FIELDS},
        )
        for row in grouped.to_dicts()
    ]


# =============================================================================
# BOOKED SERIES
# =============================================================================


def _daily_frame(campaigns: Sequence[Campaign]) -> pl.DataFrame:
    """One row per campaign flight day; malformed campaigns contribute nothing."""
    data: dict[str, list] = {name: [] for name in DAILY_SCHEMA}
    for index, campaign in enumerate(campaigns):
        if not campaign.is_bookable:
            continue
        is_even = campaign.distribution_mode is DistributionMode.EVEN
        for day, impressions in allocate_campaign(campaign).items():
            data["campaign_index"].append(index)
            data["campaign_id"].append(campaign.id)
            data["year_month"].append(year_month(day))
            data["impressions"].append(impressions)
            data["goal"].append(campaign.impressions_goal)
            data["recorded"].append(is_even or impressions > 0)
    return pl.DataFrame(data, schema=DAILY_SCHEMA)


def booked_by_month(campaigns: Sequence[Campaign]) -> BookedByMonth:
    """Booked impressions per month across campaigns.

    ``active_campaign_count`` counts campaigns with at least one flight day in
    the month (dark days included) and ``sum_goal`` adds up their full goals.
    """
    daily = _daily_frame(campaigns)
    if daily.is_empty():
        return BookedByMonth(rows=[], total_unique_campaign_count=0)

    sums = (
        daily.filter(pl.col("recorded"))
        .group_by("year_month")
        .agg(pl.col("impressions").sum().alias("sum_impressions"))
    )
    active = (
        daily.unique(subset=["year_month", "campaign_index"])
        .group_by("year_month")
        .agg(
            pl.col("campaign_index").n_unique().alias("active_campaign_count"),
            pl.col("goal").sum().alias("sum_goal"),
        )
    )
    monthly = sums.join(active, on="year_month", how="left").sort("year_month")

    rows = [
        BookedMonthRow(
            year_month=row["year_month"],
            sum_impressions=row["sum_impressions"],
            active_campaign_count=row["active_campaign_count"] or 0,
            sum_goal=row["sum_goal"] or 0,
        )
        for row in monthly.to_dicts()
    ]
    return BookedByMonth(
        rows=rows, total_unique_campaign_count=daily["campaign_index"].n_unique()
    )


def per_campaign_by_month(campaigns: Sequence[Campaign]) -> list[CampaignMonthRow]:
    """Booked impressions per (campaign, month), sorted by month then campaign id."""
    daily = _daily_frame(campaigns).filter(pl.col("recorded"))
    if daily.is_empty():
        return []

    grouped = (
        daily.group_by(["campaign_id", "year_month"])
        .agg(pl.col("impressions").sum().alias("sum_impressions"))
        .sort(["year_month", "campaign_id"])
    )
    return [
        CampaignMonthRow(
            campaign_id=row["campaign_id"],
            year_month=row["year_month"],
            sum_impressions=row["sum_impressions"],
        )
        for row in grouped.to_dicts()
    ]


def merge_monitor_rows(
    booked: Iterable[BookedMonthRow], data: Iterable[DataMonthRow]
) -> list[MonitorRow]:
    """Outer-join booked and delivered monthly series into monitor rows."""
    booked_by_key = {r.year_month: r for r in booked}
    data_by_key = {r.year_month: r for r in data}

    rows = []
    for ym in sorted(booked_by_key.keys() | data_by_key.keys()):
        b = booked_by_key.get(ym)
        d = data_by_key.get(ym)
        rows.append(
            MonitorRow(
                year_month=ym,
                sum_impressions=b.sum_impressions if b else 0,
                active_campaign_count=b.active_campaign_count if b else 0,
                data_impressions=d.sum_impressions if d else 0,
            )
        )
    return rows


# =============================================================================
# DIMENSION ROLLUP
# =============================================================================


def dimension_lookup(campaigns: Iterable[Campaign], dimension: str) -> dict[int, str]:
    """Campaign id -> value of one attribute-bag column ("" when missing)."""
    return {c.id: c.csv_data.get(dimension, "") for c in campaigns}


def rollup_by_dimension(
    per_campaign_rows: Sequence[CampaignMonthRow], lookup: Mapping[int, str]
) -> list[DimensionRow]:
    """Group per-campaign rows by dimension value.

    Values are trimmed and empty/missing ones collapse into ``(blank)``.
    Sorted by impressions descending, ties broken by value.
    """
    if not per_campaign_rows:
        return []

    df = pl.DataFrame(
        {
            "campaign_id": [r.campaign_id for r in per_campaign_rows],
            "sum_impressions": [r.sum_impressions for r in per_campaign_rows],
            "dimension_value": [lookup.get(r.campaign_id) for r in per_campaign_rows],
        },
        schema={
            "campaign_id": pl.Int64,
            "sum_impressions": pl.Int64,
            "dimension_value": pl.Utf8,
        },
    )
    grouped = (
        df.with_columns(dimension_value_expr())
        .group_by("dimension_value")
        .agg(dimension_aggregates_expr())
        .sort(["sum_impressions", "dimension_value"], descending=[True, False])
    )
    return [
        DimensionRow(
            dimension_value=row["dimension_value"],
            sum_impressions=row["sum_impressions"],
            active_campaign_count=row["active_campaign_count"],
        )
        for row in grouped.to_dicts()
    ]
