"""Output models for allocation rollups and monitor aggregation."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

MONEY_FIELDS = ("media_cost", "media_fees", "celtra_cost", "total_cost", "booked_revenue")


class Granularity(str, Enum):
    """Time bucket for monitor rollups."""

    YEAR_MONTH = "yearMonth"
    QUARTER = "quarter"
    YEAR = "year"


def round_money(value: float | None) -> float:
    """Round to cents, half up; NaN, inf and None become 0."""
    if value is None:
        return 0.0
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return math.floor(value * 100 + 0.5) / 100


def _plain(n: float | int) -> float | int:
    """Render integral floats as ints so JSON output stays stable."""
    if isinstance(n, float) and n.is_integer():
        return int(n)
    return n


@dataclass(frozen=True)
class JoinConfig:
    """Which column on each side holds the insertion-order id."""

    campaign: str
    source: str


@dataclass(frozen=True)
class MonitorRow:
    """Aggregate for one time bucket (or one dimension value)."""

    year_month: str
    sum_impressions: int = 0  # booked
    active_campaign_count: int = 0
    data_impressions: float = 0  # delivered
    delivered_lines: int = 0
    media_cost: float = 0.0
    media_fees: float = 0.0
    celtra_cost: float = 0.0
    total_cost: float = 0.0
    booked_revenue: float = 0.0

    @property
    def booked_revenue_vs_total_cost(self) -> float:
        return self.booked_revenue - self.total_cost

    @property
    def margin_percent(self) -> float:
        """100 * (revenue - cost) / revenue; -100 when only cost exists."""
        if self.booked_revenue > 0:
            return 100 * (self.booked_revenue - self.total_cost) / self.booked_revenue
        return -100.0 if self.total_cost > 0 else 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "yearMonth": self.year_month,
            "sumImpressions": _plain(self.sum_impressions),
            "activeCampaignCount": self.active_campaign_count,
            "dataImpressions": _plain(self.data_impressions),
            "deliveredLines": self.delivered_lines,
            "mediaCost": self.media_cost,
            "mediaFees": self.media_fees,
            "celtraCost": self.celtra_cost,
            "totalCost": self.total_cost,
            "bookedRevenue": self.booked_revenue,
        }


@dataclass(frozen=True)
class BookedMonthRow:
    """Allocated (booked) impressions across campaigns for one month."""

    year_month: str
    sum_impressions: int
    active_campaign_count: int  # campaigns with at least one flight day that month
    sum_goal: int  # full goals of those campaigns


@dataclass(frozen=True)
class BookedByMonth:
    rows: list[BookedMonthRow]
    total_unique_campaign_count: int


@dataclass(frozen=True)
class CampaignMonthRow:
    """Allocated impressions for one campaign in one month."""

    campaign_id: int
    year_month: str
    sum_impressions: int


@dataclass(frozen=True)
class DataMonthRow:
    """Delivered impressions from source rows for one month."""

    year_month: str
    sum_impressions: float

    def to_dict(self) -> dict[str, Any]:
        return {"yearMonth": self.year_month, "sumImpressions": _plain(self.sum_impressions)}


@dataclass(frozen=True)
class DimensionRow:
    """Booked impressions grouped by one campaign attribute value."""

    dimension_value: str
    sum_impressions: int
    active_campaign_count: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "dimensionValue": self.dimension_value,
            "sumImpressions": self.sum_impressions,
            "activeCampaignCount": self.active_campaign_count,
        }


@dataclass(frozen=True)
class MonitorPayload:
    """Monitor rows plus column totals, as handed to the display layer."""

    rows: list[MonitorRow] = field(default_factory=list)
    total_unique_campaign_count: int = 0
    total_impressions: int = 0
    total_data_impressions: float = 0
    total_delivered_lines: int = 0
    total_media_cost: float = 0.0
    total_media_fees: float = 0.0
    total_celtra_cost: float = 0.0
    total_total_cost: float = 0.0
    total_booked_revenue: float = 0.0

    @classmethod
    def from_rows(
        cls, rows: list[MonitorRow], total_unique_campaign_count: int | None = None
    ) -> "MonitorPayload":
        """Sum columns; monetary totals are rounded after summation."""
        if total_unique_campaign_count is None:
            total_unique_campaign_count = max(
                [r.active_campaign_count for r in rows] + [0]
            )
        return cls(
            rows=list(rows),
            total_unique_campaign_count=total_unique_campaign_count,
            total_impressions=sum(r.sum_impressions for r in rows),
            total_data_impressions=sum(r.data_impressions for r in rows),
            total_delivered_lines=sum(r.delivered_lines for r in rows),
            total_media_cost=round_money(sum(r.media_cost for r in rows)),
            total_media_fees=round_money(sum(r.media_fees for r in rows)),
            total_celtra_cost=round_money(sum(r.celtra_cost for r in rows)),
            total_total_cost=round_money(sum(r.total_cost for r in rows)),
            total_booked_revenue=round_money(sum(r.booked_revenue for r in rows)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": [r.to_dict() for r in self.rows],
            "totalUniqueCampaignCount": self.total_unique_campaign_count,
            "totalImpressions": _plain(self.total_impressions),
            "totalDataImpressions": _plain(self.total_data_impressions),
            "totalDeliveredLines": self.total_delivered_lines,
            "totalMediaCost": self.total_media_cost,
            "totalMediaFees": self.total_media_fees,
            "totalCeltraCost": self.total_celtra_cost,
            "totalTotalCost": self.total_total_cost,
            "totalBookedRevenue": self.total_booked_revenue,
        }
