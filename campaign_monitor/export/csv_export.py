"""Export Formatter - campaign allocations as CSV text.

Two shapes:

- Wide pivot: one row per date from the fixed axis start to today, one column
  per campaign. Cells are thousands-separated impressions, empty outside the
  campaign's flight. Malformed campaigns keep their column with every cell empty.
- Long by insertion order: one row per (date, campaign) over the union of
  all flights, raw integers, empty outside the flight.

Campaigns with an inverted flight or a negative goal get no rows in the long
format.
"""

from collections.abc import Iterable, Sequence
from datetime import date

from ..allocation import allocate_campaign
from ..calendar import date_range
from ..models.campaign import Campaign

EXPORT_AXIS_START = date(2025, 1, 1)
INSERTION_ORDER_COLUMN = "Insertion Order ID"
LONG_HEADER = ("Date", "Insertion Order ID", "Daily Allocated Impressions Goal")


def escape_csv(value: str | int) -> str:
    """Quote only when the field holds a comma, double quote or newline."""
    s = str(value)
    if any(ch in s for ch in (",", '"', "\n")):
        return '"' + s.replace('"', '""') + '"'
    return s


def format_impressions(value: int) -> str:
    """Thousands-separated integer, e.g. ``1,000``."""
    return f"{value:,}"


def select_campaigns(
    campaigns: Iterable[Campaign],
    campaign_ids: Iterable[int] | None = None,
    bookable_only: bool = True,
) -> list[Campaign]:
    """Campaigns restricted to ``campaign_ids`` if any.

    With ``bookable_only``, campaigns with an inverted flight or a negative
    goal are dropped as well.
    """
    ids = set(campaign_ids or ())
    return [
        c
        for c in campaigns
        if (c.is_bookable or not bookable_only) and (not ids or c.id in ids)
    ]


def export_wide_pivot(
    campaigns: Sequence[Campaign],
    today: date | None = None,
    axis_start: date = EXPORT_AXIS_START,
) -> str:
    """Date x campaign pivot from ``axis_start`` through ``today``.

    Args:
        campaigns: Campaigns to export, one column each, in order.
        today: Last day of the axis. Defaults to the current local date.
        axis_start: First day of the axis.

    Returns:
        CSV text, rows joined by ``\\n`` with no trailing newline.
    """
    today = today or date.today()
    selected = list(campaigns)
    allocations = [allocate_campaign(c) if c.is_bookable else {} for c in selected]

    lines = [",".join(["Date", *(escape_csv(c.name) for c in selected)])]
    for day in date_range(axis_start, today):
        cells = [day.isoformat()]
        for allocation in allocations:
            impressions = allocation.get(day)
            cells.append("" if impressions is None else escape_csv(format_impressions(impressions)))
        lines.append(",".join(cells))
    return "\n".join(lines)


def insertion_order_id(campaign: Campaign, column: str = INSERTION_ORDER_COLUMN) -> str:
    """IO id from the attribute bag, else the name, else the numeric id."""
    value = campaign.csv_data.get(column)
    if value is None:
        value = campaign.name
    return value.strip() or str(campaign.id)


def export_long_by_io(
    campaigns: Sequence[Campaign], io_column: str = INSERTION_ORDER_COLUMN
) -> str:
    """Date / insertion order / daily goal rows over the union of all flights.

    Dates run from the earliest start to the latest end; within each date,
    campaigns keep their input order. An empty selection yields the header
    line followed by a newline.
    """
    selected = select_campaigns(campaigns)
    if not selected:
        return ",".join(LONG_HEADER) + "\n"

    start = min(c.start_date for c in selected)
    end = max(c.end_date for c in selected)
    entries = [
        (escape_csv(insertion_order_id(c, io_column)), allocate_campaign(c)) for c in selected
    ]

    lines = [",".join(LONG_HEADER)]
    for day in date_range(start, end):
        iso = day.isoformat()
        for io_id, allocation in entries:
            impressions = allocation.get(day)
            value = "" if impressions is None else str(impressions)
            lines.append(f"{iso},{io_id},{value}")
    return "\n".join(lines)
