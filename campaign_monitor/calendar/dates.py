"""Calendar helpers: inclusive day ranges, ISO keys and lenient date parsing.

All ranges are inclusive on both ends. Dates are plain ``datetime.date``
values; nothing here is timezone-aware except the OData ``/Date(ms)/`` wrapper,
which is read as UTC.
"""

import math
import re
from collections.abc import Iterator
from datetime import date, datetime, timedelta, timezone
from typing import Any

ONE_DAY = timedelta(days=1)

_ISO_YEAR_MONTH = re.compile(r"^(\d{4})-(\d{2})")
_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")
_ODATA_DATE = re.compile(r"/Date\((-?\d+)\)/")

# Formats tried after the ISO prefix and OData checks.
FALLBACK_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m/%d/%Y %H:%M",
    "%m/%d/%Y %H:%M:%S",
    "%m/%d/%Y %I:%M:%S %p",
    "%m/%d/%y %H:%M",
    "%Y/%m/%d",
    "%d %b %Y",
    "%b %d, %Y",
    "%B %d, %Y",
    "%d %B %Y",
)


def to_date(value: Any) -> date | None:
    """Coerce a date, datetime or ``YYYY-MM-DD`` string to ``date``."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    s = str(value).strip()
    if not s:
        return None
    try:
        return date.fromisoformat(s[:10])
    except ValueError:
        return None


def days_in_range(start: date, end: date) -> int:
    """Inclusive day count, never negative (0 when ``end < start``)."""
    return max(0, (end - start).days + 1)


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from ``start`` to ``end`` inclusive."""
    day = start
    while day <= end:
        yield day
        day += ONE_DAY


def date_range(start: date, end: date) -> list[date]:
    return list(iter_days(start, end))


def in_range(day: date, start: date, end: date) -> bool:
    return start <= day <= end


# =============================================================================
# BUCKET KEYS
# =============================================================================


def year_month(day: date) -> str:
    """``YYYY-MM`` key for a day."""
    return f"{day.year:04d}-{day.month:02d}"


def quarter_key(ym: str) -> str:
    """``YYYY-MM`` -> ``YYYY-Q{1-4}`` (quarter = ceil(month / 3))."""
    return f"{ym[:4]}-Q{math.ceil(int(ym[5:7]) / 3)}"


def year_key(ym: str) -> str:
    return ym[:4]


def bucket_key(ym: str, granularity: str) -> str:
    """Map a ``YYYY-MM`` key onto a ``yearMonth``, ``quarter`` or ``year`` bucket."""
    if granularity == "yearMonth":
        return ym
    if granularity == "quarter":
        return quarter_key(ym)
    if granularity == "year":
        return year_key(ym)
    raise ValueError(f"Unknown granularity: {granularity}")


# =============================================================================
# LENIENT PARSING (source rows, imported campaign columns)
# =============================================================================


def _from_odata(ms: str) -> datetime | None:
    try:
        return datetime.fromtimestamp(int(ms) / 1000, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def parse_date(value: Any) -> date | None:
    """Parse a date from ISO, OData ``/Date(ms)/`` or a common US/long format.

    Returns None for empty or unparseable input instead of raising.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    s = str(value).strip()
    if not s:
        return None

    iso = _ISO_DATE.match(s)
    if iso:
        try:
            return date(int(iso[1]), int(iso[2]), int(iso[3]))
        except ValueError:
            return None

    odata = _ODATA_DATE.search(s)
    if odata:
        parsed = _from_odata(odata[1])
        return parsed.date() if parsed else None

    for fmt in FALLBACK_DATE_FORMATS:
        try:
            return datetime.strptime(s, fmt).date()
        except ValueError:
            continue
    return None


def parse_year_month(value: Any) -> str | None:
    """Parse a report date straight to its ``YYYY-MM`` bucket.

    A leading ``YYYY-MM`` is taken as-is, without validating the day part.
    """
    if value is None:
        return None
    if isinstance(value, date):
        return year_month(value)

    s = str(value).strip()
    if not s:
        return None

    iso = _ISO_YEAR_MONTH.match(s)
    if iso:
        return f"{iso[1]}-{iso[2]}"

    parsed = parse_date(s)
    return year_month(parsed) if parsed else None
