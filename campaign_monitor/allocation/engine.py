"""Allocation Engine - daily impression distribution for a single campaign.

Remainder rule used everywhere: ``base = goal // days`` on every day and the
leftover ``goal - base * days`` on the chronologically last day of the range
being split. Never proportional, never on the first day.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date
from enum import Enum

from ..calendar import date_range, days_in_range, in_range
from ..models.campaign import Campaign, CustomRange, DarkRange, DistributionMode, GoalRange


class DayType(str, Enum):
    """Why a day received its impressions."""

    EVEN = "even"
    GOAL = "goal"
    DARK = "dark"
    REMAINDER = "remainder"


@dataclass(frozen=True)
class DayAllocation:
    """One flight day in an allocation preview."""

    day: date
    impressions: int
    type: DayType
    range_label: str = ""


@dataclass(frozen=True)
class RemainingDays:
    """Flight days not covered by any custom range."""

    days: list[date]

    @property
    def count(self) -> int:
        return len(self.days)

    @property
    def first(self) -> date | None:
        return self.days[0] if self.days else None

    @property
    def last(self) -> date | None:
        return self.days[-1] if self.days else None


def split_evenly(total: int, days: Sequence[date]) -> dict[date, int]:
    """Spread ``total`` over ``days``; the last day absorbs the remainder."""
    if not days:
        return {}
    base = total // len(days)
    remainder = total - base * len(days)
    split = {day: base for day in days}
    split[days[-1]] = base + remainder
    return split


def goal_ranges(ranges: Iterable[CustomRange]) -> list[GoalRange]:
    return [r for r in ranges if isinstance(r, GoalRange)]


def dark_ranges(ranges: Iterable[CustomRange]) -> list[DarkRange]:
    return [r for r in ranges if isinstance(r, DarkRange)]


def range_goal_total(ranges: Iterable[CustomRange]) -> int:
    """Sum of goal-range goals (ranges with no days are ignored)."""
    return sum(
        r.impressions_goal
        for r in goal_ranges(ranges)
        if days_in_range(r.start_date, r.end_date) > 0
    )


def covered_days(ranges: Iterable[CustomRange]) -> set[date]:
    """Every day that falls in any range, dark or goal."""
    covered: set[date] = set()
    for r in ranges:
        covered.update(date_range(r.start_date, r.end_date))
    return covered


def uncovered_days(start: date, end: date, ranges: Sequence[CustomRange]) -> list[date]:
    """Flight days outside every range, in chronological order."""
    covered = covered_days(ranges)
    return [day for day in date_range(start, end) if day not in covered]


# =============================================================================
# CORE ALLOCATION
# =============================================================================


def _custom_entries(
    start: date, end: date, goal: int, ranges: Sequence[CustomRange]
) -> dict[date, tuple[int, DayType, str]]:
    """Per-day (impressions, type, label) for custom mode, flight days only.

    Goal ranges are applied in list order, so a later range wins a shared day.
    Dark days are applied after all goal ranges and always end at zero.
    """
    entries: dict[date, tuple[int, DayType, str]] = {}
    total_in_ranges = 0

    for r in goal_ranges(ranges):
        range_days = date_range(r.start_date, r.end_date)
        if not range_days:
            continue
        total_in_ranges += r.impressions_goal
        for day, impressions in split_evenly(r.impressions_goal, range_days).items():
            if in_range(day, start, end):
                entries[day] = (impressions, DayType.GOAL, r.label)

    for r in reversed(dark_ranges(ranges)):
        for day in date_range(max(r.start_date, start), min(r.end_date, end)):
            entries[day] = (0, DayType.DARK, r.label)

    uncovered = uncovered_days(start, end, ranges)
    remaining = max(0, goal - total_in_ranges)
    if remaining > 0 and uncovered:
        for day, impressions in split_evenly(remaining, uncovered).items():
            entries[day] = (impressions, DayType.REMAINDER, "")

    return entries


def allocate_even(start: date, end: date, goal: int) -> dict[date, int]:
    """Even split of ``goal`` over the flight, remainder on the last flight day."""
    return split_evenly(goal, date_range(start, end))


def allocate_custom(
    start: date, end: date, goal: int, ranges: Sequence[CustomRange]
) -> dict[date, int]:
    """Goal ranges, then dark ranges, then leftover goal over uncovered days.

    ``remaining`` clamps at zero when range goals exceed the campaign goal;
    the over-allocation itself is reported by validation, not here.
    """
    entries = _custom_entries(start, end, goal, ranges)
    return {day: entries[day][0] if day in entries else 0 for day in date_range(start, end)}


def allocate(
    start: date,
    end: date,
    goal: int,
    mode: DistributionMode | str = DistributionMode.EVEN,
    ranges: Sequence[CustomRange] = (),
) -> dict[date, int]:
    """Daily impressions for one flight, keyed by date in chronological order.

    Every flight day is present. ``start > end`` yields an empty mapping.
    ``ranges`` are only consulted in custom mode.
    """
    if start > end:
        return {}
    if DistributionMode(mode) is DistributionMode.CUSTOM:
        return allocate_custom(start, end, goal, ranges)
    return allocate_even(start, end, goal)


def allocate_campaign(campaign: Campaign) -> dict[date, int]:
    return allocate(
        campaign.start_date,
        campaign.end_date,
        campaign.impressions_goal,
        campaign.distribution_mode,
        campaign.custom_ranges,
    )


# =============================================================================
# PREVIEW
# =============================================================================


def preview(campaign: Campaign) -> list[DayAllocation]:
    """Day-by-day allocation with the reason each day got its impressions."""
    start, end = campaign.start_date, campaign.end_date
    if start > end:
        return []

    if campaign.distribution_mode is DistributionMode.EVEN:
        return [
            DayAllocation(day=day, impressions=impressions, type=DayType.EVEN)
            for day, impressions in allocate_even(start, end, campaign.impressions_goal).items()
        ]

    entries = _custom_entries(start, end, campaign.impressions_goal, campaign.custom_ranges)
    rows: list[DayAllocation] = []
    for day in date_range(start, end):
        impressions, day_type, label = entries.get(day, (0, DayType.REMAINDER, ""))
        rows.append(
            DayAllocation(day=day, impressions=impressions, type=day_type, range_label=label)
        )
    return rows


def remaining_days(campaign: Campaign) -> RemainingDays:
    """Days where unallocated impressions will land."""
    if campaign.start_date > campaign.end_date:
        return RemainingDays(days=[])
    return RemainingDays(
        days=uncovered_days(campaign.start_date, campaign.end_date, campaign.custom_ranges)
    )


def unallocated(campaign: Campaign) -> int:
    """Campaign goal minus range goals; negative means over-allocated."""
    return campaign.impressions_goal - range_goal_total(campaign.custom_ranges)
