from .engine import (
    DayAllocation,
    DayType,
    RemainingDays,
    allocate,
    allocate_campaign,
    allocate_custom,
    allocate_even,
    preview,
    range_goal_total,
    remaining_days,
    split_evenly,
    unallocated,
    uncovered_days,
)
from .validation import (
    find_overlaps,
    has_overlaps,
    over_allocation,
    validate_campaign,
    validate_campaign_payload,
    validate_flight,
    validate_goal,
)

__all__ = [
    "DayAllocation",
    "DayType",
    "RemainingDays",
    "allocate",
    "allocate_campaign",
    "allocate_custom",
    "allocate_even",
    "find_overlaps",
    "has_overlaps",
    "over_allocation",
    "preview",
    "range_goal_total",
    "remaining_days",
    "split_evenly",
    "unallocated",
    "uncovered_days",
    "validate_campaign",
    "validate_campaign_payload",
    "validate_flight",
    "validate_goal",
]
