"""Pre-save validation for campaign payloads.

The allocation functions never raise on these conditions; they are checked
here, before a campaign is stored, and reported as ``CampaignValidationError``
subclasses carrying the same messages the campaign form shows.
"""

import math
from collections.abc import Mapping, Sequence
from datetime import date
from typing import Any

from pydantic import ValidationError

from ..calendar import to_date
from ..exceptions import (
    CampaignValidationError,
    InvalidFlightError,
    InvalidGoalError,
    OverAllocationError,
    OverlappingRangesError,
)
from ..models.campaign import Campaign, CustomRange, DistributionMode
from .engine import range_goal_total

DATES_REQUIRED_MSG = "Start date and end date are required."
DATE_ORDER_MSG = "Start date must be before or equal to end date."
GOAL_MSG = "Impressions goal is required and must be a non-negative whole number."


def find_overlaps(ranges: Sequence[CustomRange]) -> list[tuple[int, int]]:
    """Index pairs ``(i, j)``, ``i < j``, of ranges sharing at least one day."""
    pairs: list[tuple[int, int]] = []
    for i in range(len(ranges)):
        for j in range(i + 1, len(ranges)):
            a, b = ranges[i], ranges[j]
            if a.start_date <= b.end_date and b.start_date <= a.end_date:
                pairs.append((i, j))
    return pairs


def has_overlaps(ranges: Sequence[CustomRange]) -> bool:
    return bool(find_overlaps(ranges))


def over_allocation(goal: int, ranges: Sequence[CustomRange]) -> int:
    """Amount by which range goals exceed the campaign goal (0 if they fit)."""
    return max(0, range_goal_total(ranges) - goal)


def validate_flight(start: Any, end: Any) -> tuple[date, date]:
    start_date, end_date = to_date(start), to_date(end)
    if start_date is None or end_date is None:
        raise InvalidFlightError(
            DATES_REQUIRED_MSG,
            [
                {"field": "Start Date", "message": DATES_REQUIRED_MSG},
                {"field": "End Date", "message": DATES_REQUIRED_MSG},
            ],
        )
    if start_date > end_date:
        raise InvalidFlightError(
            DATE_ORDER_MSG,
            [
                {"field": "Start Date", "message": DATE_ORDER_MSG},
                {"field": "End Date", "message": DATE_ORDER_MSG},
            ],
        )
    return start_date, end_date


def validate_goal(goal: Any) -> int:
    """Accept a non-negative whole number (int, integral float or digit string)."""
    issue = [{"field": "Impressions Goal", "message": GOAL_MSG}]
    if goal is None or isinstance(goal, bool):
        raise InvalidGoalError(GOAL_MSG, issue)
    if isinstance(goal, str):
        s = goal.strip()
        if not (s.isascii() and s.isdigit()):
            raise InvalidGoalError(GOAL_MSG, issue)
        return int(s)
    if isinstance(goal, float):
        if not math.isfinite(goal) or not goal.is_integer() or goal < 0:
            raise InvalidGoalError(GOAL_MSG, issue)
        return int(goal)
    if isinstance(goal, int) and goal >= 0:
        return goal
    raise InvalidGoalError(GOAL_MSG, issue)


def validate_ranges_within_flight(campaign: Campaign) -> None:
    outside = [
        r.label
        for r in campaign.custom_ranges
        if r.start_date < campaign.start_date or r.end_date > campaign.end_date
    ]
    if outside:
        message = f"Ranges outside the campaign flight: {', '.join(outside)}"
        raise CampaignValidationError(
            message, [{"field": "customRanges", "message": message}]
        )


def validate_campaign(campaign: Campaign) -> None:
    """Run every save-time rule, in the order the campaign form checks them.

    Raises:
        InvalidFlightError, InvalidGoalError, OverlappingRangesError,
        OverAllocationError, CampaignValidationError
    """
    validate_flight(campaign.start_date, campaign.end_date)
    validate_goal(campaign.impressions_goal)

    if campaign.distribution_mode is not DistributionMode.CUSTOM:
        return

    pairs = find_overlaps(campaign.custom_ranges)
    if pairs:
        raise OverlappingRangesError(pairs)

    if campaign.custom_ranges:
        overage = over_allocation(campaign.impressions_goal, campaign.custom_ranges)
        if overage > 0:
            raise OverAllocationError(overage)

    validate_ranges_within_flight(campaign)


def validate_campaign_payload(payload: Mapping[str, Any]) -> Campaign:
    """Validate a raw form/API payload and build the ``Campaign``.

    Flight and goal are checked on the raw values first so that a missing
    date or a fractional goal gets the form's message, not a pydantic one.
    """
    data = dict(payload)
    start = data.get("startDate", data.get("start_date"))
    end = data.get("endDate", data.get("end_date"))
    goal = data.get("impressionsGoal", data.get("impressions_goal"))

    start_date, end_date = validate_flight(start, end)
    data.update(
        startDate=start_date,
        endDate=end_date,
        impressionsGoal=validate_goal(goal),
    )
    for key in ("start_date", "end_date", "impressions_goal"):
        data.pop(key, None)
    data.setdefault("id", 0)

    try:
        campaign = Campaign.model_validate(data)
    except ValidationError as e:
        issues = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise CampaignValidationError(
            f"Invalid campaign: {issues[0]['message'] if issues else e}", issues
        ) from e

    validate_campaign(campaign)
    return campaign
