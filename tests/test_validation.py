"""Tests for campaign validation."""

from datetime import date

import pytest

from campaign_monitor.allocation import (
    find_overlaps,
    has_overlaps,
    over_allocation,
    validate_campaign,
    validate_campaign_payload,
    validate_flight,
    validate_goal,
)
from campaign_monitor.exceptions import (
    CampaignValidationError,
    InvalidFlightError,
    InvalidGoalError,
    OverAllocationError,
    OverlappingRangesError,
)
from campaign_monitor.models import Campaign, DarkRange, GoalRange


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def payload() -> dict:
    """A valid custom-mode campaign payload as sent by the form."""
    return {
        "name": "Spring",
        "startDate": "2025-01-01",
        "endDate": "2025-01-31",
        "impressionsGoal": 1000,
        "distributionMode": "custom",
        "customRanges": [
            {"startDate": "2025-01-01", "endDate": "2025-01-10", "impressionsGoal": 400},
            {"startDate": "2025-01-11", "endDate": "2025-01-15", "isDark": True},
        ],
    }


# =============================================================================
# OVERLAPS
# =============================================================================


class TestOverlaps:
    """Tests for find_overlaps() and has_overlaps()."""

    def test_overlapping_pair_flagged(self) -> None:
        """Ranges sharing 2025-01-05..10 should be flagged."""
        ranges = [
            DarkRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 10)),
            DarkRange(start_date=date(2025, 1, 5), end_date=date(2025, 1, 15)),
        ]
        assert find_overlaps(ranges) == [(0, 1)]
        assert has_overlaps(ranges)

    def test_adjacent_ranges_do_not_overlap(self) -> None:
        """Back-to-back ranges should not be flagged."""
        ranges = [
            GoalRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 10), impressions_goal=1),
            GoalRange(start_date=date(2025, 1, 11), end_date=date(2025, 1, 15), impressions_goal=1),
        ]
        assert not has_overlaps(ranges)

    def test_single_shared_day(self) -> None:
        """Sharing only an endpoint counts as overlap."""
        ranges = [
            DarkRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 10)),
            GoalRange(start_date=date(2025, 1, 10), end_date=date(2025, 1, 12), impressions_goal=5),
        ]
        assert has_overlaps(ranges)

    def test_all_pairs_reported(self) -> None:
        """Every overlapping pair should be listed."""
        r = DarkRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 31))
        assert find_overlaps([r, r, r]) == [(0, 1), (0, 2), (1, 2)]


# =============================================================================
# FIELD RULES
# =============================================================================


class TestFlightAndGoal:
    """Tests for validate_flight() and validate_goal()."""

    def test_missing_dates(self) -> None:
        """Missing dates should raise with the form message."""
        with pytest.raises(InvalidFlightError, match="Start date and end date are required."):
            validate_flight(None, "2025-01-01")

    def test_inverted_dates(self) -> None:
        """start > end should be rejected."""
        with pytest.raises(InvalidFlightError, match="before or equal to end date"):
            validate_flight("2025-02-01", "2025-01-01")

    def test_same_day_flight_ok(self) -> None:
        """A one-day flight is valid."""
        assert validate_flight("2025-01-01", date(2025, 1, 1)) == (date(2025, 1, 1), date(2025, 1, 1))

    @pytest.mark.parametrize("goal", [-1, 1.5, "abc", "1,000", None, True, float("nan"), "²", "١٢"])
    def test_bad_goals(self, goal) -> None:
        """Negative, fractional and non-numeric goals should be rejected."""
        with pytest.raises(InvalidGoalError):
            validate_goal(goal)

    @pytest.mark.parametrize("goal,expected", [(0, 0), (10.0, 10), ("42", 42), (" 7 ", 7)])
    def test_good_goals(self, goal, expected: int) -> None:
        """Whole numbers in any form should be accepted."""
        assert validate_goal(goal) == expected

    def test_errors_are_value_errors(self) -> None:
        """Validation errors should be catchable as ValueError."""
        with pytest.raises(ValueError):
            validate_goal(-5)


# =============================================================================
# CAMPAIGN RULES
# =============================================================================


class TestValidateCampaign:
    """Tests for validate_campaign() and validate_campaign_payload()."""

    def test_valid_payload(self, payload: dict) -> None:
        """A valid payload should produce a Campaign."""
        campaign = validate_campaign_payload(payload)
        assert isinstance(campaign, Campaign)
        assert campaign.start_date == date(2025, 1, 1)
        assert len(campaign.custom_ranges) == 2

    def test_over_allocation_reports_exact_overage(self, payload: dict) -> None:
        """Range goals above the campaign goal should report the overage."""
        payload["customRanges"][0]["impressionsGoal"] = 2500
        with pytest.raises(OverAllocationError) as exc_info:
            validate_campaign_payload(payload)
        assert exc_info.value.overage == 1500
        assert str(exc_info.value) == (
            "Over-allocated by 1,500 impressions. "
            "Reduce range goals or increase the campaign goal."
        )

    def test_over_allocation_helper(self) -> None:
        """over_allocation should be zero when ranges fit."""
        ranges = [GoalRange(start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), impressions_goal=600)]
        assert over_allocation(1000, ranges) == 0
        assert over_allocation(500, ranges) == 100

    def test_overlap_checked_before_over_allocation(self, payload: dict) -> None:
        """Overlap should be reported first when both rules fail."""
        payload["customRanges"][1]["startDate"] = "2025-01-05"
        payload["customRanges"][0]["impressionsGoal"] = 5000
        with pytest.raises(OverlappingRangesError) as exc_info:
            validate_campaign_payload(payload)
        assert exc_info.value.pairs == [(0, 1)]
        assert "Date ranges overlap" in str(exc_info.value)

    def test_range_outside_flight(self, payload: dict) -> None:
        """Ranges must lie within the flight."""
        payload["customRanges"][1]["endDate"] = "2025-02-15"
        with pytest.raises(CampaignValidationError, match="outside the campaign flight"):
            validate_campaign_payload(payload)

    def test_inverted_flight_payload(self, payload: dict) -> None:
        """Payload with start > end should raise InvalidFlightError."""
        payload["startDate"] = "2025-03-01"
        with pytest.raises(InvalidFlightError):
            validate_campaign_payload(payload)

    def test_even_mode_ignores_ranges(self, payload: dict) -> None:
        """Range rules only apply in custom mode."""
        payload["distributionMode"] = "even"
        payload["customRanges"][0]["impressionsGoal"] = 5000
        validate_campaign_payload(payload)

    def test_stored_campaign_with_bad_flight(self) -> None:
        """A loaded campaign with an inverted flight should fail validation."""
        campaign = Campaign(id=1, start_date=date(2025, 2, 1), end_date=date(2025, 1, 1))
        assert not campaign.is_valid_flight
        with pytest.raises(InvalidFlightError):
            validate_campaign(campaign)

    def test_stored_campaign_with_negative_goal(self) -> None:
        """A negative goal is loadable but not bookable, and fails validation."""
        campaign = Campaign(id=1, start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), impressions_goal=-10)
        assert campaign.is_valid_flight
        assert not campaign.is_bookable
        with pytest.raises(InvalidGoalError):
            validate_campaign(campaign)

    def test_issues_name_fields(self, payload: dict) -> None:
        """Errors should carry field-level issues."""
        payload["impressionsGoal"] = -3
        with pytest.raises(InvalidGoalError) as exc_info:
            validate_campaign_payload(payload)
        assert exc_info.value.issues[0]["field"] == "Impressions Goal"
