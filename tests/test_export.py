"""Tests for the CSV export formatter."""

from datetime import date

import pytest

from campaign_monitor.export import (
    escape_csv,
    export_long_by_io,
    export_wide_pivot,
    insertion_order_id,
    select_campaigns,
)
from campaign_monitor.models import Campaign


# =============================================================================
# FIXTURES
# =============================================================================


@pytest.fixture
def even_campaign() -> Campaign:
    return Campaign(
        id=1,
        name="CampaignName",
        start_date=date(2025, 3, 1),
        end_date=date(2025, 3, 3),
        impressions_goal=100,
        distribution_mode="even",
    )


@pytest.fixture
def io_campaigns() -> list[Campaign]:
    """An even campaign with an IO column and a custom one without."""
    return [
        Campaign(
            id=1,
            name="Alpha",
            start_date=date(2025, 1, 1),
            end_date=date(2025, 1, 2),
            impressions_goal=10,
            csv_data={"Insertion Order ID": "IO-1"},
        ),
        Campaign(
            id=2,
            name="B",
            start_date=date(2025, 1, 2),
            end_date=date(2025, 1, 3),
            impressions_goal=6,
            distribution_mode="custom",
            custom_ranges=[{"startDate": "2025-01-03", "endDate": "2025-01-03", "isDark": True}],
        ),
    ]


# =============================================================================
# WIDE PIVOT
# =============================================================================


class TestWidePivot:
    """Tests for export_wide_pivot()."""

    def test_single_even_campaign(self, even_campaign: Campaign) -> None:
        """Flight days carry the split; every other axis day is empty."""
        lines = export_wide_pivot([even_campaign], today=date(2025, 3, 5)).split("\n")
        assert lines[0] == "Date,CampaignName"
        assert lines[1] == "2025-01-01,"
        assert "2025-03-01,33" in lines
        assert "2025-03-02,33" in lines
        assert "2025-03-03,34" in lines
        assert lines[-2:] == ["2025-03-04,", "2025-03-05,"]
        # 31 + 28 + 5 axis days
        assert len(lines) == 1 + 64

    def test_axis_fixed_start(self, even_campaign: Campaign) -> None:
        """The axis starts at 2025-01-01 regardless of flights."""
        lines = export_wide_pivot([even_campaign], today=date(2025, 1, 2)).split("\n")
        assert lines == ["Date,CampaignName", "2025-01-01,", "2025-01-02,"]

    def test_thousands_separator_is_quoted(self) -> None:
        """1,000-style cells contain a comma and must be quoted."""
        campaign = Campaign(id=1, name="Big", start_date=date(2025, 1, 1), end_date=date(2025, 1, 1), impressions_goal=3000)
        lines = export_wide_pivot([campaign], today=date(2025, 1, 1)).split("\n")
        assert lines[1] == '2025-01-01,"3,000"'

    def test_header_escaping(self, even_campaign: Campaign) -> None:
        """Campaign names with commas or quotes are escaped."""
        even_campaign.name = 'Acme, "Inc"'
        header = export_wide_pivot([even_campaign], today=date(2025, 1, 1)).split("\n")[0]
        assert header == 'Date,"Acme, ""Inc"""'

    def test_dark_day_is_zero_not_empty(self, io_campaigns: list[Campaign]) -> None:
        """In-flight dark days show 0."""
        lines = export_wide_pivot(io_campaigns, today=date(2025, 1, 4)).split("\n")
        assert lines[0] == "Date,Alpha,B"
        assert lines[1:] == [
            "2025-01-01,5,",
            "2025-01-02,5,6",
            "2025-01-03,,0",
            "2025-01-04,,",
        ]

    def test_malformed_campaign_keeps_empty_column(self, even_campaign: Campaign) -> None:
        """Campaigns with start > end keep their column, every cell empty."""
        bad = Campaign(id=9, name="Bad", start_date=date(2025, 3, 2), end_date=date(2025, 3, 1))
        lines = export_wide_pivot([even_campaign, bad], today=date(2025, 3, 2)).split("\n")
        assert lines[0] == "Date,CampaignName,Bad"
        assert lines[-2:] == ["2025-03-01,33,", "2025-03-02,33,"]

    def test_negative_goal_column_is_empty(self) -> None:
        """A negative goal never produces negative cells."""
        neg = Campaign(id=1, name="Neg", start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), impressions_goal=-10)
        assert export_wide_pivot([neg], today=date(2025, 1, 2)).split("\n") == [
            "Date,Neg",
            "2025-01-01,",
            "2025-01-02,",
        ]


# =============================================================================
# LONG BY INSERTION ORDER
# =============================================================================


class TestLongByIo:
    """Tests for export_long_by_io()."""

    def test_rows(self, io_campaigns: list[Campaign]) -> None:
        """One row per (date, campaign) across the union of flights."""
        assert export_long_by_io(io_campaigns).split("\n") == [
            "Date,Insertion Order ID,Daily Allocated Impressions Goal",
            "2025-01-01,IO-1,5",
            "2025-01-01,B,",
            "2025-01-02,IO-1,5",
            "2025-01-02,B,6",
            "2025-01-03,IO-1,",
            "2025-01-03,B,0",
        ]

    def test_negative_goal_has_no_rows(self, io_campaigns: list[Campaign]) -> None:
        """A negative-goal campaign is skipped rather than exported with negative days."""
        neg = Campaign(id=3, name="Neg", start_date=date(2025, 3, 1), end_date=date(2025, 3, 3), impressions_goal=-10)
        lines = export_long_by_io([*io_campaigns, neg]).split("\n")
        assert all("Neg" not in line for line in lines)
        assert lines[-1] == "2025-01-03,B,0"

    def test_empty(self) -> None:
        """No campaigns gives the header and a trailing newline."""
        assert export_long_by_io([]) == "Date,Insertion Order ID,Daily Allocated Impressions Goal\n"

    def test_values_are_not_thousands_separated(self) -> None:
        """Long format uses raw integers."""
        campaign = Campaign(id=1, name="X", start_date=date(2025, 1, 1), end_date=date(2025, 1, 1), impressions_goal=5000)
        assert export_long_by_io([campaign]).split("\n")[1] == "2025-01-01,X,5000"

    def test_custom_io_column(self, io_campaigns: list[Campaign]) -> None:
        """The IO column name is configurable."""
        io_campaigns[0].csv_data["IO"] = "custom-io"
        lines = export_long_by_io(io_campaigns, io_column="IO").split("\n")
        assert lines[1] == "2025-01-01,custom-io,5"


class TestHelpers:
    """Tests for escape_csv(), insertion_order_id() and select_campaigns()."""

    @pytest.mark.parametrize(
        "value,expected",
        [("plain", "plain"), ("a,b", '"a,b"'), ('say "hi"', '"say ""hi"""'), ("a\nb", '"a\nb"'), ("", "")],
    )
    def test_escape_csv(self, value: str, expected: str) -> None:
        """Only comma, quote and newline trigger quoting."""
        assert escape_csv(value) == expected

    def test_io_fallbacks(self) -> None:
        """IO id falls back to name, then to the numeric id."""
        base = {"start_date": date(2025, 1, 1), "end_date": date(2025, 1, 1)}
        assert insertion_order_id(Campaign(id=1, name="N", csv_data={"Insertion Order ID": " IO "}, **base)) == "IO"
        assert insertion_order_id(Campaign(id=2, name="N", **base)) == "N"
        assert insertion_order_id(Campaign(id=3, name="", **base)) == "3"
        assert insertion_order_id(Campaign(id=4, name="N", csv_data={"Insertion Order ID": "  "}, **base)) == "4"

    def test_select_by_ids(self, io_campaigns: list[Campaign]) -> None:
        """An id filter keeps only the listed campaigns; no filter keeps all."""
        assert [c.id for c in select_campaigns(io_campaigns, [2])] == [2]
        assert [c.id for c in select_campaigns(io_campaigns)] == [1, 2]

    def test_select_drops_unbookable(self) -> None:
        """Inverted flights and negative goals are dropped unless asked to keep them."""
        campaigns = [
            Campaign(id=1, start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), impressions_goal=5),
            Campaign(id=2, start_date=date(2025, 1, 1), end_date=date(2025, 1, 2), impressions_goal=-10),
            Campaign(id=3, start_date=date(2025, 1, 3), end_date=date(2025, 1, 2), impressions_goal=5),
        ]
        assert [c.id for c in select_campaigns(campaigns)] == [1]
        assert [c.id for c in select_campaigns(campaigns, bookable_only=False)] == [1, 2, 3]
