"""Tests for CSV ingestion of campaigns and source rows."""

from datetime import date
from pathlib import Path

import pytest

from campaign_monitor.exceptions import ColumnMappingError, SourceLoadError
from campaign_monitor.ingestion import (
    CsvColumnMapping,
    load_campaigns_csv,
    load_source_csv,
    read_csv_frame,
)
from campaign_monitor.models import DistributionMode


# =============================================================================
# FIXTURES
# =============================================================================


CAMPAIGN_CSV = """Campaign, Start ,End,Goal,Advertiser
Alpha,2025-01-01,2025-01-31,"10,000",Acme
Beta,03/01/2025,03/31/2025,abc,Beta Co
Gamma,,2025-02-01,100,Acme
Delta,03/01/25,03/05/25,-50,
"""


@pytest.fixture
def campaign_csv(tmp_path: Path) -> Path:
    path = tmp_path / "campaigns.csv"
    path.write_text(CAMPAIGN_CSV)
    return path


@pytest.fixture
def source_csv(tmp_path: Path) -> Path:
    path = tmp_path / "delivery.csv"
    path.write_text(
        "cr4fe_insertionordergid,cr4fe_date,cr4fe_impressioncount,cr4fe_totalmediacost\n"
        "IO-1,2025-01-31,1500,3.33\n"
        "IO-2,,20,\n"
    )
    return path


# =============================================================================
# CAMPAIGN IMPORT
# =============================================================================


class TestLoadCampaigns:
    """Tests for load_campaigns_csv()."""

    def test_default_mapping(self, campaign_csv: Path) -> None:
        """Columns 2-4 are start/end/goal and column 1 is the name."""
        result = load_campaigns_csv(campaign_csv)
        assert result.headers == ["Campaign", "Start", "End", "Goal", "Advertiser"]
        assert [c.name for c in result.campaigns] == ["Alpha", "Beta", "Delta"]

    def test_dates_parsed(self, campaign_csv: Path) -> None:
        """ISO, M/D/YYYY and M/D/YY dates are accepted."""
        alpha, beta, delta = load_campaigns_csv(campaign_csv).campaigns
        assert (alpha.start_date, alpha.end_date) == (date(2025, 1, 1), date(2025, 1, 31))
        assert beta.start_date == date(2025, 3, 1)
        assert delta.end_date == date(2025, 3, 5)

    def test_goals(self, campaign_csv: Path) -> None:
        """Thousands separators are removed; junk and negatives become 0."""
        goals = [c.impressions_goal for c in load_campaigns_csv(campaign_csv).campaigns]
        assert goals == [10000, 0, 0]

    def test_bad_rows_reported(self, campaign_csv: Path) -> None:
        """Rows without a parseable date are skipped with a row number."""
        result = load_campaigns_csv(campaign_csv)
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 4:")

    def test_even_mode_and_raw_row(self, campaign_csv: Path) -> None:
        """Imports are even-mode and keep the full raw row."""
        alpha = load_campaigns_csv(campaign_csv).campaigns[0]
        assert alpha.distribution_mode is DistributionMode.EVEN
        assert alpha.csv_data["Advertiser"] == "Acme"
        assert alpha.csv_data["Goal"] == "10,000"

    def test_sequential_ids(self, campaign_csv: Path) -> None:
        """Ids count up from first_id over imported rows only."""
        result = load_campaigns_csv(campaign_csv, first_id=10)
        assert [c.id for c in result.campaigns] == [10, 11, 12]

    def test_id_column_labels(self, campaign_csv: Path) -> None:
        """With an id column, its value labels the campaign, else 'Campaign'."""
        result = load_campaigns_csv(campaign_csv, CsvColumnMapping(id="Advertiser"))
        assert [c.name for c in result.campaigns] == ["Acme", "Beta Co", "Campaign"]

    def test_unknown_mapped_column(self, campaign_csv: Path) -> None:
        """Mapping to a header that does not exist raises."""
        with pytest.raises(ColumnMappingError):
            load_campaigns_csv(campaign_csv, CsvColumnMapping(start_date="Flight Start"))

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable files raise SourceLoadError."""
        with pytest.raises(SourceLoadError):
            load_campaigns_csv(tmp_path / "nope.csv")


# =============================================================================
# SOURCE IMPORT
# =============================================================================


class TestLoadSource:
    """Tests for load_source_csv() and read_csv_frame()."""

    def test_rows_are_strings(self, source_csv: Path) -> None:
        """Every value is read as a string; blanks become ''."""
        rows = load_source_csv(source_csv)
        assert rows[0] == {
            "cr4fe_insertionordergid": "IO-1",
            "cr4fe_date": "2025-01-31",
            "cr4fe_impressioncount": "1500",
            "cr4fe_totalmediacost": "3.33",
        }
        assert rows[1]["cr4fe_date"] == ""

    def test_headers_trimmed(self, campaign_csv: Path) -> None:
        """Header whitespace is stripped."""
        assert "Start" in read_csv_frame(campaign_csv).columns
