"""Tests for YAML settings loading."""

from datetime import date
from pathlib import Path

import pytest

from campaign_monitor.exceptions import ConfigLoadError
from campaign_monitor.settings import Settings, load_settings


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_bundled_defaults(self) -> None:
        """The packaged YAML loads with the documented defaults."""
        settings = load_settings()
        assert settings.cache.ttl_minutes == 15
        assert settings.export.axis_start == date(2025, 1, 1)
        assert settings.export.insertion_order_column == "Insertion Order ID"
        assert settings.repository.page_size == 2000
        assert settings.columns.source_date[0] == "cr4fe_date"
        assert settings.columns.campaign_join_key[0] == "Insertion Order ID"

    def test_custom_file(self, tmp_path: Path) -> None:
        """Omitted sections fall back to model defaults."""
        path = tmp_path / "monitor.yaml"
        path.write_text("cache:\n  ttl_minutes: 5\ncolumns:\n  source_date: [day]\n")
        settings = load_settings(path)
        assert settings.cache.ttl_minutes == 5
        assert settings.columns.source_date == ["day"]
        assert settings.repository.page_size == 2000

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file is the same as all defaults."""
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path) == Settings()

    def test_missing_file(self, tmp_path: Path) -> None:
        """Unreadable paths raise ConfigLoadError."""
        with pytest.raises(ConfigLoadError, match="Failed to load config"):
            load_settings(tmp_path / "nope.yaml")

    def test_bad_yaml(self, tmp_path: Path) -> None:
        """Malformed YAML raises ConfigLoadError."""
        path = tmp_path / "bad.yaml"
        path.write_text("cache: [unclosed\n")
        with pytest.raises(ConfigLoadError):
            load_settings(path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        """Values outside the schema raise ConfigLoadError."""
        path = tmp_path / "invalid.yaml"
        path.write_text("cache:\n  ttl_minutes: -1\n")
        with pytest.raises(ConfigLoadError, match="Invalid config"):
            load_settings(path)
