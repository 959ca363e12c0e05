"""Monitor configuration loaded from YAML."""

from datetime import date
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigLoadError

DEFAULT_CONFIG_PATH = Path(__file__).parent / "config" / "monitor.yaml"


class ColumnCandidates(BaseModel):
    """Ordered column-name candidates per role.

    Source roles describe delivery/cost rows; campaign roles describe the
    campaign dataset's attribute bag.
    """

    source_date: list[str] = Field(default_factory=list)
    source_impressions: list[str] = Field(default_factory=list)
    source_media_cost: list[str] = Field(default_factory=list)
    source_join_key: list[str] = Field(default_factory=list)
    campaign_join_key: list[str] = Field(default_factory=list)
    campaign_start_date: list[str] = Field(default_factory=list)
    campaign_end_date: list[str] = Field(default_factory=list)
    campaign_impressions_goal: list[str] = Field(default_factory=list)
    campaign_cpm: list[str] = Field(default_factory=list)
    campaign_cpm_celtra: list[str] = Field(default_factory=list)


class CacheSettings(BaseModel):
    ttl_minutes: int = Field(default=15, ge=0)


class ExportSettings(BaseModel):
    axis_start: date = date(2025, 1, 1)
    insertion_order_column: str = "Insertion Order ID"


class RepositorySettings(BaseModel):
    page_size: int = Field(default=2000, gt=0)


class Settings(BaseModel):
    """Top-level monitor settings."""

    columns: ColumnCandidates = Field(default_factory=ColumnCandidates)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    export: ExportSettings = Field(default_factory=ExportSettings)
    repository: RepositorySettings = Field(default_factory=RepositorySettings)


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from YAML.

    Args:
        path: Path to a YAML file. Defaults to the bundled ``config/monitor.yaml``.

    Raises:
        ConfigLoadError: If the file cannot be read or does not match the schema.
    """
    path = path or DEFAULT_CONFIG_PATH
    try:
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
    except Exception as e:
        raise ConfigLoadError(f"Failed to load config from {path}: {e}") from e

    try:
        return Settings.model_validate(raw)
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid config in {path}: {e}") from e
