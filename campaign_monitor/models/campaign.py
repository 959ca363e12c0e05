"""Pydantic models for campaigns and their custom ranges."""

from datetime import date
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DistributionMode(str, Enum):
    """How a campaign's impressions goal is spread over its flight."""

    EVEN = "even"
    CUSTOM = "custom"


class DarkRange(BaseModel):
    """Blackout period: every day in range gets zero impressions."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    is_dark: Literal[True] = Field(default=True, alias="isDark")

    @model_validator(mode="after")
    def _check_order(self) -> "DarkRange":
        if self.start_date > self.end_date:
            raise ValueError("Range start date must be before or equal to end date")
        return self

    @property
    def label(self) -> str:
        return f"{self.start_date.isoformat()} – {self.end_date.isoformat()}"


class GoalRange(BaseModel):
    """Sub-flight with its own impressions goal, spread evenly over its days."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    impressions_goal: int = Field(ge=0, alias="impressionsGoal")

    @model_validator(mode="after")
    def _check_order(self) -> "GoalRange":
        if self.start_date > self.end_date:
            raise ValueError("Range start date must be before or equal to end date")
        return self

    @property
    def label(self) -> str:
        return f"{self.start_date.isoformat()} – {self.end_date.isoformat()}"


CustomRange = DarkRange | GoalRange


def parse_range(raw: Any) -> CustomRange | None:
    """Build a range from a stored dict.

    A truthy ``isDark`` wins; otherwise a numeric ``impressionsGoal`` is
    required. Anything else returns None and is ignored by the caller.
    """
    if isinstance(raw, (DarkRange, GoalRange)):
        return raw
    if not isinstance(raw, dict):
        return None
    if raw.get("isDark") or raw.get("is_dark"):
        return DarkRange.model_validate(raw)
    goal = raw.get("impressionsGoal", raw.get("impressions_goal"))
    if isinstance(goal, bool) or not isinstance(goal, (int, float)):
        return None
    return GoalRange.model_validate(raw)


class Campaign(BaseModel):
    """A flighted advertising line.

    Only structural types are enforced here; business rules (flight order,
    overlap, over-allocation) live in ``allocation.validation`` so that stored
    campaigns that break them can still be loaded and skipped by batch paths.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str = ""
    start_date: date = Field(alias="startDate")
    end_date: date = Field(alias="endDate")
    impressions_goal: int = Field(default=0, alias="impressionsGoal")
    distribution_mode: DistributionMode = Field(
        default=DistributionMode.EVEN, alias="distributionMode"
    )
    custom_ranges: list[CustomRange] = Field(default_factory=list, alias="customRanges")
    csv_data: dict[str, str] = Field(default_factory=dict, alias="csvData")
    notes: dict[str, str] = Field(default_factory=dict)

    @field_validator("custom_ranges", mode="before")
    @classmethod
    def _parse_ranges(cls, value: Any) -> list[CustomRange]:
        if value is None:
            return []
        parsed = (parse_range(r) for r in value)
        return [r for r in parsed if r is not None]

    @field_validator("csv_data", mode="before")
    @classmethod
    def _stringify_csv_data(cls, value: Any) -> dict[str, str]:
        if value is None:
            return {}
        return {str(k): "" if v is None else str(v) for k, v in dict(value).items()}

    @property
    def is_valid_flight(self) -> bool:
        return self.start_date <= self.end_date

    @property
    def is_bookable(self) -> bool:
        """Well-formed flight and a non-negative goal."""
        return self.is_valid_flight and self.impressions_goal >= 0

    def to_record(self) -> dict[str, str]:
        """Flatten to the row shape the cross-source aggregator reads.

        Imported CSV columns win; flight and goal are filled in only where the
        attribute bag does not carry them.
        """
        record = dict(self.csv_data)
        record.setdefault("Start Date", self.start_date.isoformat())
        record.setdefault("End Date", self.end_date.isoformat())
        record.setdefault("Impressions Goal", str(self.impressions_goal))
        return record

