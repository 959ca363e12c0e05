"""Custom exceptions for campaign validation, ingestion and monitor aggregation."""

from typing import Any


class MonitorError(Exception):
    """Base exception for the campaign monitor."""

    pass


class ConfigLoadError(MonitorError):
    """Failed to load monitor configuration."""

    pass


class CampaignValidationError(MonitorError, ValueError):
    """Campaign payload failed a business rule before save.

    Each issue is a ``{"field": ..., "message": ...}`` dict so a form layer can
    attach the message to the offending input.
    """

    def __init__(self, message: str, issues: list[dict[str, Any]] | None = None):
        self.issues = issues or []
        super().__init__(message)


class InvalidFlightError(CampaignValidationError):
    """Start/end date missing or in the wrong order."""

    pass


class InvalidGoalError(CampaignValidationError):
    """Impressions goal is negative or not a whole number."""

    pass


class OverlappingRangesError(CampaignValidationError):
    """Two or more custom ranges share at least one day."""

    def __init__(self, pairs: list[tuple[int, int]]):
        self.pairs = pairs
        super().__init__(
            "Date ranges overlap. Fix overlapping ranges before saving.",
            [{"field": "customRanges", "message": f"Ranges {a} and {b} overlap"} for a, b in pairs],
        )


class OverAllocationError(CampaignValidationError):
    """Sum of range goals exceeds the campaign goal."""

    def __init__(self, overage: int):
        self.overage = overage
        message = (
            f"Over-allocated by {overage:,} impressions. "
            "Reduce range goals or increase the campaign goal."
        )
        super().__init__(message, [{"field": "Impressions Goal", "message": message}])


class ColumnMappingError(MonitorError):
    """Required column not found in source data."""

    def __init__(self, missing_columns: list[str], available_columns: list[str]):
        self.missing_columns = missing_columns
        self.available_columns = available_columns
        super().__init__(
            f"Missing required columns: {missing_columns}. "
            f"Available: {available_columns[:10]}..."
        )


class SourceLoadError(MonitorError):
    """Failed to read a campaign or source file."""

    pass


class DatasetNotFoundError(MonitorError, KeyError):
    """No campaign or source dataset registered under the given id."""

    def __init__(self, kind: str, dataset_id: str):
        self.kind = kind
        self.dataset_id = dataset_id
        super().__init__(f"Unknown {kind} dataset: {dataset_id}")

    def __str__(self) -> str:
        return self.args[0]
