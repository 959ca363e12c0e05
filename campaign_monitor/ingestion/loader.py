"""CSV loading for campaign and source datasets."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import polars as pl
from pydantic import BaseModel, ValidationError

from ..exceptions import ColumnMappingError, SourceLoadError
from ..models.campaign import Campaign, DistributionMode
from .cleaner import clean_date_column, clean_goal_column, clean_text_column

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "Campaign"


def read_csv_frame(path: Path) -> pl.DataFrame:
    """Read a CSV with every column as a string and headers trimmed.

    Raises:
        SourceLoadError: If the file is missing or not valid CSV.
    """
    try:
        df = pl.read_csv(path, infer_schema_length=0)
    except (OSError, pl.exceptions.PolarsError) as e:
        raise SourceLoadError(f"Failed to read CSV from {path}: {e}") from e
    return df.rename({c: c.strip() for c in df.columns})


class CsvColumnMapping(BaseModel):
    """User-selected CSV header for each campaign role.

    Unset start, end and goal fall back to the 2nd, 3rd and 4th header; with
    neither id nor name set, the 1st header is used as the name.
    """

    id: str | None = None
    name: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    impressions_goal: str | None = None

    def with_defaults(self, headers: list[str]) -> "CsvColumnMapping":
        def header(i: int) -> str | None:
            return headers[i] if len(headers) > i else None

        name = self.name
        if not self.id and not name:
            name = header(0)
        return CsvColumnMapping(
            id=self.id,
            name=name,
            start_date=self.start_date or header(1),
            end_date=self.end_date or header(2),
            impressions_goal=self.impressions_goal or header(3),
        )


@dataclass
class ImportResult:
    """Campaigns built from a CSV plus per-row errors for skipped rows."""

    campaigns: list[Campaign] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    headers: list[str] = field(default_factory=list)


def load_campaigns_csv(
    path: Path, mapping: CsvColumnMapping | None = None, first_id: int = 1
) -> ImportResult:
    """Import campaigns from a CSV file.

    Every imported campaign is even-mode and carries its full raw row as
    ``csv_data``. Rows whose start or end date cannot be parsed are skipped
    and reported as ``"Row N: ..."`` (N counts the header as row 1).

    Args:
        path: CSV file path.
        mapping: Header chosen per role; defaults as described on
            ``CsvColumnMapping``.
        first_id: Id given to the first imported campaign; later ones count up.

    Raises:
        SourceLoadError: If the file cannot be read.
        ColumnMappingError: If a mapped column is not among the headers.
    """
    df = read_csv_frame(path)
    headers = list(df.columns)
    mapping = (mapping or CsvColumnMapping()).with_defaults(headers)

    if not mapping.start_date or not mapping.end_date:
        raise ColumnMappingError(["start_date", "end_date"], headers)
    roles = (
        mapping.id,
        mapping.name,
        mapping.start_date,
        mapping.end_date,
        mapping.impressions_goal,
    )
    mapped = [c for c in roles if c]
    missing = [c for c in mapped if c not in headers]
    if missing:
        raise ColumnMappingError(missing, headers)

    parsed = df.select(
        (clean_text_column(mapping.id) if mapping.id else pl.lit("")).alias("_id"),
        (clean_text_column(mapping.name) if mapping.name else pl.lit("")).alias("_name"),
        clean_date_column(mapping.start_date).alias("_start"),
        clean_date_column(mapping.end_date).alias("_end"),
        (
            clean_goal_column(mapping.impressions_goal)
            if mapping.impressions_goal
            else pl.lit(0)
        ).alias("_goal"),
    )
    raw_rows = df.fill_null("").to_dicts()

    result = ImportResult(headers=headers)
    next_id = first_id
    for i, (raw, row) in enumerate(zip(raw_rows, parsed.to_dicts())):
        row_num = i + 2
        if row["_start"] is None or row["_end"] is None:
            result.errors.append(f"Row {row_num}: missing or unparseable start/end date")
            continue
        try:
            campaign = Campaign(
                id=next_id,
                name=row["_id"] or row["_name"] or DEFAULT_LABEL,
                start_date=row["_start"],
                end_date=row["_end"],
                impressions_goal=row["_goal"],
                distribution_mode=DistributionMode.EVEN,
                csv_data=raw,
            )
        except ValidationError as e:
            result.errors.append(f"Row {row_num}: {e.errors()[0]['msg']}")
            continue
        result.campaigns.append(campaign)
        next_id += 1

    if result.errors:
        logger.info("Skipped %d of %d rows importing %s", len(result.errors), len(raw_rows), path)
    return result


def load_source_csv(path: Path) -> list[dict[str, str]]:
    """Source rows as string mappings (nulls become ``""``).

    Raises:
        SourceLoadError: If the file cannot be read.
    """
    df = read_csv_frame(path)
    return df.fill_null("").to_dicts()
