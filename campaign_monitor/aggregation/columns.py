"""Column resolution for campaign and source datasets.

Column names in imported tables vary per deployment (``Start Date``,
``start_date``, ``cr4fe_reportdate`` ...). Each role has an ordered list of
candidate names; the first candidate that matches a row's field names wins.
"""

import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..exceptions import ColumnMappingError
from ..models.monitor import JoinConfig
from ..settings import ColumnCandidates

_WHITESPACE = re.compile(r"\s")


def normalise(name: str) -> str:
    """Lower-case and replace each whitespace character with ``_``."""
    return _WHITESPACE.sub("_", name.lower())


class ColumnResolver:
    """Case/whitespace-insensitive, substring-tolerant column lookup.

    A field name matches a target when, after normalisation, they are equal,
    when the lower-cased field contains the target, or when the target
    contains the field. Exact matches are preferred over substring matches.
    Empty field names never match.
    """

    def matches(self, key: str, target: str) -> bool:
        key_norm = normalise(key)
        return key_norm == target or target in key.lower() or key_norm in target

    def resolve(self, keys: Iterable[str], name: str) -> str | None:
        """Field name in ``keys`` matching ``name``, or None."""
        if not name:
            return None
        target = normalise(name)
        candidates = [k for k in keys if k]
        # An exact match anywhere beats an earlier substring match, so
        # "date" picks "Date" over a preceding "Start Date".
        for key in candidates:
            if normalise(key) == target:
                return key
        for key in candidates:
            if self.matches(key, target):
                return key
        return None

    def find(self, keys: Iterable[str], candidates: Sequence[str]) -> str | None:
        """First candidate (in priority order) that resolves against ``keys``."""
        keys = list(keys)
        for candidate in candidates:
            found = self.resolve(keys, candidate)
            if found:
                return found
        return None

    def require(self, keys: Iterable[str], candidates: Sequence[str]) -> str:
        """Like ``find`` but raises when nothing matches.

        Raises:
            ColumnMappingError: If no candidate resolves.
        """
        keys = list(keys)
        found = self.find(keys, candidates)
        if found is None:
            raise ColumnMappingError(list(candidates), keys)
        return found


@dataclass(frozen=True)
class CampaignColumns:
    """Resolved campaign-side columns; any of them may be missing."""

    join_key: str | None
    start_date: str | None
    end_date: str | None
    impressions_goal: str | None
    cpm: str | None
    cpm_celtra: str | None

    @classmethod
    def detect(
        cls,
        row: Mapping[str, Any],
        join_column: str,
        candidates: ColumnCandidates,
        resolver: ColumnResolver,
    ) -> "CampaignColumns":
        keys = list(row.keys())
        return cls(
            join_key=resolver.resolve(keys, join_column),
            start_date=resolver.find(keys, candidates.campaign_start_date),
            end_date=resolver.find(keys, candidates.campaign_end_date),
            impressions_goal=resolver.find(keys, candidates.campaign_impressions_goal),
            cpm=resolver.find(keys, candidates.campaign_cpm),
            cpm_celtra=resolver.find(keys, candidates.campaign_cpm_celtra),
        )

    @property
    def can_book(self) -> bool:
        """All columns needed to spread goals over flights are present."""
        return bool(self.join_key and self.start_date and self.end_date and self.impressions_goal)


@dataclass(frozen=True)
class SourceColumns:
    """Resolved source-side columns."""

    join_key: str | None
    date: str | None
    impressions: str | None
    media_cost: str | None

    @classmethod
    def detect(
        cls,
        row: Mapping[str, Any],
        join_column: str | None,
        candidates: ColumnCandidates,
        resolver: ColumnResolver,
    ) -> "SourceColumns":
        keys = list(row.keys())
        return cls(
            join_key=resolver.resolve(keys, join_column) if join_column else None,
            date=resolver.find(keys, candidates.source_date),
            impressions=resolver.find(keys, candidates.source_impressions),
            media_cost=resolver.find(keys, candidates.source_media_cost),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.join_key and self.date and self.impressions and self.media_cost)


def auto_detect_join(
    campaign_rows: Sequence[Mapping[str, Any]],
    source_rows: Sequence[Mapping[str, Any]],
    candidates: ColumnCandidates,
    resolver: ColumnResolver | None = None,
) -> JoinConfig | None:
    """Pick the insertion-order column on each side from the first row of each.

    Returns None when either side is empty or has no matching column.
    """
    if not campaign_rows or not source_rows:
        return None
    resolver = resolver or ColumnResolver()
    campaign_col = resolver.find(campaign_rows[0].keys(), candidates.campaign_join_key)
    source_col = resolver.find(source_rows[0].keys(), candidates.source_join_key)
    if campaign_col and source_col:
        return JoinConfig(campaign=campaign_col, source=source_col)
    return None
