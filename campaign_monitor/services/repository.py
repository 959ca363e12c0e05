"""Dataset access: campaign datasets, source datasets and stored join mappings."""

from collections.abc import Callable, Iterator, Mapping, Sequence
from typing import Any, Protocol

from ..exceptions import DatasetNotFoundError
from ..models.campaign import Campaign
from ..models.monitor import JoinConfig

Record = Mapping[str, Any]

DEFAULT_PAGE_SIZE = 2000

# (offset, limit) -> (rows, total row count)
PageFetcher = Callable[[int, int], tuple[list[Record], int]]


def iter_pages(rows: Sequence[Record], page_size: int = DEFAULT_PAGE_SIZE) -> Iterator[list[Record]]:
    """Yield consecutive slices of at most ``page_size`` rows."""
    for offset in range(0, len(rows), page_size):
        yield list(rows[offset : offset + page_size])


def fetch_all_pages(
    fetch_page: PageFetcher,
    page_size: int = DEFAULT_PAGE_SIZE,
    drop_columns: Sequence[str] = ("id",),
) -> list[dict[str, Any]]:
    """Read a paged table to the end.

    Stops once the reported total is reached or a short page comes back.
    ``drop_columns`` are removed from every row (storage row ids by default).
    """
    rows: list[dict[str, Any]] = []
    offset = 0
    while True:
        page, total = fetch_page(offset, page_size)
        for row in page:
            record = dict(row)
            for name in drop_columns:
                record.pop(name, None)
            rows.append(record)
        if len(rows) >= total or len(page) < page_size:
            return rows
        offset += page_size


class DatasetRepository(Protocol):
    def campaigns(self, dataset_id: str) -> list[Campaign]: ...

    def campaign_rows(self, dataset_id: str) -> list[dict[str, Any]]: ...

    def source_rows(self, dataset_id: str) -> list[dict[str, Any]]: ...

    def source_dataset_ids(self) -> list[str]: ...

    def join_config(self, campaign_dataset: str, source_dataset: str) -> JoinConfig | None: ...


class InMemoryDatasetRepository:
    """Dataset store backed by dicts, read back through the paged fetch path."""

    def __init__(self, page_size: int = DEFAULT_PAGE_SIZE):
        self.page_size = page_size
        self._campaigns: dict[str, list[Campaign]] = {}
        self._sources: dict[str, list[dict[str, Any]]] = {}
        self._joins: dict[tuple[str, str], JoinConfig] = {}

    def add_campaign_dataset(self, dataset_id: str, campaigns: Sequence[Campaign]) -> None:
        self._campaigns[dataset_id] = list(campaigns)

    def add_source_dataset(self, dataset_id: str, rows: Sequence[Record]) -> None:
        self._sources[dataset_id] = [dict(r) for r in rows]

    def set_join_config(self, campaign_dataset: str, source_dataset: str, join: JoinConfig) -> None:
        self._joins[(campaign_dataset, source_dataset)] = join

    def campaigns(self, dataset_id: str) -> list[Campaign]:
        if dataset_id not in self._campaigns:
            raise DatasetNotFoundError("campaign", dataset_id)
        return list(self._campaigns[dataset_id])

    def campaign_rows(self, dataset_id: str) -> list[dict[str, Any]]:
        """Attribute-bag records, one per campaign."""
        records = [c.to_record() for c in self.campaigns(dataset_id)]
        return fetch_all_pages(self._pager(records), self.page_size, drop_columns=())

    def source_rows(self, dataset_id: str) -> list[dict[str, Any]]:
        if dataset_id not in self._sources:
            raise DatasetNotFoundError("source", dataset_id)
        return fetch_all_pages(self._pager(self._sources[dataset_id]), self.page_size)

    def source_dataset_ids(self) -> list[str]:
        return list(self._sources)

    def join_config(self, campaign_dataset: str, source_dataset: str) -> JoinConfig | None:
        return self._joins.get((campaign_dataset, source_dataset))

    @staticmethod
    def _pager(rows: Sequence[Record]) -> PageFetcher:
        def fetch(offset: int, limit: int) -> tuple[list[Record], int]:
            return list(rows[offset : offset + limit]), len(rows)

        return fetch
