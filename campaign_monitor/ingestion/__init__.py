from .loader import (
    CsvColumnMapping,
    ImportResult,
    load_campaigns_csv,
    load_source_csv,
    read_csv_frame,
)

__all__ = [
    "CsvColumnMapping",
    "ImportResult",
    "load_campaigns_csv",
    "load_source_csv",
    "read_csv_frame",
]
