from .csv_export import (
    EXPORT_AXIS_START,
    escape_csv,
    export_long_by_io,
    export_wide_pivot,
    insertion_order_id,
    select_campaigns,
)

__all__ = [
    "EXPORT_AXIS_START",
    "escape_csv",
    "export_long_by_io",
    "export_wide_pivot",
    "insertion_order_id",
    "select_campaigns",
]
