from .engine import (
    booked_by_month,
    dimension_lookup,
    merge_monitor_rows,
    per_campaign_by_month,
    rollup_by_dimension,
    rollup_by_time,
)

__all__ = [
    "booked_by_month",
    "dimension_lookup",
    "merge_monitor_rows",
    "per_campaign_by_month",
    "rollup_by_dimension",
    "rollup_by_time",
]
