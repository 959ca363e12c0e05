from .aggregator import (
    CrossSourceAggregator,
    apply_left_join,
    join_values,
    parse_goal,
    parse_number,
)
from .columns import (
    CampaignColumns,
    ColumnResolver,
    SourceColumns,
    auto_detect_join,
    normalise,
)

__all__ = [
    "CampaignColumns",
    "ColumnResolver",
    "CrossSourceAggregator",
    "SourceColumns",
    "apply_left_join",
    "auto_detect_join",
    "join_values",
    "normalise",
    "parse_goal",
    "parse_number",
]
