from .campaign import (
    Campaign,
    CustomRange,
    DarkRange,
    DistributionMode,
    GoalRange,
    parse_range,
)
from .monitor import (
    BookedByMonth,
    BookedMonthRow,
    CampaignMonthRow,
    DataMonthRow,
    DimensionRow,
    Granularity,
    JoinConfig,
    MonitorPayload,
    MonitorRow,
    round_money,
)

__all__ = [
    "BookedByMonth",
    "BookedMonthRow",
    "Campaign",
    "CampaignMonthRow",
    "CustomRange",
    "DarkRange",
    "DataMonthRow",
    "DimensionRow",
    "DistributionMode",
    "GoalRange",
    "Granularity",
    "JoinConfig",
    "MonitorPayload",
    "MonitorRow",
    "parse_range",
    "round_money",
]
