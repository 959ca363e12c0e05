"""Campaign impression allocation and monitor aggregation."""

from .aggregation import CrossSourceAggregator
from .allocation import allocate, preview, validate_campaign
from .exceptions import MonitorError
from .models import Campaign, DarkRange, GoalRange, MonitorPayload, MonitorRow
from .services import MonitorService
from .settings import Settings, load_settings

__all__ = [
    "Campaign",
    "CrossSourceAggregator",
    "DarkRange",
    "GoalRange",
    "MonitorError",
    "MonitorPayload",
    "MonitorRow",
    "MonitorService",
    "Settings",
    "allocate",
    "load_settings",
    "preview",
    "validate_campaign",
]
