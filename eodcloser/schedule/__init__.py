"""
Daily window scheduler: pure window decisions plus the per-day trigger state.
"""

from .events import (
    AccountCounts,
    ClosingEvent,
    PreAlertEvent,
    TriggerEvent,
    TriggerKind,
)

from .window import (
    ScheduleConfig,
    ScheduleConfigError,
    TimeWindowScheduler,
    WindowDecision,
)

from .daily_state import (
    DailyTriggerState,
    TriggerPhase,
)

from .trigger import EndOfDayTrigger

__all__ = [
    "AccountCounts",
    "ClosingEvent",
    "PreAlertEvent",
    "TriggerEvent",
    "TriggerKind",
    "ScheduleConfig",
    "ScheduleConfigError",
    "TimeWindowScheduler",
    "WindowDecision",
    "DailyTriggerState",
    "TriggerPhase",
    "EndOfDayTrigger",
]
