"""Time abstraction layer"""

from .clock import Clock, RealTimeClock, BacktestClock, ClockFactory, ensure_utc
from .zones import (
    DEFAULT_TIMEZONE,
    UnknownTimezoneError,
    resolve_timezone,
    zone_name,
    is_dst,
    localize,
)

__all__ = [
    'Clock',
    'RealTimeClock',
    'BacktestClock',
    'ClockFactory',
    'ensure_utc',
    'DEFAULT_TIMEZONE',
    'UnknownTimezoneError',
    'resolve_timezone',
    'zone_name',
    'is_dst',
    'localize',
]
