"""
Time abstraction layer.

Provides an injectable clock that can be:
- Real-time (live/paper runs)
- Simulated (replaying a date range in simulate mode and in tests)

The run loop only ever asks the clock for "now" in UTC; conversion to the
closing timezone happens in the scheduler.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone, timedelta
from typing import Optional


class Clock(ABC):
    """Abstract clock interface"""

    @abstractmethod
    def now(self) -> datetime:
        """Get current time (always UTC)"""
        pass


class RealTimeClock(Clock):
    """Real-time clock for live/paper trading"""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class BacktestClock(Clock):
    """Simulated clock for replaying ticks"""

    def __init__(self, start_time: datetime):
        """
        Args:
            start_time: Initial simulation time (must be timezone-aware)
        """
        if start_time.tzinfo is None:
            raise ValueError("start_time must be timezone-aware (UTC)")

        self._current_time = start_time.astimezone(timezone.utc)

    def now(self) -> datetime:
        return self._current_time

    def advance(self, delta: timedelta):
        self._current_time += delta


class ClockFactory:
    """Factory for creating appropriate clock"""

    @staticmethod
    def create_for_mode(mode: str, start_time: Optional[datetime] = None) -> Clock:
        """
        Create clock based on mode.

        Args:
            mode: 'live', 'paper', or 'simulate'
            start_time: Required for simulate mode
        """
        if mode in ('live', 'paper'):
            return RealTimeClock()
        elif mode == 'simulate':
            if start_time is None:
                raise ValueError("simulate mode requires start_time")
            return BacktestClock(start_time)
        else:
            raise ValueError(f"Unknown mode: {mode}")


def ensure_utc(dt: datetime) -> datetime:
    """
    Ensure *dt* is timezone-aware and in UTC.

    - If naive (no tzinfo): attach UTC (assumes caller meant UTC).
    - If aware but not UTC: convert to UTC.
    """
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)
