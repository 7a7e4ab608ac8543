"""
TimeWindowScheduler

Decides whether a local time-of-day falls inside the pre-alert window or
the closing window of the day.

A window is the half-open wall-clock interval
``[target, target + window_minutes)``. All comparisons are done on
time-of-day modulo 24h, never on absolute timestamps, so calendar-day
boundaries and DST shifts cannot skew them. The alert target is the
closing target minus the lead, wrapped on the 24h clock
(close 00:05, lead 10 -> alert 23:55).

The caller must sample at least once per window width, otherwise a window
can fall entirely between two ticks.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Optional, Union

from eodcloser.logging import get_logger, LogStream
from eodcloser.time.clock import ensure_utc
from eodcloser.time.zones import (
    DEFAULT_TIMEZONE,
    UnknownTimezoneError,
    localize,
    resolve_timezone,
    zone_name,
)

from .events import TriggerKind


SECONDS_PER_DAY = 24 * 60 * 60
MINUTES_PER_DAY = 24 * 60

logger = get_logger(LogStream.SCHEDULE)


class ScheduleConfigError(ValueError):
    """Invalid closing schedule."""
    pass


@dataclass(frozen=True)
class ScheduleConfig:
    """Daily closing schedule. Validated on construction."""

    timezone_id: str = DEFAULT_TIMEZONE
    close_hour: int = 16
    close_minute: int = 50
    pre_alert_lead_minutes: int = 10
    window_minutes: int = 2

    def __post_init__(self) -> None:
        if not 0 <= self.close_hour <= 23:
            raise ScheduleConfigError(f"close_hour must be in 0..23, got {self.close_hour}")
        if not 0 <= self.close_minute <= 59:
            raise ScheduleConfigError(f"close_minute must be in 0..59, got {self.close_minute}")
        if self.pre_alert_lead_minutes < 1:
            raise ScheduleConfigError(
                f"pre_alert_lead_minutes must be >= 1, got {self.pre_alert_lead_minutes}"
            )
        if self.window_minutes < 1:
            raise ScheduleConfigError(f"window_minutes must be >= 1, got {self.window_minutes}")
        # Beyond this the alert window would wrap the whole day onto itself.
        if self.pre_alert_lead_minutes + self.window_minutes > MINUTES_PER_DAY:
            raise ScheduleConfigError(
                f"pre_alert_lead_minutes ({self.pre_alert_lead_minutes}) + window_minutes "
                f"({self.window_minutes}) must not exceed {MINUTES_PER_DAY}"
            )

    @property
    def close_time(self) -> time:
        return time(self.close_hour, self.close_minute)

    @property
    def close_time_str(self) -> str:
        return f"{self.close_hour:02d}:{self.close_minute:02d}"


@dataclass(frozen=True)
class WindowDecision:
    """
    Window membership for one instant.

    The ``*_window_date`` fields hold the local date on which the current
    window instance started; None when outside the window.
    """
    in_alert_window: bool
    in_closing_window: bool
    alert_window_date: Optional[date] = None
    closing_window_date: Optional[date] = None


TimeOfDay = Union[datetime, time]


def _seconds_of_day(t: TimeOfDay) -> float:
    return t.hour * 3600 + t.minute * 60 + t.second + t.microsecond / 1_000_000


class TimeWindowScheduler:
    """
    Pure window decisions for a single daily schedule.

    Holds no memory of prior calls. An unresolvable timezone does not fail
    construction: a warning is logged and America/New_York is used instead.

    USAGE:
        scheduler = TimeWindowScheduler(ScheduleConfig("Europe/Paris", 22, 0))
        local = scheduler.to_local(tick_utc)
        decision = scheduler.check(local)
    """

    def __init__(self, config: ScheduleConfig):
        self.config = config
        self.fallback_used = False

        try:
            self.timezone = resolve_timezone(config.timezone_id)
        except UnknownTimezoneError as e:
            logger.warning(
                "Timezone '%s' not found, using %s", config.timezone_id, DEFAULT_TIMEZONE,
                extra={"requested_timezone": config.timezone_id, "error": str(e)},
            )
            self.timezone = resolve_timezone(DEFAULT_TIMEZONE)
            self.fallback_used = True

        self._closing_target = config.close_hour * 3600 + config.close_minute * 60
        self._alert_target = (
            self._closing_target - config.pre_alert_lead_minutes * 60
        ) % SECONDS_PER_DAY
        self._width = config.window_minutes * 60

    @property
    def timezone_name(self) -> str:
        return zone_name(self.timezone)

    @property
    def closing_time(self) -> time:
        return self.config.close_time

    @property
    def alert_time(self) -> time:
        hours, rest = divmod(self._alert_target, 3600)
        return time(hours, rest // 60)

    def to_local(self, instant: datetime) -> datetime:
        """Convert an instant to the schedule's zone, applying that instant's DST rule."""
        return ensure_utc(instant).astimezone(self.timezone)

    def _target(self, kind: TriggerKind) -> int:
        return self._alert_target if kind == TriggerKind.PRE_ALERT else self._closing_target

    def _offset(self, local: TimeOfDay, kind: TriggerKind) -> float:
        """Seconds elapsed since the most recent occurrence of the window start."""
        return (_seconds_of_day(local) - self._target(kind)) % SECONDS_PER_DAY

    def in_window(self, local: TimeOfDay, kind: TriggerKind) -> bool:
        return self._offset(local, kind) < self._width

    def in_alert_window(self, local: TimeOfDay) -> bool:
        return self.in_window(local, TriggerKind.PRE_ALERT)

    def in_closing_window(self, local: TimeOfDay) -> bool:
        return self.in_window(local, TriggerKind.CLOSING)

    def window_date(self, local_dt: datetime, kind: TriggerKind) -> date:
        """Local date on which the window instance containing *local_dt* started."""
        if self._offset(local_dt, kind) > _seconds_of_day(local_dt):
            return local_dt.date() - timedelta(days=1)
        return local_dt.date()

    def check(self, local_dt: datetime) -> WindowDecision:
        in_alert = self.in_alert_window(local_dt)
        in_closing = self.in_closing_window(local_dt)
        return WindowDecision(
            in_alert_window=in_alert,
            in_closing_window=in_closing,
            alert_window_date=self.window_date(local_dt, TriggerKind.PRE_ALERT) if in_alert else None,
            closing_window_date=self.window_date(local_dt, TriggerKind.CLOSING) if in_closing else None,
        )

    def closing_on(self, day: date) -> datetime:
        """Aware local datetime of the closing time on *day*."""
        return localize(self.timezone, datetime.combine(day, self.closing_time))

    def next_closing(self, window_date: date) -> datetime:
        """Closing that follows the one whose window started on *window_date*."""
        return self.closing_on(window_date + timedelta(days=1))
