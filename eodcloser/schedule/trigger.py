"""
EndOfDayTrigger - tick entry point of the schedule core.

Converts an authoritative UTC instant to local time, asks the scheduler for
window membership and advances the daily state. Performs no I/O besides
logging and never blocks.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from eodcloser.logging import get_logger, LogStream
from eodcloser.time.zones import is_dst

from .daily_state import CountsProvider, DailyTriggerState
from .events import AccountCounts, TriggerEvent
from .window import TimeWindowScheduler


logger = get_logger(LogStream.SCHEDULE)


class EndOfDayTrigger:
    """
    USAGE:
        trigger = EndOfDayTrigger(TimeWindowScheduler(config))
        for event in trigger.on_tick(clock.now()):
            dispatcher.handle(event)
    """

    def __init__(
        self,
        scheduler: TimeWindowScheduler,
        state: Optional[DailyTriggerState] = None,
        verbose: bool = False,
    ):
        self.scheduler = scheduler
        self.state = state or DailyTriggerState()
        self.verbose = verbose

    def on_tick(
        self,
        instant: datetime,
        counts: Optional[CountsProvider] = None,
    ) -> List[TriggerEvent]:
        local = self.scheduler.to_local(instant)

        if self.state.roll_over(local.date()):
            self._log_new_day(local, instant)

        decision = self.scheduler.check(local)
        events = self.state.advance(
            local,
            decision,
            counts=self._safe_counts(counts) if counts is not None else None,
        )

        for event in events:
            logger.info(
                "%s window reached at %s", event.kind.value, local.strftime("%H:%M:%S"),
                extra={
                    "trigger": event.kind.value,
                    "local_time": local.isoformat(),
                    "window_date": event.window_date.isoformat(),
                    "dst_active": event.dst_active,
                },
            )

        return events

    def _log_new_day(self, local: datetime, instant: datetime) -> None:
        detail = logger.info if self.verbose else logger.debug
        detail(
            "New day detected: %s (local %s, UTC %s, DST %s)",
            local.strftime("%Y-%m-%d"),
            local.strftime("%H:%M:%S"),
            instant.strftime("%H:%M:%S"),
            "on" if is_dst(local) else "off",
            extra={"local_date": local.date().isoformat(), "timezone": self.scheduler.timezone_name},
        )

    @staticmethod
    def _safe_counts(counts: CountsProvider) -> CountsProvider:
        def _call() -> Optional[AccountCounts]:
            try:
                return counts()
            except Exception as e:
                logger.warning("Account counts unavailable for pre-alert", extra={"error": str(e)})
                return None
        return _call
