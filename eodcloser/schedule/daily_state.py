"""
DailyTriggerState - edge-triggered per-day state machine.

Turns repeated window-membership checks into at most one PreAlert and at
most one Closing event per local calendar date.

STATES (per day):
    IDLE -> PRE_ALERTED -> CLOSED
    IDLE -> CLOSED                  (missed alert never blocks closing)

ROLLOVER:
    A tick whose local date differs from the stored one resets both flags
    before any window is evaluated. Detected lazily on whatever tick comes
    next, however long after midnight.

WINDOWS CROSSING MIDNIGHT:
    Firing is keyed on the date the window instance started. The
    after-midnight tail of yesterday's window cannot fire yesterday's
    trigger twice, and does not consume today's flag.

Owned by a single run loop; not thread-safe.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Callable, Dict, List, Optional

from .events import AccountCounts, ClosingEvent, PreAlertEvent, TriggerEvent, TriggerKind
from .window import WindowDecision


CountsProvider = Callable[[], Optional[AccountCounts]]


class TriggerPhase(str, Enum):
    IDLE = "IDLE"
    PRE_ALERTED = "PRE_ALERTED"
    CLOSED = "CLOSED"


@dataclass
class DailyTriggerState:
    current_local_date: Optional[date] = None
    pre_alert_fired: bool = False
    closing_fired: bool = False
    # Window date of the last emission per trigger
    last_fired: Dict[TriggerKind, date] = field(default_factory=dict)

    @property
    def phase(self) -> TriggerPhase:
        if self.closing_fired:
            return TriggerPhase.CLOSED
        if self.pre_alert_fired:
            return TriggerPhase.PRE_ALERTED
        return TriggerPhase.IDLE

    def roll_over(self, local_date: date) -> bool:
        """Adopt *local_date*; returns True if the day changed and flags were reset."""
        if local_date == self.current_local_date:
            return False
        self.current_local_date = local_date
        self.pre_alert_fired = False
        self.closing_fired = False
        return True

    def _fired(self, kind: TriggerKind) -> bool:
        return self.pre_alert_fired if kind == TriggerKind.PRE_ALERT else self.closing_fired

    def _can_fire(self, kind: TriggerKind, window_date: date) -> bool:
        if window_date == self.current_local_date:
            return not self._fired(kind)
        return self.last_fired.get(kind) != window_date

    def _mark_fired(self, kind: TriggerKind, window_date: date) -> None:
        self.last_fired[kind] = window_date
        if window_date != self.current_local_date:
            return
        if kind == TriggerKind.PRE_ALERT:
            self.pre_alert_fired = True
        else:
            self.closing_fired = True

    def advance(
        self,
        local_dt: datetime,
        decision: WindowDecision,
        counts: Optional[CountsProvider] = None,
    ) -> List[TriggerEvent]:
        """
        Process one tick.

        Args:
            local_dt: Tick converted to the schedule's timezone
            decision: Window membership for that tick
            counts: Called only when a pre-alert is emitted

        Returns:
            Emitted events, pre-alert first
        """
        self.roll_over(local_dt.date())
        events: List[TriggerEvent] = []

        if decision.in_alert_window:
            window_date = decision.alert_window_date or local_dt.date()
            if self._can_fire(TriggerKind.PRE_ALERT, window_date):
                self._mark_fired(TriggerKind.PRE_ALERT, window_date)
                events.append(PreAlertEvent(
                    local_time=local_dt,
                    window_date=window_date,
                    counts=counts() if counts is not None else None,
                ))

        if decision.in_closing_window:
            window_date = decision.closing_window_date or local_dt.date()
            if self._can_fire(TriggerKind.CLOSING, window_date):
                self._mark_fired(TriggerKind.CLOSING, window_date)
                events.append(ClosingEvent(local_time=local_dt, window_date=window_date))

        return events
