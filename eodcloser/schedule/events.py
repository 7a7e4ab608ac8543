"""
Trigger event definitions.

Events are immutable and carry the aware local timestamp at which they were
emitted; UTC time, zone name and DST state are derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from enum import Enum
from typing import NamedTuple, Optional, Union

from eodcloser.time.zones import is_dst, zone_name


class TriggerKind(str, Enum):
    """Which daily window produced the event."""
    PRE_ALERT = "PRE_ALERT"
    CLOSING = "CLOSING"


class AccountCounts(NamedTuple):
    """Snapshot of the account supplied by the caller when a pre-alert fires."""
    open_positions: int
    pending_orders: int


@dataclass(frozen=True)
class _TriggerEvent:
    local_time: datetime
    window_date: date

    @property
    def utc_time(self) -> datetime:
        return self.local_time.astimezone(timezone.utc)

    @property
    def dst_active(self) -> bool:
        return is_dst(self.local_time)

    @property
    def timezone_name(self) -> str:
        return zone_name(self.local_time.tzinfo)


@dataclass(frozen=True)
class PreAlertEvent(_TriggerEvent):
    """Emitted once per day when the pre-alert window is first observed."""
    counts: Optional[AccountCounts] = None
    kind: TriggerKind = TriggerKind.PRE_ALERT


@dataclass(frozen=True)
class ClosingEvent(_TriggerEvent):
    """
    Emitted once per day when the closing window is first observed.

    The receiver must now enumerate and act upon the account's open
    positions and pending orders.
    """
    action: str = "LIQUIDATE_ALL"
    kind: TriggerKind = TriggerKind.CLOSING


TriggerEvent = Union[PreAlertEvent, ClosingEvent]
