"""
Outcome of one end-of-day closing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class ActionFailure:
    """A single position or order the closer could not act upon."""
    kind: str                  # "close_position" / "cancel_order" / "list_positions" / "list_orders"
    ref: Optional[str]
    symbol: Optional[str]
    error: str


@dataclass
class ClosingReport:
    closed_at: datetime
    next_closing: datetime
    currency: str = "USD"
    positions_closed: int = 0
    orders_cancelled: int = 0
    total_pnl: Decimal = Decimal("0")
    failures: List[ActionFailure] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)

    @property
    def no_action_needed(self) -> bool:
        return self.positions_closed == 0 and self.orders_cancelled == 0 and not self.failures

    def record_failure(self, kind: str, error: str, ref: Optional[str] = None, symbol: Optional[str] = None) -> None:
        self.failures.append(ActionFailure(kind=kind, ref=ref, symbol=symbol, error=error))

    def to_dict(self) -> dict:
        return {
            "closed_at": self.closed_at.isoformat(),
            "next_closing": self.next_closing.isoformat(),
            "currency": self.currency,
            "positions_closed": self.positions_closed,
            "orders_cancelled": self.orders_cancelled,
            "total_pnl": str(self.total_pnl),
            "failures": len(self.failures),
        }
