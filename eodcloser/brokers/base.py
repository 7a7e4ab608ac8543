"""
Trading account interface consumed by the end-of-day dispatcher.

The dispatcher only needs to enumerate what is open and to flatten it;
everything else about the brokerage stays behind this boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional


@dataclass(frozen=True)
class OpenPosition:
    position_id: str
    symbol: str
    side: str                      # "LONG" / "SHORT"
    quantity: Decimal
    unrealized_pnl: Decimal = Decimal("0")


@dataclass(frozen=True)
class PendingOrder:
    order_id: str
    symbol: str
    side: str                      # "BUY" / "SELL"
    quantity: Decimal
    order_type: str = "limit"
    target_price: Optional[Decimal] = None


@dataclass(frozen=True)
class CloseResult:
    success: bool
    realized_pnl: Decimal = Decimal("0")
    error: Optional[str] = None


@dataclass(frozen=True)
class CancelResult:
    success: bool
    error: Optional[str] = None


class TradingAccount(ABC):
    """
    Brokerage account the closer acts upon.

    close_position / cancel_order report failure through their result
    instead of raising; list_* may raise BrokerConnectionError.
    """

    @property
    def currency(self) -> str:
        return "USD"

    @abstractmethod
    def list_open_positions(self) -> List[OpenPosition]:
        pass

    @abstractmethod
    def list_pending_orders(self) -> List[PendingOrder]:
        pass

    @abstractmethod
    def close_position(self, position: OpenPosition) -> CloseResult:
        pass

    @abstractmethod
    def cancel_order(self, order: PendingOrder) -> CancelResult:
        pass


class BrokerConnectionError(Exception):
    """Broker connection error."""
    pass
