"""
In-memory trading account for simulate mode.

Matches the TradingAccount interface; positions and orders live in dicts
and can be told to fail for chosen symbols.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Set

from eodcloser.logging import get_logger, LogStream

from .base import (
    CancelResult,
    CloseResult,
    OpenPosition,
    PendingOrder,
    TradingAccount,
)


class SimulatedTradingAccount(TradingAccount):
    """
    USAGE:
        account = SimulatedTradingAccount.with_demo_book()
        account.add_position(OpenPosition("p1", "SPY", "LONG", Decimal("10"), Decimal("12.5")))
        account.fail_symbols.add("QQQ")   # closes/cancels on QQQ will fail
    """

    def __init__(
        self,
        positions: Optional[Iterable[OpenPosition]] = None,
        orders: Optional[Iterable[PendingOrder]] = None,
        currency: str = "USD",
    ):
        self._currency = currency
        self.positions: Dict[str, OpenPosition] = {p.position_id: p for p in positions or []}
        self.orders: Dict[str, PendingOrder] = {o.order_id: o for o in orders or []}
        self.fail_symbols: Set[str] = set()
        self.closed: List[OpenPosition] = []
        self.cancelled: List[PendingOrder] = []
        self.logger = get_logger(LogStream.TRADING)

    @classmethod
    def with_demo_book(cls) -> "SimulatedTradingAccount":
        return cls(
            positions=[
                OpenPosition("sim-pos-1", "SPY", "LONG", Decimal("10"), Decimal("42.50")),
                OpenPosition("sim-pos-2", "QQQ", "SHORT", Decimal("5"), Decimal("-17.25")),
            ],
            orders=[
                PendingOrder("sim-ord-1", "IWM", "BUY", Decimal("20"), "limit", Decimal("198.40")),
            ],
        )

    @property
    def currency(self) -> str:
        return self._currency

    def add_position(self, position: OpenPosition) -> None:
        self.positions[position.position_id] = position

    def add_order(self, order: PendingOrder) -> None:
        self.orders[order.order_id] = order

    def list_open_positions(self) -> List[OpenPosition]:
        return list(self.positions.values())

    def list_pending_orders(self) -> List[PendingOrder]:
        return list(self.orders.values())

    def close_position(self, position: OpenPosition) -> CloseResult:
        if position.symbol in self.fail_symbols:
            return CloseResult(success=False, error=f"simulated rejection for {position.symbol}")
        if self.positions.pop(position.position_id, None) is None:
            return CloseResult(success=False, error=f"position {position.position_id} not found")
        self.closed.append(position)
        self.logger.debug("Simulated close", extra={"symbol": position.symbol})
        return CloseResult(success=True, realized_pnl=position.unrealized_pnl)

    def cancel_order(self, order: PendingOrder) -> CancelResult:
        if order.symbol in self.fail_symbols:
            return CancelResult(success=False, error=f"simulated rejection for {order.symbol}")
        if self.orders.pop(order.order_id, None) is None:
            return CancelResult(success=False, error=f"order {order.order_id} not found")
        self.cancelled.append(order)
        self.logger.debug("Simulated cancel", extra={"order_id": order.order_id})
        return CancelResult(success=True)
