"""
Fakes shared by the test suite.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

from eodcloser.brokers import (
    BrokerConnectionError,
    OpenPosition,
    PendingOrder,
    SimulatedTradingAccount,
)
from eodcloser.messaging import DeliveryStatus, Messenger


class RecordingMessenger(Messenger):
    """Keeps every message; answers with a fixed status."""

    name = "recording"

    def __init__(self, status: DeliveryStatus = DeliveryStatus.OK):
        self.status = status
        self.sent: List[str] = []

    def send_message(self, text: str) -> DeliveryStatus:
        self.sent.append(text)
        return self.status


class ExplodingMessenger(Messenger):
    name = "exploding"

    def send_message(self, text: str) -> DeliveryStatus:
        raise RuntimeError("messenger blew up")


class UnreachableAccount(SimulatedTradingAccount):
    """Listing calls fail as if the broker were down."""

    def list_open_positions(self) -> List[OpenPosition]:
        raise BrokerConnectionError("Failed to get positions: connection refused")

    def list_pending_orders(self) -> List[PendingOrder]:
        raise BrokerConnectionError("Failed to get orders: connection refused")


class RaisingCloseAccount(SimulatedTradingAccount):
    """close_position raises for one symbol instead of reporting failure."""

    def __init__(self, raise_for: str, **kwargs):
        super().__init__(**kwargs)
        self.raise_for = raise_for

    def close_position(self, position):
        if position.symbol == self.raise_for:
            raise RuntimeError(f"socket closed while closing {position.symbol}")
        return super().close_position(position)


class FakeResponse:
    def __init__(
        self,
        status_code: int,
        body: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.status_code = status_code
        self._body = body
        self.headers = headers or {}

    def json(self) -> Any:
        if self._body is None:
            raise ValueError("No JSON body")
        return self._body


class FakePost:
    """
    Stand-in for requests.post replaying scripted outcomes.

    The last outcome repeats once the script is exhausted.
    """

    def __init__(self, outcomes: List[Any]):
        self.outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, url, data=None, json=None, timeout=None, **kwargs):
        self.calls.append({
            "url": url,
            "data": dict(data) if data is not None else None,
            "json": dict(json) if json is not None else None,
            "timeout": timeout,
        })
        outcome = self.outcomes.pop(0) if len(self.outcomes) > 1 else self.outcomes[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


def demo_position(position_id: str = "p1", symbol: str = "SPY", pnl: str = "10.00") -> OpenPosition:
    return OpenPosition(position_id, symbol, "LONG", Decimal("10"), Decimal(pnl))


def demo_order(order_id: str = "o1", symbol: str = "IWM") -> PendingOrder:
    return PendingOrder(order_id, symbol, "BUY", Decimal("20"), "limit", Decimal("198.40"))
