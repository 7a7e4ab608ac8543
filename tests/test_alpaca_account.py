"""
AlpacaTradingAccount against a fake TradingClient.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace
from typing import Any, List

import pytest

from eodcloser.brokers import BrokerConnectionError
from eodcloser.brokers.alpaca_connector import AlpacaTradingAccount
from eodcloser.dispatch import EndOfDayDispatcher
from eodcloser.schedule import ClosingEvent


class FakeTradingClient:
    def __init__(self, positions=None, orders=None, currency="USD"):
        self.positions = positions or []
        self.orders = orders or []
        self.currency = currency
        self.failures: List[Exception] = []     # raised by get_all_positions, in order
        self.close_errors = {}
        self.closed: List[str] = []
        self.cancelled: List[str] = []
        self.queue_liquidations = False   # close leaves an open market order behind
        self.orders_hold_shares = False   # a resting order on the symbol blocks the close

    def get_account(self):
        return SimpleNamespace(currency=self.currency, account_number="PA1234567")

    def get_all_positions(self):
        if self.failures:
            raise self.failures.pop(0)
        return list(self.positions)

    def get_orders(self, request: Any):
        return list(self.orders)

    def close_position(self, symbol: str):
        if symbol in self.close_errors:
            raise self.close_errors[symbol]
        if self.orders_hold_shares and any(o.symbol == symbol for o in self.orders):
            raise RuntimeError(f"insufficient qty available for order (requested: all, symbol: {symbol})")
        self.closed.append(symbol)
        order = _order(f"liq-{len(self.closed)}", symbol, "sell", "0")
        if self.queue_liquidations:
            self.orders.append(order)
        return order

    def cancel_order_by_id(self, order_id: str):
        self.cancelled.append(order_id)
        self.orders = [o for o in self.orders if str(o.id) != order_id]


def _position(symbol, qty, side, pnl):
    return SimpleNamespace(
        asset_id=f"asset-{symbol}",
        symbol=symbol,
        qty=qty,
        side=SimpleNamespace(value=side),
        unrealized_pl=pnl,
    )


def _order(order_id, symbol, side, qty, limit_price=None):
    return SimpleNamespace(
        id=order_id,
        symbol=symbol,
        side=SimpleNamespace(value=side),
        qty=qty,
        order_type=SimpleNamespace(value="limit" if limit_price else "market"),
        limit_price=limit_price,
        stop_price=None,
    )


@pytest.fixture
def client() -> FakeTradingClient:
    return FakeTradingClient(
        positions=[_position("SPY", "10", "long", "42.5"), _position("QQQ", "-5", "short", "-17.25")],
        orders=[_order("ord-1", "IWM", "buy", "20", "198.40")],
        currency="EUR",
    )


def _account(client) -> AlpacaTradingAccount:
    return AlpacaTradingAccount(api_key="k", api_secret="s", paper=True, client=client)


class TestListing:

    def test_positions_are_mapped(self, client):
        positions = _account(client).list_open_positions()

        assert [p.symbol for p in positions] == ["SPY", "QQQ"]
        assert positions[0].side == "LONG"
        assert positions[1].side == "SHORT"
        assert positions[1].quantity == Decimal("5")
        assert positions[1].unrealized_pnl == Decimal("-17.25")

    def test_orders_are_mapped(self, client):
        orders = _account(client).list_pending_orders()

        assert len(orders) == 1
        assert orders[0].order_id == "ord-1"
        assert orders[0].side == "BUY"
        assert orders[0].order_type == "limit"
        assert orders[0].target_price == Decimal("198.40")

    def test_currency_from_account(self, client):
        assert _account(client).currency == "EUR"

    def test_transient_network_error_is_retried(self, client, no_sleep):
        client.failures = [ConnectionError("reset by peer")]
        positions = _account(client).list_open_positions()

        assert len(positions) == 2
        assert no_sleep == [1.0]

    def test_persistent_failure_raises_connection_error(self, client, no_sleep):
        client.failures = [ConnectionError("down")] * 5
        with pytest.raises(BrokerConnectionError):
            _account(client).list_open_positions()

    def test_account_verification_failure(self):
        class NoAccount(FakeTradingClient):
            def get_account(self):
                raise RuntimeError("forbidden")

        with pytest.raises(BrokerConnectionError):
            _account(NoAccount())


class TestMutations:

    def test_close_reports_marked_pnl(self, client):
        account = _account(client)
        spy = account.list_open_positions()[0]

        result = account.close_position(spy)

        assert result.success
        assert result.realized_pnl == Decimal("42.5")
        assert client.closed == ["SPY"]

    def test_close_failure_is_returned_not_raised(self, client, no_sleep):
        client.close_errors["QQQ"] = RuntimeError("position is locked")
        account = _account(client)
        qqq = account.list_open_positions()[1]

        result = account.close_position(qqq)

        assert not result.success
        assert "locked" in result.error
        assert no_sleep == []

    def test_cancel(self, client):
        account = _account(client)
        result = account.cancel_order(account.list_pending_orders()[0])

        assert result.success
        assert client.cancelled == ["ord-1"]


class TestClosingRun:

    @staticmethod
    def _closing(scheduler) -> ClosingEvent:
        local = datetime(2026, 7, 15, 16, 50, 5, tzinfo=scheduler.timezone)
        return ClosingEvent(local_time=local, window_date=date(2026, 7, 15))

    def test_liquidation_orders_are_not_cancelled(self, client, ny_scheduler, recorder):
        client.queue_liquidations = True
        dispatcher = EndOfDayDispatcher(_account(client), ny_scheduler, [recorder])

        report = dispatcher.handle(self._closing(ny_scheduler))

        assert report.orders_cancelled == 1
        assert report.positions_closed == 2
        assert client.cancelled == ["ord-1"]
        assert [o.id for o in client.orders] == ["liq-1", "liq-2"]

    def test_resting_order_on_symbol_does_not_block_close(self, ny_scheduler, recorder):
        client = FakeTradingClient(
            positions=[_position("SPY", "10", "long", "42.5")],
            orders=[_order("stop-1", "SPY", "sell", "10", "480.00")],
        )
        client.orders_hold_shares = True
        dispatcher = EndOfDayDispatcher(_account(client), ny_scheduler, [recorder])

        report = dispatcher.handle(self._closing(ny_scheduler))

        assert not report.has_failures
        assert report.positions_closed == 1
        assert client.cancelled == ["stop-1"]
        assert client.closed == ["SPY"]
