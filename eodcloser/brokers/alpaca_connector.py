"""
Alpaca trading account for the end-of-day closer.

CRITICAL PROPERTIES:
1. All broker calls logged
2. Reads retried with exponential backoff on 429 / 5xx / network errors
3. Mutations (close, cancel) are attempted once; their failures are
   returned, never raised
4. Paper/live mode chosen at construction

Based on Alpaca Trading API v2 (alpaca-py).
"""

from __future__ import annotations

import time
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, List, Optional

from alpaca.common.exceptions import APIError
from alpaca.trading.client import TradingClient
from alpaca.trading.enums import QueryOrderStatus
from alpaca.trading.requests import GetOrdersRequest

from eodcloser.logging import get_logger, LogStream

from .base import (
    BrokerConnectionError,
    CancelResult,
    CloseResult,
    OpenPosition,
    PendingOrder,
    TradingAccount,
)


def _decimal(value: Any, default: Decimal = Decimal("0")) -> Decimal:
    if value is None:
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def _enum_value(value: Any) -> str:
    return str(getattr(value, "value", value) or "")


class AlpacaTradingAccount(TradingAccount):
    """
    Alpaca brokerage account.

    THREAD SAFETY:
    - NOT thread-safe
    - Caller must synchronize
    """

    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1.0
    RETRY_BACKOFF_MULTIPLIER = 2.0
    RETRY_TIMEOUT_SECONDS = 30.0

    _RETRYABLE_NETWORK_ERRORS = (ConnectionError, TimeoutError, OSError)

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        paper: bool = True,
        client: Optional[TradingClient] = None,
    ):
        self.paper = paper
        self.logger = get_logger(LogStream.TRADING)
        self.client = client or TradingClient(
            api_key=api_key,
            secret_key=api_secret,
            paper=paper
        )
        self._currency = "USD"

        self.logger.info("AlpacaTradingAccount initialized", extra={"paper_trading": self.paper})
        self._verify_account()

    @property
    def currency(self) -> str:
        return self._currency

    def _verify_account(self) -> None:
        try:
            account = self.client.get_account()
        except Exception as e:
            raise BrokerConnectionError(f"Account verification failed: {e}") from e

        self._currency = getattr(account, "currency", None) or "USD"
        number = getattr(account, "account_number", None)
        self.logger.info("Account verified", extra={
            "account_number": (number[:4] + "****") if number else None,
            "currency": self._currency,
        })

    def list_open_positions(self) -> List[OpenPosition]:
        try:
            raw = self._retry_api_call(lambda: self.client.get_all_positions())
        except Exception as e:
            raise BrokerConnectionError(f"Failed to get positions: {e}") from e

        positions = []
        for pos in raw:
            positions.append(OpenPosition(
                position_id=str(getattr(pos, "asset_id", None) or pos.symbol),
                symbol=pos.symbol,
                side=_enum_value(getattr(pos, "side", "long")).upper(),
                quantity=abs(_decimal(pos.qty)),
                unrealized_pnl=_decimal(getattr(pos, "unrealized_pl", None)),
            ))
        return positions

    def list_pending_orders(self) -> List[PendingOrder]:
        try:
            request = GetOrdersRequest(status=QueryOrderStatus.OPEN)
            raw = list(self._retry_api_call(lambda: self.client.get_orders(request)))
        except Exception as e:
            raise BrokerConnectionError(f"Failed to get orders: {e}") from e

        orders = []
        for order in raw:
            price = getattr(order, "limit_price", None) or getattr(order, "stop_price", None)
            orders.append(PendingOrder(
                order_id=str(order.id),
                symbol=order.symbol,
                side=_enum_value(order.side).upper(),
                quantity=_decimal(getattr(order, "qty", None)),
                order_type=_enum_value(getattr(order, "order_type", None) or getattr(order, "type", "")),
                target_price=_decimal(price) if price is not None else None,
            ))
        return orders

    def close_position(self, position: OpenPosition) -> CloseResult:
        try:
            order = self.client.close_position(position.symbol)
        except Exception as e:
            self.logger.error("Close position failed", extra={
                "symbol": position.symbol, "position_id": position.position_id, "error": str(e)
            })
            return CloseResult(success=False, error=str(e))

        self.logger.info("Close order submitted", extra={
            "symbol": position.symbol,
            "broker_order_id": str(getattr(order, "id", "")),
        })
        # P&L as marked at the moment the close was requested
        return CloseResult(success=True, realized_pnl=position.unrealized_pnl)

    def cancel_order(self, order: PendingOrder) -> CancelResult:
        try:
            self.client.cancel_order_by_id(order.order_id)
        except Exception as e:
            self.logger.error("Cancel order failed", extra={"broker_order_id": order.order_id, "error": str(e)})
            return CancelResult(success=False, error=str(e))

        self.logger.info("Order cancelled", extra={"broker_order_id": order.order_id})
        return CancelResult(success=True)

    def _retry_api_call(self, func: Callable[[], Any], max_retries: Optional[int] = None):
        """Retry with exponential backoff.

        Retries on:
          - HTTP 429 (rate limit) and 5xx (server errors) via APIError
          - ConnectionError / TimeoutError / OSError (transient network errors)

        Gives up once RETRY_TIMEOUT_SECONDS have elapsed.
        """
        max_retries = int(max_retries or self.MAX_RETRIES)
        delay = float(self.RETRY_DELAY_SECONDS)
        start_time = time.monotonic()

        for attempt in range(max_retries):
            if attempt > 0:
                elapsed = time.monotonic() - start_time
                if elapsed >= self.RETRY_TIMEOUT_SECONDS:
                    raise TimeoutError(f"Retry timeout exceeded after {elapsed:.2f}s")

            try:
                return func()

            except APIError as e:
                status_code = getattr(e, "status_code", None)
                retryable = (status_code == 429) or (status_code is not None and 500 <= status_code < 600)
                if retryable and attempt < max_retries - 1:
                    self.logger.warning(
                        "Retryable API error (attempt %d/%d): %s", attempt + 1, max_retries, e,
                    )
                    time.sleep(delay)
                    delay *= self.RETRY_BACKOFF_MULTIPLIER
                    continue
                raise

            except self._RETRYABLE_NETWORK_ERRORS as e:
                if attempt < max_retries - 1:
                    self.logger.warning(
                        "Retryable network error (attempt %d/%d): %s", attempt + 1, max_retries, e,
                    )
                    time.sleep(delay)
                    delay *= self.RETRY_BACKOFF_MULTIPLIER
                    continue
                raise
