"""
EndOfDayDispatcher - acts on trigger events.

PreAlert -> count what is open, notify.
Closing  -> cancel every pending order, then close every open position, report.

Pending orders are cancelled before any position is closed, so the cancel
pass never sees the market orders a close submits.

A failure on one position or order is logged and recorded and the loop goes
on with the next one. Nothing here is retried: the daily trigger has already
been consumed, so the report is the final word for the day.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional, Sequence

from eodcloser.brokers import TradingAccount
from eodcloser.logging import get_logger, LogContext, LogStream
from eodcloser.messaging import DeliveryStatus, Messenger
from eodcloser.schedule import (
    AccountCounts,
    ClosingEvent,
    PreAlertEvent,
    TimeWindowScheduler,
    TriggerEvent,
)

from .messages import dst_label, format_closing_result, format_pre_alert, signed_amount
from .report import ClosingReport


BANNER = "═" * 47


class EndOfDayDispatcher:
    """
    USAGE:
        dispatcher = EndOfDayDispatcher(account, scheduler, [telegram])
        for event in trigger.on_tick(clock.now(), counts=dispatcher.account_counts):
            dispatcher.handle(event)
    """

    def __init__(
        self,
        account: TradingAccount,
        scheduler: TimeWindowScheduler,
        messengers: Sequence[Messenger] = (),
        dry_run: bool = False,
        verbose: bool = False,
    ):
        self.account = account
        self.scheduler = scheduler
        self.messengers = list(messengers)
        self.dry_run = dry_run
        self.verbose = verbose

        self.logger = get_logger(LogStream.TRADING)
        self.notify_logger = get_logger(LogStream.NOTIFY)

        self.reports: List[ClosingReport] = []

    # ========================================================================
    # ENTRY POINT
    # ========================================================================

    def handle(self, event: TriggerEvent) -> Optional[ClosingReport]:
        """Dispatch one trigger event. Returns the report for a closing."""
        if isinstance(event, PreAlertEvent):
            self._handle_pre_alert(event)
            return None
        if isinstance(event, ClosingEvent):
            with LogContext(f"closing-{event.window_date.isoformat()}"):
                report = self._handle_closing(event)
            self.reports.append(report)
            return report
        raise TypeError(f"Unsupported trigger event: {event!r}")

    def account_counts(self) -> AccountCounts:
        """Counts provider for EndOfDayTrigger.on_tick."""
        return AccountCounts(
            open_positions=len(self.account.list_open_positions()),
            pending_orders=len(self.account.list_pending_orders()),
        )

    # ========================================================================
    # PRE-ALERT
    # ========================================================================

    def _handle_pre_alert(self, event: PreAlertEvent) -> None:
        counts = event.counts
        if counts is None:
            try:
                counts = self.account_counts()
            except Exception as e:
                self.logger.warning("Could not count positions/orders for pre-alert", extra={
                    "error": str(e)
                })

        config = self.scheduler.config
        self.logger.info(BANNER)
        self.logger.info("📢 PRE-CLOSING ALERT")
        if counts is not None:
            self.logger.info(f"   Positions: {counts.open_positions} | Orders: {counts.pending_orders}")
        self.logger.info(f"   Closing in {config.pre_alert_lead_minutes} minutes ({config.close_time_str})")
        self.logger.info(BANNER)

        self._notify(format_pre_alert(event, config, counts))

    # ========================================================================
    # CLOSING
    # ========================================================================

    def _handle_closing(self, event: ClosingEvent) -> ClosingReport:
        local = event.local_time
        report = ClosingReport(
            closed_at=local,
            next_closing=self.scheduler.next_closing(event.window_date),
            currency=self._currency(),
        )

        self.logger.info(BANNER)
        self.logger.info("⏰ AUTOMATIC CLOSING TRIGGERED")
        self.logger.info(f"   Time: {local:%Y-%m-%d %H:%M:%S} ({event.timezone_name})")
        self.logger.info(f"   DST: {dst_label(event.dst_active)}")
        self.logger.info(BANNER)

        self._cancel_orders(report)
        self._close_positions(report)
        self._log_summary(report)

        self._notify(format_closing_result(report))
        return report

    def _close_positions(self, report: ClosingReport) -> None:
        try:
            positions = self.account.list_open_positions()
        except Exception as e:
            self.logger.error("Failed to list open positions", extra={"error": str(e)}, exc_info=True)
            report.record_failure("list_positions", str(e))
            return

        if not positions:
            return

        self.logger.info(f"📊 Closing {len(positions)} position(s)...")
        for position in positions:
            try:
                result = self.account.close_position(position)
            except Exception as e:
                # connectors report failures in the result; treat a raise the same way
                self.logger.error(f"   ❌ Close raised for {position.position_id} ({position.symbol})", exc_info=True)
                report.record_failure("close_position", str(e), position.position_id, position.symbol)
                continue

            if result.success:
                report.positions_closed += 1
                report.total_pnl += Decimal(str(result.realized_pnl))
                self._detail(
                    f"   ✓ {position.symbol} | {position.side} | Qty: {position.quantity} | "
                    f"P&L: {signed_amount(Decimal(str(result.realized_pnl)), report.currency)}"
                )
            else:
                error = result.error or "unknown error"
                self.logger.error(
                    f"   ❌ Error closing position {position.position_id} ({position.symbol}): {error}"
                )
                report.record_failure("close_position", error, position.position_id, position.symbol)

    def _cancel_orders(self, report: ClosingReport) -> None:
        try:
            orders = self.account.list_pending_orders()
        except Exception as e:
            self.logger.error("Failed to list pending orders", extra={"error": str(e)}, exc_info=True)
            report.record_failure("list_orders", str(e))
            return

        if not orders:
            return

        self.logger.info(f"📋 Cancelling {len(orders)} pending order(s)...")
        for order in orders:
            try:
                result = self.account.cancel_order(order)
            except Exception as e:
                self.logger.error(f"   ❌ Cancel raised for {order.order_id} ({order.symbol})", exc_info=True)
                report.record_failure("cancel_order", str(e), order.order_id, order.symbol)
                continue

            if result.success:
                report.orders_cancelled += 1
                price = order.target_price if order.target_price is not None else "market"
                self._detail(
                    f"   ✓ {order.symbol} | {order.side} | Qty: {order.quantity} | Price: {price}"
                )
            else:
                error = result.error or "unknown error"
                self.logger.error(
                    f"   ❌ Error cancelling order {order.order_id} ({order.symbol}): {error}"
                )
                report.record_failure("cancel_order", error, order.order_id, order.symbol)

    def _log_summary(self, report: ClosingReport) -> None:
        self.logger.info(BANNER)
        if report.has_failures:
            self.logger.warning(f"⚠️ CLOSING DONE WITH {len(report.failures)} FAILURE(S)")
        else:
            self.logger.info("✅ CLOSING DONE")
        self.logger.info(f"   Positions closed: {report.positions_closed}")
        self.logger.info(f"   Orders cancelled: {report.orders_cancelled}")
        if report.positions_closed > 0:
            self.logger.info(f"   Total P&L: {signed_amount(report.total_pnl, report.currency)}")
        self.logger.info(f"   Next closing: {report.next_closing:%Y-%m-%d %H:%M}")
        self.logger.info(BANNER, extra=report.to_dict())

    # ========================================================================
    # HELPERS
    # ========================================================================

    def _detail(self, message: str) -> None:
        if self.verbose:
            self.logger.info(message)
        else:
            self.logger.debug(message)

    def _currency(self) -> str:
        try:
            return self.account.currency
        except Exception:
            return "USD"

    def _notify(self, text: str) -> None:
        if self.dry_run:
            self.notify_logger.info("Dry run, message not sent:\n%s", text)
            return

        if not self.messengers:
            self.notify_logger.debug("No messenger configured, message dropped")
            return

        for messenger in self.messengers:
            try:
                status = messenger.send_message(text)
            except Exception as e:
                self.notify_logger.error(f"{messenger.name} send raised", extra={"error": str(e)}, exc_info=True)
                continue

            if status != DeliveryStatus.OK:
                self.notify_logger.warning(
                    f"Notification via {messenger.name} not delivered: {status.value}",
                    extra={"messenger": messenger.name, "status": status.value},
                )
