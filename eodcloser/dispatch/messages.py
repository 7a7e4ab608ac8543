"""
Notification text for the pre-alert and the closing result (Telegram Markdown).
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from eodcloser.schedule import AccountCounts, PreAlertEvent, ScheduleConfig

from .report import ClosingReport


APP_TITLE = "EOD Closer"


def signed_amount(amount: Decimal, currency: str) -> str:
    sign = "+" if amount >= 0 else ""
    return f"{sign}{amount:.2f} {currency}"


def dst_label(active: bool) -> str:
    return "Daylight saving time" if active else "Standard time"


def format_pre_alert(
    event: PreAlertEvent,
    config: ScheduleConfig,
    counts: Optional[AccountCounts] = None,
) -> str:
    local = event.local_time
    zone = local.strftime("%Z")

    lines = [
        f"🤖 *{APP_TITLE} - Operational Alert*",
        "",
        "✅ The closer is running",
        f"⏰ Closing in {config.pre_alert_lead_minutes} minutes at {config.close_time_str} {zone}",
        "",
        "📊 Current account state:",
    ]
    counts = counts or event.counts
    if counts is None:
        lines.append("   • Positions / orders: unavailable")
    else:
        lines.append(f"   • Open positions: {counts.open_positions}")
        lines.append(f"   • Pending orders: {counts.pending_orders}")
    lines.append(f"   • Local time: {local:%H:%M:%S}")
    lines.append(f"   • DST: {dst_label(event.dst_active)}")
    return "\n".join(lines)


def format_closing_result(report: ClosingReport) -> str:
    closed_at = report.closed_at
    zone = closed_at.strftime("%Z")

    lines = [
        f"🔒 *{APP_TITLE} - Execution Result*",
        "",
        f"⏰ Closing done at {closed_at:%H:%M:%S} {zone}",
        f"📅 Date: {closed_at:%Y-%m-%d}",
        "",
    ]

    if report.no_action_needed:
        lines += [
            "✅ *No action required*",
            "   • No open position",
            "   • No pending order",
        ]
    else:
        lines.append("📊 *Actions taken:*")
        if report.positions_closed > 0:
            emoji = "💰" if report.total_pnl >= 0 else "📉"
            lines.append(f"   {emoji} {report.positions_closed} position(s) closed")
            lines.append(f"   • Total P&L: {signed_amount(report.total_pnl, report.currency)}")
        else:
            lines.append("   • No position to close")

        if report.orders_cancelled > 0:
            lines.append(f"   🚫 {report.orders_cancelled} order(s) cancelled")
        else:
            lines.append("   • No order to cancel")

        if report.has_failures:
            lines.append("")
            lines.append(f"❌ *{len(report.failures)} failure(s):*")
            for failure in report.failures:
                target = failure.symbol or failure.ref or failure.kind
                lines.append(f"   • {failure.kind} {target}: {failure.error}")

    next_closing = report.next_closing
    lines += [
        "",
        "⏭️ Next closing:",
        f"   {next_closing:%Y-%m-%d} at {next_closing:%H:%M} {next_closing:%Z}",
    ]
    return "\n".join(lines)
