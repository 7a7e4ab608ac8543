"""
Runtime Application - tick loop for live, paper and simulated runs.

ARCHITECTURE:
- One loop for every mode; only the clock and the account differ
- Each tick: clock.now() -> EndOfDayTrigger -> EndOfDayDispatcher
- An error inside a tick is logged and the loop goes on
- SIGINT / SIGTERM stop the loop after the current tick
"""

from __future__ import annotations

import signal
import time
from dataclasses import dataclass
from datetime import date, datetime, time as dtime, timedelta
from pathlib import Path
from typing import List, Optional

from eodcloser.brokers import SimulatedTradingAccount, TradingAccount
from eodcloser.config import BrokerType, ConfigSchema, load_config
from eodcloser.dispatch import ClosingReport, EndOfDayDispatcher
from eodcloser.logging import LogStream, get_logger, setup_logging
from eodcloser.messaging import (
    DiscordWebhookMessenger,
    Messenger,
    NullMessenger,
    TelegramMessenger,
    TelegramOptions,
)
from eodcloser.schedule import EndOfDayTrigger, TimeWindowScheduler
from eodcloser.time import Clock, ClockFactory, is_dst, localize

logger = get_logger(LogStream.SYSTEM)

BANNER = "═" * 47


@dataclass
class RunOptions:
    config_path: Path
    mode: str  # "live", "paper" or "simulate"
    run_once: bool = False
    start: Optional[date] = None
    end: Optional[date] = None


@dataclass
class Components:
    config: ConfigSchema
    scheduler: TimeWindowScheduler
    trigger: EndOfDayTrigger
    account: TradingAccount
    messengers: List[Messenger]
    dispatcher: EndOfDayDispatcher


# ============================================================================
# WIRING
# ============================================================================

def build_account(cfg: ConfigSchema, mode: str) -> TradingAccount:
    if mode == "simulate" or cfg.broker.broker_type == BrokerType.SIMULATED:
        return SimulatedTradingAccount.with_demo_book()

    # alpaca-py is only imported when a real account is needed
    from eodcloser.brokers.alpaca_connector import AlpacaTradingAccount

    paper = mode == "paper"
    if cfg.broker.paper_trading != paper:
        logger.info(f"Mode {mode} overrides broker.paper_trading={cfg.broker.paper_trading}")

    return AlpacaTradingAccount(
        api_key=cfg.broker.api_key,
        api_secret=cfg.broker.api_secret,
        paper=paper,
    )


def build_messengers(cfg: ConfigSchema) -> List[Messenger]:
    """Active messengers. Enabled channels without credentials are skipped with a warning."""
    messengers: List[Messenger] = []

    if cfg.telegram.enabled:
        if cfg.telegram.has_credentials:
            messengers.append(TelegramMessenger(TelegramOptions(
                bot_token=cfg.telegram.bot_token,
                chat_id=cfg.telegram.chat_id,
                timeout=cfg.telegram.timeout_seconds,
                max_retries=cfg.telegram.max_retries,
            )))
        else:
            logger.warning("⚠️ Telegram: ENABLED but bot token or chat id missing")

    if cfg.discord.enabled:
        if cfg.discord.has_credentials:
            messengers.append(DiscordWebhookMessenger(cfg.discord.webhook_url))
        else:
            logger.warning("⚠️ Discord: ENABLED but webhook URL missing")

    if not messengers:
        messengers.append(NullMessenger())

    return messengers


def build_components(
    cfg: ConfigSchema,
    mode: str,
    account: Optional[TradingAccount] = None,
    messengers: Optional[List[Messenger]] = None,
) -> Components:
    verbose = cfg.session.verbose_logging
    scheduler = TimeWindowScheduler(cfg.to_schedule_config())
    trigger = EndOfDayTrigger(scheduler, verbose=verbose)

    account = account if account is not None else build_account(cfg, mode)
    messengers = messengers if messengers is not None else build_messengers(cfg)

    dispatcher = EndOfDayDispatcher(
        account=account,
        scheduler=scheduler,
        messengers=messengers,
        dry_run=(mode == "simulate"),
        verbose=verbose,
    )
    return Components(cfg, scheduler, trigger, account, messengers, dispatcher)


def _log_startup(c: Components, mode: str, now: datetime) -> None:
    schedule = c.config.schedule
    local = c.scheduler.to_local(now)

    logger.info(BANNER)
    logger.info(f"🚀 EOD Closer started ({mode.upper()})")
    if c.scheduler.fallback_used:
        logger.warning(f"   Timezone '{schedule.timezone}' unknown, using {c.scheduler.timezone_name}")
    logger.info(f"   Timezone: {c.scheduler.timezone_name}")
    logger.info("   DST support: automatic")
    logger.info(
        f"   Closing time: {c.scheduler.config.close_time_str} "
        f"(pre-alert {schedule.pre_alert_minutes} min before, window {schedule.window_minutes} min)"
    )
    logger.info(f"   Current local time: {local:%Y-%m-%d %H:%M:%S} (DST {'on' if is_dst(local) else 'off'})")
    logger.info(f"   Tick interval: {c.config.session.tick_interval_seconds}s")
    logger.info(f"   Messengers: {', '.join(m.name for m in c.messengers)}")
    logger.info(BANNER)


def _log_stop(c: Components, reason: str) -> None:
    logger.info(BANNER)
    logger.info(f"🛑 EOD Closer stopped ({reason})")
    logger.info(f"   Closings executed: {len(c.dispatcher.reports)}")
    logger.info(BANNER)


# ============================================================================
# LOOP
# ============================================================================

def tick(c: Components, now: datetime) -> List[ClosingReport]:
    """One tick: evaluate the windows at `now` and dispatch what fired."""
    reports: List[ClosingReport] = []
    for event in c.trigger.on_tick(now, counts=c.dispatcher.account_counts):
        report = c.dispatcher.handle(event)
        if report is not None:
            reports.append(report)
    return reports


def _safe_tick(c: Components, now: datetime) -> bool:
    try:
        tick(c, now)
        return True
    except Exception as e:
        logger.exception(f"Runtime loop error: {e}")
        return False


def run_realtime(c: Components, clock: Clock, run_once: bool = False) -> int:
    class _State:
        running = True

    state = _State()

    def _stop(_sig, _frame):
        state.running = False

    previous = {
        signal.SIGINT: signal.signal(signal.SIGINT, _stop),
        signal.SIGTERM: signal.signal(signal.SIGTERM, _stop),
    }

    interval = c.config.session.tick_interval_seconds
    # Ticks are paced on fixed monotonic deadlines; tick work does not push them back.
    deadline = time.monotonic()

    try:
        while state.running:
            ok = _safe_tick(c, clock.now())
            if run_once:
                return 0 if ok else 1

            deadline += interval
            delay = deadline - time.monotonic()
            if delay < 0:
                logger.warning(f"Tick overran the {interval}s interval by {-delay:.1f}s")
                deadline = time.monotonic()
                delay = 0
            time.sleep(delay)
        return 0
    finally:
        for sig, handler in previous.items():
            if handler is None:
                continue
            signal.signal(sig, handler)


def run_simulation(c: Components, start: date, end: date) -> List[ClosingReport]:
    """
    Replay local days [start, end] on a BacktestClock, one tick per
    tick_interval_seconds, starting at local midnight of `start`.
    """
    if end < start:
        raise ValueError(f"end ({end}) is before start ({start})")

    tz = c.scheduler.timezone
    begin = localize(tz, datetime.combine(start, dtime(0, 0)))
    finish = localize(tz, datetime.combine(end + timedelta(days=1), dtime(0, 0)))

    clock = ClockFactory.create_for_mode("simulate", start_time=begin)
    step = timedelta(seconds=c.config.session.tick_interval_seconds)

    logger.info(f"Simulating {start} .. {end} every {step.total_seconds():.0f}s")

    while clock.now() < finish:
        _safe_tick(c, clock.now())
        clock.advance(step)

    return list(c.dispatcher.reports)


def run(opts: RunOptions) -> int:
    """Run the closer. Returns exit code: 0 success, 1 failure."""
    broker_type = BrokerType.SIMULATED.value if opts.mode == "simulate" else None
    cfg = load_config(opts.config_path, broker_type=broker_type)

    log_cfg = cfg.logging
    console_level = "DEBUG" if cfg.session.verbose_logging else log_cfg.console_level.value
    setup_logging(
        log_dir=log_cfg.log_dir,
        log_level=log_cfg.log_level.value,
        console_level=console_level,
        json_logs=log_cfg.json_logs,
        max_bytes=log_cfg.max_bytes,
        backup_count=log_cfg.backup_count,
    )

    c = build_components(cfg, opts.mode)

    if opts.mode == "simulate":
        if opts.start is None or opts.end is None:
            raise ValueError("simulate mode requires start and end dates")
        _log_startup(c, opts.mode, localize(c.scheduler.timezone, datetime.combine(opts.start, dtime(0, 0))))
        reports = run_simulation(c, opts.start, opts.end)
        _log_stop(c, "simulation complete")
        print(f"Simulated closings: {len(reports)}")
        return 0

    clock = ClockFactory.create_for_mode(opts.mode)
    _log_startup(c, opts.mode, clock.now())
    exit_code = run_realtime(c, clock, run_once=opts.run_once)
    _log_stop(c, "run once" if opts.run_once else "signal")
    return exit_code


def run_app(opts: RunOptions) -> int:
    """
    Public entrypoint used by the CLI and tests. MUST return an int exit code.
    0 = success / completed
    1 = configuration or runtime failure
    """
    try:
        return run(opts)
    except Exception as e:
        logger.exception("Fatal error in run_app: %s", e)
        return 1
