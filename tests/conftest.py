# tests/conftest.py
from __future__ import annotations

import os
from typing import List

import pytest

from eodcloser.brokers import SimulatedTradingAccount
from eodcloser.schedule import EndOfDayTrigger, ScheduleConfig, TimeWindowScheduler
from tests.helpers.fakes import RecordingMessenger


ENV_OVERRIDES = (
    "BROKER_API_KEY",
    "ALPACA_API_KEY",
    "APCA_API_KEY_ID",
    "BROKER_API_SECRET",
    "ALPACA_API_SECRET",
    "APCA_API_SECRET_KEY",
    "PAPER_TRADING",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "DISCORD_WEBHOOK_URL",
    "EOD_TIMEZONE",
)


@pytest.fixture
def ny_config() -> ScheduleConfig:
    return ScheduleConfig("America/New_York", close_hour=16, close_minute=50, pre_alert_lead_minutes=10)


@pytest.fixture
def ny_scheduler(ny_config) -> TimeWindowScheduler:
    return TimeWindowScheduler(ny_config)


@pytest.fixture
def ny_trigger(ny_scheduler) -> EndOfDayTrigger:
    return EndOfDayTrigger(ny_scheduler)


@pytest.fixture
def demo_account() -> SimulatedTradingAccount:
    return SimulatedTradingAccount.with_demo_book()


@pytest.fixture
def recorder() -> RecordingMessenger:
    return RecordingMessenger()


@pytest.fixture
def no_sleep(monkeypatch) -> List[float]:
    """Disable time.sleep and record requested delays."""
    delays: List[float] = []
    monkeypatch.setattr("time.sleep", lambda s: delays.append(s))
    return delays


@pytest.fixture
def clean_env(monkeypatch):
    """Strip every environment override the config loader honours."""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    yield
    # load_dotenv writes straight into os.environ
    for name in ENV_OVERRIDES:
        os.environ.pop(name, None)


@pytest.fixture
def isolated_logging():
    """Undo setup_logging(): restore root handlers and drop per-stream file handlers."""
    import logging

    from eodcloser.logging import logger as log_module

    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    yield
    for stream in log_module.ALL_STREAMS:
        stream_logger = logging.getLogger(f"{log_module.LOGGER_PREFIX}.{stream}")
        for handler in list(stream_logger.handlers):
            stream_logger.removeHandler(handler)
            handler.close()
    root.handlers = saved_handlers
    root.setLevel(saved_level)
    log_module._loggers_initialized = False
