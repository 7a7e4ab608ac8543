"""
Configuration schema using Pydantic for validation.

Single source of truth for all configuration parameters.
Validates on load, fails fast on invalid config.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from typing import Dict, Any
from pathlib import Path
from enum import Enum

from eodcloser.schedule import ScheduleConfig
from eodcloser.schedule.window import MINUTES_PER_DAY
from eodcloser.time.zones import DEFAULT_TIMEZONE


# ============================================================================
# ENUMS
# ============================================================================

class BrokerType(str, Enum):
    """Supported broker types."""
    ALPACA = "alpaca"
    SIMULATED = "simulated"


class LogLevel(str, Enum):
    """Log levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


# ============================================================================
# SCHEDULE CONFIGURATION
# ============================================================================

class ScheduleSettings(BaseModel):
    """
    Daily closing schedule.

    RULES:
    - Close time is a wall-clock time in `timezone`
    - Pre-alert lead + window width must fit in one day
    """

    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA (or Windows) zone id; unknown ids fall back to America/New_York"
    )

    close_hour: int = Field(ge=0, le=23, default=16, description="Closing hour (local)")
    close_minute: int = Field(ge=0, le=59, default=50, description="Closing minute (local)")

    pre_alert_minutes: int = Field(
        ge=1,
        le=MINUTES_PER_DAY - 1,
        default=10,
        description="Minutes before closing to send the pre-alert"
    )

    window_minutes: int = Field(
        ge=1,
        le=60,
        default=2,
        description="Width of the alert and closing windows"
    )

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("timezone")
    @classmethod
    def _strip_timezone(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("schedule.timezone must not be empty")
        return v

    @model_validator(mode="after")
    def _lead_fits_in_day(self):
        if self.pre_alert_minutes + self.window_minutes > MINUTES_PER_DAY:
            raise ValueError(
                "schedule.pre_alert_minutes + schedule.window_minutes must not exceed "
                f"{MINUTES_PER_DAY}"
            )
        return self

    def to_schedule_config(self) -> ScheduleConfig:
        return ScheduleConfig(
            timezone_id=self.timezone,
            close_hour=self.close_hour,
            close_minute=self.close_minute,
            pre_alert_lead_minutes=self.pre_alert_minutes,
            window_minutes=self.window_minutes,
        )


# ============================================================================
# SESSION CONFIGURATION
# ============================================================================

class SessionConfig(BaseModel):
    """Run loop settings."""

    tick_interval_seconds: int = Field(
        ge=1,
        le=3600,
        default=60,
        description="Seconds between ticks (must be shorter than the window width)"
    )

    verbose_logging: bool = Field(
        default=True,
        description="Log every closed position / cancelled order"
    )


# ============================================================================
# LOGGING CONFIGURATION
# ============================================================================

class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_dir: Path = Field(
        default=Path("logs"),
        description="Base log directory"
    )

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="File logging level"
    )

    console_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Console logging level"
    )

    json_logs: bool = Field(
        default=True,
        description="Use JSON formatting in log files"
    )

    max_bytes: int = Field(
        ge=1_000_000,
        le=100_000_000,
        default=10_000_000,
        description="Max bytes per log file"
    )

    backup_count: int = Field(
        ge=1,
        le=20,
        default=5,
        description="Number of backup files"
    )


# ============================================================================
# BROKER CONFIGURATION
# ============================================================================

class BrokerConfig(BaseModel):
    """Broker settings."""

    broker_type: BrokerType = Field(
        default=BrokerType.ALPACA,
        description="Which broker implementation to use",
    )

    api_key: str = Field(default="", description="Broker API key")
    api_secret: str = Field(default="", description="Broker API secret")

    paper_trading: bool = Field(default=True, description="Use paper trading mode")

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def _require_keys_if_not_simulated(self):
        if self.broker_type != BrokerType.SIMULATED:
            if not self.api_key or not self.api_secret:
                raise ValueError("broker.api_key and broker.api_secret are required for non-simulated brokers")
        return self


# ============================================================================
# NOTIFICATION CONFIGURATION
# ============================================================================

class TelegramConfig(BaseModel):
    """Telegram Bot API alerts."""

    enabled: bool = Field(default=False, description="Send Telegram alerts")
    bot_token: str = Field(default="", description="Bot token from @BotFather")
    chat_id: str = Field(default="", description="Target chat id")

    timeout_seconds: float = Field(gt=0, le=60, default=10.0)
    max_retries: int = Field(ge=1, le=10, default=3)

    @field_validator("chat_id", mode="before")
    @classmethod
    def _chat_id_as_str(cls, v: Any) -> str:
        # YAML reads numeric chat ids as int
        return "" if v is None else str(v).strip()

    @property
    def has_credentials(self) -> bool:
        return bool(self.bot_token.strip() and self.chat_id)


class DiscordConfig(BaseModel):
    """Discord webhook alerts."""

    enabled: bool = Field(default=False, description="Send Discord alerts")
    webhook_url: str = Field(default="", description="Channel webhook URL")

    @property
    def has_credentials(self) -> bool:
        return bool(self.webhook_url.strip())


# ============================================================================
# MASTER CONFIGURATION
# ============================================================================

class ConfigSchema(BaseModel):
    """
    Master configuration schema.

    Single source of truth for all parameters.
    Validates on load, fails fast on invalid config.
    """

    schedule: ScheduleSettings = Field(default_factory=ScheduleSettings)
    session: SessionConfig = Field(default_factory=SessionConfig)
    broker: BrokerConfig
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = ConfigDict(validate_assignment=True)

    @model_validator(mode="after")
    def _tick_fits_in_window(self):
        # At least one tick must land in every window, sleep overshoot included.
        window_seconds = self.schedule.window_minutes * 60
        if self.session.tick_interval_seconds >= window_seconds:
            raise ValueError(
                f"session.tick_interval_seconds ({self.session.tick_interval_seconds}) must be shorter than "
                f"schedule.window_minutes * 60 ({window_seconds})"
            )
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConfigSchema":
        """Load config from dictionary."""
        return cls(**data)

    def to_schedule_config(self) -> ScheduleConfig:
        return self.schedule.to_schedule_config()
