"""
Configuration system with Pydantic validation.

Single source of truth for all configuration parameters.
"""

from .schema import (
    ConfigSchema,
    ScheduleSettings,
    SessionConfig,
    BrokerConfig,
    TelegramConfig,
    DiscordConfig,
    LoggingConfig,
    BrokerType,
    LogLevel,
)

from .loader import (
    ConfigError,
    ConfigLoader,
    load_config,
)

__all__ = [
    "ConfigSchema",
    "ScheduleSettings",
    "SessionConfig",
    "BrokerConfig",
    "TelegramConfig",
    "DiscordConfig",
    "LoggingConfig",
    "BrokerType",
    "LogLevel",
    "ConfigError",
    "ConfigLoader",
    "load_config",
]
