"""
Configuration loader with environment variable and secrets handling.

Loads configuration from:
1. config.yaml (main config)
2. .env.local next to it (secrets file; loaded into process env)
3. Environment variables (highest priority)

Secrets are NEVER logged or displayed.
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional, Set

from dotenv import load_dotenv
import yaml


class ConfigError(ValueError):
    """Configuration missing or invalid (secrets already redacted)."""
    pass


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Priority (highest to lowest):
    1. OS Environment variables
    2. .env.local file
    3. config.yaml
    """

    # Secrets that must never be logged
    SECRET_KEYS = {
        "api_key",
        "api_secret",
        "bot_token",
        "webhook_url",
    }

    def __init__(self, config_file: Path = Path("config/config.yaml")):
        self.config_file = Path(config_file)
        self.secrets_file = self.config_file.parent / ".env.local"

    def load(self) -> Dict[str, Any]:
        """
        Load configuration from all sources.

        Returns:
            Merged configuration dictionary

        Raises:
            ConfigError: If config.yaml is missing or not a mapping
        """
        if not self.config_file.exists():
            raise ConfigError(f"Configuration file not found: {self.config_file}")

        # 1) Base config from YAML
        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self.config_file}: {e}") from e

        if config is None:
            raise ConfigError(f"Empty configuration file: {self.config_file}")
        if not isinstance(config, dict):
            raise ConfigError(f"Configuration root must be a mapping: {self.config_file}")

        # 2) Load secrets from .env.local if present.
        #    Important: do NOT override already-set OS env vars.
        if self.secrets_file.exists():
            load_dotenv(self.secrets_file, override=False)

        # 3) Environment overrides
        self._apply_env_overrides(config)
        return config

    @staticmethod
    def _apply_env_overrides(config: Dict[str, Any]) -> None:
        # Broker credentials; supported names:
        #   - BROKER_API_KEY / BROKER_API_SECRET (preferred)
        #   - ALPACA_API_KEY / ALPACA_API_SECRET (legacy)
        #   - APCA_API_KEY_ID / APCA_API_SECRET_KEY (Alpaca SDK convention)
        broker = config.setdefault("broker", {}) or {}
        config["broker"] = broker

        env_key = (
            os.getenv("BROKER_API_KEY")
            or os.getenv("ALPACA_API_KEY")
            or os.getenv("APCA_API_KEY_ID")
        )
        env_secret = (
            os.getenv("BROKER_API_SECRET")
            or os.getenv("ALPACA_API_SECRET")
            or os.getenv("APCA_API_SECRET_KEY")
        )
        if env_key:
            broker["api_key"] = env_key
        if env_secret:
            broker["api_secret"] = env_secret

        paper_trading = os.getenv("PAPER_TRADING", "").strip().lower()
        if paper_trading in ("true", "1", "yes"):
            broker["paper_trading"] = True
        elif paper_trading in ("false", "0", "no"):
            broker["paper_trading"] = False

        # Notification credentials
        token = os.getenv("TELEGRAM_BOT_TOKEN")
        chat_id = os.getenv("TELEGRAM_CHAT_ID")
        if token or chat_id:
            telegram = config.get("telegram") or {}
            if token:
                telegram["bot_token"] = token
            if chat_id:
                telegram["chat_id"] = chat_id
            config["telegram"] = telegram

        webhook = os.getenv("DISCORD_WEBHOOK_URL")
        if webhook:
            discord = config.get("discord") or {}
            discord["webhook_url"] = webhook
            config["discord"] = discord

        tz = os.getenv("EOD_TIMEZONE")
        if tz:
            schedule = config.get("schedule") or {}
            schedule["timezone"] = tz
            config["schedule"] = schedule

    def load_and_validate(self, broker_type: Optional[str] = None):
        """
        Load and validate configuration.

        Args:
            broker_type: Force the broker implementation (simulation runs)

        Returns:
            ConfigSchema instance
        """
        from .schema import ConfigSchema

        config_dict = self.load()
        if broker_type is not None:
            config_dict["broker"]["broker_type"] = broker_type

        try:
            return ConfigSchema(**config_dict)
        except Exception as e:
            # Scrub secrets from error message
            error_msg = str(e)
            for secret in self._secret_values(config_dict):
                error_msg = error_msg.replace(secret, "[REDACTED]")
            raise ConfigError(f"Configuration validation failed: {error_msg}") from e

    @classmethod
    def _secret_values(cls, config_dict: Dict[str, Any]) -> Set[str]:
        values: Set[str] = set()

        def _collect(d: Dict[str, Any]) -> None:
            for key, value in d.items():
                if key.lower() in cls.SECRET_KEYS and value:
                    values.add(str(value))
                elif isinstance(value, dict):
                    _collect(value)

        _collect(config_dict)
        return values

    @staticmethod
    def scrub_secrets(config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """
        Replace secret values with [REDACTED] for logging.

        Args:
            config_dict: Configuration dictionary

        Returns:
            Copy with secrets redacted
        """
        scrubbed = copy.deepcopy(config_dict)

        def _scrub_recursive(d: Dict[str, Any]) -> None:
            for key, value in d.items():
                if key.lower() in ConfigLoader.SECRET_KEYS:
                    d[key] = "[REDACTED]"
                elif isinstance(value, dict):
                    _scrub_recursive(value)
                elif isinstance(value, list):
                    for item in value:
                        if isinstance(item, dict):
                            _scrub_recursive(item)

        _scrub_recursive(scrubbed)
        return scrubbed


def load_config(config_file: Path = Path("config/config.yaml"), broker_type: Optional[str] = None):
    """
    Convenience function to load and validate configuration.

    Args:
        config_file: Path to config.yaml
        broker_type: Force the broker implementation

    Returns:
        Validated ConfigSchema instance
    """
    loader = ConfigLoader(config_file)
    return loader.load_and_validate(broker_type=broker_type)
