"""
Telegram Bot API messenger.

Sends Markdown text through ``sendMessage``. Transient failures (429, 5xx,
network) are retried with exponential backoff, honouring ``retry_after``;
everything else is classified and returned.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import requests

from eodcloser.logging import get_logger, LogStream

from .base import DeliveryStatus, Messenger, retry_after_seconds


TELEGRAM_API_URL = "https://api.telegram.org"


def classify_telegram_status(status_code: int) -> DeliveryStatus:
    """Map a Bot API HTTP status to a delivery status."""
    if status_code == 200:
        return DeliveryStatus.OK
    if status_code in (401, 404):
        # 404 is what the API answers for an unknown bot token
        return DeliveryStatus.AUTH_FAILURE
    if status_code in (400, 403):
        return DeliveryStatus.BAD_RECIPIENT
    if status_code in (0, 408, 429) or 500 <= status_code < 600:
        return DeliveryStatus.TRANSIENT_FAILURE
    return DeliveryStatus.UNKNOWN


@dataclass(frozen=True)
class TelegramOptions:
    bot_token: str
    chat_id: str
    timeout: float = 10.0
    max_retries: int = 3
    initial_retry_delay: float = 1.0
    max_retry_delay: float = 30.0

    def __post_init__(self) -> None:
        if not self.bot_token.strip():
            raise ValueError("Telegram bot token must not be empty")
        if not self.chat_id.strip():
            raise ValueError("Telegram chat_id must not be empty")
        if self.timeout <= 0:
            raise ValueError("Telegram timeout must be positive")
        if self.max_retries < 1:
            raise ValueError("Telegram max_retries must be at least 1")


class TelegramMessenger(Messenger):
    """
    USAGE:
        messenger = TelegramMessenger(TelegramOptions(bot_token="123:abc", chat_id="42"))
        status = messenger.send_message("*Closing done*")
    """

    name = "telegram"

    def __init__(self, config: TelegramOptions):
        self.config = config
        self.logger = get_logger(LogStream.NOTIFY)
        self._url = f"{TELEGRAM_API_URL}/bot{config.bot_token}/sendMessage"

    def send_message(self, text: str) -> DeliveryStatus:
        payload = {
            "chat_id": self.config.chat_id,
            "text": text,
            "parse_mode": "Markdown",
            "disable_web_page_preview": "true",
        }

        delay = self.config.initial_retry_delay
        status = DeliveryStatus.UNKNOWN

        attempt = 0
        while attempt < self.config.max_retries:
            retry_after = 0.0
            try:
                response = requests.post(self._url, data=payload, timeout=self.config.timeout)
                body = self._json(response)
                status = classify_telegram_status(response.status_code)
                description = body.get("description", "")

                if (
                    status == DeliveryStatus.BAD_RECIPIENT
                    and "parse entities" in description
                    and "parse_mode" in payload
                ):
                    # Markdown rejected: resend once as plain text, outside the retry budget
                    self.logger.warning("Telegram rejected Markdown, resending as plain text")
                    payload.pop("parse_mode", None)
                    continue

                retry_after = retry_after_seconds((body.get("parameters") or {}).get("retry_after"))
            except requests.RequestException as e:
                status = DeliveryStatus.TRANSIENT_FAILURE
                description = str(e)

            attempt += 1
            if status != DeliveryStatus.TRANSIENT_FAILURE or attempt == self.config.max_retries:
                break

            wait = max(delay, retry_after)
            self.logger.warning(
                "Telegram send failed (attempt %d/%d): %s, retrying in %.1fs",
                attempt, self.config.max_retries, description, wait,
            )
            time.sleep(wait)
            delay = min(delay * 2, self.config.max_retry_delay)

        self._log_outcome(status)
        return status

    @staticmethod
    def _json(response: requests.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def _log_outcome(self, status: DeliveryStatus) -> None:
        if status == DeliveryStatus.OK:
            self.logger.debug("Telegram message sent", extra={"chat_id": self.config.chat_id})
        elif status == DeliveryStatus.AUTH_FAILURE:
            self.logger.error("Telegram error: bot token rejected")
        elif status == DeliveryStatus.BAD_RECIPIENT:
            self.logger.error("Telegram error: chat id rejected", extra={"chat_id": self.config.chat_id})
        elif status == DeliveryStatus.TRANSIENT_FAILURE:
            self.logger.error("Telegram unreachable, message dropped")
        else:
            self.logger.error("Telegram error: unexpected response")
