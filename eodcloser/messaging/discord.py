"""
Discord webhook messenger.

Posts plain content to a channel webhook. No bot token is needed for
sending; the webhook URL is the credential.
"""

from __future__ import annotations

import time
from typing import Optional

import requests

from eodcloser.logging import get_logger, LogStream

from .base import DeliveryStatus, Messenger, retry_after_seconds


DISCORD_CONTENT_LIMIT = 2000


def classify_discord_status(status_code: int) -> DeliveryStatus:
    if status_code in (200, 204):
        return DeliveryStatus.OK
    if status_code in (401, 403):
        return DeliveryStatus.AUTH_FAILURE
    if status_code == 404:
        # deleted webhook / channel
        return DeliveryStatus.BAD_RECIPIENT
    if status_code == 429 or 500 <= status_code < 600:
        return DeliveryStatus.TRANSIENT_FAILURE
    return DeliveryStatus.UNKNOWN


class DiscordWebhookMessenger(Messenger):
    """
    USAGE:
        messenger = DiscordWebhookMessenger("https://discord.com/api/webhooks/...")
        messenger.send_message("**Closing done**")
    """

    name = "discord"

    def __init__(self, webhook_url: str, timeout: float = 10.0, retries: int = 3):
        if not webhook_url:
            raise ValueError("Discord webhook URL must not be empty")
        self.webhook_url = webhook_url
        self.timeout = timeout
        self.retries = max(1, retries)
        self.logger = get_logger(LogStream.NOTIFY)

    def send_message(self, text: str) -> DeliveryStatus:
        payload = {"content": text[:DISCORD_CONTENT_LIMIT]}
        status = DeliveryStatus.UNKNOWN

        for attempt in range(self.retries):
            retry_after: Optional[float] = None
            try:
                response = requests.post(self.webhook_url, json=payload, timeout=self.timeout)
                status = classify_discord_status(response.status_code)
                if status == DeliveryStatus.TRANSIENT_FAILURE:
                    retry_after = retry_after_seconds(response.headers.get("Retry-After"))
            except requests.RequestException as e:
                status = DeliveryStatus.TRANSIENT_FAILURE
                self.logger.warning(f"Webhook send failed (attempt {attempt+1})", extra={
                    "error": str(e)
                })

            if status != DeliveryStatus.TRANSIENT_FAILURE or attempt == self.retries - 1:
                break

            wait = max(retry_after or 0, 2 ** attempt)
            self.logger.warning(f"Discord unavailable, retry after {wait}s")
            time.sleep(wait)

        if status == DeliveryStatus.OK:
            self.logger.debug("Discord message sent")
        else:
            self.logger.error(f"Discord webhook error: {status.value}")
        return status
