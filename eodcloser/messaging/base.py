"""
Messaging interface.

Delivery is best effort: messengers report a DeliveryStatus and never raise
for transport or API failures.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from eodcloser.logging import get_logger, LogStream


class DeliveryStatus(str, Enum):
    OK = "OK"
    AUTH_FAILURE = "AUTH_FAILURE"              # bad bot token / webhook credentials
    BAD_RECIPIENT = "BAD_RECIPIENT"            # chat id or channel rejected
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"    # rate limit, 5xx, network
    UNKNOWN = "UNKNOWN"

    @property
    def ok(self) -> bool:
        return self is DeliveryStatus.OK


def retry_after_seconds(value: Any) -> float:
    """Seconds from a Retry-After header or a retry_after field; 0 when absent or unparsable."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    # float() accepts "nan" and "inf"
    if not 0 <= seconds < float("inf"):
        return 0.0
    return seconds


class Messenger(ABC):
    """Sends a plain text notification."""

    name: str = "messenger"

    @abstractmethod
    def send_message(self, text: str) -> DeliveryStatus:
        pass


class NullMessenger(Messenger):
    """Logs instead of sending (notifications disabled or dry run)."""

    name = "log-only"

    def __init__(self, reason: str = "notifications disabled"):
        self.reason = reason
        self.logger = get_logger(LogStream.NOTIFY)

    def send_message(self, text: str) -> DeliveryStatus:
        self.logger.info("Message not sent (%s):\n%s", self.reason, text)
        return DeliveryStatus.OK
