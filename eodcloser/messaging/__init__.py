"""
Notification delivery (Telegram, Discord, log-only).
"""

from .base import DeliveryStatus, Messenger, NullMessenger
from .telegram import TelegramOptions, TelegramMessenger, classify_telegram_status
from .discord import DiscordWebhookMessenger, classify_discord_status

__all__ = [
    "DeliveryStatus",
    "Messenger",
    "NullMessenger",
    "TelegramOptions",
    "TelegramMessenger",
    "classify_telegram_status",
    "DiscordWebhookMessenger",
    "classify_discord_status",
]
