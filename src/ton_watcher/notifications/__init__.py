"""Notifications - fan-out of rendered transactions to Telegram chats.

Provides:
- ``NotificationDispatcher`` - per-recipient isolated fan-out
- ``TelegramTransport`` - Bot API ``sendMessage`` delivery
"""

from __future__ import annotations

from ton_watcher.notifications.dispatcher import (
    DispatchReport,
    MessageTransport,
    NotificationDispatcher,
)
from ton_watcher.notifications.telegram import TelegramTransport

__all__ = [
    "DispatchReport",
    "MessageTransport",
    "NotificationDispatcher",
    "TelegramTransport",
]
