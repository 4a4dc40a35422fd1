"""Notification channels for reporting transcription outcomes.

Provides a channel interface, a rich-based console channel and a
dispatcher that fans messages out with per-channel success reporting.
"""

from .base import Notification, NotificationChannel, NotificationLevel
from .console import ConsoleChannel
from .dispatcher import NotificationDispatcher

__all__ = [
    "Notification",
    "NotificationChannel",
    "NotificationLevel",
    "ConsoleChannel",
    "NotificationDispatcher",
]
