"""Notification payload and channel interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, Dict

from pydantic import BaseModel, Field


class NotificationLevel(str, Enum):
    """Severity of a notification."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class Notification(BaseModel):
    """Notification payload structure."""

    message: str
    level: NotificationLevel = NotificationLevel.INFO
    timestamp: str = Field(default_factory=lambda: datetime.now().astimezone().isoformat())
    metadata: Dict[str, Any] = Field(default_factory=dict)


class NotificationChannel(ABC):
    """A single delivery channel (console, chat bot, ...)."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Channel identifier used for routing (e.g. 'console')."""
        pass

    @abstractmethod
    async def send(self, notification: Notification) -> None:
        """Deliver one notification.

        Raises:
            NotificationError: If delivery fails
        """
        pass
