"""Notification dispatcher routing messages to registered channels."""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

from ..errors import NotificationError
from ..logging import get_logger
from .base import Notification, NotificationChannel, NotificationLevel

logger = get_logger(__name__)


class NotificationDispatcher:
    """Manages notification channels and fans messages out to them.

    Delivery failures, including unexpected exceptions from a channel, are
    logged and reported per channel. They are never raised to the caller.
    """

    def __init__(self, channels: Iterable[NotificationChannel] = ()):
        """Initialize dispatcher."""
        self.channels: Dict[str, NotificationChannel] = {}
        for channel in channels:
            self.register(channel)

    def register(self, channel: NotificationChannel) -> None:
        """Register a channel (replaces one with the same name)."""
        self.channels[channel.name] = channel
        logger.info("Notification channel registered", channel=channel.name)

    async def send(
        self,
        channel: str,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        level: NotificationLevel = NotificationLevel.INFO,
    ) -> bool:
        """Deliver a message to one named channel.

        Returns:
            True if delivery succeeded, False otherwise (including unknown channel)
        """
        target = self.channels.get(channel)
        if target is None:
            logger.warning("Unknown notification channel", channel=channel)
            return False

        notification = Notification(message=message, level=level, metadata=metadata or {})
        return await self._deliver(target, notification)

    async def notify(
        self,
        message: str,
        metadata: Optional[Dict[str, Any]] = None,
        level: NotificationLevel = NotificationLevel.INFO,
        channels: Optional[List[str]] = None,
    ) -> Dict[str, bool]:
        """Send a message to several channels concurrently.

        Args:
            message: Notification text
            metadata: Optional structured context
            level: Severity
            channels: Channel names to target (None = all registered)

        Returns:
            Mapping of channel name to delivery success
        """
        names = channels if channels is not None else list(self.channels)
        if not names:
            logger.debug("No notification channels registered, skipping notification")
            return {}

        results = await asyncio.gather(
            *(self.send(name, message, metadata=metadata, level=level) for name in names),
            return_exceptions=True,
        )
        outcome = {name: result is True for name, result in zip(names, results)}

        logger.info(
            "Notifications sent",
            successful=sum(1 for ok in outcome.values() if ok),
            total=len(outcome),
        )
        return outcome

    async def _deliver(self, channel: NotificationChannel, notification: Notification) -> bool:
        try:
            await channel.send(notification)
        except NotificationError as e:
            logger.error("Notification delivery failed", channel=channel.name, error=str(e))
            return False
        except Exception as e:  # noqa: BLE001
            logger.exception(
                "Notification channel crashed",
                channel=channel.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False
        return True
