"""Console notification channel."""

from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..errors import NotificationError
from .base import Notification, NotificationChannel, NotificationLevel

LEVEL_STYLES = {
    NotificationLevel.INFO: "cyan",
    NotificationLevel.WARNING: "yellow",
    NotificationLevel.ERROR: "bold red",
}


class ConsoleChannel(NotificationChannel):
    """Prints notifications to stderr with rich markup."""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console(stderr=True)

    @property
    def name(self) -> str:
        return "console"

    async def send(self, notification: Notification) -> None:
        style = LEVEL_STYLES.get(notification.level, "white")
        label = notification.level.value.upper()
        try:
            # Caller text is printed literally, never parsed as markup
            self.console.print(
                f"[{style}]{label}[/{style}] {escape(notification.message)}",
                markup=True,
                highlight=False,
            )
            for key, value in notification.metadata.items():
                self.console.print(
                    f"  [dim]{escape(str(key))}:[/dim] {escape(str(value))}", highlight=False
                )
        except OSError as e:
            raise NotificationError(f"Console notification failed: {e}") from e
