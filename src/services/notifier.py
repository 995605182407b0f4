# src/services/notifier.py

"""Alert presentation boundary and the default console presenter."""

import logging
from typing import Any, Protocol

from rich.console import Console
from rich.panel import Panel

logger = logging.getLogger("pricewatch.notifier")


class Notifier(Protocol):
    """Presents an alert to the user."""

    def present(
        self,
        notification_id: str,
        title: str,
        message: str,
        metadata: dict[str, Any],
    ) -> None:
        """Show one alert."""
        ...


class ConsoleNotifier:
    """Render alerts as Rich panels on stderr."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(stderr=True)

    def present(
        self,
        notification_id: str,
        title: str,
        message: str,
        metadata: dict[str, Any],
    ) -> None:
        """Print the alert and log it."""
        url = metadata.get("url", "")
        body = f"{message}\n[dim]{url}[/dim]" if url else message
        self.console.print(
            Panel(body, title=f"[bold cyan]{title}[/bold cyan]", expand=False)
        )
        logger.info("Presented %s: %s", notification_id, message)
