"""Status notifications for sentinel_core.

Keeps the controller and dispatcher independent of how status messages are
shown. Command results do not go through here; they go to a Reporter.
"""

import logging
from typing import Protocol

from rich.console import Console
from rich.text import Text

logger = logging.getLogger(__name__)


class SentinelNotifier(Protocol):
    """Receives watch status: started, stopped, suspend/resume failures."""

    def info(self, message: str) -> None:
        """Informational message."""
        ...

    def warning(self, message: str) -> None:
        """Warning message."""
        ...

    def error(self, message: str) -> None:
        """Error message."""
        ...


class NoOpNotifier:
    """Silent notifier, the default when the controller is embedded."""

    def info(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass


class ConsoleNotifier:
    """Prints warnings and errors next to the reports on a rich console.

    Info messages only go to the log, so the terminal carries reports and
    problems, not chatter. Counts are kept so a host can tell whether the
    watch has been degraded since startup.
    """

    def __init__(self, console: Console | None = None):
        """Initialize notifier.

        Args:
            console: Console to print to (share the reporter's to keep output ordered)
        """
        self.console = console or Console(highlight=False)
        self.warning_count = 0
        self.error_count = 0

    def info(self, message: str) -> None:
        logger.info(message)

    def warning(self, message: str) -> None:
        self.warning_count += 1
        self.console.print(Text.assemble(("Warning: ", "yellow"), message))

    def error(self, message: str) -> None:
        self.error_count += 1
        self.console.print(Text.assemble(("Error: ", "bold red"), message))
