"""Textual TUI for sentinel.

Thin shell around SentinelController: the watch loop runs on a background
thread and reports are posted back to the app's event loop.
"""

import asyncio
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Footer, Header, RichLog, Static

from sentinel_core.config import SentinelConfig
from sentinel_core.errors import WatchInitError
from sentinel_core.models import ChangeEvent, CommandRun
from sentinel_core.reporter import render_report
from textual_sentinel.controller import SentinelController

logger = logging.getLogger(__name__)


def _post(loop: asyncio.AbstractEventLoop, callback: Callable[[], None]) -> None:
    """Schedule ``callback`` on the app loop from the watch thread."""
    try:
        loop.call_soon_threadsafe(callback)
    except RuntimeError:
        logger.debug("App event loop is closed; dropping update")


class TuiReporter:
    """Reporter that hands results to the app's event loop."""

    def __init__(self, app: "SentinelApp", loop: asyncio.AbstractEventLoop):
        self.app = app
        self.loop = loop

    def report(self, timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> None:
        runs = list(runs)
        _post(self.loop, lambda: self.app.show_report(timestamp, path, runs))


class TuiNotifier:
    """Notifier that shows status messages as Textual toasts."""

    def __init__(self, app: "SentinelApp", loop: asyncio.AbstractEventLoop):
        self.app = app
        self.loop = loop

    def info(self, message: str) -> None:
        _post(self.loop, lambda: self.app.notify(message, severity="information"))

    def warning(self, message: str) -> None:
        _post(self.loop, lambda: self.app.notify(message, severity="warning"))

    def error(self, message: str) -> None:
        _post(self.loop, lambda: self.app.notify(message, severity="error"))


class HelpScreen(ModalScreen):
    """Modal help screen listing rules and shortcuts."""

    BINDINGS = [("escape", "dismiss", "Close")]

    def __init__(self, config: SentinelConfig, **kwargs):
        """Initialize help screen.

        Args:
            config: Active configuration
        """
        super().__init__(**kwargs)
        self.sentinel_config = config

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static("sentinel", classes="help-header")
            yield Static(f"Watching: {self.sentinel_config.root}")
            source = self.sentinel_config.source or "built-in defaults"
            yield Static(f"Config: {source}")
            yield Static("")

            if self.sentinel_config.rules:
                yield Static("Rules", classes="help-header")
                for extension, templates in sorted(self.sentinel_config.rules.items()):
                    yield Static(f"  .{extension}")
                    for template in templates:
                        yield Static(f"      {template}")
            else:
                yield Static("No rules configured.", classes="help-header")
            yield Static("")

            yield Static("Shortcuts", classes="help-header")
            yield Static("  [c] - Clear results")
            yield Static("  [h] - Show this help")
            yield Static("  [q] - Quit")
            yield Static("")
            yield Static("Press ESC to close", classes="help-footer")


class SentinelApp(App):
    """TUI showing each changed file and the output of its commands."""

    TITLE = "sentinel"
    BINDINGS = [
        Binding("c", "clear_log", "Clear"),
        Binding("h", "show_help", "Help"),
        Binding("q", "quit", "Quit"),
    ]

    CSS = """
    Screen {
        layout: vertical;
    }

    #status {
        height: 1;
        padding: 0 1;
        background: $panel;
    }

    #results {
        height: 1fr;
        border: solid $accent;
    }

    HelpScreen {
        align: center middle;
    }

    HelpScreen > Vertical {
        width: 70;
        height: auto;
        background: $panel;
        border: solid $accent;
        padding: 1 2;
    }

    .help-header {
        text-style: bold;
        color: $accent;
    }

    .help-footer {
        text-style: italic;
        color: $text-muted;
    }
    """

    def __init__(
        self,
        config: SentinelConfig,
        controller_factory: Callable[..., SentinelController] = SentinelController,
        **kwargs,
    ):
        """Initialize app.

        Args:
            config: Resolved configuration
            controller_factory: Builds the controller (override for tests)
        """
        super().__init__(**kwargs)
        self.sentinel_config = config
        self._controller_factory = controller_factory
        self.controller: SentinelController | None = None
        self._ui_loop: asyncio.AbstractEventLoop | None = None
        self.reports_shown = 0
        self.startup_error: str | None = None
        self.status_line: Static | None = None
        self.results_log: RichLog | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        self.status_line = Static("Starting...", id="status")
        yield self.status_line
        self.results_log = RichLog(id="results", highlight=False, markup=False, wrap=True)
        yield self.results_log
        yield Footer()

    async def on_mount(self) -> None:
        """Create the controller and start the watch loop."""
        loop = asyncio.get_running_loop()
        self._ui_loop = loop
        self.sub_title = str(self.sentinel_config.root)
        self.controller = self._controller_factory(
            self.sentinel_config,
            reporter=TuiReporter(self, loop),
            notifier=TuiNotifier(self, loop),
        )
        self.controller.on_change_handled = self._on_change_handled

        for warning in self.controller.validate_config().warnings:
            self.notify(warning, severity="warning")

        try:
            self.controller.serve_in_background()
        except WatchInitError as e:
            logger.error(f"Failed to start watching: {e}")
            self.startup_error = str(e)
            self.exit(message=f"Error: {e}")
            return

        self._refresh_status()

    async def on_unmount(self) -> None:
        """Stop the watch loop on exit."""
        if self.controller:
            self.controller.shutdown()

    def show_report(self, timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> None:
        """Append one report to the results log.

        Args:
            timestamp: When the change was observed
            path: File that changed
            runs: Command runs in order
        """
        for line in render_report(timestamp, path, runs):
            self.results_log.write(line)
        self.reports_shown += 1
        self._refresh_status()

    def _on_change_handled(self, event: ChangeEvent, runs: list[CommandRun]) -> None:
        # Called on the watch thread
        if self._ui_loop is not None:
            _post(self._ui_loop, self._refresh_status)

    def _status_text(self) -> str:
        if self.controller is None:
            return "Not started"
        if self.controller.is_watching:
            state = "watching"
        elif self.controller.stop_requested:
            state = "stopping"
        else:
            state = "running commands"
        return f"{self.sentinel_config.root} | {state} | {self.controller.changes_handled} change(s) handled"

    def _refresh_status(self) -> None:
        if self.status_line is not None:
            self.status_line.update(self._status_text())

    def action_clear_log(self) -> None:
        """Clear the results log."""
        if self.results_log is not None:
            self.results_log.clear()

    def action_show_help(self) -> None:
        """Show help screen."""
        self.push_screen(HelpScreen(self.sentinel_config))

    async def action_quit(self) -> None:
        """Quit application. A running pipeline finishes first."""
        if self.controller:
            self.controller.request_stop()
        self.exit()
