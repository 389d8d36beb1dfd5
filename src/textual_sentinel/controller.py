"""Non-Textual controller for the watch loop. Primary embed point."""

import logging
import queue
import threading
from collections.abc import Callable

from watchdog.observers.api import BaseObserver

from sentinel_core.config import SentinelConfig, validate_config
from sentinel_core.debouncer import Debouncer
from sentinel_core.dispatcher import Dispatcher
from sentinel_core.executor import Executor
from sentinel_core.models import ChangeEvent, CommandRun, ConfigValidationResult, WatchRoot
from sentinel_core.notifier import NoOpNotifier, SentinelNotifier
from sentinel_core.reporter import Reporter
from sentinel_core.watch_controller import WatchController

logger = logging.getLogger(__name__)


class SentinelController:
    """Wires watcher, debouncer, queue and dispatcher into one watch loop.

    Stable methods: start(), serve_forever(), serve_in_background(),
    process_next(), request_stop(), shutdown(), validate_config().

    One processing thread handles ChangeEvents one at a time. A stop request
    is honoured between events, never in the middle of a pipeline.
    """

    def __init__(
        self,
        config: SentinelConfig,
        reporter: Reporter | None = None,
        notifier: SentinelNotifier | None = None,
        executor: Executor | None = None,
        observer_factory: Callable[[], BaseObserver] | None = None,
    ):
        """Initialize controller.

        Args:
            config: Resolved configuration
            reporter: Receives pipeline results (defaults to discarding them)
            notifier: Optional status handler (defaults to NoOpNotifier - silent)
            executor: Runs commands (defaults to Executor())
            observer_factory: Creates the watchdog observer (defaults to watchdog's Observer)
        """
        self.config = config
        self.notifier = notifier or NoOpNotifier()
        self.watch_root = WatchRoot(path=config.root)
        self.events: queue.Queue[ChangeEvent] = queue.Queue(maxsize=config.watcher.queue_size)
        self.debouncer = Debouncer(
            self.events,
            window_ms=config.watcher.debounce_ms,
            watch_root=self.watch_root,
        )

        watcher_kwargs = {}
        if observer_factory is not None:
            watcher_kwargs["observer_factory"] = observer_factory
        self.watcher = WatchController(self.watch_root, self.debouncer.feed, **watcher_kwargs)

        self.dispatcher = Dispatcher(
            config.rules,
            self.watcher,
            executor=executor,
            reporter=reporter,
            notifier=self.notifier,
        )

        self.changes_handled = 0
        self._stop_requested = threading.Event()
        self._thread: threading.Thread | None = None

        # Outbound events (host wires these)
        self.on_change_handled: Callable[[ChangeEvent, list[CommandRun]], None] | None = None

    @property
    def is_watching(self) -> bool:
        return self.watch_root.watching

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested.is_set()

    def start(self) -> None:
        """Start watching the configured root.

        Raises:
            WatchInitError: If the root cannot be watched
        """
        if self.watcher.is_started:
            return
        self.watcher.start(self.config.root)
        self.notifier.info(f"Watching {self.config.root} for changes")

    def process_next(self, timeout: float | None = 0.2) -> bool:
        """Handle the next queued change, if one arrives within ``timeout``.

        Args:
            timeout: Seconds to wait (None blocks indefinitely)

        Returns:
            True if a change was handled
        """
        try:
            event = self.events.get(timeout=timeout)
        except queue.Empty:
            return False

        try:
            runs = self.dispatcher.handle(event)
        finally:
            self.events.task_done()

        if runs:
            self.changes_handled += 1
        if self.on_change_handled is not None:
            self.on_change_handled(event, runs)
        return True

    def serve_forever(self, poll_interval: float = 0.2) -> None:
        """Run the watch loop on the calling thread until a stop is requested.

        Raises:
            WatchInitError: If the watch cannot be started
        """
        self.start()
        logger.info("Watch loop started")
        try:
            while not self._stop_requested.is_set():
                try:
                    self.process_next(timeout=poll_interval)
                except Exception as e:
                    # The loop outlives any single change
                    logger.exception(f"Error while handling change: {e}")
                    self.notifier.error(f"Error while handling change: {e}")
        finally:
            logger.info(f"Watch loop stopped after {self.changes_handled} change(s)")

    def serve_in_background(self) -> threading.Thread:
        """Start the watch and run the loop on a daemon thread.

        Raises:
            WatchInitError: If the watch cannot be started
        """
        if self._thread is not None and self._thread.is_alive():
            return self._thread

        self.start()
        self._stop_requested.clear()
        self._thread = threading.Thread(target=self.serve_forever, name="SentinelLoop", daemon=True)
        self._thread.start()
        return self._thread

    def request_stop(self) -> None:
        """Ask the loop to exit after the change currently being handled."""
        self._stop_requested.set()

    def shutdown(self, timeout: float = 2.0) -> None:
        """Stop the loop, wait for it briefly, and release the watch."""
        self.request_stop()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("Watch loop still busy with a command; leaving it to finish")
        self._thread = None
        self.watcher.stop()
        self.notifier.info("Stopped watching")

    def validate_config(self) -> ConfigValidationResult:
        """Validate configuration and return structured results."""
        return validate_config(self.config)
