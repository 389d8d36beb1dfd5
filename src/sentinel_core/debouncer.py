"""Coalesce raw filesystem notifications into ChangeEvents."""

import logging
import queue
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from sentinel_core.models import ChangeEvent, RawEvent, RawEventKind, WatchRoot

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 500
DEFAULT_QUEUE_SIZE = 100

# How often a producer blocked on a full queue re-checks the watch state
_PUT_POLL_SECONDS = 0.1


class Debouncer:
    """Turn a noisy RawEvent stream into one ChangeEvent per logical edit.

    State is a single slot holding the most recently emitted path and the
    monotonic time it was emitted. A data modification to that same path
    inside the window is dropped; anything else passes. Edits to two
    different paths are therefore never debounced against each other.

    ``feed`` is called from the watchdog observer thread. Emitted events go to
    a bounded queue; a full queue blocks the caller instead of dropping the
    change, unless the watch root stops watching while it waits.
    """

    def __init__(
        self,
        sink: "queue.Queue[ChangeEvent] | None" = None,
        window_ms: int = DEFAULT_DEBOUNCE_MS,
        watch_root: WatchRoot | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize debouncer.

        Args:
            sink: Bounded queue consumed by the dispatcher (None to only return events)
            window_ms: Debounce window in milliseconds
            watch_root: Shared watch state; a blocked put is abandoned once it stops watching
            clock: Monotonic clock in seconds, injectable for tests
        """
        self.sink = sink
        self.window_ms = window_ms
        self.watch_root = watch_root
        self._clock = clock
        self._lock = threading.Lock()
        self._last: tuple[Path, float] | None = None

    @property
    def window(self) -> float:
        """Debounce window in seconds."""
        return self.window_ms / 1000.0

    def feed(self, raw: RawEvent) -> ChangeEvent | None:
        """Process one RawEvent.

        Args:
            raw: Notification from the watch controller

        Returns:
            The emitted ChangeEvent, or None if the event was discarded
        """
        if raw.kind is not RawEventKind.DATA_MODIFIED:
            return None

        path = raw.path
        now = self._clock()
        with self._lock:
            if self._last is not None:
                last_path, last_time = self._last
                if last_path == path and (now - last_time) < self.window:
                    logger.debug(f"Debounced duplicate modification of {path}")
                    return None
            self._last = (path, now)

        event = ChangeEvent(path=path, observed_at=datetime.now())
        if self.sink is not None and not self._enqueue(event):
            # An undelivered change does not debounce later ones
            with self._lock:
                if self._last == (path, now):
                    self._last = None
            return None
        return event

    def reset(self) -> None:
        """Forget the last emitted event."""
        with self._lock:
            self._last = None

    def _enqueue(self, event: ChangeEvent) -> bool:
        """Put ``event`` on the sink, blocking while the queue is full."""
        while True:
            try:
                self.sink.put(event, timeout=_PUT_POLL_SECONDS)
                return True
            except queue.Full:
                if self.watch_root is not None and not self.watch_root.watching:
                    logger.warning(f"Watch suspended while queue full; dropping change to {event.path}")
                    return False
