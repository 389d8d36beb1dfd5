"""Watch controller: owns the watchdog subscription for the watch root."""

import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver, ObservedWatch

from sentinel_core.errors import SuspendResumeError, WatchInitError
from sentinel_core.models import RawEvent, RawEventKind, WatchRoot

logger = logging.getLogger(__name__)

_KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_MODIFIED: RawEventKind.DATA_MODIFIED,
    EVENT_TYPE_CREATED: RawEventKind.CREATED,
    EVENT_TYPE_DELETED: RawEventKind.DELETED,
    EVENT_TYPE_MOVED: RawEventKind.RENAMED,
}


def data_changed(path: Path) -> bool:
    """Tell a content write apart from a metadata-only change (chmod, chown, xattr).

    A write stamps mtime and ctime with the same instant; a metadata change
    moves ctime alone. A file that can no longer be stat'ed has nothing to
    process.
    """
    try:
        st = os.stat(path)
    except OSError:
        return False
    if os.name == "nt":
        # st_ctime is the creation time on Windows
        return True
    return st.st_ctime_ns == st.st_mtime_ns


def to_raw_event(event: FileSystemEvent) -> RawEvent:
    """Translate a watchdog event into a RawEvent.

    Directory events, event types without a mapping (opened, closed, ...)
    and modifications that left the file data untouched become
    ``RawEventKind.OTHER``.
    """
    paths = [Path(os.fsdecode(event.src_path))]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(Path(os.fsdecode(dest_path)))

    if event.is_directory:
        kind = RawEventKind.OTHER
    else:
        kind = _KIND_BY_EVENT_TYPE.get(event.event_type, RawEventKind.OTHER)
    if kind is RawEventKind.DATA_MODIFIED and not data_changed(paths[0]):
        kind = RawEventKind.OTHER
    return RawEvent(kind=kind, paths=tuple(paths))


class _ForwardingHandler(FileSystemEventHandler):
    """Forwards every watchdog event while the root is being watched."""

    def __init__(self, watch_root: WatchRoot, on_event: Callable[[RawEvent], object]):
        self.watch_root = watch_root
        self.on_event = on_event

    def on_any_event(self, event: FileSystemEvent) -> None:
        if not self.watch_root.watching:
            return
        self.on_event(to_raw_event(event))


class WatchController:
    """Recursive watch on a single root that can be suspended and resumed.

    The only component that talks to watchdog. Suspension unschedules the
    whole root, so changes made anywhere in the tree while suspended are lost
    rather than queued.
    """

    def __init__(
        self,
        watch_root: WatchRoot,
        on_event: Callable[[RawEvent], object],
        observer_factory: Callable[[], BaseObserver] = Observer,
    ):
        """Initialize watch controller.

        Args:
            watch_root: Shared watch state (path and liveness flag)
            on_event: Called on the observer thread for each RawEvent
            observer_factory: Creates the watchdog observer
        """
        self.watch_root = watch_root
        self._handler = _ForwardingHandler(watch_root, on_event)
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._watch: ObservedWatch | None = None

    @property
    def is_started(self) -> bool:
        return self._observer is not None

    @property
    def is_watching(self) -> bool:
        return self.watch_root.watching

    def start(self, root: str | Path | None = None) -> None:
        """Begin recursive observation of ``root``.

        Args:
            root: Directory to watch (defaults to the watch root's path)

        Raises:
            WatchInitError: If the path does not exist or watchdog cannot subscribe
        """
        if self._observer is not None:
            logger.debug("Watch controller already started")
            return

        path = Path(root) if root is not None else self.watch_root.path
        if not path.exists():
            raise WatchInitError(path, "path does not exist")

        observer = self._observer_factory()
        try:
            watch = observer.schedule(self._handler, str(path), recursive=True)
            observer.start()
        except Exception as e:
            raise WatchInitError(path, str(e)) from e

        self._observer = observer
        self._watch = watch
        self.watch_root.path = path
        self.watch_root.watching = True
        logger.info(f"Watching {path} recursively")

    def suspend(self) -> None:
        """Stop delivering events for the root. No-op if not watching.

        Raises:
            SuspendResumeError: If watchdog fails to unschedule the root
        """
        if self._observer is None or not self.watch_root.watching:
            return

        # Cleared first: a producer blocked on a full queue sees it and lets go
        # of the observer lock that unschedule needs.
        self.watch_root.watching = False
        if self._watch is None:
            return
        try:
            self._observer.unschedule(self._watch)
        except Exception as e:
            raise SuspendResumeError("suspend", self.watch_root.path, str(e)) from e
        self._watch = None
        logger.debug(f"Suspended watch on {self.watch_root.path}")

    def resume(self) -> None:
        """Re-establish observation of the root. No-op if already watching.

        Raises:
            SuspendResumeError: If watchdog fails to reschedule the root
        """
        if self._observer is None or self.watch_root.watching:
            return

        # A failed suspend leaves the subscription in place; only the flag needs flipping.
        if self._watch is None:
            try:
                self._watch = self._observer.schedule(
                    self._handler, str(self.watch_root.path), recursive=True
                )
            except Exception as e:
                raise SuspendResumeError("resume", self.watch_root.path, str(e)) from e
        self.watch_root.watching = True
        logger.debug(f"Resumed watch on {self.watch_root.path}")

    def stop(self) -> None:
        """Stop the observer and release the subscription."""
        self.watch_root.watching = False
        observer = self._observer
        self._observer = None
        self._watch = None
        if observer is None:
            return
        observer.stop()
        if observer.is_alive():
            observer.join(timeout=2.0)
        logger.info(f"Stopped watching {self.watch_root.path}")
