"""Watch settings and the protocol the dispatcher relies on."""

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from sentinel_core.debouncer import DEFAULT_DEBOUNCE_MS, DEFAULT_QUEUE_SIZE


@dataclass
class WatcherConfig:
    """Configuration for the file watcher."""

    dir: Path
    """Directory to watch recursively."""

    debounce_ms: int = DEFAULT_DEBOUNCE_MS
    """Debounce window in milliseconds."""

    queue_size: int = DEFAULT_QUEUE_SIZE
    """Capacity of the change queue between watcher and dispatcher."""


class SuspendableWatcher(Protocol):
    """Protocol for watch implementations the dispatcher can pause."""

    def start(self, root: str | Path | None = None) -> None:
        """Start watching."""
        ...

    def suspend(self) -> None:
        """Stop delivering events. Idempotent."""
        ...

    def resume(self) -> None:
        """Deliver events again. Idempotent."""
        ...

    def stop(self) -> None:
        """Stop watching for good."""
        ...
