"""Shared data models for sentinel_core."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from sentinel_core.errors import SpawnError


class RawEventKind(str, Enum):
    """Kinds of OS-level notifications the watch controller forwards."""

    DATA_MODIFIED = "data_modified"
    CREATED = "created"
    DELETED = "deleted"
    RENAMED = "renamed"
    OTHER = "other"


@dataclass
class WatchRoot:
    """The single watched root and its liveness flag.

    One instance is shared by reference between the watch controller and the
    debouncer. Only the watch controller flips ``watching``.
    """

    path: Path
    """Directory under recursive observation."""

    watching: bool = False
    """True while the OS subscription is active."""


@dataclass(frozen=True)
class RawEvent:
    """An OS notification, consumed immediately by the debouncer."""

    kind: RawEventKind
    """What happened to the path(s)."""

    paths: tuple[Path, ...]
    """Affected paths. Renames carry (source, destination)."""

    @property
    def path(self) -> Path:
        """First affected path."""
        return self.paths[0]


@dataclass(frozen=True)
class ChangeEvent:
    """A deduplicated "file changed" event, consumed by the dispatcher."""

    path: Path
    """Path of the file whose contents changed."""

    observed_at: datetime = field(default_factory=datetime.now)
    """Wall-clock time the change was accepted by the debouncer."""


@dataclass(frozen=True)
class ResolvedCommand:
    """A command template after ``{file}`` substitution and splitting."""

    program: str
    args: tuple[str, ...] = ()

    def display(self) -> str:
        """Render as it would be typed in a shell (no quoting)."""
        return " ".join((self.program, *self.args))


@dataclass(frozen=True)
class ExecutionResult:
    """Outcome of running one command to completion."""

    stdout: bytes
    """Captured standard output."""

    stderr: bytes
    """Captured standard error."""

    elapsed: float
    """Wall-clock duration in seconds."""

    returncode: int
    """Exit status. Non-zero is data, not an error."""

    @property
    def success(self) -> bool:
        return self.returncode == 0


@dataclass(frozen=True)
class CommandRun:
    """One entry of a dispatched pipeline, handed to the reporter.

    Exactly one of ``result`` and ``error`` is set.
    """

    command: ResolvedCommand
    result: ExecutionResult | None = None
    error: SpawnError | None = None

    @property
    def succeeded(self) -> bool:
        return self.result is not None and self.result.success


@dataclass
class ConfigValidationResult:
    """Results from startup configuration validation.

    Built by ``validate_config``, consumed by the CLI and TUI for display only.
    """

    rules_loaded: int = 0
    """Number of extensions with at least one command."""

    commands_loaded: int = 0
    """Total number of command templates across all extensions."""

    warnings: list[str] = field(default_factory=list)
    """Config issues found (non-fatal)."""

    errors: list[str] = field(default_factory=list)
    """Config errors (should be fatal)."""
