"""Exception types raised by the sentinel core."""

from pathlib import Path


class SentinelError(Exception):
    """Base class for all sentinel errors."""


class ConfigError(SentinelError):
    """Raised when a configuration file is missing or invalid."""


class WatchInitError(SentinelError):
    """Raised when the watch root cannot be observed. Fatal at startup."""

    def __init__(self, path: str | Path, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot watch {self.path}: {reason}")


class SuspendResumeError(SentinelError):
    """Raised when toggling the OS watch subscription fails.

    Callers log it and keep going: a failed suspend risks a feedback loop,
    a failed resume risks missed events, neither is worth crashing for.
    """

    def __init__(self, operation: str, path: str | Path, reason: str):
        self.operation = operation
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to {operation} watch on {self.path}: {reason}")


class SpawnError(SentinelError):
    """Raised when a command cannot be launched (missing binary, no permission)."""

    def __init__(self, program: str, args: tuple[str, ...] | list[str], reason: str):
        self.program = program
        self.args_list = tuple(args)
        self.reason = reason
        super().__init__(f"Failed to run '{program}': {reason}")
