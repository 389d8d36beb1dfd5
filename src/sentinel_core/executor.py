"""Run one external command to completion and capture its output."""

import logging
import subprocess
import time
from pathlib import Path

from sentinel_core.errors import SpawnError
from sentinel_core.models import ExecutionResult

logger = logging.getLogger(__name__)


class Executor:
    """Spawns commands without a shell and waits for them synchronously.

    There is no timeout: a command that never exits blocks the caller.
    """

    def __init__(self, cwd: str | Path | None = None):
        """Initialize executor.

        Args:
            cwd: Working directory for spawned commands (None for the current one)
        """
        self.cwd = Path(cwd) if cwd is not None else None

    def run(self, program: str, args: tuple[str, ...] | list[str], path: str | Path) -> ExecutionResult:
        """Run ``program`` with ``args`` and buffer its output.

        Args:
            program: Executable name or path
            args: Argument list
            path: File that triggered the command (for logging)

        Returns:
            ExecutionResult; a non-zero exit code is reported, not raised

        Raises:
            SpawnError: If the process cannot be launched
        """
        logger.debug(f"Running {program} {' '.join(args)} for {path}")
        started = time.perf_counter()
        try:
            completed = subprocess.run(
                [program, *args],
                capture_output=True,
                check=False,
                cwd=self.cwd,
            )
        except OSError as e:
            raise SpawnError(program, args, e.strerror or str(e)) from e
        except ValueError as e:
            # e.g. an embedded null byte in an argument
            raise SpawnError(program, args, str(e)) from e
        elapsed = time.perf_counter() - started

        if completed.returncode != 0:
            logger.debug(f"{program} exited with {completed.returncode} after {elapsed:.2f}s")
        return ExecutionResult(
            stdout=completed.stdout,
            stderr=completed.stderr,
            elapsed=elapsed,
            returncode=completed.returncode,
        )
