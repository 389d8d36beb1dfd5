"""Render pipeline results for humans.

The core calls ``Reporter.report`` once per dispatched change, after the
watch has been resumed. Nothing it does feeds back into control flow.
"""

from collections.abc import Sequence
from datetime import datetime
from pathlib import Path
from typing import Protocol

from rich.console import Console
from rich.text import Text

from sentinel_core.models import CommandRun


class Reporter(Protocol):
    """Protocol for result reporting - host can provide custom implementation."""

    def report(self, timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> None:
        """Report the commands run for one changed file.

        Args:
            timestamp: When the change was observed
            path: File that changed
            runs: One entry per configured command, in run order
        """
        ...


class NullReporter:
    """Discards all reports."""

    def report(self, timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> None:
        pass


def format_elapsed(seconds: float) -> str:
    """Format a duration for display (e.g. "12.34ms", "1.50s")."""
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    return f"{seconds:.2f}s"


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").rstrip("\n")


def render_report(timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> list[Text]:
    """Render one report as styled lines.

    Layout:
        [HH:MM:SS] - File changed: <path>
        Running command: <program> <args> ✓ (<elapsed>)
        stdout: ...
        stderr: ...

    Args:
        timestamp: When the change was observed
        path: File that changed
        runs: Command runs in order

    Returns:
        List of rich Text lines
    """
    lines = [
        Text.assemble(
            (f"[{timestamp:%H:%M:%S}]", "bold magenta"),
            " - File changed: ",
            (str(path), "bold cyan"),
        )
    ]

    for run in runs:
        line = Text.assemble(
            "Running command: ",
            (run.command.program, "bold cyan"),
            " ",
            (" ".join(run.command.args), "bold yellow"),
        )
        if run.error is not None:
            line.append(" ✗", style="bold red")
            lines.append(line)
            lines.append(Text(f"Error: {run.error}", style="red"))
            continue

        result = run.result
        if result.success:
            line.append(" ✓", style="bold green")
            line.append(f" ({format_elapsed(result.elapsed)})")
        else:
            line.append(" ✗", style="bold red")
            line.append(f" (exit {result.returncode}, {format_elapsed(result.elapsed)})")
        lines.append(line)

        if result.stdout:
            lines.append(Text(f"stdout: {_decode(result.stdout)}"))
        if result.stderr:
            lines.append(Text(f"stderr: {_decode(result.stderr)}", style="yellow"))

    return lines


class ConsoleReporter:
    """Prints reports to the terminal with rich."""

    def __init__(self, console: Console | None = None):
        """Initialize reporter.

        Args:
            console: Rich console to print to (defaults to stdout)
        """
        self.console = console or Console(highlight=False)

    def report(self, timestamp: datetime, path: Path, runs: Sequence[CommandRun]) -> None:
        for line in render_report(timestamp, path, runs):
            self.console.print(line)
