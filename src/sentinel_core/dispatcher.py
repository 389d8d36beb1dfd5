"""Map a ChangeEvent to its command pipeline and run it."""

import logging
from pathlib import Path

from sentinel_core.errors import SpawnError, SuspendResumeError
from sentinel_core.executor import Executor
from sentinel_core.models import ChangeEvent, CommandRun
from sentinel_core.notifier import NoOpNotifier, SentinelNotifier
from sentinel_core.reporter import NullReporter, Reporter
from sentinel_core.rules import RuleTable, resolve_command
from sentinel_core.watchers import SuspendableWatcher

logger = logging.getLogger(__name__)


class Dispatcher:
    """Runs the configured pipeline for each changed file.

    For a matching file the watch is suspended exactly once, every command
    runs in order (a failure never aborts the rest), the watch is resumed
    exactly once, and the results are handed to the reporter. Files with no
    rule cause no suspend, no resume and no report.
    """

    def __init__(
        self,
        rules: RuleTable,
        watcher: SuspendableWatcher,
        executor: Executor | None = None,
        reporter: Reporter | None = None,
        notifier: SentinelNotifier | None = None,
    ):
        """Initialize dispatcher.

        Args:
            rules: Extension -> command templates
            watcher: Watch to suspend while commands run
            executor: Runs individual commands
            reporter: Receives the results of each pipeline
            notifier: Receives suspend/resume failures
        """
        self.rules = rules
        self.watcher = watcher
        self.executor = executor or Executor()
        self.reporter = reporter or NullReporter()
        self.notifier = notifier or NoOpNotifier()

    def handle(self, event: ChangeEvent) -> list[CommandRun]:
        """Run the pipeline for one changed file.

        Never raises for a bad command or a watch toggle failure.

        Args:
            event: Deduplicated change event

        Returns:
            One CommandRun per command attempted (empty if no rule matched)
        """
        templates = self.rules.templates_for(event.path)
        if not templates:
            logger.debug(f"No commands configured for {event.path}")
            return []

        logger.info(f"File changed: {event.path} ({len(templates)} command(s))")
        runs: list[CommandRun] = []

        self._toggle_watch("suspend")
        try:
            for template in templates:
                run = self._run_template(template, event.path)
                if run is not None:
                    runs.append(run)
        finally:
            self._toggle_watch("resume")

        self._report(event, runs)
        return runs

    def _run_template(self, template: str, path: Path) -> CommandRun | None:
        command = resolve_command(template, path)
        if command is None:
            logger.warning(f"Skipping blank command template {template!r}")
            return None

        try:
            result = self.executor.run(command.program, command.args, path)
        except SpawnError as e:
            logger.warning(f"{e}")
            return CommandRun(command=command, error=e)
        return CommandRun(command=command, result=result)

    def _toggle_watch(self, operation: str) -> None:
        toggle = self.watcher.suspend if operation == "suspend" else self.watcher.resume
        try:
            toggle()
        except SuspendResumeError as e:
            logger.error(f"{e}")
            self.notifier.error(str(e))

    def _report(self, event: ChangeEvent, runs: list[CommandRun]) -> None:
        try:
            self.reporter.report(event.observed_at, event.path, runs)
        except Exception as e:
            logger.error(f"Reporter failed for {event.path}: {e}", exc_info=True)
