"""Tests for sentinel_core.dispatcher."""

import sys
from pathlib import Path
from unittest.mock import Mock

import pytest
from conftest import FakeWatcher, RecordingExecutor

from sentinel_core.dispatcher import Dispatcher
from sentinel_core.errors import SpawnError
from sentinel_core.executor import Executor
from sentinel_core.models import ChangeEvent
from sentinel_core.rules import RuleTable

RULES = RuleTable({"py": ["ruff format {file}", "ruff check {file}"], "md": ["   "]})


@pytest.fixture
def dispatcher(fake_watcher, recording_executor, recording_reporter):
    return Dispatcher(RULES, fake_watcher, executor=recording_executor, reporter=recording_reporter)


def change(path):
    return ChangeEvent(path=Path(path))


class TestHandle:
    def test_runs_pipeline_in_order_inside_one_suspension(self, dispatcher, call_log):
        runs = dispatcher.handle(change("/p/a.py"))

        assert call_log == [
            "suspend",
            ("run", "ruff", ("format", "/p/a.py")),
            ("run", "ruff", ("check", "/p/a.py")),
            "resume",
            "report",
        ]
        assert [run.command.display() for run in runs] == ["ruff format /p/a.py", "ruff check /p/a.py"]
        assert all(run.succeeded for run in runs)

    def test_report_carries_event_details(self, dispatcher, recording_reporter):
        event = change("/p/a.py")
        runs = dispatcher.handle(event)

        assert recording_reporter.reports == [(event.observed_at, Path("/p/a.py"), runs)]

    def test_no_rule_means_no_side_effects(self, dispatcher, call_log):
        assert dispatcher.handle(change("/p/notes.txt")) == []
        assert call_log == []

    def test_no_extension_means_no_side_effects(self, dispatcher, call_log):
        assert dispatcher.handle(change("/p/Makefile")) == []
        assert call_log == []

    def test_failed_command_does_not_abort_pipeline(self, call_log, fake_watcher, recording_reporter):
        executor = RecordingExecutor(call_log, returncodes={"ruff": 1})
        dispatcher = Dispatcher(RULES, fake_watcher, executor=executor, reporter=recording_reporter)

        runs = dispatcher.handle(change("/p/a.py"))

        assert len(runs) == 2
        assert [run.result.returncode for run in runs] == [1, 1]
        assert call_log[-2:] == ["resume", "report"]

    def test_spawn_error_is_recorded_and_pipeline_continues(self, call_log, fake_watcher, recording_reporter):
        rules = RuleTable({"py": ["missing-tool {file}", "ruff check {file}"]})
        executor = RecordingExecutor(call_log, missing={"missing-tool"})
        dispatcher = Dispatcher(rules, fake_watcher, executor=executor, reporter=recording_reporter)

        runs = dispatcher.handle(change("/p/a.py"))

        assert isinstance(runs[0].error, SpawnError)
        assert runs[0].result is None
        assert not runs[0].succeeded
        assert runs[1].succeeded
        assert call_log.count("suspend") == 1
        assert call_log.count("resume") == 1

    def test_resume_happens_when_executor_raises_unexpectedly(self, call_log, fake_watcher):
        executor = Mock()
        executor.run.side_effect = RuntimeError("unexpected")
        dispatcher = Dispatcher(RULES, fake_watcher, executor=executor)

        with pytest.raises(RuntimeError):
            dispatcher.handle(change("/p/a.py"))

        assert call_log == ["suspend", "resume"]

    def test_blank_templates_are_skipped(self, dispatcher, call_log):
        assert dispatcher.handle(change("/p/README.md")) == []
        assert call_log == ["suspend", "resume", "report"]

    @pytest.mark.parametrize("fail_on", ["suspend", "resume"])
    def test_watch_toggle_failure_is_absorbed(self, call_log, recording_executor, fail_on):
        watcher = FakeWatcher(call_log, fail_on=fail_on)
        notifier = Mock()
        dispatcher = Dispatcher(RULES, watcher, executor=recording_executor, notifier=notifier)

        runs = dispatcher.handle(change("/p/a.py"))

        assert len(runs) == 2
        assert call_log.count("suspend") == 1
        assert call_log.count("resume") == 1
        notifier.error.assert_called_once()
        assert fail_on in notifier.error.call_args[0][0]

    def test_reporter_failure_is_absorbed(self, fake_watcher, recording_executor):
        reporter = Mock()
        reporter.report.side_effect = ValueError("broken terminal")
        dispatcher = Dispatcher(RULES, fake_watcher, executor=recording_executor, reporter=reporter)

        runs = dispatcher.handle(change("/p/a.py"))

        assert len(runs) == 2
        reporter.report.assert_called_once()


@pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX utilities")
def test_missing_binary_then_real_command(call_log, fake_watcher, recording_reporter):
    rules = RuleTable({"py": ["nonexistent-binary-xyz {file}", "echo {file}"]})
    dispatcher = Dispatcher(rules, fake_watcher, executor=Executor(), reporter=recording_reporter)

    runs = dispatcher.handle(change("/tmp/a.py"))

    assert isinstance(runs[0].error, SpawnError)
    assert runs[0].error.program == "nonexistent-binary-xyz"
    assert runs[1].result.stdout == b"/tmp/a.py\n"
    assert runs[1].succeeded
    assert call_log == ["suspend", "resume", "report"]
