"""Pytest configuration and fixtures."""

import sys
from pathlib import Path

import pytest

# Add src directory to Python path for imports
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from sentinel_core.errors import SpawnError, SuspendResumeError  # noqa: E402
from sentinel_core.models import ExecutionResult  # noqa: E402


class FakeWatcher:
    """Records suspend/resume calls in the order they happen."""

    def __init__(self, calls=None, fail_on=None):
        self.calls = calls if calls is not None else []
        self.fail_on = fail_on

    def start(self, root=None):
        self.calls.append("start")

    def suspend(self):
        self.calls.append("suspend")
        if self.fail_on == "suspend":
            raise SuspendResumeError("suspend", "/watched", "boom")

    def resume(self):
        self.calls.append("resume")
        if self.fail_on == "resume":
            raise SuspendResumeError("resume", "/watched", "boom")

    def stop(self):
        self.calls.append("stop")


class RecordingExecutor:
    """Executor double: records commands and returns canned results."""

    def __init__(self, calls=None, returncodes=None, missing=()):
        self.calls = calls if calls is not None else []
        self.returncodes = returncodes or {}
        self.missing = set(missing)

    def run(self, program, args, path):
        self.calls.append(("run", program, tuple(args)))
        if program in self.missing:
            raise SpawnError(program, args, "No such file or directory")
        return ExecutionResult(
            stdout=f"{program} ok\n".encode(),
            stderr=b"",
            elapsed=0.01,
            returncode=self.returncodes.get(program, 0),
        )


class RecordingReporter:
    """Reporter double that keeps every report."""

    def __init__(self, calls=None):
        self.calls = calls if calls is not None else []
        self.reports = []

    def report(self, timestamp, path, runs):
        self.calls.append("report")
        self.reports.append((timestamp, path, list(runs)))


@pytest.fixture
def call_log():
    """Shared list that fakes append to, so ordering across fakes can be checked."""
    return []


@pytest.fixture
def fake_watcher(call_log):
    return FakeWatcher(call_log)


@pytest.fixture
def recording_executor(call_log):
    return RecordingExecutor(call_log)


@pytest.fixture
def recording_reporter(call_log):
    return RecordingReporter(call_log)


@pytest.fixture
def project_dir(tmp_path, monkeypatch):
    """Empty project directory with the user-global config dir isolated."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    project = tmp_path / "project"
    project.mkdir()
    return project
