"""Tests for sentinel_core.executor (runs real processes)."""

import sys

import pytest

from sentinel_core.errors import SpawnError
from sentinel_core.executor import Executor

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="uses POSIX utilities")


@pytest.fixture
def executor():
    return Executor()


def test_captures_stdout(executor):
    result = executor.run("echo", ["/tmp/a.py"], "/tmp/a.py")

    assert result.stdout == b"/tmp/a.py\n"
    assert result.stderr == b""
    assert result.returncode == 0
    assert result.success
    assert result.elapsed >= 0


def test_captures_stderr(executor):
    result = executor.run("sh", ["-c", "echo oops >&2"], "/tmp/a.py")
    assert result.stderr == b"oops\n"
    assert result.stdout == b""


def test_nonzero_exit_is_a_result(executor):
    result = executor.run("sh", ["-c", "exit 3"], "/tmp/a.py")

    assert result.returncode == 3
    assert not result.success


def test_missing_program_raises_spawn_error(executor):
    with pytest.raises(SpawnError) as exc_info:
        executor.run("definitely-not-a-real-program-xyz", ["a.py"], "a.py")

    assert exc_info.value.program == "definitely-not-a-real-program-xyz"
    assert exc_info.value.args_list == ("a.py",)
    assert "Failed to run 'definitely-not-a-real-program-xyz'" in str(exc_info.value)


def test_arguments_are_not_shell_expanded(executor):
    result = executor.run("echo", ["$HOME", "*"], "x")
    assert result.stdout == b"$HOME *\n"


def test_runs_in_configured_cwd(tmp_path):
    result = Executor(cwd=tmp_path).run("pwd", [], "x")
    assert result.stdout.decode().strip() == str(tmp_path.resolve())
