"""
Tests for command tokenizing and execution.
"""

import sys

import pytest

from notifyrun.errors import ConfigurationError
from notifyrun.executor import RunStatus, run_command, tokenize


def test_tokenize_shell_style():
    assert tokenize("make build") == ["make", "build"]
    assert tokenize("sh -c 'echo \"hi there\"'") == ["sh", "-c", 'echo "hi there"']


@pytest.mark.parametrize("command", ["", "   ", None, "''"])
def test_tokenize_rejects_empty(command):
    with pytest.raises(ConfigurationError):
        tokenize(command)


def test_tokenize_rejects_unbalanced_quotes():
    with pytest.raises(ConfigurationError, match="Unable to parse"):
        tokenize('echo "unterminated')


def test_run_command_success_captures_combined_output():
    outcome = run_command([
        sys.executable, "-c",
        "import sys; print('out'); sys.stdout.flush(); print('err', file=sys.stderr)",
    ])
    assert outcome.status is RunStatus.SUCCEEDED
    assert outcome.ok
    assert outcome.returncode == 0
    assert b"out" in outcome.output
    assert b"err" in outcome.output


def test_run_command_exit_failure():
    outcome = run_command([sys.executable, "-c", "import sys; print('broken'); sys.exit(3)"])
    assert outcome.status is RunStatus.EXIT_FAILED
    assert not outcome.ok
    assert outcome.returncode == 3
    assert "broken" in outcome.text
    assert outcome.error is not None


def test_run_command_launch_failure():
    outcome = run_command(["notifyrun-no-such-program-xyz"])
    assert outcome.status is RunStatus.LAUNCH_FAILED
    assert isinstance(outcome.error, OSError)
    assert outcome.returncode is None
