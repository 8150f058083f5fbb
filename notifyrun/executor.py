"""
Command tokenizing and execution for notifyrun.

The command string is split shell-style once at start-up. Each run executes
the resulting argument vector synchronously with stderr folded into stdout.
"""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from notifyrun.errors import ConfigurationError

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    SUCCEEDED = "succeeded"
    EXIT_FAILED = "exit_failed"
    LAUNCH_FAILED = "launch_failed"


@dataclass
class RunOutcome:
    """Result of one command execution."""

    status: RunStatus
    output: bytes = b""
    returncode: Optional[int] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.status is RunStatus.SUCCEEDED

    @property
    def text(self) -> str:
        return self.output.decode("utf-8", errors="replace")


def tokenize(command: str) -> List[str]:
    """
    Split a command string into an argument vector.

    Raises:
        ConfigurationError: If the string is empty or cannot be parsed.
    """
    if command is None or not command.strip():
        raise ConfigurationError("command must not be empty")
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise ConfigurationError(f"Unable to parse command {command!r}: {e}") from e
    if not argv or not argv[0]:
        raise ConfigurationError("command must not be empty")
    return argv


def run_command(argv: Sequence[str], cwd: Optional[str] = None) -> RunOutcome:
    """
    Run argv to completion and capture its combined output.

    Args:
        argv: Program followed by its arguments.
        cwd: Working directory for the process.

    Returns:
        RunOutcome describing success, a non-zero exit, or a failure to launch.
    """
    logger.debug("Executing: %s", argv)
    try:
        completed = subprocess.run(
            list(argv),
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        return RunOutcome(status=RunStatus.LAUNCH_FAILED, error=e)

    if completed.returncode != 0:
        error = subprocess.CalledProcessError(
            completed.returncode, completed.args, output=completed.stdout
        )
        return RunOutcome(
            status=RunStatus.EXIT_FAILED,
            output=completed.stdout or b"",
            returncode=completed.returncode,
            error=error,
        )
    return RunOutcome(
        status=RunStatus.SUCCEEDED,
        output=completed.stdout or b"",
        returncode=completed.returncode,
    )
