"""
Run coordination for notifyrun.

RunCoordinator is the top-level loop of a watch session. It runs the command
once unconditionally, then waits for the batcher's pending trigger or for a
terminal error from the watch backend. Commands run synchronously on the
coordinator's thread, so two runs never overlap; triggers that arrive during
a run collapse into a single follow-up run.

WatchSession wires the coordinator together with the event filter, the
batcher and the watchdog-backed notification source.
"""

import logging
import os
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Union

from notifyrun.batcher import FLUSH_INTERVAL, Batcher
from notifyrun.errors import ConfigurationError, LaunchError
from notifyrun.event_filter import EventFilter
from notifyrun.events import IgnoreRules
from notifyrun.executor import RunOutcome, RunStatus, run_command, tokenize
from notifyrun.signals import SessionSignals, Signal
from notifyrun.watcher import WatchSource
from notifyrun.workers import WorkerGroup, spawn_periodic_worker

logger = logging.getLogger(__name__)

HEALTH_CHECK_INTERVAL = 1.0
SHUTDOWN_TIMEOUT = 5.0

Executor = Callable[[Sequence[str]], RunOutcome]


class State(Enum):
    IDLE = "idle"
    RUNNING = "running"
    TERMINATED = "terminated"


class RunCoordinator:
    """
    Serializes command execution and owns the session's termination.

    Attributes:
        argv: Command to execute on every trigger.
        signals: Channel delivering triggers and the terminal error.
        state: Current State.
        runs: Number of command executions so far.
    """

    def __init__(self, argv: Sequence[str], signals: SessionSignals, executor: Executor = run_command):
        if not argv:
            raise ConfigurationError("command must not be empty")
        self.argv = tuple(argv)
        self.signals = signals
        self.executor = executor
        self.state = State.IDLE
        self.runs = 0

    def run(self) -> None:
        """
        Run until a fatal condition or stop().

        Raises:
            LaunchError: If the command could not be started.
            WatchError: If the watch backend reported an error.
        """
        if self.state is State.TERMINATED:
            return None
        self.signals.force()
        while True:
            signal = self.signals.wait()
            if signal is Signal.ERROR:
                self.state = State.TERMINATED
                error = self.signals.error
                logger.error("Watch failed: %s", error)
                raise error
            if signal is Signal.CLOSED:
                self.state = State.TERMINATED
                logger.info("Session stopped after %s runs", self.runs)
                return None
            logger.debug("Received %s trigger", signal.value)
            self.run_once()

    def run_once(self) -> RunOutcome:
        """Execute the command once and classify the outcome."""
        self.state = State.RUNNING
        outcome = self.executor(self.argv)
        self.runs += 1

        if outcome.status is RunStatus.LAUNCH_FAILED:
            self.state = State.TERMINATED
            logger.error("Failed to launch %s: %s", self.argv[0], outcome.error)
            raise LaunchError(f"Failed to launch {self.argv[0]!r}: {outcome.error}") from outcome.error

        if outcome.status is RunStatus.EXIT_FAILED:
            logger.warning(
                "cmd failed with exit status %s: %s\n%s",
                outcome.returncode,
                outcome.error,
                outcome.text,
            )
        else:
            logger.info("cmd: %s", outcome.text)
        self.state = State.IDLE
        return outcome

    def stop(self) -> None:
        self.signals.close()


class WatchSession:
    """
    One watch session: a set of paths, one command and the ignore rules.

    Construction validates the paths and the command; run() acquires the
    watch backend and blocks until the session terminates. A terminated
    session stays terminated: later calls to run() return immediately.
    """

    def __init__(
        self,
        paths: Union[str, os.PathLike, Iterable[str]],
        command: str,
        ignore_subjects: Optional[Iterable[str]] = None,
        ignore_kinds: Optional[Iterable[str]] = None,
        flush_interval: float = FLUSH_INTERVAL,
        recursive: bool = False,
        use_polling: bool = False,
        poll_interval: float = 1.0,
        executor: Executor = run_command,
    ):
        if isinstance(paths, (str, os.PathLike)):
            paths = [paths]
        self.paths: List[str] = [os.fspath(p) for p in (paths or [])]
        if not self.paths:
            raise ConfigurationError("must specify files/directories to watch")
        self.argv = tokenize(command)
        self.rules = IgnoreRules.from_lists(ignore_subjects, ignore_kinds)
        self.flush_interval = flush_interval
        self.recursive = recursive
        self.use_polling = use_polling
        self.poll_interval = poll_interval

        self.signals = SessionSignals()
        self.event_filter = EventFilter(self.rules)
        self.batcher: Optional[Batcher] = None
        self.coordinator = RunCoordinator(self.argv, self.signals, executor=executor)

    def run(self) -> None:
        """
        Watch the paths and run the command until the session terminates.

        Raises:
            WatchError: If a path cannot be watched or the backend fails.
            LaunchError: If the command cannot be started.
        """
        if self.state is State.TERMINATED:
            logger.debug("Session already terminated, not running again")
            return None

        self.batcher = Batcher(self.event_filter, self.signals, flush_interval=self.flush_interval)
        workers = WorkerGroup()
        source = WatchSource(
            self.batcher.submit,
            recursive=self.recursive,
            use_polling=self.use_polling,
            poll_interval=self.poll_interval,
        )
        with source:
            try:
                logger.info("watching: %s", self.paths)
                for path in self.paths:
                    source.add(path)

                self.batcher.start()
                workers.register(self.batcher)
                workers.register(
                    spawn_periodic_worker(
                        self._check_watch_health,
                        HEALTH_CHECK_INTERVAL,
                        source,
                        name="notifyrun-watch-health",
                    )
                )
                self.coordinator.run()
            finally:
                workers.stop_and_join_all(timeout=SHUTDOWN_TIMEOUT)
                logger.debug("Session threads after shutdown: %s", workers.get_all_statuses())

    def _check_watch_health(self, source: WatchSource) -> None:
        error = source.check_health()
        if error is not None:
            self.signals.report_error(error)

    def stop(self) -> None:
        """Ask a running session to finish after the current command."""
        self.coordinator.stop()

    @property
    def state(self) -> State:
        return self.coordinator.state


def watch(paths, command, **kwargs) -> None:
    """Validate the configuration and run a watch session until it terminates."""
    WatchSession(paths, command, **kwargs).run()
