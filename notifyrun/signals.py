"""
Coordination channel between the batcher, the watch backend and the run
coordinator.

SessionSignals holds everything the coordinator waits on behind a single
condition variable:
- the forced trigger queued before the first wait
- the pending trigger slot (capacity one, sends never block)
- the terminal error from the watch backend
- the close flag used for a clean shutdown
"""

import logging
import threading
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)


class Signal(Enum):
    """What woke the coordinator, in priority order."""

    FORCED = "forced"
    ERROR = "error"
    CLOSED = "closed"
    BATCHED = "batched"


class SessionSignals:
    """Forced, pending, error and close slots for one watch session."""

    def __init__(self):
        self._cond = threading.Condition()
        self._forced = False
        self._pending = False
        self._closed = False
        self._error: Optional[BaseException] = None

    def force(self) -> None:
        """Queue the synthetic trigger that guarantees a first run."""
        with self._cond:
            self._forced = True
            self._cond.notify_all()

    def try_trigger(self) -> bool:
        """
        Attempt a non-blocking send into the pending trigger slot.

        Returns:
            bool: True if the slot was empty and now holds a trigger, False if
            a trigger was already pending and this one was dropped.
        """
        with self._cond:
            if self._pending:
                return False
            self._pending = True
            self._cond.notify_all()
            return True

    def report_error(self, error: BaseException) -> None:
        """Deliver a terminal error from the watch backend. The first one wins."""
        with self._cond:
            if self._error is not None:
                logger.debug("Dropping additional watch error: %s", error)
                return
            self._error = error
            self._cond.notify_all()

    def close(self) -> None:
        with self._cond:
            self._closed = True
            self._cond.notify_all()

    @property
    def error(self) -> Optional[BaseException]:
        with self._cond:
            return self._error

    @property
    def pending(self) -> bool:
        with self._cond:
            return self._pending

    def _ready(self) -> bool:
        return self._forced or self._error is not None or self._closed or self._pending

    def wait(self, timeout: Optional[float] = None) -> Optional[Signal]:
        """
        Block until a signal is available and consume it.

        Error and close are sticky: once set they are returned on every call.
        Triggers are consumed, so a trigger sent after this call returns
        lands in an empty slot.

        Returns:
            Signal, or None if timeout elapsed first.
        """
        with self._cond:
            if not self._cond.wait_for(self._ready, timeout):
                return None
            if self._forced:
                self._forced = False
                return Signal.FORCED
            if self._error is not None:
                return Signal.ERROR
            if self._closed:
                return Signal.CLOSED
            self._pending = False
            return Signal.BATCHED
