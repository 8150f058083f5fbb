"""
Batcher thread for notifyrun.

The batcher consumes notifications from a queue, runs them through the event
filter and collapses bursts of accepted notifications into one pending
trigger. It owns the suppression tally: the tally is flushed whenever a
trigger is actually sent, and on a fixed interval otherwise so that ignored
events are still reported.
"""

import logging
import threading
import time
from queue import Empty, Queue
from typing import Callable, Optional

from notifyrun.event_filter import EventFilter, Verdict
from notifyrun.events import ChangeNotification
from notifyrun.signals import SessionSignals

logger = logging.getLogger(__name__)

FLUSH_INTERVAL = 5.0

TRIGGER_FLUSH = "trigger"
PERIODIC_FLUSH = "periodic"


class Batcher(threading.Thread):
    """
    A thread that filters notifications and coalesces accepted ones into
    a single pending trigger.

    Attributes:
        event_filter (EventFilter): Classifier holding the ignore rules and tally.
        signals (SessionSignals): Channel shared with the run coordinator.
        flush_interval (float): Seconds between periodic tally flushes.
    """

    def __init__(
        self,
        event_filter: EventFilter,
        signals: SessionSignals,
        flush_interval: float = FLUSH_INTERVAL,
        reporter: Optional[Callable[[str], None]] = None,
    ):
        """
        Initialize the batcher thread.

        Args:
            event_filter: Classifier for incoming notifications.
            signals: Channel the pending trigger is sent on.
            flush_interval: Seconds between periodic flushes.
            reporter: Callable receiving flush reports. Defaults to logging at INFO.
        """
        super().__init__(name="notifyrun-batcher", daemon=True)
        if flush_interval <= 0:
            raise ValueError("flush_interval must be positive")
        self.event_filter = event_filter
        self.signals = signals
        self.flush_interval = flush_interval
        self.reporter = reporter or logger.info
        self._events = Queue()
        self.stop_event = threading.Event()

    def submit(self, notification: ChangeNotification) -> None:
        """Hand a notification to the batcher. Safe to call from any thread."""
        self._events.put(notification)

    def handle(self, notification: ChangeNotification) -> Verdict:
        """Classify one notification and try to send a trigger if it is accepted."""
        verdict = self.event_filter.process(notification)
        if verdict is Verdict.ACCEPTED:
            if self.signals.try_trigger():
                self.flush(TRIGGER_FLUSH)
            else:
                logger.debug("Trigger already pending, coalesced %s", notification)
        return verdict

    def tick(self) -> bool:
        return self.flush(PERIODIC_FLUSH)

    def flush(self, reason: str) -> bool:
        """
        Report and reset the tally.

        Returns:
            bool: False if the tally was empty and nothing was reported.
        """
        tally = self.event_filter.tally
        if not tally:
            return False
        report = tally.report(reason)
        tally.clear()
        try:
            self.reporter(report)
        except Exception:
            logger.exception("Failed to report %s flush", reason)
        return True

    def run(self):
        """Process notifications and timer ticks until stopped."""
        logger.debug("Batcher started with flush interval: %s seconds", self.flush_interval)
        next_tick = time.monotonic() + self.flush_interval
        while not self.stop_event.is_set():
            timeout = max(next_tick - time.monotonic(), 0.0)
            try:
                notification = self._events.get(timeout=timeout)
            except Empty:
                notification = None
            if notification is not None:
                self.handle(notification)
            now = time.monotonic()
            if now >= next_tick:
                self.tick()
                next_tick = now + self.flush_interval
        logger.debug("Batcher stopped.")

    def stop(self):
        """Signal the thread to stop and wake it if it is waiting."""
        self.stop_event.set()
        self._events.put(None)
