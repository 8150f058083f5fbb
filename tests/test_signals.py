"""
Tests for the session coordination channel.
"""

import threading
import time

from notifyrun.errors import WatchError
from notifyrun.signals import SessionSignals, Signal


def test_trigger_slot_has_capacity_one():
    signals = SessionSignals()
    assert signals.try_trigger() is True
    assert signals.try_trigger() is False
    assert signals.try_trigger() is False
    assert signals.pending

    assert signals.wait(timeout=0) is Signal.BATCHED
    assert not signals.pending
    assert signals.wait(timeout=0) is None
    assert signals.try_trigger() is True


def test_forced_trigger_is_observed_before_batched():
    signals = SessionSignals()
    signals.try_trigger()
    signals.force()
    assert signals.wait(timeout=0) is Signal.FORCED
    assert signals.wait(timeout=0) is Signal.BATCHED


def test_error_is_sticky_and_first_one_wins():
    signals = SessionSignals()
    first = WatchError("first")
    signals.report_error(first)
    signals.report_error(WatchError("second"))
    signals.try_trigger()

    assert signals.wait(timeout=0) is Signal.ERROR
    assert signals.wait(timeout=0) is Signal.ERROR
    assert signals.error is first


def test_close_takes_priority_over_pending_trigger():
    signals = SessionSignals()
    signals.try_trigger()
    signals.close()
    assert signals.wait(timeout=0) is Signal.CLOSED


def test_wait_wakes_on_trigger_from_another_thread():
    signals = SessionSignals()
    results = []

    def waiter():
        results.append(signals.wait(timeout=5))

    t = threading.Thread(target=waiter)
    t.start()
    time.sleep(0.05)
    signals.try_trigger()
    t.join(timeout=5)

    assert results == [Signal.BATCHED]
