"""
Tests for notification classification and the suppression tally.
"""

import pytest

from notifyrun.event_filter import (OVERFLOW_MESSAGE, EventFilter,
                                    SuppressionTally, Verdict, classify,
                                    describe)
from notifyrun.events import ChangeNotification, IgnoreRules, Op


@pytest.fixture
def rules():
    return IgnoreRules.from_lists(subjects=["./src/.#lock"], kinds=["CHMOD", "REMOVE"])


def test_notification_normalizes_kinds():
    n = ChangeNotification("./src/a.go", frozenset([Op.WRITE, "chmod"]))
    assert n.kinds == frozenset(["WRITE", "CHMOD"])
    assert str(n) == '"./src/a.go": WRITE|CHMOD'


def test_notification_labels_unknown_sorted_last():
    n = ChangeNotification.of("x", "ZETA", Op.CREATE, "ALPHA")
    assert n.labels() == ["CREATE", "ALPHA", "ZETA"]


def test_ignored_subject_wins_for_any_kind(rules):
    for kind in [Op.WRITE, Op.CREATE, Op.REMOVE, Op.CHMOD]:
        n = ChangeNotification.of("./src/.#lock", kind)
        assert classify(n, rules) is Verdict.IGNORED_BY_NAME


def test_subject_match_is_exact(rules):
    n = ChangeNotification.of("src/.#lock", Op.WRITE)
    assert classify(n, rules) is Verdict.ACCEPTED


def test_all_kinds_ignored(rules):
    assert classify(ChangeNotification.of("./src/a.go", Op.CHMOD), rules) is Verdict.IGNORED_BY_KIND
    assert classify(ChangeNotification.of("./src/a.go", Op.CHMOD, Op.REMOVE), rules) is Verdict.IGNORED_BY_KIND


def test_one_non_ignored_kind_is_accepted(rules):
    n = ChangeNotification.of("./src/a.go", Op.CHMOD, Op.WRITE)
    assert classify(n, rules) is Verdict.ACCEPTED


def test_empty_kind_set_is_accepted(rules):
    assert classify(ChangeNotification("./src/a.go"), rules) is Verdict.ACCEPTED


def test_ignore_kinds_are_case_insensitive():
    rules = IgnoreRules.from_lists(kinds=["chmod"])
    assert classify(ChangeNotification.of("a", Op.CHMOD), rules) is Verdict.IGNORED_BY_KIND


def test_describe_messages():
    n = ChangeNotification.of("a", Op.WRITE)
    assert describe(n, Verdict.IGNORED_BY_NAME) == 'ignore event name: "a": WRITE'
    assert describe(n, Verdict.IGNORED_BY_KIND) == 'ignore event op: "a": WRITE'
    assert describe(n, Verdict.ACCEPTED) == 'accept event: "a": WRITE'


def test_filter_records_every_verdict(rules):
    event_filter = EventFilter(rules)
    event_filter.process(ChangeNotification.of("./src/a.go", Op.WRITE))
    event_filter.process(ChangeNotification.of("./src/a.go", Op.WRITE))
    event_filter.process(ChangeNotification.of("./src/a.go", Op.CHMOD))
    event_filter.process(ChangeNotification.of("./src/.#lock", Op.WRITE))

    assert event_filter.tally.snapshot() == {
        'accept event: "./src/a.go": WRITE': 2,
        'ignore event op: "./src/a.go": CHMOD': 1,
        'ignore event name: "./src/.#lock": WRITE': 1,
    }


def test_tally_report_and_clear():
    tally = SuppressionTally()
    assert not tally
    tally.record("accept event: x")
    tally.record("accept event: x")
    tally.record("ignore event op: y")

    report = tally.report("trigger")
    lines = report.splitlines()
    assert lines[0] == "trigger flushed batched messages:"
    assert sorted(lines[1:]) == ["[1] ignore event op: y", "[2] accept event: x"]

    tally.clear()
    assert len(tally) == 0


def test_tally_is_bounded():
    tally = SuppressionTally(max_entries=3)
    for i in range(10):
        tally.record(f"message {i}")
    tally.record("message 0")

    snapshot = tally.snapshot()
    assert len(snapshot) == 4
    assert snapshot["message 0"] == 2
    assert snapshot["message 2"] == 1
    assert snapshot[OVERFLOW_MESSAGE] == 7
