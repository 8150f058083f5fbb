"""
Event filter for notifyrun.

Each notification is classified against the ignore rules as one of:
- ignored by name (its subject is listed in the ignored subjects)
- ignored by kind (every one of its kind labels is ignored)
- accepted (anything else, including a notification with no kind labels)

Every classification is counted in a SuppressionTally so that the batcher
can report what was filtered even when nothing triggers a run.
"""

from collections import Counter
from enum import Enum
from typing import Dict, Optional

from notifyrun.events import ChangeNotification, IgnoreRules

DEFAULT_MAX_TALLY_ENTRIES = 1000
OVERFLOW_MESSAGE = "other events (tally full)"


class Verdict(Enum):
    """Outcome of classifying one notification."""

    IGNORED_BY_NAME = "ignored_by_name"
    IGNORED_BY_KIND = "ignored_by_kind"
    ACCEPTED = "accepted"


def classify(notification: ChangeNotification, rules: IgnoreRules) -> Verdict:
    """
    Classify a notification against the ignore rules.

    Args:
        notification: The change to classify.
        rules: Ignored subjects and kind labels.

    Returns:
        Verdict for the notification.
    """
    if notification.subject in rules.subjects:
        return Verdict.IGNORED_BY_NAME
    # An empty kind set is accepted: only an affirmatively ignored set suppresses.
    if notification.kinds and notification.kinds <= rules.kinds:
        return Verdict.IGNORED_BY_KIND
    return Verdict.ACCEPTED


def describe(notification: ChangeNotification, verdict: Verdict) -> str:
    """Return the tally message for a classified notification."""
    if verdict is Verdict.IGNORED_BY_NAME:
        return f"ignore event name: {notification}"
    if verdict is Verdict.IGNORED_BY_KIND:
        return f"ignore event op: {notification}"
    return f"accept event: {notification}"


class SuppressionTally:
    """
    Occurrence counts of classification messages between two flushes.

    The number of distinct messages is capped at max_entries; once the cap
    is reached new messages are counted under one extra overflow entry.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_TALLY_ENTRIES):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self._counts = Counter()

    def record(self, message: str) -> None:
        if message not in self._counts and len(self._counts) >= self.max_entries:
            message = OVERFLOW_MESSAGE
        self._counts[message] += 1

    def snapshot(self) -> Dict[str, int]:
        return dict(self._counts)

    def clear(self) -> None:
        self._counts = Counter()

    def report(self, reason: str) -> str:
        """Format the tally as a multi-line report headed by reason."""
        lines = [f"{reason} flushed batched messages:"]
        for message, count in self._counts.items():
            lines.append(f"[{count}] {message}")
        return "\n".join(lines)

    def __len__(self):
        return len(self._counts)

    def __bool__(self):
        return bool(self._counts)


class EventFilter:
    """Classifies notifications and records each verdict in a tally."""

    def __init__(self, rules: IgnoreRules, tally: Optional[SuppressionTally] = None):
        self.rules = rules
        self.tally = tally if tally is not None else SuppressionTally()

    def process(self, notification: ChangeNotification) -> Verdict:
        verdict = classify(notification, self.rules)
        self.tally.record(describe(notification, verdict))
        return verdict
