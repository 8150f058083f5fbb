"""
Event models shared by the watcher, filter and batcher.

A ChangeNotification carries the path that changed and the set of change
kinds reported for it. Kind labels are plain upper-case strings so that
ignore rules coming from the command line compare directly against them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Iterable, List, Union


class Op(str, Enum):
    """Kind labels a notification can carry."""

    CREATE = "CREATE"
    WRITE = "WRITE"
    REMOVE = "REMOVE"
    RENAME = "RENAME"
    CHMOD = "CHMOD"


KNOWN_KINDS = tuple(op.value for op in Op)

Kind = Union[Op, str]


def normalize_kind(kind: Kind) -> str:
    """Return the canonical label for a kind given as an Op or a string."""
    if isinstance(kind, Op):
        return kind.value
    return str(kind).strip().upper()


def normalize_kinds(kinds: Iterable[Kind]) -> FrozenSet[str]:
    labels = (normalize_kind(k) for k in kinds)
    return frozenset(label for label in labels if label)


@dataclass(frozen=True)
class ChangeNotification:
    """A single change reported by the notification source."""

    subject: str
    kinds: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "kinds", normalize_kinds(self.kinds))

    @classmethod
    def of(cls, subject: str, *kinds: Kind) -> "ChangeNotification":
        return cls(subject=subject, kinds=frozenset(kinds))

    def labels(self) -> List[str]:
        """Kind labels in declaration order, unknown labels sorted last."""
        known = [label for label in KNOWN_KINDS if label in self.kinds]
        extra = sorted(k for k in self.kinds if k not in KNOWN_KINDS)
        return known + extra

    def __str__(self):
        return f'"{self.subject}": {"|".join(self.labels())}'


@dataclass(frozen=True)
class IgnoreRules:
    """Subjects and kind labels whose notifications never trigger a run."""

    subjects: FrozenSet[str] = field(default_factory=frozenset)
    kinds: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        object.__setattr__(self, "subjects", frozenset(self.subjects))
        object.__setattr__(self, "kinds", normalize_kinds(self.kinds))

    @classmethod
    def from_lists(cls, subjects=None, kinds=None) -> "IgnoreRules":
        return cls(subjects=frozenset(subjects or ()), kinds=frozenset(kinds or ()))
