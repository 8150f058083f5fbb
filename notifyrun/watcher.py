"""
Filesystem notification source backed by watchdog.

WatchSource owns one watchdog observer for the lifetime of a session. Raw
watchdog events are translated into ChangeNotification values and handed to
a sink callable. Failures of the observer itself are detected by
check_health(), which the session polls periodically.

Only content and namespace changes are subscribed to. Open and close events
are never delivered, so a command that reads its watched files does not
trigger itself.
"""

import logging
import os
import threading
from typing import Callable, Dict, List, Optional, Tuple

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    DirCreatedEvent,
    DirDeletedEvent,
    DirModifiedEvent,
    DirMovedEvent,
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer
from watchdog.observers.polling import PollingObserver

from notifyrun.errors import WatchError
from notifyrun.events import ChangeNotification, Op

logger = logging.getLogger(__name__)

SUBSCRIBED_EVENTS = [
    FileCreatedEvent,
    DirCreatedEvent,
    FileModifiedEvent,
    DirModifiedEvent,
    FileDeletedEvent,
    DirDeletedEvent,
    FileMovedEvent,
    DirMovedEvent,
]

KIND_BY_EVENT_TYPE = {
    EVENT_TYPE_CREATED: Op.CREATE,
    EVENT_TYPE_MODIFIED: Op.WRITE,
    EVENT_TYPE_DELETED: Op.REMOVE,
    EVENT_TYPE_MOVED: Op.RENAME,
}

ContentStat = Tuple[int, int]


def content_stat(path: str) -> Optional[ContentStat]:
    """Return (st_mtime_ns, st_size) for path, or None if it cannot be stat'ed."""
    try:
        st = os.stat(path)
    except OSError:
        return None
    return st.st_mtime_ns, st.st_size


def notifications_from_event(event: FileSystemEvent, content_changed: bool = True) -> List[ChangeNotification]:
    """
    Translate one watchdog event into notifications.

    A move is reported as RENAME on the old path and CREATE on the new one.
    A modification with content_changed False is reported as CHMOD.
    Event types outside KIND_BY_EVENT_TYPE are dropped.
    """
    src_path = os.fsdecode(event.src_path)
    kind = KIND_BY_EVENT_TYPE.get(event.event_type)
    if kind is None:
        logger.debug("Dropping watchdog %r event for %s", event.event_type, src_path)
        return []
    if kind is Op.WRITE and not content_changed:
        kind = Op.CHMOD

    notifications = [ChangeNotification.of(src_path, kind)]
    dest_path = getattr(event, "dest_path", "")
    if event.event_type == EVENT_TYPE_MOVED and dest_path:
        notifications.append(ChangeNotification.of(os.fsdecode(dest_path), Op.CREATE))
    return notifications


class ForwardingHandler(FileSystemEventHandler):
    """
    Forwards translated events to the sink.

    watchdog reports attribute changes as "modified". The handler remembers
    the content stat of every path it has seen and labels a modification that
    left both mtime and size unchanged as CHMOD.
    """

    def __init__(self, sink: Callable[[ChangeNotification], None]):
        super().__init__()
        self._sink = sink
        self._stats: Dict[str, ContentStat] = {}
        self._lock = threading.Lock()

    def remember(self, path: str, recursive: bool = False) -> None:
        """Record the content stat of path and of the entries below it."""
        paths = [path]
        if os.path.isdir(path):
            if recursive:
                for root, dirs, files in os.walk(path):
                    paths.extend(os.path.join(root, name) for name in dirs + files)
            else:
                try:
                    paths.extend(os.path.join(path, name) for name in os.listdir(path))
                except OSError as e:
                    logger.debug("Unable to list %s: %s", path, e)
        with self._lock:
            for p in paths:
                stat = content_stat(p)
                if stat is not None:
                    self._stats[os.path.normpath(p)] = stat

    def content_changed(self, event: FileSystemEvent) -> bool:
        """
        Update the stat cache for event.

        Returns:
            False for a modification that left the content stat unchanged.
        """
        src_path = os.path.normpath(os.fsdecode(event.src_path))
        with self._lock:
            if event.event_type in (EVENT_TYPE_DELETED, EVENT_TYPE_MOVED):
                self._forget(src_path)
                dest_path = getattr(event, "dest_path", "")
                if event.event_type == EVENT_TYPE_MOVED and dest_path:
                    dest_path = os.path.normpath(os.fsdecode(dest_path))
                    stat = content_stat(dest_path)
                    if stat is not None:
                        self._stats[dest_path] = stat
                return True
            if event.event_type not in (EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED):
                return True

            current = content_stat(src_path)
            if current is None:
                self._stats.pop(src_path, None)
                return True
            previous = self._stats.get(src_path)
            self._stats[src_path] = current
            return not (event.event_type == EVENT_TYPE_MODIFIED and previous == current)

    def _forget(self, path: str) -> None:
        prefix = path + os.sep
        for key in [k for k in self._stats if k == path or k.startswith(prefix)]:
            del self._stats[key]

    def on_any_event(self, event):
        changed = self.content_changed(event)
        for notification in notifications_from_event(event, content_changed=changed):
            self._sink(notification)


class WatchSource:
    """
    A watchdog observer delivering ChangeNotification values to a sink.

    Use as a context manager so the observer is released on every exit path:

        with WatchSource(batcher.submit) as source:
            source.add("./src")
    """

    def __init__(
        self,
        sink: Callable[[ChangeNotification], None],
        recursive: bool = False,
        use_polling: bool = False,
        poll_interval: float = 1.0,
    ):
        """
        Args:
            sink: Called with each notification, from the observer's thread.
            recursive: Watch directories recursively.
            use_polling: Use watchdog's polling observer instead of OS events.
            poll_interval: Polling interval in seconds when use_polling is set.
        """
        self.recursive = recursive
        self.use_polling = use_polling
        self.poll_interval = poll_interval
        self.paths: List[str] = []
        self._handler = ForwardingHandler(sink)
        self._watches = []
        self._observer = None
        self._closing = False

    def start(self) -> "WatchSource":
        if self._observer is not None:
            return self
        if self.use_polling:
            self._observer = PollingObserver(timeout=self.poll_interval)
            logger.debug("Using polling observer (interval: %ss)", self.poll_interval)
        else:
            self._observer = Observer()
            logger.debug("Using OS event observer")
        self._observer.daemon = True
        self._observer.start()
        return self

    def add(self, path: str) -> None:
        """
        Start watching path.

        Raises:
            WatchError: If the path does not exist or the backend refuses it.
        """
        if self._observer is None:
            self.start()
        if not os.path.exists(path):
            raise WatchError(f"Cannot watch {path}: no such file or directory")
        self._handler.remember(path, recursive=self.recursive)
        try:
            watch = self._observer.schedule(
                self._handler, path, recursive=self.recursive, event_filter=SUBSCRIBED_EVENTS
            )
        except OSError as e:
            raise WatchError(f"Cannot watch {path}: {e}") from e
        self._watches.append(watch)
        self.paths.append(path)
        logger.debug("Watching %s (recursive=%s)", path, self.recursive)

    def check_health(self) -> Optional[WatchError]:
        """
        Returns:
            WatchError describing a dead observer or emitter, or None if healthy.
        """
        if self._observer is None or self._closing:
            return None
        if not self._observer.is_alive():
            return WatchError("filesystem observer stopped unexpectedly")
        for emitter in list(self._observer.emitters):
            if not emitter.is_alive():
                return WatchError(f"watch on {emitter.watch.path} stopped unexpectedly")
        return None

    def close(self) -> None:
        if self._observer is None:
            return
        self._closing = True
        try:
            self._observer.stop()
            self._observer.join(timeout=10)
            logger.debug("Stopped watching %s", self.paths)
        finally:
            self._observer = None

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False
