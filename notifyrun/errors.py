"""
Exception types raised by notifyrun.

Configuration problems are reported before a session starts watching.
Watch failures and launch failures end a running session.
"""


class NotifyRunError(Exception):
    """Base class for all notifyrun errors."""


class ConfigurationError(NotifyRunError):
    """Raised when the watch paths, command or config file are unusable."""


class WatchError(NotifyRunError):
    """Raised when a path cannot be watched or the watch backend fails."""


class LaunchError(NotifyRunError):
    """Raised when the configured command cannot be started at all."""
