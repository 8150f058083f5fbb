"""
notifyrun: run a command whenever watched files change.

Provides both a CLI and a library API: bursts of filesystem notifications
are filtered and coalesced, and the command never runs twice at once.
"""

__version__ = "0.1.0"
