"""Watchman client errors."""

from __future__ import annotations


class WatchmanError(Exception):
    """Base class for Watchman client failures."""


class ProtocolError(WatchmanError):
    """Watchman answered with an ``error`` field."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class WatchmanTimeout(WatchmanError, TimeoutError):
    """A bounded read ran out of time."""


class TransportError(WatchmanError):
    """The channel to Watchman failed."""


class MalformedResponseError(WatchmanError):
    """Watchman sent something that is not the expected JSON object."""

    def __init__(self, message: str, raw: str):
        super().__init__(message)
        self.raw = raw
