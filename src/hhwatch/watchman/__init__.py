"""Client for the Watchman file watching service."""

from hhwatch.watchman.errors import (
    MalformedResponseError,
    ProtocolError,
    TransportError,
    WatchmanError,
    WatchmanTimeout,
)
from hhwatch.watchman.session import (
    WatchmanSession,
    get_all_files,
    get_changes,
    init,
    init_exn,
)

__all__ = [
    "MalformedResponseError",
    "ProtocolError",
    "TransportError",
    "WatchmanError",
    "WatchmanTimeout",
    "WatchmanSession",
    "get_all_files",
    "get_changes",
    "init",
    "init_exn",
]
