"""Event sinks for Watchman warnings, errors and timeouts."""

from __future__ import annotations

import logging
from typing import Protocol


class WatchmanObserver(Protocol):
    def warning(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def timeout(self) -> None: ...


class LoggingObserver:
    """Reports Watchman events through the logging module."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("hhwatch.watchman")

    def warning(self, message: str) -> None:
        self.logger.warning(f"Watchman warning: {message}")

    def error(self, message: str) -> None:
        self.logger.error(f"Watchman error: {message}")

    def timeout(self) -> None:
        self.logger.warning("Watchman timed out")
