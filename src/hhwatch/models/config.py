"""Configuration models."""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


def default_tmp_dir() -> Path:
    return Path(tempfile.gettempdir()) / "hh_server"


class WatchmanConfig(BaseModel):
    """Watchman connection configuration."""

    binary: str = "watchman"
    timeout: float = 120.0
    init_timeout: float = 10.0
    poll_timeout: float = 0.0
    subscribe: bool = False
    strict: bool = True
    tmp_dir: Path = Field(default_factory=default_tmp_dir)


class FilterConfig(BaseModel):
    """Which files a watch reports."""

    config_file: str = ".hhconfig"
    # js is tracked to match the server side; drop it here if unwanted.
    suffixes: list[str] = Field(
        default_factory=lambda: ["php", "phpt", "hh", "hhi", "xhp", "js"]
    )
    vcs_dirs: list[str] = Field(default_factory=lambda: [".hg", ".git", ".svn"])
    defer: list[str] = Field(default_factory=lambda: ["hg.update"])
    subscription_name: str = "hh_type_check_watcher"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_level: Literal["debug", "info", "warning", "error"] = "info"
    log_file: Path | None = None


class Config(BaseModel):
    """Main configuration."""

    watchman: WatchmanConfig = Field(default_factory=WatchmanConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
