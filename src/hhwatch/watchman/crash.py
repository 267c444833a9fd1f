"""Crash markers for failed Watchman sessions.

When anything goes wrong while talking to Watchman for a root, an empty
file named after that root is left in the temp directory so other tools
can tell the watcher died.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, TypeVar

from hhwatch.models.config import default_tmp_dir

logger = logging.getLogger("hhwatch.watchman")

T = TypeVar("T")

WATCHMAN_FAILED_EXIT_CODE = 103

_ESCAPES = {"z": "zZ", "\\": "zB", ":": "zC", "/": "zS", "\0": "z0"}


def slash_escaped(path: str) -> str:
    """Flatten a path into a single file name component, reversibly."""
    return "".join(_ESCAPES.get(ch, ch) for ch in path)


def crash_marker_path(root: str | Path, tmp_dir: Path | None = None) -> Path:
    tmp_dir = tmp_dir if tmp_dir is not None else default_tmp_dir()
    return tmp_dir / f".{slash_escaped(str(root))}.watchman_failed"


def write_crash_marker(root: str | Path, tmp_dir: Path | None = None) -> Path:
    marker = crash_marker_path(root, tmp_dir)
    marker.parent.mkdir(parents=True, exist_ok=True)
    marker.write_bytes(b"")
    return marker


@contextmanager
def crash_record(
    root: str | Path, source: str, tmp_dir: Path | None = None
) -> Iterator[None]:
    """Leave a crash marker and log if the block raises, then re-raise."""
    try:
        yield
    except Exception:
        try:
            write_crash_marker(root, tmp_dir)
        except OSError as e:
            logger.error(f"Failed to write Watchman crash marker for {root}: {e}")
        logger.exception(f"Watchman {source}: ")
        raise


def with_crash_record_exn(
    root: str | Path, source: str, fn: Callable[[], T], tmp_dir: Path | None = None
) -> T:
    with crash_record(root, source, tmp_dir):
        return fn()


def with_crash_record(
    root: str | Path, source: str, fn: Callable[[], T], tmp_dir: Path | None = None
) -> T:
    """Like with_crash_record_exn, but exits the process on failure."""
    try:
        return with_crash_record_exn(root, source, fn, tmp_dir)
    except Exception:
        sys.exit(WATCHMAN_FAILED_EXIT_CODE)


def with_crash_record_opt(
    root: str | Path, source: str, fn: Callable[[], T], tmp_dir: Path | None = None
) -> T | None:
    """Like with_crash_record_exn, but returns None on failure."""
    try:
        return with_crash_record_exn(root, source, fn, tmp_dir)
    except Exception:
        return None
