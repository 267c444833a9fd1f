"""Watchman sessions: bootstrap, full listings and change tracking."""

from __future__ import annotations

import logging
import os
import socket
from pathlib import Path
from typing import Callable, TypeVar

from hhwatch.models.config import Config
from hhwatch.models.response import (
    ClockResponse,
    NoUpdate,
    PollResult,
    QueryResponse,
    SubscriptionPush,
    Update,
    WatchProjectResponse,
)
from hhwatch.watchman import query
from hhwatch.watchman.crash import (
    with_crash_record,
    with_crash_record_exn,
    with_crash_record_opt,
)
from hhwatch.watchman.observer import LoggingObserver, WatchmanObserver
from hhwatch.watchman.response import extract, sanitize_response
from hhwatch.watchman.transport import (
    WatchmanTransport,
    discover_address,
    open_connection,
)

logger = logging.getLogger("hhwatch.watchman")

T = TypeVar("T")

Discover = Callable[[float], str]
Connect = Callable[[str, float], socket.socket]


class WatchmanSession:
    """A watch on one root, with the clock of the last observation.

    ``clockspec`` is only replaced once a response has been fully
    validated, so it always matches the files last returned.
    """

    def __init__(
        self,
        transport: WatchmanTransport,
        root: str | Path,
        watch_root: str,
        relative_path: str,
        clockspec: str,
        subscribe: bool = False,
        config: Config | None = None,
    ):
        self.transport = transport
        self.root = root
        self.watch_root = watch_root
        self.relative_path = relative_path
        self.clockspec = clockspec
        self.subscribe = subscribe
        self.config = config or Config()

    def _guard(self, source: str, fn: Callable[[], T]) -> T:
        tmp_dir = self.config.watchman.tmp_dir
        if self.config.watchman.strict:
            return with_crash_record(self.root, source, fn, tmp_dir)
        return with_crash_record_exn(self.root, source, fn, tmp_dir)

    def absolute_path(self, name: str) -> str:
        return os.path.join(self.watch_root, self.relative_path, name)

    def extract_file_names(self, names: list[str]) -> list[str]:
        return [self.absolute_path(name) for name in names]

    def _query(self, request: list) -> QueryResponse:
        response = self.transport.exec(request, timeout=self.config.watchman.timeout)
        return extract(QueryResponse, response)

    def get_all_files(self) -> list[str]:
        """List every matching file under the root that exists now."""
        return self._guard("get_all_files", self._get_all_files)

    def _get_all_files(self) -> list[str]:
        result = self._query(
            query.all_query(self.watch_root, self.relative_path, self.config.filters)
        )
        # The listing already covers pushes that arrived before it.
        for pushed_line in self.transport.take_pushed_lines():
            self._read_push(pushed_line)
        files = self.extract_file_names(result.files)
        self.clockspec = result.clock
        return files

    def poll_for_updates(self) -> PollResult:
        """Take the next subscription push, if one is waiting."""
        line = self.transport.try_read_line(self.config.watchman.poll_timeout)
        if line is None:
            # Always ask for a fresh clock instead of reusing the last one.
            response = self.transport.exec(
                query.clock(self.watch_root), timeout=self.config.watchman.timeout
            )
            clock = extract(ClockResponse, response).clock

            # Pushes that arrived ahead of the clock reply are older than it.
            pushed = self.transport.take_pushed_lines()
            if not pushed:
                return NoUpdate(clock=clock)
            files: list[str] = []
            for pushed_line in pushed:
                files.extend(self._read_push(pushed_line).files)
            return Update(clock=clock, files=files)

        push = self._read_push(line)
        return Update(clock=push.clock, files=push.files)

    def _read_push(self, line: str) -> SubscriptionPush:
        return extract(SubscriptionPush, sanitize_response(line, self.transport.observer))

    def get_changes(self) -> set[str]:
        """Return the files that changed since the last observation."""
        return self._guard("get_changes", self._get_changes)

    def _get_changes(self) -> set[str]:
        result: PollResult | QueryResponse
        if self.subscribe:
            result = self.poll_for_updates()
        else:
            result = self._query(
                query.since_query(
                    self.watch_root,
                    self.relative_path,
                    self.config.filters,
                    self.clockspec,
                )
            )
        files = set(self.extract_file_names(result.files))
        self.clockspec = result.clock
        return files

    def close(self) -> None:
        self.transport.close()


def _bootstrap(
    timeout: float,
    subscribe: bool,
    root: str | Path,
    config: Config,
    observer: WatchmanObserver,
    discover: Discover,
    connect: Connect,
) -> WatchmanSession:
    root_s = str(root)
    exec_timeout = config.watchman.timeout

    sockname = discover(timeout)
    transport = WatchmanTransport(connect(sockname, timeout), observer)
    try:
        transport.exec(query.capability_check(["relative_root"]), timeout=exec_timeout)
        watch = extract(
            WatchProjectResponse,
            transport.exec(query.watch_project(root_s), timeout=exec_timeout),
        )
        clock = extract(
            ClockResponse,
            transport.exec(query.clock(watch.watch), timeout=exec_timeout),
        )
        session = WatchmanSession(
            transport,
            root,
            watch.watch,
            watch.relative_path,
            clock.clock,
            subscribe=subscribe,
            config=config,
        )
        if subscribe:
            transport.exec(
                query.subscribe(
                    session.watch_root,
                    session.relative_path,
                    config.filters,
                    session.clockspec,
                ),
                timeout=exec_timeout,
            )
    except Exception:
        transport.close()
        raise

    logger.info(
        f"Watching {root_s} via {session.watch_root} "
        f"(relative path {session.relative_path!r}, clock {session.clockspec})"
    )
    return session


def _init_with(
    guard: Callable[..., T],
    timeout: float,
    subscribe: bool,
    root: str | Path,
    config: Config | None,
    observer: WatchmanObserver | None,
    discover: Discover | None,
    connect: Connect,
) -> T:
    config = config or Config()
    observer = observer or LoggingObserver()
    if discover is None:
        binary = config.watchman.binary

        def discover(t: float) -> str:
            return discover_address(t, binary, observer)

    return guard(
        root,
        "init",
        lambda: _bootstrap(timeout, subscribe, root, config, observer, discover, connect),
        config.watchman.tmp_dir,
    )


def init_exn(
    timeout: float,
    subscribe: bool,
    root: str | Path,
    config: Config | None = None,
    observer: WatchmanObserver | None = None,
    discover: Discover | None = None,
    connect: Connect = open_connection,
) -> WatchmanSession:
    """Start a session, leaving a crash marker and re-raising on failure."""
    return _init_with(
        with_crash_record_exn,
        timeout,
        subscribe,
        root,
        config,
        observer,
        discover,
        connect,
    )


def init(
    timeout: float,
    subscribe: bool,
    root: str | Path,
    config: Config | None = None,
    observer: WatchmanObserver | None = None,
    discover: Discover | None = None,
    connect: Connect = open_connection,
) -> WatchmanSession | None:
    """Start a session, or return None if Watchman is unusable."""
    return _init_with(
        with_crash_record_opt,
        timeout,
        subscribe,
        root,
        config,
        observer,
        discover,
        connect,
    )


def get_all_files(session: WatchmanSession) -> list[str]:
    return session.get_all_files()


def get_changes(session: WatchmanSession) -> set[str]:
    return session.get_changes()
