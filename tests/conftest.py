"""Shared fixtures: a scripted Watchman server on the far end of a socketpair."""

from __future__ import annotations

import json
import socket
import threading
from collections import deque
from typing import Any

import pytest

from hhwatch.models.config import Config, WatchmanConfig
from hhwatch.watchman.session import WatchmanSession
from hhwatch.watchman.transport import WatchmanTransport


class RecordingObserver:
    """Keeps every Watchman event in memory."""

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.timeouts = 0

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def error(self, message: str) -> None:
        self.errors.append(message)

    def timeout(self) -> None:
        self.timeouts += 1


class FakeWatchman:
    """Answers each request line with the next scripted reply.

    A reply may be a dict (one JSON line), bytes (written verbatim), a list
    of those (several lines), or None (stay silent).
    """

    def __init__(self, sock: socket.socket):
        self.sock = sock
        self.requests: list[Any] = []
        self._replies: deque[Any] = deque()
        self._lock = threading.Lock()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def expect(self, *replies: Any) -> None:
        self._replies.extend(replies)

    def push(self, reply: Any) -> None:
        """Write lines without waiting for a request."""
        self._write(reply)

    def _write(self, reply: Any) -> None:
        if reply is None:
            return
        if isinstance(reply, list):
            for item in reply:
                self._write(item)
            return
        data = reply if isinstance(reply, bytes) else json.dumps(reply).encode() + b"\n"
        with self._lock:
            self.sock.sendall(data)

    def _serve(self) -> None:
        buffer = b""
        while True:
            try:
                chunk = self.sock.recv(4096)
            except OSError:
                return
            if not chunk:
                return
            buffer += chunk
            while b"\n" in buffer:
                line, buffer = buffer.split(b"\n", 1)
                self.requests.append(json.loads(line))
                if self._replies:
                    reply = self._replies.popleft()
                else:
                    reply = {"error": "unexpected request"}
                try:
                    self._write(reply)
                except OSError:
                    return

    def close(self) -> None:
        try:
            self.sock.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        self.sock.close()


@pytest.fixture
def socket_pair():
    client, server = socket.socketpair(socket.AF_UNIX, socket.SOCK_STREAM)
    yield client, server
    client.close()
    server.close()


@pytest.fixture
def watchman(socket_pair):
    fake = FakeWatchman(socket_pair[1])
    yield fake
    fake.close()


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def transport(socket_pair, watchman, observer):
    return WatchmanTransport(socket_pair[0], observer)


@pytest.fixture
def config(tmp_path):
    return Config(
        watchman=WatchmanConfig(tmp_dir=tmp_path / "hh_server", strict=False, timeout=2.0)
    )


@pytest.fixture
def make_session(transport, config):
    def make(
        watch_root: str = "/repo",
        relative_path: str = "",
        clockspec: str = "c:1",
        subscribe: bool = False,
        root: str | None = None,
    ) -> WatchmanSession:
        return WatchmanSession(
            transport,
            root or watch_root,
            watch_root,
            relative_path,
            clockspec,
            subscribe=subscribe,
            config=config,
        )

    return make
