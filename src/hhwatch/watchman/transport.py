"""Unix socket transport for the Watchman JSON protocol."""

from __future__ import annotations

import json
import logging
import select
import socket
import subprocess
import time
from collections import deque
from typing import Any

from hhwatch.models.response import SocknameResponse
from hhwatch.watchman.errors import (
    MalformedResponseError,
    TransportError,
    WatchmanTimeout,
)
from hhwatch.watchman.observer import LoggingObserver, WatchmanObserver
from hhwatch.watchman.response import (
    assert_no_error,
    extract,
    parse_response,
    sanitize_response,
)

logger = logging.getLogger("hhwatch.watchman")

DEFAULT_TIMEOUT = 120.0


def discover_address(
    timeout: float,
    binary: str = "watchman",
    observer: WatchmanObserver | None = None,
) -> str:
    """Ask the watchman binary where its socket lives."""
    observer = observer or LoggingObserver()
    try:
        proc = subprocess.run(
            [binary, "get-sockname", "--no-pretty"],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        observer.timeout()
        raise WatchmanTimeout(f"{binary} get-sockname timed out after {timeout}s") from e
    except OSError as e:
        raise TransportError(f"Failed to run {binary}: {e}") from e

    if proc.returncode != 0:
        raise TransportError(
            f"{binary} get-sockname exited with {proc.returncode}: {proc.stderr.strip()}"
        )

    response = sanitize_response(proc.stdout.strip(), observer)
    return extract(SocknameResponse, response).sockname


def open_connection(sockname: str, timeout: float) -> socket.socket:
    """Connect to the Watchman socket."""
    sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
    sock.settimeout(timeout)
    try:
        sock.connect(sockname)
    except TimeoutError as e:
        sock.close()
        raise WatchmanTimeout(f"Connecting to {sockname} timed out") from e
    except OSError as e:
        sock.close()
        raise TransportError(f"Failed to connect to {sockname}: {e}") from e

    # Reads are bounded with select from here on.
    sock.settimeout(None)
    return sock


class WatchmanTransport:
    """Line-delimited JSON channel to one Watchman server.

    One request may be in flight at a time. Lines that Watchman pushes on
    its own for a subscription are kept aside while a reply is awaited and
    handed out by ``try_read_line``.
    """

    def __init__(self, sock: socket.socket, observer: WatchmanObserver | None = None):
        self.sock = sock
        self.observer = observer or LoggingObserver()
        self._buffer = b""
        self._backlog: deque[str] = deque()

    def send(self, request: Any) -> None:
        """Write one request line."""
        json_str = json.dumps(request, separators=(",", ":"))
        logger.debug(f"Watchman request: {json_str}")
        try:
            self.sock.sendall(json_str.encode() + b"\n")
        except OSError as e:
            raise TransportError(f"Failed to write to Watchman: {e}") from e

    def _take_line(self) -> str | None:
        if b"\n" not in self._buffer:
            return None
        line, self._buffer = self._buffer.split(b"\n", 1)
        try:
            return line.decode()
        except UnicodeDecodeError as e:
            raw = line.decode(errors="replace")
            logger.error(f"Watchman sent invalid UTF-8: {raw}")
            raise MalformedResponseError(f"Invalid UTF-8 from Watchman: {e}", raw) from e

    def _read_socket_line(self, timeout: float) -> str | None:
        deadline = time.monotonic() + timeout
        while True:
            line = self._take_line()
            if line is not None:
                return line

            remaining = max(0.0, deadline - time.monotonic())
            try:
                readable, _, _ = select.select([self.sock], [], [], remaining)
            except (OSError, ValueError) as e:
                raise TransportError(f"Failed to wait on Watchman socket: {e}") from e
            if not readable:
                return None

            try:
                chunk = self.sock.recv(4096)
            except OSError as e:
                raise TransportError(f"Failed to read from Watchman: {e}") from e
            if not chunk:
                raise TransportError("Watchman closed the connection")
            self._buffer += chunk

    def try_read_line(self, timeout: float) -> str | None:
        """Return the next pushed line, or None if none arrives in time."""
        if self._backlog:
            return self._backlog.popleft()
        return self._read_socket_line(timeout)

    def take_pushed_lines(self) -> list[str]:
        """Hand over every pushed line set aside by exec."""
        lines = list(self._backlog)
        self._backlog.clear()
        return lines

    def read_line(self, timeout: float) -> str:
        """Read one line from the socket or raise WatchmanTimeout."""
        line = self._read_socket_line(timeout)
        if line is None:
            self.observer.timeout()
            raise WatchmanTimeout(f"No response from Watchman within {timeout}s")
        return line

    def exec(self, request: Any, timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
        """Send a request and return its validated reply."""
        self.send(request)
        deadline = time.monotonic() + timeout
        while True:
            line = self.read_line(max(0.0, deadline - time.monotonic()))
            response = parse_response(line)
            if response.get("unilateral"):
                self._backlog.append(line)
                continue
            assert_no_error(response, self.observer)
            return response

    def close(self) -> None:
        self.sock.close()
