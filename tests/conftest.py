"""
pytest configuration and fixtures.
"""

import socket
import threading
import time
from typing import Callable, Generator, Optional

import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from httpfuture.core.transport import Transport


@pytest.fixture
def simple_response() -> bytes:
    """Minimal well-formed response."""
    return (
        b"HTTP/1.1 200 OK\r\n"
        b"Content-Type: text/plain\r\n"
        b"\r\n"
        b"hello"
    )


@pytest.fixture
def continue_response() -> bytes:
    """Two 100 Continue preambles in front of the real response."""
    return (
        b"HTTP/1.1 100 Continue\r\n"
        b"\r\n"
        b"HTTP/1.1 100 Continue\r\n"
        b"X-Interim: yes\r\n"
        b"\r\n"
        b"HTTP/1.1 201 Created\r\n"
        b"Location: /items/7\r\n"
        b"Content-Type: application/json\r\n"
        b"\r\n"
        b'{"id": 7}'
    )


class FakeTransport(Transport):
    """Transport that answers from memory instead of the network."""

    def __init__(
        self,
        response: bytes = b"",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.response = response
        self.error = error
        self.delay = delay
        self.requests = []

    def _open(self, host, port, timeout):
        raise NotImplementedError

    def exchange(self, request, deadline):
        self.requests.append(request)
        if self.delay:
            time.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def fake_transport() -> Callable[..., FakeTransport]:
    """Factory for in-memory transports."""
    return FakeTransport


class CannedServer:
    """
    TCP server that answers every connection with the same bytes.

    Records each request it receives, then writes the canned response
    (after an optional delay) and closes the connection.
    """

    def __init__(self, response: bytes, delay: float = 0.0):
        self.response = response
        self.delay = delay
        self.requests: list[bytes] = []

        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))
        self._socket.listen(8)
        self._socket.settimeout(0.1)
        self.port = self._socket.getsockname()[1]

        self._running = True
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    @property
    def url(self) -> str:
        return f"http://127.0.0.1:{self.port}"

    def _serve(self):
        while self._running:
            try:
                conn, _ = self._socket.accept()
            except socket.timeout:
                continue
            except OSError:
                break

            with conn:
                conn.settimeout(2.0)
                try:
                    self.requests.append(self._read_request(conn))
                    if self.delay:
                        time.sleep(self.delay)
                    conn.sendall(self.response)
                except OSError:
                    pass  # client went away (e.g. it timed out first)

    def _read_request(self, conn: socket.socket) -> bytes:
        data = b""
        while b"\r\n\r\n" not in data:
            chunk = conn.recv(4096)
            if not chunk:
                return data
            data += chunk

        head, _, body = data.partition(b"\r\n\r\n")
        length = 0
        for line in head.split(b"\r\n"):
            if line.lower().startswith(b"content-length:"):
                length = int(line.split(b":", 1)[1].strip())
        while len(body) < length:
            chunk = conn.recv(4096)
            if not chunk:
                break
            body += chunk
        return head + b"\r\n\r\n" + body

    def stop(self):
        self._running = False
        self._thread.join(timeout=5.0)
        self._socket.close()


@pytest.fixture
def canned_server() -> Generator[Callable[..., CannedServer], None, None]:
    """Factory starting CannedServers; all are stopped after the test."""
    servers = []

    def start(response: bytes, delay: float = 0.0) -> CannedServer:
        server = CannedServer(response, delay)
        servers.append(server)
        return server

    yield start

    for server in servers:
        server.stop()


@pytest.fixture
def closed_port() -> int:
    """A local port with nothing listening on it."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]
