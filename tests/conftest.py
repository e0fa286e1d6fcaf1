"""
pytest configuration and fixtures.
"""

import socket
import threading
from dataclasses import dataclass, field
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pyhttpd import HTTPServer, ServerConfig
from pyhttpd.core.connection import Connection


# =============================================================================
# SOCKET-PAIR CONNECTIONS
# =============================================================================

@pytest.fixture
def socket_pair() -> Generator[Tuple[socket.socket, socket.socket], None, None]:
    """Two connected sockets: (server side, client side)."""
    server_sock, client_sock = socket.socketpair()
    yield server_sock, client_sock
    for s in (server_sock, client_sock):
        try:
            s.close()
        except OSError:
            pass


@pytest.fixture
def make_connection(socket_pair):
    """
    Factory for a Connection over the server end of a socket pair.

    Returns (connection, client_socket).
    """
    server_sock, client_sock = socket_pair

    def factory(**kwargs) -> Tuple[Connection, socket.socket]:
        kwargs.setdefault("timeout", 2.0)
        conn = Connection(socket=server_sock, address=("127.0.0.1", 0), **kwargs)
        return conn, client_sock

    return factory


# =============================================================================
# RAW HTTP CLIENT
# =============================================================================

@dataclass
class RawResponse:
    status: int
    reason: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""


class RawClient:
    """
    Minimal HTTP client that works on bytes, so tests see exactly what
    the server put on the wire.
    """

    def __init__(self, address: Tuple[str, int], timeout: float = 5.0):
        self.sock = socket.create_connection(address, timeout=timeout)
        self._buffer = b""

    def send(self, data: bytes):
        self.sock.sendall(data)

    def _fill(self) -> bool:
        try:
            chunk = self.sock.recv(4096)
        except ConnectionResetError:
            return False
        if not chunk:
            return False
        self._buffer += chunk
        return True

    def read_response(self) -> Optional[RawResponse]:
        """Read one response, or None if the server closed first."""
        while b"\r\n\r\n" not in self._buffer:
            if not self._fill():
                if self._buffer:
                    raise AssertionError(f"Truncated response head: {self._buffer!r}")
                return None

        head, self._buffer = self._buffer.split(b"\r\n\r\n", 1)
        lines = head.decode("iso-8859-1").split("\r\n")
        version, status, reason = lines[0].split(" ", 2)
        assert version == "HTTP/1.1"

        headers = {}
        for line in lines[1:]:
            name, value = line.split(":", 1)
            headers[name.strip()] = value.strip()

        length = int(headers.get("Content-Length", "0"))
        while len(self._buffer) < length:
            if not self._fill():
                raise AssertionError("Connection closed inside response body")

        body, self._buffer = self._buffer[:length], self._buffer[length:]
        return RawResponse(int(status), reason, headers, body)

    def request(self, data: bytes) -> Optional[RawResponse]:
        self.send(data)
        return self.read_response()

    def is_closed_by_peer(self) -> bool:
        """True once the server has closed its side (EOF with nothing pending)."""
        if self._buffer:
            return False
        try:
            return self.sock.recv(1) == b""
        except ConnectionResetError:
            return True

    def close(self):
        self.sock.close()


# =============================================================================
# LIVE SERVER
# =============================================================================

class LiveServer:
    """Runs an HTTPServer on a background thread, on a free port."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None
        self._clients = []

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()
        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def client(self) -> RawClient:
        c = RawClient(self.address)
        self._clients.append(c)
        return c

    def stop(self):
        for c in self._clients:
            c.close()
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


def _live_server(directory: Optional[str], configure=None) -> LiveServer:
    server = HTTPServer(ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        timeout=5.0,
        keep_alive_timeout=2.0,
        directory=directory,
        log_level="WARNING",
    ))
    if configure is not None:
        configure(server)
    live = LiveServer(server)
    live.start()
    return live


@pytest.fixture
def files_dir(tmp_path: Path) -> Path:
    directory = tmp_path / "files"
    directory.mkdir()
    return directory


@pytest.fixture
def live_server(files_dir: Path) -> Generator[LiveServer, None, None]:
    """Server with a serving directory."""
    live = _live_server(str(files_dir))
    yield live
    live.stop()


@pytest.fixture
def live_server_no_dir() -> Generator[LiveServer, None, None]:
    """Server started without --directory."""
    live = _live_server(None)
    yield live
    live.stop()


@pytest.fixture
def live_server_factory(files_dir: Path):
    """
    Start a server after letting the test adjust it.

        live = live_server_factory(lambda server: server.use(MyMiddleware()))
    """
    started = []

    def factory(configure) -> LiveServer:
        live = _live_server(str(files_dir), configure)
        started.append(live)
        return live

    yield factory
    for live in started:
        live.stop()
