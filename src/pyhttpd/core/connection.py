"""
=============================================================================
CONNECTION: BUFFERED READING OVER A TCP BYTE STREAM
=============================================================================

A Connection owns exactly one accepted client socket and everything the
server needs to pull HTTP framing out of it.

=============================================================================
LINES, NOT MESSAGES
=============================================================================

TCP preserves byte order but not boundaries. One recv() may return half
a request line, or a request line plus two headers plus the start of a
body. The reader therefore keeps a carry-over buffer:

    recv() #1  →  b"GET /echo/ab"
    recv() #2  →  b"c HTTP/1.1\\r\\nHost: x\\r\\n\\r\\nGET / HT"

    read_line() → "GET /echo/abc HTTP/1.1"
    read_line() → "Host: x"
    read_line() → ""
    _buffer     =  b"GET / HT"        ← kept for the next request

Anything left over after one request belongs to the next one on the same
socket, so the buffer lives as long as the connection does.

Lines are decoded as ISO-8859-1. Every byte maps to exactly one code
point, so header values survive a decode/encode round trip unchanged.

=============================================================================
END-OF-INPUT RULES
=============================================================================

    ┌───────────────────────────────┬─────────────────────────────────────┐
    │  Situation                    │  read_line() result                 │
    ├───────────────────────────────┼─────────────────────────────────────┤
    │  CRLF found                   │  the line, CRLF stripped            │
    │  EOF, buffer empty            │  None                               │
    │  Idle timeout, buffer empty   │  None                               │
    │  EOF / timeout, partial line  │  IncompleteLineError                │
    │  Line over max_line_size      │  LineTooLongError                   │
    │  Reset / other socket error   │  OSError propagates                 │
    └───────────────────────────────┴─────────────────────────────────────┘

=============================================================================
CONNECTION STATE MACHINE
=============================================================================

    AWAITING_REQUEST ──► PARSING_HEADERS ──► DISPATCHING ──► RESPONDING
           ▲                    │                                │
           │                    ▼                                │
           └─────────────── (keep-alive) ◄───────────────────────┤
                                │                                ▼
                                └────────────────────────────► CLOSING
                                                                 │
                                                                 ▼
                                                               CLOSED

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional, Tuple


logger = logging.getLogger(__name__)


WIRE_ENCODING = "iso-8859-1"
CRLF = b"\r\n"


class IncompleteLineError(EOFError):
    """The stream ended (or went idle) in the middle of a line."""


class LineTooLongError(ValueError):
    """A line grew past the configured maximum without a CRLF."""


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    Mostly useful in debug logs: when a connection dies, its last state
    says which phase of the exchange it was in.
    """
    AWAITING_REQUEST = "awaiting_request"  # Waiting for a request line
    PARSING_HEADERS = "parsing_headers"    # Reading header lines
    DISPATCHING = "dispatching"            # Handler is running
    RESPONDING = "responding"              # Writing the response
    CLOSING = "closing"                    # Shutdown sequence started
    CLOSED = "closed"                      # Socket released


@dataclass
class Connection:
    """
    Represents one client connection.

    Attributes:
        socket: The accepted client socket.
        address: Client's (ip, port) tuple.
        id: Short identifier used to correlate log lines.
        state: Current connection state.
        requests_handled: Responses written on this connection so far.
        buffer_size: Bytes asked for per recv() call.
        timeout: Default read timeout in seconds (None blocks forever).
        max_line_size: Longest line accepted, CRLF excluded.
    """

    socket: socket.socket
    address: Tuple[str, int]

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.AWAITING_REQUEST
    created_at: float = field(default_factory=time.time)
    requests_handled: int = 0

    buffer_size: int = 4096
    timeout: Optional[float] = 30.0
    max_line_size: int = 64 * 1024

    _buffer: bytearray = field(default_factory=bytearray, repr=False)

    def __post_init__(self):
        self.socket.settimeout(self.timeout)

    @property
    def client_ip(self) -> str:
        return self.address[0] if self.address else "-"

    @property
    def is_closed(self) -> bool:
        return self.state == ConnectionState.CLOSED

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self, timeout: Optional[float] = None) -> Optional[str]:
        """
        Read one CRLF-terminated line.

        Args:
            timeout: Idle timeout for this read only. None uses the
                connection's default timeout.

        Returns:
            The decoded line without its CRLF, or None when the peer
            has nothing more to say (clean EOF or idle timeout with an
            empty buffer).

        Raises:
            IncompleteLineError: EOF or timeout after a partial line.
            LineTooLongError: The line exceeds max_line_size.
            OSError: Connection reset and other transport failures.
        """
        if timeout is not None:
            self.socket.settimeout(timeout)

        try:
            scan_from = 0
            while True:
                index = self._buffer.find(CRLF, scan_from)
                if index >= 0:
                    if index > self.max_line_size:
                        raise LineTooLongError(
                            f"Line of {index} bytes exceeds {self.max_line_size}"
                        )
                    line = bytes(self._buffer[:index])
                    del self._buffer[:index + len(CRLF)]
                    return line.decode(WIRE_ENCODING)

                if len(self._buffer) > self.max_line_size:
                    raise LineTooLongError(
                        f"No CRLF within {self.max_line_size} bytes"
                    )

                # A CR at the very end may be half of a CRLF split across
                # two recv() calls, so rescan from one byte back.
                scan_from = max(len(self._buffer) - 1, 0)

                try:
                    chunk = self._recv()
                except socket.timeout:
                    if not self._buffer:
                        logger.debug(f"[{self.id}] Idle timeout")
                        return None
                    raise IncompleteLineError(
                        f"Timed out with {len(self._buffer)} bytes of a partial line"
                    )

                if not chunk:
                    if not self._buffer:
                        return None
                    raise IncompleteLineError(
                        f"Stream ended with {len(self._buffer)} bytes of a partial line"
                    )

                self._buffer += chunk
        finally:
            if timeout is not None:
                self.socket.settimeout(self.timeout)

    def read_exact(self, size: int) -> bytes:
        """
        Read up to ``size`` bytes: buffered bytes first, then the socket.

        A clean EOF or idle timeout stops the read early and returns
        whatever arrived. Other socket errors propagate.
        """
        data = bytearray(self._buffer[:size])
        del self._buffer[:size]

        while len(data) < size:
            try:
                chunk = self._recv(min(self.buffer_size, size - len(data)))
            except socket.timeout:
                logger.debug(f"[{self.id}] Timed out after {len(data)}/{size} body bytes")
                break
            if not chunk:
                break
            data += chunk

        return bytes(data)

    def discard(self, size: int) -> int:
        """
        Skip ``size`` bytes of input, returning how many were skipped.

        Used to step over a request body the handler never read so that
        the next request line is found where it belongs.
        """
        skipped = 0
        while skipped < size:
            chunk = self.read_exact(min(self.buffer_size, size - skipped))
            if not chunk:
                break
            skipped += len(chunk)
        return skipped

    def _recv(self, size: Optional[int] = None) -> bytes:
        return self.socket.recv(size or self.buffer_size)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send_response(self, data: bytes) -> bool:
        """
        Write a serialized response.

        Returns:
            True if every byte was handed to the kernel, False if the
            peer went away.
        """
        self.state = ConnectionState.RESPONDING
        try:
            self.socket.sendall(data)
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed: {e}")
            return False
        self.requests_handled += 1
        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection.

        Sends FIN first (shutdown SHUT_WR) so the peer sees a clean end
        of stream after the last response, then releases the socket.
        """
        if self.state == ConnectionState.CLOSED:
            return

        phase = self.state
        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            # Peer already gone
            pass

        try:
            self.socket.close()
        except OSError as e:
            logger.debug(f"[{self.id}] Error closing socket: {e}")

        self.state = ConnectionState.CLOSED
        logger.debug(
            f"[{self.id}] Connection closed after {self.requests_handled} requests "
            f"({time.time() - self.created_at:.3f}s, last phase {phase.value})"
        )

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
