"""
=============================================================================
HTTP REQUEST PARSER
=============================================================================

Turns the line stream of a Connection into HTTPRequest objects.

=============================================================================
HTTP REQUEST ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  REQUEST LINE            parse_request_line()                       │
    │      POST /files/notes.txt HTTP/1.1\\r\\n                             │
    │      ─┬── ───────┬──────── ───┬────                                 │
    │     method    target       version      exactly three tokens,       │
    │                                         one space between each      │
    ├─────────────────────────────────────────────────────────────────────┤
    │  HEADERS                 RequestParser.read_headers()               │
    │      Host: localhost:4221\\r\\n                                       │
    │      Content-Length: 5\\r\\n                                          │
    │      \\r\\n                  ← empty line ends the header block       │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BODY                    read_body()                                │
    │      hello                 exactly Content-Length bytes, read only  │
    │                            when a handler asks for it               │
    └─────────────────────────────────────────────────────────────────────┘

PARSING RULES
-------------
- The target is kept raw: no URL decoding, no query splitting, no
  normalization. "/echo/a%20b" routes with value "a%20b".
- Method and version are not validated; any three tokens are accepted.
- A header line splits on its FIRST colon. Name and value are trimmed,
  so "Host: localhost:4221" gives value "localhost:4221".
- Header names keep their case and are looked up by exact match.
  A repeated name replaces the earlier value.

FAILURE MODES
-------------
    HTTPParseError           malformed line; the server answers 400 and
                             closes the connection
    IncompleteRequestError   stream ended inside the request; closed
                             without a response
    BodyReadError            Content-Length missing or not a number;
                             the handler answers 400

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, TYPE_CHECKING

from ..core.connection import (
    ConnectionState,
    IncompleteLineError,
    LineTooLongError,
)

if TYPE_CHECKING:
    from ..core.connection import Connection


class HTTPParseError(Exception):
    """
    Raised when the request framing is malformed.

    Carries the status code to send back before the connection closes.
    """

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class IncompleteRequestError(HTTPParseError):
    """The stream ended (or went idle) before the request was complete."""


class BodyReadError(ValueError):
    """Content-Length is missing or is not a non-negative integer."""


@dataclass(frozen=True)
class RequestLine:
    method: str
    target: str
    version: str


@dataclass
class HTTPRequest:
    """
    A parsed HTTP request.

    Attributes:
        method: Request method, as sent.
        path: Raw request target, as sent.
        version: Protocol version token, as sent.
        headers: Header name → value, exact-case names, insertion order.
        body: None until read_body() is called (or preset by a caller).
        path_params: Segments captured by the matched route.
        route_meta: Metadata of the matched route (e.g. {"compress": True}).
        client_address: (ip, port) of the peer.
        connection: Where the body comes from. Not shown in repr.
    """

    method: str
    path: str
    version: str = "HTTP/1.1"

    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[bytes] = None

    path_params: Dict[str, str] = field(default_factory=dict)
    route_meta: Dict[str, Any] = field(default_factory=dict)

    client_address: Tuple[str, int] = ("", 0)
    connection: Optional["Connection"] = field(default=None, repr=False, compare=False)

    @property
    def user_agent(self) -> Optional[str]:
        return self.headers.get("User-Agent")

    @property
    def is_keep_alive(self) -> bool:
        """False only when the client sent exactly "Connection: close"."""
        return self.headers.get("Connection") != "close"

    @property
    def body_consumed(self) -> bool:
        return self.body is not None

    def read_body(self) -> bytes:
        """
        Read the body on demand, at most once.

        Raises:
            BodyReadError: Content-Length is missing or invalid, or the
                request is detached from any connection.
        """
        if self.body is None:
            if self.connection is None:
                raise BodyReadError("Request is not attached to a connection")
            self.body = read_body(self.connection, self.headers)
        return self.body


# =============================================================================
# LINE-LEVEL PARSERS
# =============================================================================

def parse_request_line(line: str) -> RequestLine:
    """
    Split a request line into method, target and version.

    Raises:
        HTTPParseError: The line does not have exactly three
            space-separated tokens.
    """
    tokens = line.split(" ")
    if len(tokens) != 3:
        raise HTTPParseError(f"Invalid request line: {line!r}")
    method, target, version = tokens
    return RequestLine(method=method, target=target, version=version)


def parse_header_line(line: str) -> Tuple[str, str]:
    """
    Split a header line on its first colon.

    Raises:
        HTTPParseError: The line has no colon.
    """
    name, sep, value = line.partition(":")
    if not sep:
        raise HTTPParseError(f"Invalid header line: {line!r}")
    return name.strip(), value.strip()


def parse_content_length(headers: Dict[str, str]) -> Optional[int]:
    """
    Content-Length as an int, or None when the header is absent.

    Raises:
        BodyReadError: The value is not a non-negative integer.
    """
    raw = headers.get("Content-Length")
    if raw is None:
        return None
    raw = raw.strip()
    # ASCII digits only: int() would also take "+5" and "1_000", and
    # isdigit() alone lets through superscripts such as "\xb2"
    if not (raw.isascii() and raw.isdigit()):
        raise BodyReadError(f"Invalid Content-Length: {raw!r}")
    return int(raw)


def read_body(conn: "Connection", headers: Dict[str, str]) -> bytes:
    """
    Read a Content-Length delimited body from the connection.

    A peer that closes or goes idle before sending everything yields the
    bytes received so far.

    Raises:
        BodyReadError: No Content-Length, or an invalid one.
        OSError: Transport failures other than EOF/timeout.
    """
    length = parse_content_length(headers)
    if length is None:
        raise BodyReadError("Missing Content-Length")
    return conn.read_exact(length)


# =============================================================================
# CONNECTION-LEVEL PARSER
# =============================================================================

class RequestParser:
    """
    Reads one request head at a time from a Connection.

    Stateless; one instance is shared by every connection thread.
    """

    def read_request(
        self,
        conn: "Connection",
        timeout: Optional[float] = None,
    ) -> Optional[HTTPRequest]:
        """
        Read the next request line and header block.

        The body is left on the wire for HTTPRequest.read_body().

        Args:
            conn: The connection to read from.
            timeout: Idle timeout while waiting for the request line.

        Returns:
            The request, or None when the peer closed (or stayed idle)
            between requests.

        Raises:
            HTTPParseError: Malformed request line or header.
            IncompleteRequestError: Stream ended mid-request.
        """
        conn.state = ConnectionState.AWAITING_REQUEST
        line = self._next_line(conn, timeout)
        if line is None:
            return None

        request_line = parse_request_line(line)

        conn.state = ConnectionState.PARSING_HEADERS
        headers = self.read_headers(conn)

        return HTTPRequest(
            method=request_line.method,
            path=request_line.target,
            version=request_line.version,
            headers=headers,
            client_address=conn.address,
            connection=conn,
        )

    def read_headers(self, conn: "Connection") -> Dict[str, str]:
        """
        Read header lines up to and including the empty terminator line.

        Raises:
            HTTPParseError: A header line without a colon.
            IncompleteRequestError: Stream ended before the empty line.
        """
        headers: Dict[str, str] = {}
        while True:
            line = self._next_line(conn)
            if line is None:
                raise IncompleteRequestError("Stream ended inside the header block")
            if line == "":
                return headers
            name, value = parse_header_line(line)
            headers[name] = value

    @staticmethod
    def _next_line(conn: "Connection", timeout: Optional[float] = None) -> Optional[str]:
        try:
            return conn.read_line(timeout)
        except IncompleteLineError as e:
            raise IncompleteRequestError(str(e)) from e
        except LineTooLongError as e:
            raise HTTPParseError(str(e)) from e
