"""
=============================================================================
HTTP RESPONSE BUILDER
=============================================================================

Builds and serializes HTTP/1.1 responses.

=============================================================================
HTTP RESPONSE ANATOMY
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  STATUS LINE                                                        │
    │      HTTP/1.1 200 OK\\r\\n                                            │
    │      ────┬─── ─┬─ ─┬─                                               │
    │      Version  Code Phrase   (phrase from status_codes.reason_phrase)│
    ├─────────────────────────────────────────────────────────────────────┤
    │  HEADERS (in the order they were set)                               │
    │      Content-Type: text/plain\\r\\n                                   │
    │      Content-Length: 3\\r\\n       ← added from len(body) if unset    │
    ├─────────────────────────────────────────────────────────────────────┤
    │  EMPTY LINE                                                         │
    │      \\r\\n                                                           │
    ├─────────────────────────────────────────────────────────────────────┤
    │  BODY (raw bytes)                                                   │
    │      abc                                                            │
    └─────────────────────────────────────────────────────────────────────┘

Every response carries Content-Length. Without it a keep-alive client
could not tell where this response ends and the next one begins.

Text is encoded as ISO-8859-1, the same encoding the request reader
decodes with, so a value taken from a request goes back out byte for
byte.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Optional, Dict, Union

from ..core.connection import WIRE_ENCODING
from .status_codes import HTTPStatus, reason_phrase


@dataclass
class HTTPResponse:
    """
    An HTTP response to be sent to the client.

    Use ResponseBuilder (or the helpers at the bottom of this module) to
    construct one.

        Handler returns          to_bytes()              Connection sends
        HTTPResponse    ─────►   serializes    ─────►    raw bytes
    """

    status: int = HTTPStatus.OK
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    version: str = "HTTP/1.1"

    @property
    def status_line(self) -> str:
        return f"{self.version} {int(self.status)} {reason_phrase(self.status)}"

    def set_header(self, name: str, value: str) -> "HTTPResponse":
        self.headers[name] = value
        return self

    def to_bytes(self, server_name: Optional[str] = None) -> bytes:
        """
        Serialize the response for Connection.send_response().

        Args:
            server_name: Value for a Server header. None adds no header.

        Returns:
            Status line, headers, blank line and body as one bytes object.
        """
        response_headers = dict(self.headers)

        if "Content-Length" not in response_headers:
            response_headers["Content-Length"] = str(len(self.body))

        if server_name and "Server" not in response_headers:
            response_headers["Server"] = server_name

        lines = [self.status_line]
        for name, value in response_headers.items():
            lines.append(f"{name}: {value}")
        lines.append("")

        head = "\r\n".join(lines) + "\r\n"
        return head.encode(WIRE_ENCODING, errors="replace") + self.body


class ResponseBuilder:
    """
    Fluent builder for HTTP responses.

        response = (ResponseBuilder()
            .status(HTTPStatus.OK)
            .text("abc")
            .build())
    """

    def __init__(self):
        self._status: int = HTTPStatus.OK
        self._headers: Dict[str, str] = {}
        self._body: bytes = b""

    def status(self, status: int) -> "ResponseBuilder":
        self._status = status
        return self

    def body(self, body: Union[str, bytes]) -> "ResponseBuilder":
        """Set the raw body. Strings are encoded as ISO-8859-1."""
        self._body = body.encode(WIRE_ENCODING) if isinstance(body, str) else body
        return self

    def text(self, text: str) -> "ResponseBuilder":
        self._headers["Content-Type"] = "text/plain"
        return self.body(text)

    def octet_stream(self, data: bytes) -> "ResponseBuilder":
        self._headers["Content-Type"] = "application/octet-stream"
        return self.body(data)

    def close_connection(self) -> "ResponseBuilder":
        """Mark this as the last response on the connection."""
        self._headers["Connection"] = "close"
        return self

    def build(self) -> HTTPResponse:
        return HTTPResponse(
            status=self._status,
            headers=dict(self._headers),
            body=self._body,
        )


# =============================================================================
# SHORTCUTS
# =============================================================================
#
# Error responses carry no body; the status line says it all.
#
#     return ok("abc")
#     return not_found()
#
# =============================================================================

def ok(body: Union[str, bytes] = b"") -> HTTPResponse:
    """200 OK. A str body is sent as text/plain; bytes go out untyped."""
    builder = ResponseBuilder().status(HTTPStatus.OK)
    if isinstance(body, str):
        builder.text(body)
    else:
        builder.body(body)
    return builder.build()


def created() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.CREATED)


def bad_request() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.BAD_REQUEST)


def not_found() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.NOT_FOUND)


def internal_error() -> HTTPResponse:
    return HTTPResponse(status=HTTPStatus.INTERNAL_SERVER_ERROR)
