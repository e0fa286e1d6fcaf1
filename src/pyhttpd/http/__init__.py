"""
=============================================================================
HTTP PROTOCOL LAYER
=============================================================================

Everything between raw lines on a Connection and handler functions:

    ┌──────────────────┐   ┌──────────────────┐   ┌──────────────────┐
    │  request.py      │──►│  router.py       │──►│  response.py     │
    │  lines → request │   │  target → handler│   │  response → bytes│
    └──────────────────┘   └──────────────────┘   └──────────────────┘
                                                          ▲
                           ┌──────────────────┐           │
                           │  compression.py  │───────────┘
                           │  gzip negotiation│
                           └──────────────────┘

=============================================================================
"""

from .request import (
    HTTPRequest,
    RequestLine,
    RequestParser,
    HTTPParseError,
    IncompleteRequestError,
    BodyReadError,
    parse_request_line,
    parse_header_line,
    parse_content_length,
    read_body,
)
from .response import (
    HTTPResponse,
    ResponseBuilder,
    ok,              # 200 OK
    created,         # 201 Created
    bad_request,     # 400 Bad Request
    not_found,       # 404 Not Found
    internal_error,  # 500 Internal Server Error
)
from .router import Router, Route, RouteMatch
from .status_codes import HTTPStatus, reason_phrase
from .compression import should_compress, compress

__all__ = [
    # Request parsing
    "HTTPRequest",
    "RequestLine",
    "RequestParser",
    "HTTPParseError",
    "IncompleteRequestError",
    "BodyReadError",
    "parse_request_line",
    "parse_header_line",
    "parse_content_length",
    "read_body",

    # Response building
    "HTTPResponse",
    "ResponseBuilder",
    "ok",
    "created",
    "bad_request",
    "not_found",
    "internal_error",

    # Routing
    "Router",
    "Route",
    "RouteMatch",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # Content negotiation
    "should_compress",
    "compress",
]
