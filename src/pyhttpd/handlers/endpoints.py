"""
=============================================================================
TEXT ENDPOINTS
=============================================================================

    ┌───────────────────┬──────────────────────────────────────────────────┐
    │  Target           │  Response                                        │
    ├───────────────────┼──────────────────────────────────────────────────┤
    │  /                │  200, empty body                                 │
    │  /user-agent      │  200 text/plain, body = User-Agent value         │
    │                   │  400 if the request has no User-Agent header     │
    │  /echo/{value}    │  200 text/plain, body = value exactly as sent    │
    │                   │  (gzip when negotiated, see CompressionMiddleware)│
    └───────────────────┴──────────────────────────────────────────────────┘

All of them answer any method.

=============================================================================
"""

from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, ok, bad_request


def root(request: HTTPRequest) -> HTTPResponse:
    return ok()


def user_agent(request: HTTPRequest) -> HTTPResponse:
    value = request.user_agent
    if value is None:
        return bad_request()
    return ok(value)


def echo(request: HTTPRequest) -> HTTPResponse:
    """Echo the rest of the target after "/echo/". No URL decoding."""
    return ok(request.path_params.get("value", ""))
