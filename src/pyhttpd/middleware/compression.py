"""
=============================================================================
COMPRESSION MIDDLEWARE
=============================================================================

Applies gzip to responses of routes that opt in.

A route opts in with route metadata:

    router.add_route("/echo/*value", echo, compress=True)

For such a route, when the client's Accept-Encoding lists "gzip", the
handler's body is replaced by its gzip form:

    ┌───────────────────────────────────────────────────────────────┐
    │ HTTP/1.1 200 OK                                               │
    │ Content-Type: text/plain                                      │
    │ Content-Encoding: gzip                                        │
    │ Content-Length: 23          (compressed size)                 │
    │ Vary: Accept-Encoding                                         │
    │                                                               │
    │ [gzip compressed body]                                        │
    └───────────────────────────────────────────────────────────────┘

Other routes are never compressed, whatever the client accepts. The
body is compressed even when gzip makes it bigger: a client that asks
for gzip on an opted-in route always gets gzip.

=============================================================================
"""

import logging
import zlib

from .base import Middleware, NextHandler
from ..http.compression import GZIP, compress, should_compress
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse, internal_error


logger = logging.getLogger(__name__)


class CompressionMiddleware(Middleware):
    """
    Per-route gzip middleware.

    Args:
        level: gzip compression level (1-9).
        meta_key: Route metadata flag that opts a route in.
    """

    def __init__(self, level: int = 6, meta_key: str = "compress"):
        self.level = level
        self.meta_key = meta_key

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        response = next(request)

        # route_meta is filled in by the router during next()
        if not request.route_meta.get(self.meta_key):
            return response

        if not self._should_compress(request, response):
            return response

        try:
            compressed_body = compress(response.body, self.level)
        except (OSError, zlib.error):
            logger.exception(f"gzip failed for {request.method} {request.path}")
            return internal_error()

        response.body = compressed_body
        response.set_header("Content-Encoding", GZIP)
        response.set_header("Content-Length", str(len(compressed_body)))

        vary = response.headers.get("Vary", "")
        if "Accept-Encoding" not in vary:
            response.set_header("Vary", f"{vary}, Accept-Encoding".lstrip(", "))

        return response

    def _should_compress(self, request: HTTPRequest, response: HTTPResponse) -> bool:
        if "Content-Encoding" in response.headers:
            return False
        return should_compress(request.headers)
