"""
=============================================================================
MIDDLEWARE
=============================================================================

Cross-cutting behaviour wrapped around the router.

LoggingMiddleware:
    One access-log line per request, text or JSON, on "pyhttpd.access".

CompressionMiddleware:
    gzip for routes registered with compress=True, when the client
    accepts it.

=============================================================================
"""

from .base import Middleware, MiddlewarePipeline, NextHandler
from .logging import LoggingMiddleware, RequestLog
from .compression import CompressionMiddleware

__all__ = [
    # Base classes
    "Middleware",
    "MiddlewarePipeline",
    "NextHandler",

    # Built-in middleware
    "LoggingMiddleware",
    "RequestLog",
    "CompressionMiddleware",
]
