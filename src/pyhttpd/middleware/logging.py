"""
=============================================================================
ACCESS LOGGING MIDDLEWARE
=============================================================================

One log line per request on the "pyhttpd.access" logger, in either a
human-readable or a JSON shape:

    text:  127.0.0.1 - - [19/Oct/2026:10:00:00 +0000] "GET /echo/abc HTTP/1.1" 200 3 0.12ms
    json:  {"request_id": "1f3a9c2e", "method": "GET", "path": "/echo/abc", ...}

Route the access log somewhere else without touching server logs:

    logging.getLogger("pyhttpd.access").addHandler(file_handler)

Placed first in the pipeline, so the timing covers compression too and
the logged size is the size that went on the wire.

=============================================================================
"""

import time
import json
import uuid
import logging
from typing import Optional
from dataclasses import dataclass, asdict

from .base import Middleware, NextHandler
from ..http.request import HTTPRequest
from ..http.response import HTTPResponse


logger = logging.getLogger("pyhttpd.access")


@dataclass
class RequestLog:
    """
    Structured log entry for a request.

    Attributes:
        request_id: Short random ID, unique per request.
        content_length: Body bytes sent (after compression).
        content_encoding: "gzip" or "" when sent uncompressed.
    """
    request_id: str
    method: str
    path: str
    version: str
    client_ip: str
    user_agent: str
    status_code: int
    content_length: int
    content_encoding: str
    duration_ms: float
    timestamp: str

    def to_dict(self) -> dict:
        data = asdict(self)
        data["duration_ms"] = round(self.duration_ms, 2)
        return data

    def to_text(self) -> str:
        return (
            f'{self.client_ip} - - [{self.timestamp}] '
            f'"{self.method} {self.path} {self.version}" {self.status_code} '
            f'{self.content_length} {self.duration_ms:.2f}ms'
        )


class LoggingMiddleware(Middleware):
    """
    Request logging middleware.

        pipeline.add(LoggingMiddleware(log_format="json"))

    Args:
        log_format: "text" or "json".
        log_level: Level the access lines are logged at.
        skip_paths: Exact targets that are never logged.
    """

    def __init__(
        self,
        log_format: str = "text",
        log_level: int = logging.INFO,
        skip_paths: Optional[list] = None,
    ):
        self.log_format = log_format
        self.log_level = log_level
        self.skip_paths = set(skip_paths or [])

    def __call__(self, request: HTTPRequest, next: NextHandler) -> HTTPResponse:
        request_id = str(uuid.uuid4())[:8]
        start_time = time.time()

        try:
            response = next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            logger.error(
                f"Request failed: {request.method} {request.path} "
                f"- {type(e).__name__}: {e} ({duration_ms:.2f}ms)"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000

        if request.path in self.skip_paths:
            return response

        log_entry = RequestLog(
            request_id=request_id,
            method=request.method,
            path=request.path,
            version=request.version,
            client_ip=request.client_address[0] if request.client_address else "-",
            user_agent=request.user_agent or "-",
            status_code=int(response.status),
            content_length=len(response.body),
            content_encoding=response.headers.get("Content-Encoding", ""),
            duration_ms=duration_ms,
            timestamp=time.strftime("%d/%b/%Y:%H:%M:%S %z"),
        )

        if self.log_format == "json":
            logger.log(self.log_level, json.dumps(log_entry.to_dict()))
        else:
            logger.log(self.log_level, log_entry.to_text())

        return response
