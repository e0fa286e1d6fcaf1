"""
=============================================================================
FILES ENDPOINT
=============================================================================

/files/{name} reads and writes raw bytes under the serving directory.

=============================================================================
DECISION ORDER
=============================================================================

    ┌──────────────────────────────────────────────────────────────────┐
    │  serving directory unset or missing?   → 500                     │
    │  name empty ("/files/")?               → 400                     │
    │  name escapes the directory?           → 400                     │
    ├──────────────────────────────────────────────────────────────────┤
    │  GET                                                             │
    │     file missing                       → 404                     │
    │     other read error                   → 500                     │
    │     ok                                 → 200 octet-stream        │
    ├──────────────────────────────────────────────────────────────────┤
    │  any other method (POST, PUT, ...)                               │
    │     Content-Length missing or invalid  → 400                     │
    │     write error                        → 500                     │
    │     ok                                 → 201, empty body         │
    └──────────────────────────────────────────────────────────────────┘

The directory check comes first and is repeated on every request, so
/files/ with no directory configured is a 500, not a 400.

=============================================================================
"""

import logging

from ..core.file_store import FileStore, PathTraversalError
from ..http.request import HTTPRequest, BodyReadError
from ..http.status_codes import HTTPStatus
from ..http.response import (
    HTTPResponse,
    ResponseBuilder,
    created,
    bad_request,
    not_found,
    internal_error,
)


logger = logging.getLogger(__name__)


class FilesHandler:
    """
    Handler for /files/*name.

        files = FilesHandler(FileStore("/tmp/files"))
        router.add_route("/files/*name", files.handle)
    """

    def __init__(self, store: FileStore):
        self.store = store

    def handle(self, request: HTTPRequest) -> HTTPResponse:
        if not self.store.is_available():
            logger.warning(f"Serving directory unavailable: {self.store.root}")
            return internal_error()

        name = request.path_params.get("name", "")
        if not name:
            return bad_request()

        if request.method == "GET":
            return self._read(name)
        return self._write(request, name)

    def _read(self, name: str) -> HTTPResponse:
        try:
            data = self.store.read(name)
        except PathTraversalError as e:
            logger.warning(f"Rejected file name: {e}")
            return bad_request()
        except FileNotFoundError:
            return not_found()
        except OSError as e:
            logger.error(f"Failed to read {name!r}: {e}")
            return internal_error()

        return (ResponseBuilder()
            .status(HTTPStatus.OK)
            .octet_stream(data)
            .build())

    def _write(self, request: HTTPRequest, name: str) -> HTTPResponse:
        try:
            body = request.read_body()
        except BodyReadError as e:
            logger.info(f"Cannot read body for {name!r}: {e}")
            return bad_request()

        try:
            self.store.write(name, body)
        except PathTraversalError as e:
            logger.warning(f"Rejected file name: {e}")
            return bad_request()
        except OSError as e:
            logger.error(f"Failed to write {name!r}: {e}")
            return internal_error()

        return created()
