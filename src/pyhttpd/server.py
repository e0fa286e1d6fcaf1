"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together and runs the per-connection request loop.

=============================================================================
REQUEST FLOW
=============================================================================

    SocketServer.accept()
          │
          ▼  one daemon thread per connection
    ┌─────────────────────────────────────────────────────────────────────┐
    │  _process_connection(conn)                                          │
    │                                                                     │
    │   ┌──► AWAITING_REQUEST   RequestParser.read_request()              │
    │   │         │              None (EOF / idle) ─────────────► close   │
    │   │         ▼                                                       │
    │   │    PARSING_HEADERS    IncompleteRequestError ─────────► close   │
    │   │         │              HTTPParseError ───► 400 + close          │
    │   │         ▼                                                       │
    │   │    DISPATCHING        middleware → router → handler             │
    │   │         │              exception ───► 500 (connection stays)    │
    │   │         ▼                                                       │
    │   │    RESPONDING         send failure ─────────────────► close     │
    │   │         │              "Connection: close" ─────────► close     │
    │   │         ▼                                                       │
    │   │    skip unread body   bad Content-Length ───────────► close     │
    │   │         │                                                       │
    │   └─────────┘                                                       │
    └─────────────────────────────────────────────────────────────────────┘

Requests on one connection are handled strictly one after another; a
response is fully written before the next request line is read.

The first request waits up to config.timeout. Later requests on a
kept-alive connection wait up to config.keep_alive_timeout; an idle
client is then disconnected without a response.

=============================================================================
"""

import logging
import threading
from typing import Optional, Callable

from .config import ServerConfig
from .core import SocketServer, Connection, ConnectionState, FileStore
from .handlers import build_router
from .http import (
    HTTPRequest, RequestParser, HTTPParseError, IncompleteRequestError,
    BodyReadError, HTTPResponse, ResponseBuilder, Router,
    internal_error, parse_content_length,
)
from .middleware import (
    MiddlewarePipeline, Middleware, LoggingMiddleware, CompressionMiddleware,
)


logger = logging.getLogger(__name__)


class HTTPServer:
    """
    HTTP/1.1 server with persistent connections.

        server = HTTPServer(ServerConfig(port=4221, directory="/tmp/files"))
        server.run()          # blocks until SIGINT/SIGTERM or shutdown()

    The route table (/, /user-agent, /echo/*value, /files/*name) and the
    default middleware (access log, gzip) are set up here. Extra
    middleware added with use() runs inside those two.
    """

    def __init__(self, config: Optional[ServerConfig] = None):
        self.config = config or ServerConfig()
        self.config.validate()

        self._socket_server = SocketServer(self.config)
        self._parser = RequestParser()

        self._file_store = FileStore(self.config.directory)
        self._router = build_router(self._file_store)

        self._middleware = MiddlewarePipeline()
        self._middleware.add(LoggingMiddleware(log_format=self.config.log_format))
        self._middleware.add(CompressionMiddleware(level=self.config.compression_level))

        self._handler: Optional[Callable[[HTTPRequest], HTTPResponse]] = None

    # =========================================================================
    # CONFIGURATION
    # =========================================================================

    def use(self, middleware: Middleware) -> "HTTPServer":
        """Add middleware. Must be called before run()."""
        self._middleware.add(middleware)
        return self

    @property
    def router(self) -> Router:
        return self._router

    @property
    def file_store(self) -> FileStore:
        return self._file_store

    @property
    def address(self):
        """(host, port) actually bound; meaningful once the server is ready."""
        return self._socket_server.address

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def run(self, host: Optional[str] = None, port: Optional[int] = None):
        """
        Start the server and block until it is shut down.

        Raises:
            OSError: The listening socket could not be bound.
        """
        if host:
            self.config.host = host
        if port is not None:
            self.config.port = port

        self._setup_logging()
        self._handler = self._middleware.wrap(self._router.handle)

        for route in self._router.routes():
            logger.debug(f"Route {route.path} -> {route.name or route.handler}")

        if self.config.directory and not self._file_store.is_available():
            logger.warning(f"Serving directory does not exist: {self.config.directory}")

        try:
            self._socket_server.start(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            logger.info("Server stopped")

    def shutdown(self):
        """Stop accepting connections. Open connections finish on their own."""
        self._socket_server.shutdown()

    def wait_until_ready(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_until_ready(timeout)

    def _setup_logging(self):
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)

        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("pyhttpd").setLevel(level)

    # =========================================================================
    # CONNECTION HANDLING
    # =========================================================================

    def _handle_connection(self, conn: Connection):
        """Called on the accept thread: hand the connection to its own thread."""
        thread = threading.Thread(
            target=self._process_connection,
            args=(conn,),
            name=f"conn-{conn.id}",
            daemon=True,
        )
        thread.start()

    def _process_connection(self, conn: Connection):
        """Run the request/response loop until the connection ends."""
        with conn:
            while True:
                timeout = self.config.keep_alive_timeout if conn.requests_handled else None

                try:
                    request = self._parser.read_request(conn, timeout)
                except IncompleteRequestError as e:
                    logger.debug(f"[{conn.id}] Incomplete request: {e}")
                    break
                except HTTPParseError as e:
                    logger.info(f"[{conn.id}] Malformed request: {e}")
                    self._send_error(conn, e.status_code)
                    break
                except OSError as e:
                    logger.debug(f"[{conn.id}] Read failed: {e}")
                    break

                if request is None:
                    break

                conn.state = ConnectionState.DISPATCHING
                response = self._dispatch(conn, request)

                keep_alive = request.is_keep_alive
                if not keep_alive:
                    response.set_header("Connection", "close")

                if not conn.send_response(response.to_bytes(self.config.server_name)):
                    break

                if not keep_alive:
                    break

                if not self._skip_unread_body(conn, request):
                    break

    def _dispatch(self, conn: Connection, request: HTTPRequest) -> HTTPResponse:
        try:
            return self._handler(request)
        except Exception as e:
            logger.exception(f"[{conn.id}] Handler error: {e}")
            return internal_error()

    def _skip_unread_body(self, conn: Connection, request: HTTPRequest) -> bool:
        """
        Discard a declared body the handler never read.

        Returns:
            False if the connection can no longer be framed and must close.
        """
        if request.body_consumed:
            return True

        try:
            length = parse_content_length(request.headers)
        except BodyReadError as e:
            logger.info(f"[{conn.id}] Closing after unusable body length: {e}")
            return False

        if not length:
            return True

        try:
            skipped = conn.discard(length)
        except OSError as e:
            logger.debug(f"[{conn.id}] Failed skipping body: {e}")
            return False
        return skipped == length

    def _send_error(self, conn: Connection, status: int):
        """Best-effort error response for requests that never reached a handler."""
        response = (ResponseBuilder()
            .status(status)
            .close_connection()
            .build())
        conn.send_response(response.to_bytes(self.config.server_name))


def create_app(config: Optional[ServerConfig] = None) -> HTTPServer:
    """
    Create a server instance.

        app = create_app(ServerConfig(port=4221, directory="/tmp/files"))
        app.run()
    """
    return HTTPServer(config)
