"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking and storage plumbing underneath the HTTP layer.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         SOCKET SERVER                               │
    │  • Creates the listening socket, binds, listens                     │
    │  • Accept loop; one Connection per client                           │
    │  • SIGINT / SIGTERM trigger a graceful stop                         │
    └─────────────────────────────────────────────────────────────────────┘
                                    │ one thread per connection
                                    ▼
    ┌─────────────────────────────────────────────────────────────────────┐
    │                          CONNECTION                                 │
    │  • Buffered CRLF line reader with carry-over between requests       │
    │  • Exact-length body reads                                          │
    │  • State tracking and graceful close                                │
    └─────────────────────────────────────────────────────────────────────┘

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          FILE STORE                                 │
    │  • Byte reads/writes confined to the serving directory              │
    │  • Per-path write serialization                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

from .socket_server import SocketServer
from .connection import (
    Connection,
    ConnectionState,
    IncompleteLineError,
    LineTooLongError,
    WIRE_ENCODING,
)
from .file_store import FileStore, PathTraversalError

__all__ = [
    "SocketServer",         # Accepts connections
    "Connection",           # Client socket wrapper with buffered reads
    "ConnectionState",      # Connection lifecycle states
    "IncompleteLineError",  # Stream ended mid-line
    "LineTooLongError",     # Line exceeded max_line_size
    "WIRE_ENCODING",        # Byte-exact text encoding for the wire
    "FileStore",            # Files under the serving directory
    "PathTraversalError",   # Name escaped the serving directory
]
