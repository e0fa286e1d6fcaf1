"""
=============================================================================
PYHTTPD - Minimal HTTP/1.1 Server Over Raw Sockets
=============================================================================

This package implements a small HTTP/1.1 server directly on top of TCP
byte streams. Nothing from http.server, socketserver or any third-party
HTTP library is involved: request lines and headers are framed by hand,
one CRLF-terminated line at a time.

=============================================================================
PROJECT OVERVIEW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        PYHTTPD ARCHITECTURE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   1. WIRE PROTOCOL                                                  │
    │      - Buffered CRLF line reader                                    │
    │      - Request line + header parsing                                │
    │      - Content-Length bodies, read on demand                        │
    │                                                                     │
    │   2. PERSISTENT CONNECTIONS                                         │
    │      - Many sequential request/response exchanges per socket        │
    │      - "Connection: close" honoured and echoed                      │
    │      - Idle timeouts end connections gracefully                     │
    │                                                                     │
    │   3. CONTENT NEGOTIATION                                            │
    │      - gzip when the client lists it in Accept-Encoding             │
    │                                                                     │
    │   4. ENDPOINTS                                                      │
    │      - /  /user-agent  /echo/{value}  /files/{name}                 │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    pyhttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m pyhttpd)
    ├── server.py            # HTTPServer + the connection loop
    ├── config.py            # ServerConfig dataclass
    ├── core/                # Low-level components
    │   ├── socket_server.py # Bind / listen / accept
    │   ├── connection.py    # Buffered line + body reading
    │   └── file_store.py    # Files under the serving directory
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request line, headers, body reader
    │   ├── response.py      # Response building / serialization
    │   ├── router.py        # First-match-wins routing
    │   ├── compression.py   # gzip negotiation + codec
    │   └── status_codes.py  # Status codes + reason phrases
    ├── middleware/          # Access logging, compression
    └── handlers/            # Endpoint handlers

=============================================================================
QUICK START
=============================================================================

    from pyhttpd import ServerConfig, create_app

    server = create_app(ServerConfig(port=4221, directory="/tmp/files"))
    server.run()

Or from a shell:

    python -m pyhttpd --directory /tmp/files

=============================================================================
"""

__version__ = "1.0.0"

from .server import HTTPServer, create_app
from .config import ServerConfig

__all__ = ["HTTPServer", "ServerConfig", "create_app", "__version__"]
