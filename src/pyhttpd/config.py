"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Centralized configuration for the HTTP server.

Every tunable lives on one dataclass so that the CLI, environment
variables and tests all build the same object:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                    CONFIGURATION HIERARCHY                          │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                     │
    │   Priority (highest to lowest):                                     │
    │                                                                     │
    │   1. Command-line arguments                                         │
    │      └── python -m pyhttpd --port 4221 --directory /tmp             │
    │                                                                     │
    │   2. Environment variables                                          │
    │      └── PYHTTPD_PORT=4221 python -m pyhttpd                        │
    │                                                                     │
    │   3. Dataclass defaults                                             │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

The config is read-only once the server starts; every connection thread
shares the same instance.

=============================================================================
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK SETTINGS
    - host, port, backlog, buffer_size

    CONNECTION SETTINGS
    - timeout, keep_alive_timeout, max_line_size

    FILES ENDPOINT
    - directory

    RESPONSES
    - server_name, compression_level

    LOGGING
    - log_level, log_format

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    host: str = "0.0.0.0"
    """The IP address to bind to."""

    port: int = 4221
    """
    The port number to listen on.
    0 lets the OS pick a free port (useful in tests).
    """

    backlog: int = 128
    """Maximum number of queued, not yet accepted connections."""

    buffer_size: int = 4096
    """How many bytes a single recv() asks the kernel for."""

    # ─────────────────────────────────────────────────────────────────────
    # CONNECTION SETTINGS
    # ─────────────────────────────────────────────────────────────────────

    timeout: Optional[float] = 30.0
    """
    Idle read timeout in seconds while waiting for the first request
    and while reading headers or a body.
    None = block forever.
    """

    keep_alive_timeout: float = 5.0
    """
    Idle timeout while waiting for the next request on a kept-alive
    connection. Hitting it closes the connection quietly.
    """

    max_line_size: int = 64 * 1024
    """Longest request line or header line accepted, in bytes."""

    # ─────────────────────────────────────────────────────────────────────
    # FILES ENDPOINT
    # ─────────────────────────────────────────────────────────────────────

    directory: Optional[str] = None
    """
    Serving directory for /files/{name}.
    Unset (or missing on disk) makes those routes answer 500.
    """

    # ─────────────────────────────────────────────────────────────────────
    # RESPONSES
    # ─────────────────────────────────────────────────────────────────────

    server_name: Optional[str] = None
    """Value for the Server header. None leaves the header out."""

    compression_level: int = 6
    """gzip compression level (1 = fastest, 9 = smallest)."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"
    """Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)."""

    log_format: str = "text"
    """Access log format: 'text' or 'json'."""

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        =====================================================================
        ENVIRONMENT VARIABLES
        =====================================================================

        PYHTTPD_HOST        Server host (default: 0.0.0.0)
        PYHTTPD_PORT        Server port (default: 4221)
        PYHTTPD_DIRECTORY   Serving directory for /files (default: None)
        PYHTTPD_TIMEOUT     Read timeout in seconds (default: 30)
        PYHTTPD_LOG_LEVEL   Logging level (default: INFO)

        =====================================================================
        """
        return cls(
            host=os.getenv("PYHTTPD_HOST", "0.0.0.0"),
            port=int(os.getenv("PYHTTPD_PORT", "4221")),
            directory=os.getenv("PYHTTPD_DIRECTORY") or None,
            timeout=float(os.getenv("PYHTTPD_TIMEOUT", "30")),
            log_level=os.getenv("PYHTTPD_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once at server construction so a bad value fails at
        startup instead of on the first request.

        Raises:
            ValueError: If any value is out of range.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")

        if self.timeout is not None and self.timeout <= 0:
            raise ValueError("timeout must be > 0")

        if self.keep_alive_timeout <= 0:
            raise ValueError("keep_alive_timeout must be > 0")

        if self.max_line_size < 16:
            raise ValueError("max_line_size must be >= 16")

        if not 1 <= self.compression_level <= 9:
            raise ValueError("compression_level must be 1-9")

        if self.log_format not in ("text", "json"):
            raise ValueError(f"Invalid log_format: {self.log_format}")
