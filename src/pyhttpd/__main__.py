"""
=============================================================================
PYHTTPD CLI ENTRY POINT
=============================================================================

    # Defaults: 0.0.0.0:4221, no serving directory (/files/* answers 500)
    python -m pyhttpd

    # Serve and accept files under /tmp/files
    python -m pyhttpd --directory /tmp/files

    # Another port, JSON access log
    python -m pyhttpd --port 8080 --log-format json

Command-line flags win over PYHTTPD_* environment variables, which win
over the ServerConfig defaults.

Exit status is 1 when the listening socket cannot be bound or the
configuration is invalid.

=============================================================================
"""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .server import HTTPServer
from .config import ServerConfig


logger = logging.getLogger("pyhttpd")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pyhttpd",
        description="Minimal HTTP/1.1 server over raw sockets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  pyhttpd                              # 0.0.0.0:4221
  pyhttpd --directory /tmp/files       # enable /files/{name}
  pyhttpd --port 8080 --log-level DEBUG
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=None,
        help="Host to bind to (default: 0.0.0.0)"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 4221)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # FEATURE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--directory", "-d",
        default=None,
        help="Serving directory for /files/{name}"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # META ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"pyhttpd {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Environment first, then any flag that was actually given."""
    config = ServerConfig.from_env()

    if args.host is not None:
        config.host = args.host
    if args.port is not None:
        config.port = args.port
    if args.directory is not None:
        config.directory = args.directory
    if args.log_level is not None:
        config.log_level = args.log_level
    if args.log_format is not None:
        config.log_format = args.log_format

    return config


def main(argv: Optional[List[str]] = None):
    args = build_parser().parse_args(argv)

    try:
        config = config_from_args(args)
        server = HTTPServer(config)
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        server.run()
    except OSError as e:
        logger.error(f"Server failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
