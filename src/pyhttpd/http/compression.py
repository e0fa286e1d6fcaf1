"""
=============================================================================
GZIP CONTENT NEGOTIATION
=============================================================================

The client lists the encodings it understands:

    Accept-Encoding: deflate, gzip , br
                     ───┬───  ──┬──  ─┬
                        │       │     └── ignored
                        │       └──────── "gzip" after trimming → MATCH
                        └──────────────── ignored

If any comma-separated token, trimmed of whitespace, is exactly "gzip",
the server may answer with a gzip body:

    Content-Encoding: gzip
    Content-Length: <compressed size>

Tokens are compared literally. "gzip;q=0" is not "gzip", and neither is
"GZIP" (header values are not case-folded anywhere in this server).

=============================================================================
"""

import gzip
from typing import Dict


GZIP = "gzip"


def should_compress(headers: Dict[str, str]) -> bool:
    """True iff Accept-Encoding lists the token "gzip"."""
    accept_encoding = headers.get("Accept-Encoding")
    if accept_encoding is None:
        return False
    return any(token.strip() == GZIP for token in accept_encoding.split(","))


def compress(data: bytes, level: int = 6) -> bytes:
    """
    Wrap ``data`` in a standard gzip container.

    Raises:
        OSError, zlib.error: The codec failed.
    """
    return gzip.compress(data, compresslevel=level)
