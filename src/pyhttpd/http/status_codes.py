"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The status codes this server emits, and the reason phrase that goes with
each on the status line:

    HTTP/1.1 404 Not Found
             ─── ─────────
              │      │
              │      └── Reason phrase (from _STATUS_PHRASES)
              └───────── Status code

    ┌────────┬──────────────────────────┬────────────────────────────────┐
    │  Code  │  Phrase                  │  Emitted for                   │
    ├────────┼──────────────────────────┼────────────────────────────────┤
    │  200   │  OK                      │  /, /user-agent, /echo, GET    │
    │        │                          │  /files                        │
    │  201   │  Created                 │  file written                  │
    │  400   │  Bad Request             │  malformed request, bad body,  │
    │        │                          │  bad file name, no User-Agent  │
    │  404   │  Not Found               │  no route, no such file        │
    │  500   │  Internal Server Error   │  directory unusable, I/O and   │
    │        │                          │  handler failures              │
    └────────┴──────────────────────────┴────────────────────────────────┘

Any other code a handler might return still serializes; its phrase is
"Unknown".

=============================================================================
"""

from enum import IntEnum


class HTTPStatus(IntEnum):
    """
    HTTP status codes used by the server.

    IntEnum, so members compare equal to plain ints:

        >>> HTTPStatus.OK == 200
        True
    """

    OK = 200                        # Standard success response
    CREATED = 201                   # File written

    BAD_REQUEST = 400               # Malformed request or invalid input
    NOT_FOUND = 404                 # No route or no such file

    INTERNAL_SERVER_ERROR = 500     # Unexpected server failure


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.CREATED: "Created",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
}


def reason_phrase(code: int) -> str:
    """
    Reason phrase for any integer status code.

    Codes outside the table get "Unknown" rather than an error, so a
    handler returning an unusual status still produces a valid status line.
    """
    return _STATUS_PHRASES.get(code, "Unknown")
