"""
=============================================================================
HTTP STATUS CODES
=============================================================================

The small, fixed set of status codes this server knows how to name.

=============================================================================
STATUS LINE ANATOMY
=============================================================================

    HTTP/1.0 404 Not Found\r\n
    ──────── ─── ─────────
        │     │      │
        │     │      └── Reason phrase (looked up in _STATUS_PHRASES)
        │     └───────── Status code
        └─────────────── Version echoed back from the request

Only the codes below are ever looked up. Anything else gets the
FALLBACK_PHRASE so a status line is always well formed.

    ┌────────┬──────────────────────────────────────────────────────────┐
    │  200   │ File, directory listing or echo                          │
    │  301   │ Directory requested without a trailing slash             │
    │  400   │ Malformed request line or path                           │
    │  401   │ Declared, never produced                                 │
    │  403   │ Unreadable target or a non-regular file (device, socket) │
    │  404   │ Target does not exist                                    │
    │  405   │ Declared, never produced (dispatch answers 501 instead)  │
    │  418   │ Default when a status line is written without a code     │
    │  500   │ Declared, never produced                                 │
    │  501   │ Any method other than GET / TRACE                        │
    └────────┴──────────────────────────────────────────────────────────┘

=============================================================================
"""

from enum import IntEnum
from typing import Optional


class HTTPStatus(IntEnum):
    """
    Status codes used in response lines.

    IntEnum lets a status be compared with and formatted as a plain int:

        >>> HTTPStatus.NOT_FOUND == 404
        True
        >>> f"{HTTPStatus.NOT_FOUND:d}"
        '404'
    """

    OK = 200
    MOVED_PERMANENTLY = 301
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    IM_A_TEAPOT = 418
    INTERNAL_SERVER_ERROR = 500
    NOT_IMPLEMENTED = 501

    @property
    def phrase(self) -> str:
        """Get the reason phrase for this status."""
        return _STATUS_PHRASES[self]


_STATUS_PHRASES = {
    HTTPStatus.OK: "OK",
    HTTPStatus.MOVED_PERMANENTLY: "Moved Permanently",
    HTTPStatus.BAD_REQUEST: "Bad Request",
    HTTPStatus.UNAUTHORIZED: "Unauthorized",
    HTTPStatus.FORBIDDEN: "Forbidden",
    HTTPStatus.NOT_FOUND: "Not Found",
    HTTPStatus.METHOD_NOT_ALLOWED: "Method Not Allowed",
    HTTPStatus.IM_A_TEAPOT: "I'm a teapot",
    HTTPStatus.INTERNAL_SERVER_ERROR: "Internal Server Error",
    HTTPStatus.NOT_IMPLEMENTED: "Not Implemented",
}

# Reason used for any code missing from the table above
FALLBACK_PHRASE = "Unknown Status"

# Status written when a caller does not name one
DEFAULT_STATUS = HTTPStatus.IM_A_TEAPOT


def reason_phrase(status: Optional[int]) -> str:
    """
    Look up the reason phrase for a numeric status.

    Args:
        status: Status code. None means DEFAULT_STATUS.

    Returns:
        The phrase from the table, or FALLBACK_PHRASE for unknown codes.

    Examples:
        >>> reason_phrase(301)
        'Moved Permanently'
        >>> reason_phrase(299)
        'Unknown Status'
    """
    if status is None:
        status = DEFAULT_STATUS
    try:
        return HTTPStatus(status).phrase
    except ValueError:
        return FALLBACK_PHRASE
