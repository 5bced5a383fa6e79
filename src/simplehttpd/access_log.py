"""
=============================================================================
ACCESS LOG
=============================================================================

One line per connection, written to the "simplehttpd.access" logger:

    Mon Jan  6 14:03:22 2025 192.0.2.10:51544 GET /index.html HTTP/1.0
    Mon Jan  6 14:03:23 2025 192.0.2.10:51546 (null)
    └──────────┬───────────┘ └──────┬───────┘ └────────────┬───────────┘
          local time            peer address      request line as received
                                                  "(null)" when none arrived

The access logger is separate from the diagnostic loggers: HTTPServer
gives it a bare "%(message)s" handler on stdout and stops it from
propagating, so access lines never pick up level names or module paths.

=============================================================================
"""

import logging
import time
from typing import Callable, Optional


ACCESS_LOGGER = "simplehttpd.access"

NULL_REQUEST = "(null)"


def format_log_date(t: Optional[float] = None) -> str:
    """
    Local time as "Mon Jan  6 14:03:22 2025".

    The day of month is space-padded to two characters.
    """
    local = time.localtime(t)
    return (
        time.strftime("%a %b ", local)
        + f"{local.tm_mday:2d}"
        + time.strftime(" %H:%M:%S %Y", local)
    )


def format_address(address: tuple) -> str:
    """"host:port" for an IPv4 or IPv6 peer address."""
    return f"{address[0]}:{address[1]}"


class AccessLog:
    """
    Writes access lines to a sink.

    The sink defaults to the access logger's info(). Tests pass a
    list's append to capture lines.
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None):
        if sink is None:
            sink = logging.getLogger(ACCESS_LOGGER).info
        self.sink = sink

    def log(self, line: str) -> None:
        self.sink(line)

    def request_received(self, address: tuple, request_line: Optional[str]) -> None:
        """Log the request line read from a peer (None or empty: nothing arrived)."""
        self.log(f"{format_log_date()} {format_address(address)} {request_line or NULL_REQUEST}")
