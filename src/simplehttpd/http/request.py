"""
=============================================================================
HTTP REQUEST PARSING
=============================================================================

Turns the request line into method / path / version and collects the
header lines that follow it.

=============================================================================
HTTP REQUEST STRUCTURE
=============================================================================

    GET /docs/index.html?x=1 HTTP/1.0\r\n     ← request line
    Host: example.org\r\n                      ← header lines (kept raw)
    User-Agent: curl/8.0\r\n
    \r\n                                       ← blank line, end of headers

REQUEST LINE:
─────────────

    ┌─────────┬──────────────────────────┬────────────────────┐
    │ METHOD  │  PATH (with query)       │  VERSION           │
    ├─────────┼──────────────────────────┼────────────────────┤
    │ GET     │  /docs/index.html?x=1    │  HTTP/1.0          │
    └─────────┴──────────────────────────┴────────────────────┘

    - Tokens are separated by spaces; runs of spaces before the method
      and before the path are skipped.
    - The version is EVERYTHING after the space that ends the path.
    - No version at all means HTTP/1.0 (HTTP/0.9 style "GET /").
    - A version containing whitespace, or not starting with "HTTP/", is
      a 400 Bad Request.

HEADERS:
────────

Headers are never interpreted. They are kept as raw lines, in order,
only so TRACE and /echo can send them back.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import List, Tuple

from ..core.connection import Connection
from .status_codes import HTTPStatus


DEFAULT_VERSION = "HTTP/1.0"
VERSION_PREFIX = "HTTP/"

ECHO_PATH = "/echo"


class HTTPParseError(Exception):
    """
    Exception raised when a request line cannot be parsed.

    Attributes:
        status_code: HTTP status code to send back.
        message: Human-readable error message.
    """

    def __init__(self, message: str, status_code: int = HTTPStatus.BAD_REQUEST):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass
class ParsedRequest:
    """
    One parsed HTTP request.

    Attributes:
        request_line: The line exactly as received (without CRLF).
        method: First token, e.g. "GET".
        path: Second token, still percent-encoded and with its query.
        version: Protocol token, e.g. "HTTP/1.0".
        headers: Raw header lines, in order, unparsed.
    """

    request_line: str
    method: str
    path: str
    version: str = DEFAULT_VERSION
    headers: List[str] = field(default_factory=list)

    @property
    def is_echo(self) -> bool:
        """TRACE requests, and any request for exactly /echo."""
        return self.method == "TRACE" or self.path == ECHO_PATH

    @property
    def target(self) -> Tuple[str, str]:
        """(path, query) split at the first "?"."""
        path, _, query = self.path.partition("?")
        return path, query

    def echo_body(self) -> str:
        """Request line, CRLF, header lines joined by CRLF, CRLF."""
        return self.request_line + "\r\n" + "\r\n".join(self.headers) + "\r\n"


def parse_request_line(line: str) -> ParsedRequest:
    """
    Split a request line into method, path and version.

    Args:
        line: Request line without its terminator.

    Returns:
        ParsedRequest with no headers yet.

    Raises:
        HTTPParseError: If the version token is malformed.

    Examples:
        >>> parse_request_line("GET /a HTTP/1.1").version
        'HTTP/1.1'
        >>> parse_request_line("GET /a").version
        'HTTP/1.0'
    """
    method, _, rest = line.lstrip(" ").partition(" ")
    path, _, version = rest.lstrip(" ").partition(" ")

    if not version:
        version = DEFAULT_VERSION
    elif any(ch.isspace() for ch in version):
        raise HTTPParseError(f"Too many components in request line: {line!r}")
    elif not version.startswith(VERSION_PREFIX):
        raise HTTPParseError(f"Not an HTTP version: {version!r}")

    return ParsedRequest(request_line=line, method=method, path=path, version=version)


def read_headers(conn: Connection, max_length: int = 1024) -> List[str]:
    """
    Read raw header lines up to the blank line.

    End of stream also ends the headers, since read_line() returns an
    empty string for it.
    """
    headers = []
    while True:
        line = conn.read_line(max_length)
        if not line:
            break
        headers.append(line)
    return headers
