"""
=============================================================================
HTTP RESPONSE WRITING
=============================================================================

Writes status lines, header blocks and bodies straight onto a connection.

=============================================================================
STREAMING INSTEAD OF BUILDING
=============================================================================

Nothing is assembled in memory first. Each piece goes out as soon as it
is known:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                         RESPONSE ON THE WIRE                        │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   HTTP/1.0 200 OK\r\n                ← status_line()                │
    │   Content-Type: text/html\r\n        ← headers()                    │
    │   \r\n                               ← (end of header block)        │
    │   <!DOCTYPE html>...                 ← body() / stream()            │
    │   (connection closed)                ← end of body                  │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

There is no Content-Length and no chunked encoding. The client learns
where the body ends when the connection closes. The price: once the
header block is on the wire, a failure (file vanished, disk error) can
only show up as a SHORT BODY, never as an error status.

=============================================================================
"""

import logging
from typing import BinaryIO, Mapping, Optional

from ..core.connection import Connection, LINE_ENCODING
from .status_codes import reason_phrase


logger = logging.getLogger(__name__)

CRLF = b"\r\n"

# Header block written when no headers are given
DEFAULT_HEADERS = {"Content-Type": "text/plain; charset=utf-8"}

DEFAULT_CHUNK_SIZE = 1024


class ResponseWriter:
    """
    Writes one response onto one connection.

    Every method returns False once the client has gone away. Callers may
    ignore that and keep writing; the connection swallows later writes.

    Usage:
        writer = ResponseWriter(conn)
        writer.send_headers("HTTP/1.0", {"Content-Type": "text/html"}, 200)
        writer.body(b"<p>hello</p>")
    """

    def __init__(self, conn: Connection, chunk_size: int = DEFAULT_CHUNK_SIZE):
        self.conn = conn
        self.chunk_size = chunk_size

    # =========================================================================
    # HEAD
    # =========================================================================

    def status_line(self, version: str, status: Optional[int] = None) -> bool:
        """
        Write "<version> <code> <reason>\\r\\n".

        A missing status is written as 418, the default code.
        """
        code = 418 if status is None else int(status)
        line = f"{version} {code} {reason_phrase(code)}"
        return self.conn.send(line.encode(LINE_ENCODING, errors="replace") + CRLF)

    def headers(self, headers: Optional[Mapping[str, str]] = None) -> bool:
        """
        Write the header block and the blank line that ends it.

        Args:
            headers: Written in iteration order. None writes a single
                     "Content-Type: text/plain; charset=utf-8" header.
        """
        if headers is None:
            headers = DEFAULT_HEADERS

        block = "".join(f"{name}: {value}\r\n" for name, value in headers.items())
        return self.conn.send(block.encode(LINE_ENCODING, errors="replace") + CRLF)

    def send_headers(
        self,
        version: str,
        headers: Optional[Mapping[str, str]] = None,
        status: Optional[int] = None,
    ) -> bool:
        """Write the status line followed by the header block."""
        if not self.status_line(version, status):
            return False
        return self.headers(headers)

    # =========================================================================
    # BODY
    # =========================================================================

    def body(self, data: bytes) -> bool:
        """Write an in-memory body."""
        return self.conn.send(data)

    def stream(self, fileobj: BinaryIO) -> int:
        """
        Copy a file to the connection in chunk_size pieces.

        Stops at end of file, at the first read that returns nothing or
        fails, or when the client goes away. None of these are reported
        to the peer: the connection is simply closed afterwards.

        Returns:
            Number of bytes delivered.
        """
        delivered = 0

        while True:
            try:
                chunk = fileobj.read(self.chunk_size)
            except OSError as e:
                logger.warning(f"[{self.conn.id}] Read error after {delivered} bytes: {e}")
                break

            if not chunk:
                break

            if not self.conn.send(chunk):
                break

            delivered += len(chunk)

        return delivered

    # =========================================================================
    # ERRORS
    # =========================================================================

    def send_error(self, version: str, status: int, request_line: str) -> bool:
        """
        Write a complete plain-text error response.

        Body:
            Error: 404 Not Found\\r\\n
            Request: GET /missing.txt HTTP/1.0\\r\\n
        """
        if not self.send_headers(version, None, status):
            return False

        text = f"Error: {status:d} {reason_phrase(status)}\r\nRequest: {request_line}\r\n"
        return self.body(text.encode(LINE_ENCODING, errors="replace"))
