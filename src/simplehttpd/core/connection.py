"""
=============================================================================
CONNECTION MANAGEMENT
=============================================================================

Wraps one accepted client socket: line reads in, full-delivery writes
out, and an unconditional close at the end.

=============================================================================
TCP IS A BYTE STREAM, NOT A MESSAGE PROTOCOL!
=============================================================================

TCP only guarantees that bytes arrive IN ORDER and INTACT. It does not
keep the boundaries of the writes the client made:

    Client sends:
        send("GET / HTTP/1.0\r\n")
        send("Host: x\r\n\r\n")

    Server might receive:
        recv() → "GET / HT"
        recv() → "TP/1.0\r\nHost: x\r\n\r\n"

This server never needs more than one line at a time, so it reads ONE
BYTE per recv() and stops at the line feed. That is slow for big
requests, but a request here is a handful of short lines and reading
byte by byte means nothing is ever over-read into a buffer.

=============================================================================
LINE READING RULES
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        read_line() exits                            │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   "\n" seen          → return the line, minus "\n" and a "\r"       │
    │                        right before it                               │
    │                                                                      │
    │   max_length bytes   → return what we have, as-is                   │
    │   and no "\n"                                                        │
    │                                                                      │
    │   recv() gives b""   → return what we have (peer closed)            │
    │   or fails             (a reset looks exactly like a clean close)   │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

Lines are returned as latin-1 text: every byte maps to exactly one
character, so the original bytes can always be recovered with
.encode("latin-1").

=============================================================================
PARTIAL WRITES
=============================================================================

socket.send() may accept FEWER bytes than it was given when the kernel
send buffer is full. send() below loops until every byte is delivered:

    data = b"...4000 bytes..."
    send() → 2896   remaining 1104
    send() → 1104   remaining 0   ✓

=============================================================================
"""

import socket
import time
import logging
import uuid
from enum import Enum
from dataclasses import dataclass, field
from typing import Optional


logger = logging.getLogger(__name__)

LINE_ENCODING = "latin-1"


class ConnectionState(Enum):
    """
    Connection lifecycle states.

    One connection carries exactly one request, so there is no
    keep-alive state: it is READING, then WRITING, then CLOSED.
    """
    NEW = "new"              # Just accepted, nothing read yet
    READING = "reading"      # Reading the request line or headers
    WRITING = "writing"      # Sending the response
    CLOSING = "closing"      # Shutdown sequence in progress
    CLOSED = "closed"        # Socket released


@dataclass
class Connection:
    """
    Represents a client connection.

    Attributes:
        socket: The client socket.
        address: Peer address tuple; (ip, port) first.
        id: Short identifier for log lines.
        state: Current connection state.
        created_at: Timestamp when the connection was accepted.
        timeout: Socket timeout in seconds, None to block forever.
    """

    socket: socket.socket
    address: tuple

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    state: ConnectionState = ConnectionState.NEW
    created_at: float = field(default_factory=time.time)
    timeout: Optional[float] = None

    # Set once a send fails; later sends are skipped
    _broken: bool = field(default=False, repr=False)

    def __post_init__(self):
        """Put the socket into blocking mode with the configured timeout."""
        self.socket.setblocking(True)
        if self.timeout:
            self.socket.settimeout(self.timeout)

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def client_ip(self) -> str:
        """Get the client IP address."""
        return str(self.address[0])

    @property
    def client_port(self) -> int:
        """Get the client port."""
        return int(self.address[1])

    @property
    def age(self) -> float:
        """Get connection age in seconds."""
        return time.time() - self.created_at

    # =========================================================================
    # READING
    # =========================================================================

    def read_line(self, max_length: int = 1024) -> str:
        """
        Read one CRLF- or LF-terminated line.

        Args:
            max_length: Maximum bytes to consume looking for a terminator.

        Returns:
            The line without its terminator. An empty string means either
            an empty line or that the peer sent nothing at all; callers
            treat both as "nothing more to read".
        """
        self.state = ConnectionState.READING
        buf = bytearray()

        while len(buf) < max_length:
            try:
                char = self.socket.recv(1)
            except OSError as e:
                logger.debug(f"[{self.id}] Read failed: {e}")
                break

            if not char:
                break  # Peer closed

            if char == b"\n":
                if buf.endswith(b"\r"):
                    del buf[-1]
                return buf.decode(LINE_ENCODING)

            buf += char

        return buf.decode(LINE_ENCODING)

    # =========================================================================
    # WRITING
    # =========================================================================

    def send(self, data: bytes) -> bool:
        """
        Send ALL of data to the client.

        Returns:
            True if every byte was handed to the transport, False if the
            connection is gone. After the first failure every later call
            returns False without touching the socket.
        """
        if self._broken:
            return False

        self.state = ConnectionState.WRITING
        view = memoryview(data)
        total = 0

        try:
            while total < len(view):
                sent = self.socket.send(view[total:])
                if sent == 0:
                    raise ConnectionError("socket connection broken")
                total += sent
        except OSError as e:
            logger.warning(f"[{self.id}] Send failed after {total} bytes: {e}")
            self._broken = True
            return False

        return True

    # =========================================================================
    # CLOSING
    # =========================================================================

    def close(self):
        """
        Close the connection gracefully.

        1. shutdown(SHUT_WR): send FIN, the client sees end-of-body
        2. Drain whatever the client is still sending, so the kernel does
           not answer unread data with a RST that could destroy the tail
           of our response
        3. close(): release the file descriptor

        Safe to call more than once.
        """
        if self.state == ConnectionState.CLOSED:
            return

        self.state = ConnectionState.CLOSING

        try:
            self.socket.shutdown(socket.SHUT_WR)
        except OSError:
            pass  # Already disconnected

        try:
            self.socket.settimeout(0.5)
            while self.socket.recv(1024):
                pass
        except OSError:
            pass

        try:
            self.socket.close()
        except OSError:
            pass

        self.state = ConnectionState.CLOSED
        logger.debug(f"[{self.id}] Connection closed after {self.age:.3f}s")

    # =========================================================================
    # CONTEXT MANAGER
    # =========================================================================

    def __enter__(self):
        """
        Allow `with conn:` so the socket is closed on every path:

            with conn:
                line = conn.read_line()
                conn.send(response)
            # closed here, even if an exception escaped
        """
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit - ensure connection is closed."""
        self.close()
        return False  # Don't suppress exceptions
