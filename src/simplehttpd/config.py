"""
=============================================================================
SERVER CONFIGURATION
=============================================================================

Everything the request-handling core needs to know, in one place.

=============================================================================
WHY A FROZEN DATACLASS?
=============================================================================

The configuration is built once at startup and then shared by every
worker thread. Nothing may change it afterwards:

    ┌─────────────────────────────────────────────────────────────────────┐
    │                     CONFIGURATION LIFECYCLE                         │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   defaults  ──►  environment  ──►  command line  ──►  validate()    │
    │                                                          │          │
    │                                                          ▼          │
    │                                             ServerConfig (frozen)   │
    │                                                          │          │
    │                       ┌──────────────────┬───────────────┘          │
    │                       ▼                  ▼                          │
    │                   Worker 1    ...     Worker N   (read only)        │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

frozen=True turns any attempt to assign a field into a
FrozenInstanceError, so threads never need a lock to read it. To "change"
a value, build a new object with dataclasses.replace().

=============================================================================
ENVIRONMENT VARIABLES
=============================================================================

    SIMPLEHTTPD_ROOT        Document root
    SIMPLEHTTPD_HOST        Bind address (default: ::)
    SIMPLEHTTPD_PORT        Bind port (default: 8001)
    SIMPLEHTTPD_WORKERS     Worker threads, 0 = sequential (default: 3)
    SIMPLEHTTPD_LOG_LEVEL   Logging level (default: INFO)

=============================================================================
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple

from .http.mime_types import default_mime_types


def default_document_root() -> str:
    """~/public_html when it exists, the current directory otherwise."""
    public_html = os.path.expanduser("~/public_html")
    if os.path.isdir(public_html):
        return public_html
    return "."


@dataclass(frozen=True)
class ServerConfig:
    """
    Configuration for the HTTP server.

    =========================================================================
    CONFIGURATION GROUPS
    =========================================================================

    NETWORK
    - host, port, backlog, timeout

    CONTENT
    - document_root, index_files, hide_dotfiles, mime_types

    USERDIR
    - userdir_enabled, userdir_suffix

    LIMITS
    - max_line_length, chunk_size, max_symlink_hops, strict_paths

    CONCURRENCY
    - workers

    LOGGING
    - log_level

    =========================================================================
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONTENT
    # ─────────────────────────────────────────────────────────────────────

    document_root: str = field(default_factory=default_document_root)
    """Base directory for every non-userdir request. Made absolute on init."""

    index_files: Tuple[str, ...] = ("index.html", "index.htm")
    """Served for a directory request, first existing file wins."""

    hide_dotfiles: bool = True
    """Leave names starting with "." out of directory listings."""

    mime_types: Mapping[str, str] = field(default_factory=default_mime_types)
    """Extension (without dot) → Content-Type."""

    # ─────────────────────────────────────────────────────────────────────
    # USERDIR
    # ─────────────────────────────────────────────────────────────────────

    userdir_enabled: bool = False
    """Map /~user/... to <home of user>/<userdir_suffix>/..."""

    userdir_suffix: str = "public_html"

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
    # ─────────────────────────────────────────────────────────────────────

    host: str = "::"
    """
    Address to bind to. An address containing ":" selects IPv6.
    - "::" - every interface, IPv6 and (on most systems) IPv4
    - "127.0.0.1" - IPv4 localhost only
    """

    port: int = 8001

    backlog: int = 128
    """Queued, not-yet-accepted connections before the OS refuses more."""

    timeout: Optional[float] = None
    """
    Read/write timeout on client sockets, in seconds.
    None = block forever. A silent peer holds its worker until it leaves.
    """

    # ─────────────────────────────────────────────────────────────────────
    # LIMITS
    # ─────────────────────────────────────────────────────────────────────

    max_line_length: int = 1024
    """Bytes read for one request or header line before giving up on a terminator."""

    chunk_size: int = 1024
    """Bytes read from a file per write when streaming a body."""

    max_symlink_hops: int = 32
    """Symbolic links followed before the last link path is used as-is."""

    strict_paths: bool = False
    """
    Refuse (403) any target whose real path lies outside the serving root.
    Off by default: the textual dot-segment collapse is the legacy
    behaviour and is kept unless this is switched on.
    """

    # ─────────────────────────────────────────────────────────────────────
    # CONCURRENCY
    # ─────────────────────────────────────────────────────────────────────

    workers: int = 3
    """Worker threads. 0 handles connections one by one in the accept loop."""

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    log_level: str = "INFO"

    server_name: str = "simplehttpd"

    def __post_init__(self):
        # frozen: normalise through object.__setattr__
        object.__setattr__(self, "document_root", os.path.abspath(self.document_root))
        object.__setattr__(self, "index_files", tuple(self.index_files))

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """
        Create configuration from environment variables.

        Unset variables fall back to the dataclass defaults.

        Usage:
            SIMPLEHTTPD_PORT=8080 python -m simplehttpd
        """
        kwargs = {}

        if "SIMPLEHTTPD_ROOT" in os.environ:
            kwargs["document_root"] = os.environ["SIMPLEHTTPD_ROOT"]
        if "SIMPLEHTTPD_HOST" in os.environ:
            kwargs["host"] = os.environ["SIMPLEHTTPD_HOST"]
        if "SIMPLEHTTPD_PORT" in os.environ:
            kwargs["port"] = int(os.environ["SIMPLEHTTPD_PORT"])
        if "SIMPLEHTTPD_WORKERS" in os.environ:
            kwargs["workers"] = int(os.environ["SIMPLEHTTPD_WORKERS"])
        if "SIMPLEHTTPD_LOG_LEVEL" in os.environ:
            kwargs["log_level"] = os.environ["SIMPLEHTTPD_LOG_LEVEL"]

        return cls(**kwargs)

    def validate(self) -> None:
        """
        Validate configuration values.

        Called once by HTTPServer before the socket is created, so a bad
        value stops the server at startup instead of on some later request.

        Raises:
            ValueError: On the first invalid value found.
        """
        if not 0 <= self.port < 65536:
            raise ValueError(f"Invalid port: {self.port}. Must be 0-65535.")

        if self.workers < 0:
            raise ValueError("workers must be >= 0")

        if not os.path.isdir(self.document_root):
            raise ValueError(f"Document root is not a directory: {self.document_root}")

        if self.max_line_length < 1:
            raise ValueError("max_line_length must be >= 1")

        if self.chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        if self.max_symlink_hops < 1:
            raise ValueError("max_symlink_hops must be >= 1")
