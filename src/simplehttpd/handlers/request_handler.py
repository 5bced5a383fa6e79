"""
=============================================================================
REQUEST HANDLER
=============================================================================

Runs one connection from the first byte read to the close.

=============================================================================
REQUEST FLOW
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │  read request line ──► access log                                   │
    │        │                                                             │
    │        ├── nothing arrived ─────────────────────────────► close     │
    │        ├── bad version ─────────────────► 400 (HTTP/1.0) ► close    │
    │        ▼                                                             │
    │  read header lines (kept raw)                                       │
    │        │                                                             │
    │        ├── TRACE or /echo ─────────────► 200 + request echo ► close │
    │        ├── not GET ────────────────────────────────► 501 ► close    │
    │        ▼                                                             │
    │  PathResolver.resolve(path)                                         │
    │        │                                                             │
    │        ├── REDIRECT ──► 301 + Location, no body                     │
    │        ├── DIRECTORY ─► 200 + listing                               │
    │        ├── FILE ──────► 200 + file contents                         │
    │        └── ERROR ─────► 400 / 403 / 404 error page                  │
    │                                                                      │
    │  close (always, exactly once)                                       │
    └─────────────────────────────────────────────────────────────────────┘

One request per connection. There is no keep-alive: the close is what
tells the client the body is complete.

=============================================================================
"""

import logging
from typing import Optional

from ..access_log import AccessLog
from ..config import ServerConfig
from ..core.connection import Connection, LINE_ENCODING
from ..http.request import DEFAULT_VERSION, HTTPParseError, ParsedRequest, parse_request_line, read_headers
from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus
from ..resolver import PathResolver, TargetKind
from .static import StaticFileHandler


logger = logging.getLogger(__name__)


class RequestHandler:
    """
    Handles whole connections. One instance is shared by all workers.

    Usage:
        handler = RequestHandler(config)
        handler.handle(conn)   # closes conn when done
    """

    def __init__(self, config: ServerConfig, access_log: Optional[AccessLog] = None):
        self.config = config
        self.access_log = access_log or AccessLog()
        self.resolver = PathResolver(config)
        self.static = StaticFileHandler(config)

    def handle(self, conn: Connection) -> None:
        """Serve one request on conn, then close it."""
        with conn:
            self._handle(conn)

    def _handle(self, conn: Connection) -> None:
        line = conn.read_line(self.config.max_line_length)
        self.access_log.request_received(conn.address, line or None)

        if not line:
            logger.debug(f"[{conn.id}] No request line from {conn.client_ip}")
            return

        writer = ResponseWriter(conn, self.config.chunk_size)

        try:
            request = parse_request_line(line)
        except HTTPParseError as e:
            logger.debug(f"[{conn.id}] {e.message}")
            writer.send_error(DEFAULT_VERSION, e.status_code, line)
            return

        request.headers = read_headers(conn, self.config.max_line_length)

        if request.is_echo:
            self._echo(writer, request)
        elif request.method != "GET":
            writer.send_error(request.version, HTTPStatus.NOT_IMPLEMENTED, line)
        else:
            self._serve(writer, request)

    def _echo(self, writer: ResponseWriter, request: ParsedRequest) -> None:
        """Send the request line and headers back as a text/plain body."""
        if writer.send_headers(request.version, None, HTTPStatus.OK):
            writer.body(request.echo_body().encode(LINE_ENCODING, errors="replace"))

    def _serve(self, writer: ResponseWriter, request: ParsedRequest) -> None:
        target = self.resolver.resolve(request.path)
        logger.debug(f"[{writer.conn.id}] {request.path} -> {target.kind.value} {target.status:d} {target.path}")

        if target.kind is TargetKind.REDIRECT:
            writer.send_headers(request.version, {"Location": target.location}, target.status)
        elif target.kind is TargetKind.DIRECTORY:
            self.static.serve_directory(writer, request, target)
        elif target.kind is TargetKind.FILE:
            self.static.serve_file(writer, request, target)
        else:
            writer.send_error(request.version, target.status, request.request_line)
