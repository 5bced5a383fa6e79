"""
=============================================================================
STATIC FILE HANDLER
=============================================================================

Sends a resolved file or directory to the client.

=============================================================================
HEADERS FIRST, THEN THE BODY
=============================================================================

Both branches put the status line and headers on the wire BEFORE they
touch the file or directory contents:

    ┌─────────────────────────────────────────────────────────────────────┐
    │   serve_file()                       serve_directory()              │
    │   ────────────                       ─────────────────              │
    │   200 + Content-Type                 200 + Content-Type: text/html  │
    │   [+ Content-Encoding: gzip]                                        │
    │          │                                  │                        │
    │          ▼                                  ▼                        │
    │   open() + stream 1024-byte chunks   list_directory() + render      │
    └─────────────────────────────────────────────────────────────────────┘

If the file disappears between path resolution and open(), or the
directory can no longer be read, the client has already been told
"200 OK". All that is left is to log it and end the body early.

=============================================================================
"""

import logging

from ..config import ServerConfig
from ..http.request import ParsedRequest
from ..http.response import ResponseWriter
from ..http.status_codes import HTTPStatus
from ..resolver import ResolvedTarget
from .listing import list_directory, render_listing


logger = logging.getLogger(__name__)


class StaticFileHandler:
    """
    Serves FILE and DIRECTORY targets produced by PathResolver.

    Usage:
        static = StaticFileHandler(config)
        static.serve_file(writer, request, target)
    """

    def __init__(self, config: ServerConfig):
        self.config = config

    def serve_file(self, writer: ResponseWriter, request: ParsedRequest, target: ResolvedTarget) -> int:
        """
        Stream a regular file.

        Returns:
            Body bytes delivered.
        """
        headers = {"Content-Type": target.content_type}
        if target.content_encoding:
            headers["Content-Encoding"] = target.content_encoding

        if not writer.send_headers(request.version, headers, HTTPStatus.OK):
            return 0

        try:
            with open(target.path, "rb") as fh:
                return writer.stream(fh)
        except OSError as e:
            logger.warning(f"[{writer.conn.id}] Cannot open {target.path} after headers were sent: {e}")
            return 0

    def serve_directory(self, writer: ResponseWriter, request: ParsedRequest, target: ResolvedTarget) -> int:
        """
        Render and send a directory listing.

        Returns:
            Body bytes delivered.
        """
        headers = {"Content-Type": target.content_type}
        if not writer.send_headers(request.version, headers, HTTPStatus.OK):
            return 0

        try:
            listing = list_directory(
                target.path,
                hide_dotfiles=self.config.hide_dotfiles,
                max_hops=self.config.max_symlink_hops,
            )
        except OSError as e:
            logger.warning(f"[{writer.conn.id}] Cannot list {target.path} after headers were sent: {e}")
            return 0

        request_path, _ = request.target
        page = render_listing(listing, request_path, footer=self.config.server_name)
        return len(page) if writer.body(page) else 0
