"""
=============================================================================
SIMPLEHTTPD - Minimal Static File HTTP/1.x Server
=============================================================================

Serves files and directory listings from a document root, and from
per-user public directories (/~alice/...), over raw sockets.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    simplehttpd/
    ├── __init__.py          # This file - package exports
    ├── __main__.py          # CLI entry point (python -m simplehttpd)
    ├── server.py            # HTTPServer: listener + pool + handler
    ├── config.py            # ServerConfig dataclass
    ├── access_log.py        # One line per request
    ├── resolver.py          # Request path → filesystem target
    ├── core/                # Low-level components
    │   ├── socket_server.py # Listening socket, accept loop
    │   ├── connection.py    # Line reader, full writes, close
    │   └── thread_pool.py   # Fixed worker pool
    ├── http/                # HTTP protocol components
    │   ├── request.py       # Request line and header lines
    │   ├── response.py      # Status line, headers, bodies
    │   ├── status_codes.py  # Codes and reason phrases
    │   └── mime_types.py    # Extension → Content-Type
    └── handlers/
        ├── request_handler.py  # One connection, start to close
        ├── static.py        # Files and directories
        └── listing.py       # HTML directory index

=============================================================================
QUICK START
=============================================================================

    from simplehttpd import HTTPServer, ServerConfig

    server = HTTPServer(ServerConfig(document_root="./public", port=8080))
    server.run()

Or from the shell:

    python -m simplehttpd -d ./public -p 8080

=============================================================================
"""

__version__ = "1.1.0"

from .config import ServerConfig
from .server import HTTPServer, create_app

__all__ = [
    "HTTPServer",
    "ServerConfig",
    "create_app",
    "__version__",
]
