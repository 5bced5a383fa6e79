"""
=============================================================================
HTTP SERVER
=============================================================================

Ties the pieces together.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                            HTTPServer                                │
    │                                                                      │
    │   SocketServer ──accept──► ThreadPool ──worker──► RequestHandler    │
    │   (1 thread)               (N threads)            │                  │
    │                                                   ├─ PathResolver    │
    │                                                   ├─ StaticFile...   │
    │                                                   └─ AccessLog       │
    └─────────────────────────────────────────────────────────────────────┘

With workers=0 there is no pool: the accept loop runs RequestHandler
itself, one connection at a time.

=============================================================================
STARTUP
=============================================================================

    run()
      ├── _setup_logging()      root logger + bare stdout access logger
      ├── listen()              may raise ListenerError
      ├── banner                * * docroot = /srv/www
      │                         Mon Jan  6 14:03:22 2025 * listening on [::]:8001
      ├── pool.start()
      └── serve()               blocks until SIGINT/SIGTERM or shutdown()

=============================================================================
"""

import dataclasses
import logging
import sys
from typing import Optional

from .access_log import ACCESS_LOGGER, AccessLog, format_log_date
from .config import ServerConfig
from .core import SocketServer, Connection, ThreadPool
from .handlers import RequestHandler


logger = logging.getLogger(__name__)


def format_listen_address(host: str, port: int) -> str:
    """"host:port", with IPv6 hosts in brackets."""
    if ":" in host:
        return f"[{host}]:{port}"
    return f"{host}:{port}"


class HTTPServer:
    """
    Static file HTTP/1.x server.

    Usage:
        server = HTTPServer(ServerConfig(document_root="./public", port=8080))
        server.run()   # blocks until Ctrl+C

    For tests, run() can be called from a background thread; signal
    handlers are then left alone and shutdown() stops the server.
    """

    def __init__(self, config: Optional[ServerConfig] = None, access_log: Optional[AccessLog] = None):
        """
        Args:
            config: Server configuration. Defaults to ServerConfig().
            access_log: Where request lines go. Defaults to the
                        "simplehttpd.access" logger.

        Raises:
            ValueError: If the configuration is invalid.
        """
        self.config = config or ServerConfig()
        self.config.validate()  # Fail-fast on invalid config

        self._socket_server = SocketServer(self.config)
        self._thread_pool = ThreadPool(workers=self.config.workers) if self.config.workers > 0 else None
        self._handler = RequestHandler(self.config, access_log)

    @property
    def address(self):
        """Bound address once listening (port 0 resolved to the real port)."""
        return self._socket_server.address

    @property
    def is_running(self) -> bool:
        return self._socket_server.is_running

    def listen(self):
        """Bind the listening socket. Raises ListenerError."""
        self._socket_server.listen()

    def run(self):
        """
        Start the server (blocking).

        Raises:
            ListenerError: If the listening socket cannot be set up.
        """
        self._setup_logging()

        if not self._socket_server.is_listening:
            self.listen()

        self._print_startup_banner()

        if self._thread_pool is not None:
            self._thread_pool.start()

        try:
            self._socket_server.serve(self._handle_connection)
        except KeyboardInterrupt:
            logger.info("Received keyboard interrupt")
        finally:
            self._shutdown()

    def shutdown(self):
        """Ask a running server to stop. Safe from any thread."""
        self._socket_server.shutdown()

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        return self._socket_server.wait_for_shutdown(timeout)

    def _print_startup_banner(self):
        host, port = self.address[0], self.address[1]
        print(f"* * docroot = {self.config.document_root}")
        print(f"{format_log_date()} * listening on {format_listen_address(host, port)}", flush=True)

        if self.config.workers:
            logger.info(f"Serving with {self.config.workers} worker threads")
        else:
            logger.info("Serving sequentially (no worker threads)")

    def _setup_logging(self):
        """
        Configure logging based on config.

        basicConfig() is a no-op when the application already configured
        the root logger. The access logger gets its own bare handler once.
        """
        level = getattr(logging, self.config.log_level.upper(), logging.INFO)
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        logging.getLogger("simplehttpd").setLevel(level)

        access_logger = logging.getLogger(ACCESS_LOGGER)
        access_logger.setLevel(logging.INFO)
        if not access_logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(logging.Formatter("%(message)s"))
            access_logger.addHandler(handler)
        access_logger.propagate = False

    def _shutdown(self):
        """Stop accepting, let queued connections finish, stop workers."""
        logger.info("Shutting down server...")
        if self._thread_pool is not None:
            self._thread_pool.shutdown(timeout=30.0)
        logger.info("Server stopped")

    def _handle_connection(self, conn: Connection):
        """
        Called by the accept loop for every accepted connection.

        The connection belongs to the worker (or to this call when
        sequential) from here on and is always closed by it.
        """
        if self._thread_pool is not None:
            self._thread_pool.submit(self._handler.handle, args=(conn,))
            return

        try:
            self._handler.handle(conn)
        except Exception as e:
            logger.exception(f"[{conn.id}] Connection error: {e}")


def create_app(config: Optional[ServerConfig] = None, **kwargs) -> HTTPServer:
    """
    Build a server from a config, with keyword overrides.

    Usage:
        server = create_app(document_root="./public", port=0, workers=0)
    """
    if config is None:
        config = ServerConfig(**kwargs)
    elif kwargs:
        config = dataclasses.replace(config, **kwargs)
    return HTTPServer(config)
