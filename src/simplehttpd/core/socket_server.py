"""
=============================================================================
LOW-LEVEL TCP SOCKET SERVER
=============================================================================

Owns the listening socket: creates it, binds it, accepts connections and
hands each one to a callback.

=============================================================================
SOCKET LIFECYCLE (Server Side)
=============================================================================

    1. socket()    AF_INET6 if the host contains ":", else AF_INET
    2. setsockopt  SO_REUSEADDR, so a restart does not wait out TIME_WAIT
    3. bind()      host:port (port 0 picks a free port)
    4. listen()    backlog = queued connections before the OS refuses more
    5. accept()    one new socket per client, wrapped in a Connection
    6. close()     on shutdown

Any failure in steps 1, 3 or 4 is raised as a ListenerError naming the
step, so the CLI can report "bind: Address already in use [98]" and
exit with status 1.

=============================================================================
LISTEN AND SERVE ARE SEPARATE
=============================================================================

    server = SocketServer(config)
    server.listen()            ← bound and listening, address known
    print(server.address)      ← e.g. ('::', 8001, 0, 0)
    server.serve(handler)      ← accept loop, BLOCKS until shutdown()

Binding first lets the caller print the startup banner with the real
bound port, and lets tests bind port 0.

=============================================================================
"""

import socket
import signal
import logging
import threading
from typing import Optional, Callable, Tuple

from ..config import ServerConfig
from .connection import Connection


logger = logging.getLogger(__name__)

# How often the accept loop wakes up to check for shutdown
ACCEPT_TIMEOUT = 1.0


class ListenerError(Exception):
    """
    The listening socket could not be set up.

    Attributes:
        stage: "socket", "bind" or "listen".
        errno: OS error number (may be None).
        strerror: OS error text.
    """

    def __init__(self, stage: str, errno: Optional[int], strerror: Optional[str]):
        super().__init__(f"{stage}: {strerror} [{errno}]")
        self.stage = stage
        self.errno = errno
        self.strerror = strerror

    @classmethod
    def from_os_error(cls, stage: str, error: OSError) -> "ListenerError":
        return cls(stage, error.errno, error.strerror or str(error))


def address_family(host: str) -> socket.AddressFamily:
    """IPv6 for hosts like "::" or "::1", IPv4 otherwise."""
    return socket.AF_INET6 if ":" in host else socket.AF_INET


class SocketServer:
    """
    Low-level TCP socket server.

    Manages socket lifecycle and connection acceptance.
    Designed to be used by higher-level HTTP server.

    Usage:
        def handle_connection(conn: Connection):
            pass

        server = SocketServer(config)
        server.listen()
        server.serve(handle_connection)  # Blocks until shutdown
    """

    def __init__(self, config: ServerConfig):
        """
        Args:
            config: Server configuration containing host, port, backlog, etc.

        Note: The socket is created in listen(), not here.
        """
        self.config = config
        self._socket: Optional[socket.socket] = None
        self._running = False
        self._shutdown_event = threading.Event()
        self._original_handlers: dict = {}

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_listening(self) -> bool:
        return self._socket is not None

    @property
    def address(self) -> Tuple:
        """Bound address as returned by getsockname(), config values before listen()."""
        if self._socket is None:
            return (self.config.host, self.config.port)
        return self._socket.getsockname()

    # =========================================================================
    # SETUP
    # =========================================================================

    def listen(self) -> None:
        """
        Create, bind and listen.

        Raises:
            ListenerError: Naming the step that failed.
        """
        try:
            sock = socket.socket(address_family(self.config.host), socket.SOCK_STREAM)
        except OSError as e:
            raise ListenerError.from_os_error("socket", e) from e

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

            try:
                sock.bind((self.config.host, self.config.port))
            except OSError as e:
                raise ListenerError.from_os_error("bind", e) from e

            try:
                sock.listen(self.config.backlog)
            except OSError as e:
                raise ListenerError.from_os_error("listen", e) from e
        except BaseException:
            sock.close()
            raise

        # Timeout so the accept loop can notice shutdown()
        sock.settimeout(ACCEPT_TIMEOUT)
        self._socket = sock
        self._shutdown_event.clear()

        logger.info(f"Listening on {self.config.host}:{self.address[1]}")

    def _setup_signals(self):
        """
        Install SIGTERM/SIGINT handlers that call shutdown().

        Python only allows this from the main thread; anywhere else
        (tests, embedding) the process keeps its existing handlers.
        """
        if threading.current_thread() is not threading.main_thread():
            return

        def shutdown_handler(signum, frame):
            signal_name = signal.Signals(signum).name
            logger.info(f"Received {signal_name}, initiating shutdown...")
            self.shutdown()

        self._original_handlers[signal.SIGTERM] = signal.signal(signal.SIGTERM, shutdown_handler)
        self._original_handlers[signal.SIGINT] = signal.signal(signal.SIGINT, shutdown_handler)

    def _restore_signals(self):
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    # =========================================================================
    # SERVING
    # =========================================================================

    def serve(self, connection_handler: Callable[[Connection], None]):
        """
        Accept connections until shutdown() is called.

        listen() must have been called first. The socket is closed when
        this returns.

        Args:
            connection_handler: Receives every accepted Connection. It
                                owns the connection from then on.
        """
        if self._socket is None:
            raise RuntimeError("serve() called before listen()")

        self._running = True
        self._setup_signals()

        try:
            self._accept_loop(connection_handler)
        finally:
            self._cleanup()

    def _accept_loop(self, connection_handler: Callable[[Connection], None]):
        while self._running:
            try:
                client_socket, client_address = self._socket.accept()
            except socket.timeout:
                continue
            except OSError as e:
                if self._running:
                    logger.error(f"Accept error: {e}")
                    continue
                break

            logger.debug(f"Accepted connection from {client_address[0]}:{client_address[1]}")

            conn = Connection(
                socket=client_socket,
                address=client_address,
                timeout=self.config.timeout,
            )
            connection_handler(conn)

    # =========================================================================
    # SHUTDOWN
    # =========================================================================

    def shutdown(self):
        """
        Stop the accept loop. Safe to call more than once and from any
        thread or a signal handler.
        """
        if self._running:
            logger.info("Shutting down socket server...")
        self._running = False
        self._shutdown_event.set()

    def _cleanup(self):
        self._restore_signals()
        self._running = False

        if self._socket:
            try:
                self._socket.close()
            except OSError:
                pass  # Already closed
            self._socket = None

        self._shutdown_event.set()
        logger.info("Socket server stopped")

    def wait_for_shutdown(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the server to shut down.

        Returns:
            True if shutdown completed, False if timeout.
        """
        return self._shutdown_event.wait(timeout)
