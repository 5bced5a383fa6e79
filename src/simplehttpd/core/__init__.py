"""
=============================================================================
CORE SERVER COMPONENTS
=============================================================================

The networking plumbing under the HTTP layer:

    SocketServer   listening socket, accept loop, ListenerError
    ThreadPool     fixed set of workers pulling accepted connections
    Connection     one client socket: line reads, full writes, close

=============================================================================
"""

from .socket_server import SocketServer, ListenerError
from .connection import Connection, ConnectionState
from .thread_pool import ThreadPool

__all__ = [
    "SocketServer",     # Accepts connections
    "ListenerError",    # socket/bind/listen failure
    "Connection",       # Client socket wrapper
    "ConnectionState",  # Connection lifecycle states
    "ThreadPool",       # Worker threads
]
