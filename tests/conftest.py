"""
pytest configuration and fixtures.
"""

import gzip
import socket
import threading
import time
from typing import Callable, Generator, List, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from simplehttpd import HTTPServer, ServerConfig
from simplehttpd.access_log import AccessLog
from simplehttpd.core.connection import Connection
from simplehttpd.handlers import RequestHandler


CLIENT_ADDRESS = ("192.0.2.7", 40123)


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


@pytest.fixture
def docroot(tmp_path: Path) -> Path:
    """
    A small document root:

        hello.txt        "0123456789"
        big.bin          3000 bytes
        page.html.gz     gzip of "<p>hi</p>"
        noext            "plain"
        .hidden          dotfile
        docs/            a.txt, b.txt
        site/            index.html
    """
    root = tmp_path / "www"
    root.mkdir()

    (root / "hello.txt").write_bytes(b"0123456789")
    (root / "big.bin").write_bytes(bytes(i % 251 for i in range(3000)))
    (root / "page.html.gz").write_bytes(gzip.compress(b"<p>hi</p>"))
    (root / "noext").write_bytes(b"plain")
    (root / ".hidden").write_bytes(b"secret")

    docs = root / "docs"
    docs.mkdir()
    (docs / "a.txt").write_bytes(b"a")
    (docs / "b.txt").write_bytes(b"bb")

    site = root / "site"
    site.mkdir()
    (site / "index.html").write_bytes(b"<h1>site</h1>")

    return root


@pytest.fixture
def config(docroot: Path) -> ServerConfig:
    """Test server configuration over the docroot fixture."""
    return ServerConfig(
        document_root=str(docroot),
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        workers=0,
        timeout=5.0,
        log_level="WARNING",
    )


@pytest.fixture
def access_lines() -> List[str]:
    """Collects access-log lines."""
    return []


def run_exchange(handler: RequestHandler, request: bytes, address: tuple = CLIENT_ADDRESS) -> bytes:
    """
    Feed one request to a handler over a socketpair and return
    everything it wrote before closing.
    """
    client, server_side = socket.socketpair()
    try:
        client.sendall(request)
        client.shutdown(socket.SHUT_WR)

        conn = Connection(socket=server_side, address=address, timeout=5.0)
        handler.handle(conn)

        client.settimeout(5.0)
        chunks = []
        while True:
            data = client.recv(65536)
            if not data:
                break
            chunks.append(data)
        return b"".join(chunks)
    finally:
        client.close()
        server_side.close()


def split_response(raw: bytes) -> Tuple[str, List[str], bytes]:
    """Split a raw response into (status line, header lines, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    return lines[0], lines[1:], body


@pytest.fixture
def exchange(config: ServerConfig, access_lines: List[str]) -> Callable[..., bytes]:
    """
    Send raw request bytes through a RequestHandler built from config.

    Usage:
        raw = exchange(b"GET / HTTP/1.0\\r\\n\\r\\n")
        raw = exchange(b"...", config=other_config)
    """
    def _exchange(request: bytes, config: Optional[ServerConfig] = None) -> bytes:
        handler = RequestHandler(config or _default, AccessLog(access_lines.append))
        return run_exchange(handler, request)

    _default = config
    return _exchange


class TestServer:
    """Test server helper that runs in a background thread."""

    __test__ = False

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        """Bind, then run the server in a background thread."""
        self.server.listen()
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        # Wait for the accept loop to be up
        for _ in range(50):  # 5 seconds max
            if self.server.is_running:
                return
            time.sleep(0.1)

        raise RuntimeError("Server failed to start")

    def request(self, raw: bytes) -> bytes:
        """Send raw bytes, read until the server closes."""
        with socket.create_connection(("127.0.0.1", self.port), timeout=5.0) as s:
            s.sendall(raw)
            chunks = []
            while True:
                data = s.recv(65536)
                if not data:
                    break
                chunks.append(data)
        return b"".join(chunks)

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)


@pytest.fixture
def test_server(docroot: Path, access_lines: List[str]) -> Generator[TestServer, None, None]:
    """A real server with 2 workers on a free port."""
    server = HTTPServer(
        ServerConfig(
            document_root=str(docroot),
            host="127.0.0.1",
            port=0,
            workers=2,
            timeout=5.0,
            log_level="WARNING",
        ),
        access_log=AccessLog(access_lines.append),
    )

    test_srv = TestServer(server)
    test_srv.start()

    yield test_srv

    test_srv.stop()
