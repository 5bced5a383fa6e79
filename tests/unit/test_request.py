"""
Unit tests for HTTP request parsing.
"""

import socket

import pytest

from simplehttpd.core.connection import Connection
from simplehttpd.http.request import (
    ParsedRequest,
    HTTPParseError,
    parse_request_line,
    read_headers,
)


class TestParseRequestLine:
    """Tests for parse_request_line()."""

    def test_parse_simple_get(self):
        """Method, path and version are split on spaces."""
        request = parse_request_line("GET /index.html HTTP/1.1")

        assert request.method == "GET"
        assert request.path == "/index.html"
        assert request.version == "HTTP/1.1"
        assert request.request_line == "GET /index.html HTTP/1.1"

    def test_missing_version_defaults_to_http_10(self):
        """An HTTP/0.9 style line gets HTTP/1.0."""
        request = parse_request_line("GET /")

        assert request.path == "/"
        assert request.version == "HTTP/1.0"

    def test_leading_and_repeated_spaces_are_skipped(self):
        """Runs of spaces before the method and before the path are skipped."""
        request = parse_request_line("  GET    /a HTTP/1.0")

        assert request.method == "GET"
        assert request.path == "/a"
        assert request.version == "HTTP/1.0"

    def test_method_only(self):
        """A lone method parses with an empty path."""
        request = parse_request_line("GET")

        assert request.method == "GET"
        assert request.path == ""
        assert request.version == "HTTP/1.0"

    def test_too_many_components_rejected(self):
        """Whitespace inside the version token is a 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request_line("GET /a HTTP/1.0 extra")

        assert exc_info.value.status_code == 400

    def test_bogus_version_rejected(self):
        """A version that does not start with HTTP/ is a 400."""
        with pytest.raises(HTTPParseError) as exc_info:
            parse_request_line("GET / BOGUS")

        assert exc_info.value.status_code == 400

    def test_bare_http_without_slash_rejected(self):
        """"HTTP" alone is not a version."""
        with pytest.raises(HTTPParseError):
            parse_request_line("GET / HTTP")

    def test_method_is_case_sensitive(self):
        """Methods are kept exactly as sent."""
        assert parse_request_line("get / HTTP/1.0").method == "get"


class TestParsedRequest:
    """Tests for ParsedRequest helpers."""

    def test_trace_is_echo(self):
        """Test that TRACE is echoed whatever the path."""
        assert parse_request_line("TRACE /anything HTTP/1.0").is_echo

    def test_echo_path_is_echo_for_any_method(self):
        """/echo is echoed for any method."""
        assert parse_request_line("GET /echo HTTP/1.0").is_echo
        assert parse_request_line("POST /echo HTTP/1.0").is_echo

    def test_echo_path_must_match_exactly(self):
        """A trailing slash or a query disables /echo."""
        assert not parse_request_line("GET /echo/ HTTP/1.0").is_echo
        assert not parse_request_line("GET /echo?x=1 HTTP/1.0").is_echo

    def test_target_splits_query(self):
        """The query starts at the first "?"."""
        request = parse_request_line("GET /a/b?x=1?y=2 HTTP/1.0")

        assert request.target == ("/a/b", "x=1?y=2")

    def test_target_without_query(self):
        """Test a target without a query."""
        assert parse_request_line("GET /a HTTP/1.0").target == ("/a", "")

    def test_echo_body(self):
        """Request line, CRLF, headers joined by CRLF, CRLF."""
        request = ParsedRequest(
            request_line="TRACE / HTTP/1.0",
            method="TRACE",
            path="/",
            headers=["Host: x", "X-A: 1"],
        )

        assert request.echo_body() == "TRACE / HTTP/1.0\r\nHost: x\r\nX-A: 1\r\n"

    def test_echo_body_without_headers(self):
        """Test that no headers still gives a blank line."""
        request = ParsedRequest(request_line="TRACE / HTTP/1.0", method="TRACE", path="/")

        assert request.echo_body() == "TRACE / HTTP/1.0\r\n\r\n"


class TestReadHeaders:
    """Tests for read_headers()."""

    def _connection(self, data: bytes):
        client, server_side = socket.socketpair()
        client.sendall(data)
        client.shutdown(socket.SHUT_WR)
        return client, Connection(socket=server_side, address=("127.0.0.1", 1))

    def test_reads_until_blank_line(self):
        """Test that reading stops at the blank line and leaves the rest."""
        client, conn = self._connection(b"Host: x\r\nAccept: */*\r\n\r\nleftover")
        try:
            assert read_headers(conn) == ["Host: x", "Accept: */*"]
            assert conn.read_line() == "leftover"
        finally:
            client.close()
            conn.close()

    def test_end_of_stream_ends_headers(self):
        """A closed stream ends the header block."""
        client, conn = self._connection(b"Host: x\r\n")
        try:
            assert read_headers(conn) == ["Host: x"]
        finally:
            client.close()
            conn.close()

    def test_headers_kept_raw(self):
        """Header lines are not parsed or normalised."""
        client, conn = self._connection(b"x-weird:   spaced  \r\nnocolon\r\n\r\n")
        try:
            assert read_headers(conn) == ["x-weird:   spaced  ", "nocolon"]
        finally:
            client.close()
            conn.close()
