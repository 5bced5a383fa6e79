"""
Unit tests for the access log.
"""

import logging
import re
import time

from simplehttpd.access_log import AccessLog, format_log_date


class TestFormatLogDate:
    """Tests for format_log_date()."""

    def test_single_digit_day_is_space_padded(self):
        """Days below 10 are padded with a space, as in ctime()."""
        t = time.mktime((2025, 1, 6, 14, 3, 22, 0, 0, -1))

        assert format_log_date(t) == "Mon Jan  6 14:03:22 2025"

    def test_two_digit_day(self):
        """Test a two-digit day and zero-padded time fields."""
        t = time.mktime((2025, 1, 16, 9, 5, 1, 0, 0, -1))

        assert format_log_date(t) == "Thu Jan 16 09:05:01 2025"


class TestAccessLog:
    """Tests for AccessLog hooks."""

    def test_request_received(self):
        """One line per request: date, peer address, request line."""
        lines = []
        AccessLog(lines.append).request_received(("192.0.2.1", 80), "GET / HTTP/1.0")

        assert len(lines) == 1
        assert re.fullmatch(r"\w{3} \w{3} [ \d]\d \d\d:\d\d:\d\d \d{4} 192\.0\.2\.1:80 GET / HTTP/1\.0", lines[0])

    def test_no_request_line_logs_null(self):
        """Test that a missing or empty request line is logged as (null)."""
        lines = []
        log = AccessLog(lines.append)
        log.request_received(("192.0.2.1", 80), None)
        log.request_received(("192.0.2.1", 80), "")

        assert all(line.endswith(" 192.0.2.1:80 (null)") for line in lines)

    def test_ipv6_peer(self):
        """IPv6 peers are logged as address:port without brackets."""
        lines = []
        AccessLog(lines.append).request_received(("::1", 5000, 0, 0), "GET /")

        assert lines[0].endswith(" ::1:5000 GET /")

    def test_log_passes_through(self):
        """log() hands the text to the sink unchanged."""
        lines = []
        AccessLog(lines.append).log("* custom")

        assert lines == ["* custom"]

    def test_default_sink_is_access_logger(self, caplog, monkeypatch):
        """Without a sink, lines go to the simplehttpd.access logger."""
        monkeypatch.setattr(logging.getLogger("simplehttpd.access"), "propagate", True)

        with caplog.at_level("INFO", logger="simplehttpd.access"):
            AccessLog().log("hello")

        assert "hello" in caplog.messages
