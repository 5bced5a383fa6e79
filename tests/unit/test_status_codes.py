"""
Unit tests for status codes and reason phrases.
"""

from simplehttpd.http.status_codes import HTTPStatus, reason_phrase


class TestReasonPhrase:
    """Tests for reason_phrase()."""

    def test_known_codes(self):
        """Test phrases for the codes the server sends."""
        assert reason_phrase(200) == "OK"
        assert reason_phrase(301) == "Moved Permanently"
        assert reason_phrase(400) == "Bad Request"
        assert reason_phrase(403) == "Forbidden"
        assert reason_phrase(404) == "Not Found"
        assert reason_phrase(501) == "Not Implemented"

    def test_none_is_teapot(self):
        """Test that no status at all is a teapot."""
        assert reason_phrase(None) == "I'm a teapot"

    def test_unknown_code(self):
        """Unknown codes get a fallback phrase."""
        assert reason_phrase(299) == "Unknown Status"
        assert reason_phrase(999) == "Unknown Status"

    def test_enum_phrase(self):
        """Test the HTTPStatus members."""
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert int(HTTPStatus.MOVED_PERMANENTLY) == 301
