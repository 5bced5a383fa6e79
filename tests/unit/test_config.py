"""
Unit tests for ServerConfig.
"""

import os

import pytest

from simplehttpd.config import ServerConfig


class TestServerConfig:
    """Tests for defaults, environment loading and validation."""

    def test_defaults(self, tmp_path):
        """Test default configuration values."""
        config = ServerConfig(document_root=str(tmp_path))

        assert config.host == "::"
        assert config.port == 8001
        assert config.workers == 3
        assert config.index_files == ("index.html", "index.htm")
        assert config.hide_dotfiles is True
        assert config.userdir_enabled is False
        assert config.userdir_suffix == "public_html"
        assert config.max_symlink_hops == 32
        assert config.strict_paths is False

    def test_document_root_made_absolute(self, tmp_path, monkeypatch):
        """A relative root is resolved against the working directory."""
        monkeypatch.chdir(tmp_path)
        config = ServerConfig(document_root=".")

        assert os.path.realpath(config.document_root) == os.path.realpath(tmp_path)
        assert os.path.isabs(config.document_root)

    def test_index_files_become_tuple(self, tmp_path):
        """Test that a list of index files is stored as a tuple."""
        config = ServerConfig(document_root=str(tmp_path), index_files=["home.html"])

        assert config.index_files == ("home.html",)

    def test_frozen(self, tmp_path):
        """Config is immutable once built."""
        config = ServerConfig(document_root=str(tmp_path))

        with pytest.raises(AttributeError):
            config.port = 1

    def test_from_env(self, tmp_path, monkeypatch):
        """Test loading settings from SIMPLEHTTPD_* variables."""
        monkeypatch.setenv("SIMPLEHTTPD_ROOT", str(tmp_path))
        monkeypatch.setenv("SIMPLEHTTPD_HOST", "127.0.0.1")
        monkeypatch.setenv("SIMPLEHTTPD_PORT", "9000")
        monkeypatch.setenv("SIMPLEHTTPD_WORKERS", "0")
        monkeypatch.setenv("SIMPLEHTTPD_LOG_LEVEL", "DEBUG")

        config = ServerConfig.from_env()

        assert config.document_root == str(tmp_path)
        assert config.host == "127.0.0.1"
        assert config.port == 9000
        assert config.workers == 0
        assert config.log_level == "DEBUG"

    def test_validate_accepts_defaults(self, tmp_path):
        """Test that the defaults pass validation."""
        ServerConfig(document_root=str(tmp_path)).validate()

    @pytest.mark.parametrize("overrides", [
        {"port": -1},
        {"port": 65536},
        {"workers": -1},
        {"max_line_length": 0},
        {"chunk_size": 0},
        {"max_symlink_hops": 0},
    ])
    def test_validate_rejects(self, tmp_path, overrides):
        """Out-of-range values fail validation with ValueError."""
        config = ServerConfig(document_root=str(tmp_path), **overrides)

        with pytest.raises(ValueError):
            config.validate()

    def test_validate_rejects_missing_root(self, tmp_path):
        """Test that a missing document root is reported."""
        config = ServerConfig(document_root=str(tmp_path / "nope"))

        with pytest.raises(ValueError, match="not a directory"):
            config.validate()
