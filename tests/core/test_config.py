"""Tests for core configuration classes."""

from __future__ import annotations

from dropsync.core.config import ServerConfig


class TestServerConfig:
    """Tests for ServerConfig class."""

    def test_init_basic(self) -> None:
        """Should initialize with defaults."""
        config = ServerConfig(server_url="http://100.64.0.2:8080")
        assert config.server_url == "http://100.64.0.2:8080"
        assert config.timeout == 30.0
        assert config.status_timeout == 5.0
        assert config.verify_ssl is True

    def test_init_custom_timeouts(self) -> None:
        """Should accept custom timeouts."""
        config = ServerConfig(server_url="http://host", timeout=60.0, status_timeout=1.0)
        assert config.timeout == 60.0
        assert config.status_timeout == 1.0

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from server URL."""
        config = ServerConfig(server_url="https://example.com/")
        assert config.server_url == "https://example.com"

    def test_is_secure_https(self) -> None:
        """Should return True for HTTPS URLs."""
        assert ServerConfig(server_url="https://example.com").is_secure is True

    def test_is_secure_http(self) -> None:
        """Should return False for HTTP URLs."""
        assert ServerConfig(server_url="http://localhost:8000").is_secure is False
