"""Shared configuration classes for dropsync.

This module defines configuration classes used by the HTTP client and both
client engines (status watcher and project sync).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class ServerConfig:
    """Configuration for connecting to a companion machine's drop server.

    Attributes:
        server_url: Base URL of the server (e.g., "http://100.64.0.2:8080").
        timeout: Timeout in seconds for manifest and transfer requests.
        status_timeout: Timeout in seconds for status polls.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    timeout: float = 30.0
    status_timeout: float = 5.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")
