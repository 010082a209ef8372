"""Configuration utilities for the dropsync CLI.

This module provides shared configuration functions used across CLI commands.
Settings live in ``~/.dropsync/config.json``:

- server_url: Base URL of the companion machine's drop server
- downloads_folder: Where watcher downloads are saved
- documents_folder: Local sync target for project pulls
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from dropsync.client.sync.files import documents_directory, downloads_directory
from dropsync.core.config import ServerConfig


def get_config_dir() -> Path:
    """Get the configuration directory for dropsync.

    Returns:
        Path to ~/.dropsync or equivalent.
    """
    return Path.home() / ".dropsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def get_server_url() -> str | None:
    """Get the configured server URL, if any."""
    return load_config().get("server_url") or None


def get_downloads_folder() -> Path:
    """Get the downloads folder path.

    Returns:
        Path to the configured folder, or ~/DropSync/Downloads.
    """
    config = load_config()
    if config.get("downloads_folder"):
        return Path(config["downloads_folder"]).expanduser().resolve()
    return downloads_directory(create=False)


def get_documents_folder() -> Path:
    """Get the documents (sync target) folder path.

    Returns:
        Path to the configured folder, or ~/DropSync/Documents.
    """
    config = load_config()
    if config.get("documents_folder"):
        return Path(config["documents_folder"]).expanduser().resolve()
    return documents_directory(create=False)


def require_server_config(server: str | None = None) -> ServerConfig:
    """Build the server configuration or exit with an error.

    Args:
        server: URL given on the command line, overriding the config file.

    Returns:
        ServerConfig for the selected server.
    """
    server_url = server or get_server_url()
    if not server_url:
        click.echo(
            "Error: No server configured. Run 'dropsync config --server URL' first.",
            err=True,
        )
        sys.exit(1)
    return ServerConfig(server_url=server_url)
