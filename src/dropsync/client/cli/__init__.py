"""Command-line interface for dropsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- config: Show or update the server URL and local folders
- watch: Poll the server and notify about newly received files
- status: Show the server's last transfer status
- inbox: List files waiting in the drop inbox
- fetch: Save the latest (or a named) file, or download and share it
- check: List remote project files outdated locally
- pull: Pull outdated project files
- push: Upload a project folder
"""

from __future__ import annotations

import logging

import click

from dropsync.client.cli.config import (
    get_config_dir,
    get_config_file,
    get_documents_folder,
    get_downloads_folder,
    get_server_url,
    load_config,
    save_config,
)
from dropsync.client.cli.configure import config_cmd
from dropsync.client.cli.sync import check, pull, push
from dropsync.client.cli.transfer import fetch, inbox
from dropsync.client.cli.watch import status, watch

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the dropsync logger for console output.

    Args:
        verbose: Log at DEBUG instead of INFO level.
    """
    logger = logging.getLogger("dropsync")
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)


@click.group()
@click.version_option(package_name="dropsync")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """dropsync - File drop watcher and project sync client."""
    setup_logging(verbose)


# Settings
cli.add_command(config_cmd)

# Watcher commands
cli.add_command(watch)
cli.add_command(status)

# Transfer commands
cli.add_command(inbox)
cli.add_command(fetch)

# Project sync commands
cli.add_command(check)
cli.add_command(pull)
cli.add_command(push)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    "setup_logging",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_documents_folder",
    "get_downloads_folder",
    "get_server_url",
    "load_config",
    "save_config",
]
