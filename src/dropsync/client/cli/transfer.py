"""Inbox and fetch commands for the dropsync CLI.

Commands:
- inbox: List files waiting in the server's drop inbox
- fetch: Download the latest (or a named) file
"""

from __future__ import annotations

import asyncio
import sys
from typing import TYPE_CHECKING

import click

from dropsync.client.cli.config import (
    get_documents_folder,
    get_downloads_folder,
    require_server_config,
)

if TYPE_CHECKING:
    from dropsync.client.sync import DownloadResult
    from dropsync.core.config import ServerConfig


@click.command()
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def inbox(server: str | None) -> None:
    """List files waiting in the server's drop inbox."""
    from dropsync.client.api import APIError, HTTPClient
    from dropsync.core.formatting import format_size

    server_config = require_server_config(server)

    async def run() -> list:
        async with HTTPClient(server_config) as client:
            return await client.list_waiting_files()

    try:
        files = asyncio.run(run())
    except APIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if not files:
        click.echo("No files waiting.")
        return

    click.echo(f"{len(files)} file(s) waiting:")
    for waiting in files:
        click.echo(f"  {waiting.name}  ({format_size(waiting.size)})")


@click.command()
@click.argument("name", required=False)
@click.option(
    "--share",
    is_flag=True,
    help="Download into a temporary folder and open it instead of saving.",
)
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def fetch(name: str | None, share: bool, server: str | None) -> None:
    """Download the latest file, or NAME from the inbox.

    Files are saved into the downloads folder without overwriting:
    an existing name gets a " (n)" suffix.
    """
    from dropsync.client.sync import SyncError
    from dropsync.core.formatting import format_size

    if share and name:
        raise click.UsageError("--share always fetches the latest file; omit NAME.")

    server_config = require_server_config(server)

    try:
        result = asyncio.run(_fetch(server_config, name, share))
    except SyncError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    action = "Opened" if share else "Saved"
    click.echo(f"{action} {result.local_path} ({format_size(result.size)})")


async def _fetch(server_config: ServerConfig, name: str | None, share: bool) -> DownloadResult:
    from dropsync.client.api import HTTPClient
    from dropsync.client.capabilities import SystemExporter
    from dropsync.client.sync import FileDownloader

    async with HTTPClient(server_config) as client:
        downloader = FileDownloader(
            client,
            get_documents_folder(),
            downloads_dir=get_downloads_folder(),
        )
        if share:
            return await downloader.download_and_share(SystemExporter())
        return await downloader.save_download(name)
