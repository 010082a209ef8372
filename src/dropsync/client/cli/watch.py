"""Watch and status commands for the dropsync CLI.

Commands:
- watch: Poll the server and notify about newly received files
- status: Show the server's transfer status once
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
    from dropsync.client.api import HTTPClient
    from dropsync.client.state import WatcherState
    from dropsync.client.watcher import StatusWatcher, WatcherConfig
    from dropsync.core.config import ServerConfig

# Seconds between checks of the auto-download flag
AUTO_DOWNLOAD_CHECK_INTERVAL = 0.5


class ConnectionPrinter:
    """Prints connectivity changes of a WatcherState."""

    def __init__(self) -> None:
        self._connected: bool | None = None

    def __call__(self, state: WatcherState) -> None:
        if state.is_connected == self._connected:
            return
        self._connected = state.is_connected
        if state.is_connected:
            click.echo(f"Connected. Last file: {state.last_file_name}")
        else:
            click.echo(f"Disconnected: {state.status_message}", err=True)


@click.command()
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
@click.option(
    "--auto-download",
    is_flag=True,
    help="Save the file when a notification is acted on.",
)
@click.option(
    "--interval",
    type=click.FloatRange(min=0.1),
    default=3.0,
    show_default=True,
    help="Seconds between status polls.",
)
@click.option("--inbox", "track_inbox", is_flag=True, help="Also track the waiting-files inbox.")
def watch(server: str | None, auto_download: bool, interval: float, track_inbox: bool) -> None:
    """Watch the server for newly received files.

    Every new arrival is printed and shown as a system notification.
    Press Ctrl+C to stop.
    """
    from dropsync.client.watcher import WatcherConfig

    server_config = require_server_config(server)
    watcher_config = WatcherConfig(poll_interval=interval, track_waiting_files=track_inbox)

    click.echo(f"Watching {server_config.server_url} (Ctrl+C to stop)")
    try:
        asyncio.run(_watch(server_config, watcher_config, auto_download))
    except KeyboardInterrupt:
        click.echo("\nStopped.")


async def _watch(
    server_config: ServerConfig,
    watcher_config: WatcherConfig,
    auto_download: bool,
) -> None:
    from dropsync.client.api import HTTPClient
    from dropsync.client.notifications import SystemNotifier
    from dropsync.client.watcher import StatusWatcher

    async with HTTPClient(server_config) as client:
        notifier = SystemNotifier()
        notifier.request_permission()

        watcher = StatusWatcher(client, notifier=notifier, config=watcher_config)
        watcher.state.subscribe(ConnectionPrinter())
        watcher.set_on_file_received(lambda name: click.echo(f"New file received: {name}"))
        watcher.start()

        try:
            await _auto_download_loop(client, watcher, auto_download)
        finally:
            await watcher.stop()


async def _auto_download_loop(client: HTTPClient, watcher: StatusWatcher, enabled: bool) -> None:
    """Act on notification responses until cancelled."""
    from dropsync.client.sync import FileDownloader, SyncError
    from dropsync.core.formatting import format_size

    downloader = FileDownloader(
        client,
        get_documents_folder(),
        downloads_dir=get_downloads_folder(),
    )

    while True:
        await asyncio.sleep(AUTO_DOWNLOAD_CHECK_INTERVAL)
        if not watcher.consume_auto_download_request() or not enabled:
            continue
        try:
            result = await downloader.save_download()
        except SyncError as e:
            click.echo(f"Error: {e}", err=True)
        else:
            click.echo(f"Saved {result.local_path} ({format_size(result.size)})")


@click.command()
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def status(server: str | None) -> None:
    """Show the server's last transfer status."""
    from dropsync.client.api import APIError

    server_config = require_server_config(server)

    try:
        asyncio.run(_status(server_config))
    except APIError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


async def _status(server_config: ServerConfig) -> None:
    from dropsync.client.api import HTTPClient
    from dropsync.core.formatting import format_size, format_timestamp

    async with HTTPClient(server_config) as client:
        snapshot = await client.get_status()

    click.echo(f"Server:        {server_config.server_url}")
    click.echo(f"Last file:     {snapshot.file_name}")
    if snapshot.last_sent is not None:
        sent = snapshot.last_sent
        if sent.sending:
            outcome = "sending"
        elif sent.succeeded:
            outcome = "sent"
        else:
            outcome = "failed"
        click.echo(
            f"Last sent:     {sent.name} ({format_size(sent.size)}, {outcome}, "
            f"{format_timestamp(sent.timestamp)})"
        )
    if snapshot.server_cwd:
        click.echo(f"Sharing:       {snapshot.server_cwd}")
