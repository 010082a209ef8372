"""Project sync commands for the dropsync CLI.

Commands:
- check: List remote files that are missing or outdated locally
- pull: Download outdated files into the documents folder
- push: Upload a project folder to the server
"""

from __future__ import annotations

import asyncio
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import TYPE_CHECKING, TypeVar

import click

from dropsync.client.cli.config import (
    get_documents_folder,
    get_downloads_folder,
    require_server_config,
)
from dropsync.client.sync.coordinator import DEFAULT_REFRESH_DELAY

if TYPE_CHECKING:
    from dropsync.client.api import RemoteFile
    from dropsync.client.sync import SyncCoordinator
    from dropsync.core.config import ServerConfig

T = TypeVar("T")


async def _with_coordinator(
    server_config: ServerConfig,
    action: Callable[[SyncCoordinator], Awaitable[T]],
    refresh_delay: float = DEFAULT_REFRESH_DELAY,
) -> T:
    """Build a coordinator for the configured folders and run ``action``."""
    from dropsync.client.api import HTTPClient
    from dropsync.client.sync import FileDownloader, FileUploader, SyncCoordinator

    async with HTTPClient(server_config) as client:
        coordinator = SyncCoordinator(
            client,
            FileDownloader(client, get_documents_folder(), downloads_dir=get_downloads_folder()),
            FileUploader(client),
            refresh_delay=refresh_delay,
        )
        return await action(coordinator)


def _print_outdated(files: list[RemoteFile]) -> None:
    from dropsync.core.formatting import format_size, format_timestamp

    if not files:
        click.echo("Everything is up to date.")
        return

    click.echo(f"{len(files)} file(s) to update:")
    for remote in files:
        click.echo(
            f"  {remote.name}  ({format_size(remote.size)}, "
            f"modified {format_timestamp(remote.modified)})"
        )


@click.command()
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def check(server: str | None) -> None:
    """List remote files missing or outdated in the documents folder."""
    server_config = require_server_config(server)

    async def run(coordinator: SyncCoordinator) -> tuple[list[RemoteFile] | None, str | None]:
        outdated = await coordinator.check_for_updates()
        return outdated, coordinator.state.status_message

    outdated, message = asyncio.run(_with_coordinator(server_config, run))
    if outdated is None:
        click.echo(f"Error: {message}", err=True)
        sys.exit(1)

    _print_outdated(outdated)


@click.command()
@click.argument("names", nargs=-1)
@click.option("--all", "pull_all", is_flag=True, help="Pull every outdated file.")
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def pull(names: tuple[str, ...], pull_all: bool, server: str | None) -> None:
    """Pull NAMES (or every outdated file) into the documents folder."""
    if not names and not pull_all:
        raise click.UsageError("Give one or more file names, or --all.")
    if names and pull_all:
        raise click.UsageError("NAMES and --all are mutually exclusive.")

    server_config = require_server_config(server)

    async def run(coordinator: SyncCoordinator) -> tuple[int, int, str | None]:
        if pull_all:
            if await coordinator.check_for_updates() is None:
                return 0, 0, coordinator.state.status_message
            total = len(coordinator.state.outdated_files)
            pulled = await coordinator.pull_all()
            return pulled, total, None

        pulled = 0
        for name in names:
            if await coordinator.pull(name):
                click.echo(f"Pulled {name}")
                pulled += 1
            else:
                click.echo(f"Failed: {coordinator.state.status_message}", err=True)
        return pulled, len(names), None

    pulled, total, error = asyncio.run(_with_coordinator(server_config, run))
    if error is not None:
        click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    click.echo(f"{pulled}/{total} file(s) pulled into {get_documents_folder()}")
    if pulled < total:
        sys.exit(1)


@click.command()
@click.argument(
    "folder",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
@click.option(
    "--refresh-delay",
    type=click.FloatRange(min=0),
    default=DEFAULT_REFRESH_DELAY,
    show_default=True,
    help="Seconds to wait before re-checking the manifest.",
)
@click.option("--server", "-s", help="Server URL (overrides the configured one).")
def push(folder: Path, refresh_delay: float, server: str | None) -> None:
    """Upload FOLDER to the server, then re-check for updates.

    Hidden files and directories are skipped. Files are stored on the
    server under FOLDER's name.
    """
    from dropsync.client.sync import PushResult

    server_config = require_server_config(server)
    folder = folder.expanduser().resolve()

    async def run(coordinator: SyncCoordinator) -> tuple[PushResult | None, str | None]:
        result = await coordinator.upload_project(folder)
        if result is None:
            return None, coordinator.state.status_message
        await coordinator.wait_for_pending()
        return result, None

    result, error = asyncio.run(
        _with_coordinator(server_config, run, refresh_delay=refresh_delay)
    )
    if result is None:
        click.echo(f"Error: {error}", err=True)
        sys.exit(1)

    for upload in result.failed:
        click.echo(f"Failed: {upload.relative_path}: {upload.error}", err=True)
    succeeded = len(result.uploads) - len(result.failed)
    click.echo(f"Uploaded {succeeded}/{len(result.relative_paths)} file(s) from {folder.name}")
    if result.failed:
        sys.exit(1)
