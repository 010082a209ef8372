"""Config command for the dropsync CLI.

Commands:
- config: Show or update the persisted settings
"""

from __future__ import annotations

from pathlib import Path

import click

from dropsync.client.cli.config import (
    get_config_file,
    get_documents_folder,
    get_downloads_folder,
    load_config,
    save_config,
)


@click.command("config")
@click.option("--server", "-s", "server_url", help="Base URL of the drop server.")
@click.option(
    "--downloads",
    type=click.Path(file_okay=False, path_type=Path),
    help="Folder receiving watcher downloads.",
)
@click.option(
    "--documents",
    type=click.Path(file_okay=False, path_type=Path),
    help="Local sync target for project pulls.",
)
def config_cmd(server_url: str | None, downloads: Path | None, documents: Path | None) -> None:
    """Show or update dropsync settings.

    Without options the current settings are printed.
    """
    config = load_config()

    if server_url is None and downloads is None and documents is None:
        click.echo(f"Config file: {get_config_file()}")
        click.echo(f"Server:      {config.get('server_url') or '(not set)'}")
        click.echo(f"Downloads:   {get_downloads_folder()}")
        click.echo(f"Documents:   {get_documents_folder()}")
        return

    if server_url is not None:
        if not server_url.startswith(("http://", "https://")):
            raise click.BadParameter("must start with http:// or https://", param_hint="--server")
        config["server_url"] = server_url.rstrip("/")
    if downloads is not None:
        config["downloads_folder"] = str(downloads.expanduser().resolve())
    if documents is not None:
        config["documents_folder"] = str(documents.expanduser().resolve())

    save_config(config)
    click.echo(f"Configuration saved to {get_config_file()}")
