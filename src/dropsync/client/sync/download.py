"""File download with replace-into-place writes.

This module provides:
- FileDownloader: manifest-driven pulls into the documents root, watcher
  downloads into the downloads root, and download-and-share into a
  process temporary directory
- replace_file: delete-then-move of a finished temporary file
"""

from __future__ import annotations

import contextlib
import logging
import secrets
import tempfile
from pathlib import Path
from typing import TYPE_CHECKING

from dropsync.client.api import APIError
from dropsync.client.paths import SecurityError, resolve_local_path
from dropsync.client.sync.files import unique_destination
from dropsync.client.sync.types import DownloadError, DownloadResult

if TYPE_CHECKING:
    from dropsync.client.api import HTTPClient
    from dropsync.client.capabilities import Exporter

logger = logging.getLogger(__name__)


def replace_file(source: Path, destination: Path) -> None:
    """Move ``source`` onto ``destination``, deleting any existing file first.

    This is not an atomic rename-over: readers may briefly see no file at
    ``destination``, but never a partially written one.
    """
    if destination.exists():
        destination.unlink()
    source.rename(destination)


def _discard(path: Path) -> None:
    """Remove a leftover temporary file."""
    if path.exists():
        with contextlib.suppress(OSError):
            path.unlink()


class FileDownloader:
    """Downloads files from the drop server.

    Every download is streamed into a temporary file first and only moved
    into place once complete.
    """

    def __init__(
        self,
        client: HTTPClient,
        local_root: Path,
        downloads_dir: Path | None = None,
    ) -> None:
        """Initialize the downloader.

        Args:
            client: HTTP client for server communication.
            local_root: Sync target for manifest-driven pulls.
            downloads_dir: Destination of watcher downloads (defaults to
                local_root).
        """
        self._client = client
        self._local_root = local_root
        self._downloads_dir = downloads_dir or local_root
        self._share_dir: Path | None = None

    @property
    def local_root(self) -> Path:
        """Get the sync target directory."""
        return self._local_root

    @property
    def share_dir(self) -> Path:
        """Process temporary directory for download-and-share."""
        if self._share_dir is None:
            self._share_dir = Path(tempfile.mkdtemp(prefix="dropsync-"))
        return self._share_dir

    async def pull(self, name: str) -> DownloadResult:
        """Pull a manifest entry into the local root.

        Requests GET /download/{name}, streams into ``<dest>.tmp`` and then
        replaces the destination.

        Args:
            name: Relative path from the manifest.

        Returns:
            DownloadResult with the local path.

        Raises:
            DownloadError: If the name is unsafe or the transfer fails.
        """
        try:
            local_path = resolve_local_path(self._local_root, name)
        except SecurityError as e:
            raise DownloadError(f"Refusing to pull {name!r}: {e}") from e

        logger.info(f"Pulling {name}")
        tmp_path = local_path.with_name(local_path.name + ".tmp")

        try:
            local_path.parent.mkdir(parents=True, exist_ok=True)
            await self._client.download(tmp_path, name)
            replace_file(tmp_path, local_path)
        except (APIError, OSError) as e:
            _discard(tmp_path)
            raise DownloadError(f"Failed to pull {name}: {e}") from e

        size = local_path.stat().st_size
        logger.info(f"Pulled {name} ({size} bytes)")
        return DownloadResult(name=name, local_path=local_path, size=size)

    async def save_download(self, name: str | None = None) -> DownloadResult:
        """Save the latest (or a named) file into the downloads directory.

        An existing file is never overwritten: the name gets a " (n)" suffix.

        Args:
            name: File to fetch from the inbox, or None for the latest file.

        Returns:
            DownloadResult with the allocated path.

        Raises:
            DownloadError: If the transfer fails.
            FilenameExhaustedError: If no free name is left.
        """
        try:
            self._downloads_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DownloadError(f"Cannot create {self._downloads_dir}: {e}") from e
        tmp_path = self._downloads_dir / f".dropsync-{secrets.token_hex(8)}.part"

        try:
            filename = await self._client.download(tmp_path, name)
            local_path = unique_destination(self._downloads_dir, filename)
            tmp_path.rename(local_path)
        except (APIError, OSError) as e:
            _discard(tmp_path)
            raise DownloadError(f"Failed to download {name or 'latest file'}: {e}") from e
        except Exception:
            _discard(tmp_path)
            raise

        size = local_path.stat().st_size
        logger.info(f"Saved {local_path.name} ({size} bytes)")
        return DownloadResult(name=filename, local_path=local_path, size=size)

    async def download_and_share(self, exporter: Exporter) -> DownloadResult:
        """Download the latest file and present it for export.

        The file lands in a process temporary directory under the name
        announced by the server, overwriting a stale copy.

        Args:
            exporter: Capability that presents the finished file.

        Returns:
            DownloadResult with the temporary path.

        Raises:
            DownloadError: If the transfer fails.
        """
        tmp_path = self.share_dir / f".{secrets.token_hex(8)}.part"

        try:
            filename = await self._client.download(tmp_path)
            local_path = self.share_dir / filename
            replace_file(tmp_path, local_path)
        except (APIError, OSError) as e:
            _discard(tmp_path)
            raise DownloadError(f"Failed to download latest file: {e}") from e

        size = local_path.stat().st_size
        logger.info(f"Downloaded {filename} for sharing ({size} bytes)")
        exporter.present(local_path)
        return DownloadResult(name=filename, local_path=local_path, size=size)
