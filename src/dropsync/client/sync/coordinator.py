"""Project sync coordinator.

This module provides:
- SyncCoordinator: keeps a local project folder aligned with the server's
  manifest and drives pulls and project uploads

Flow:
    check_for_updates ──► GET /browse ──► diff_manifest ──► ProjectState
    pull(file)        ──► FileDownloader.pull ──► drop entry from ProjectState
    upload_project    ──► FileUploader.push ──► delayed check_for_updates

All methods run on the event loop that owns the ProjectState.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dropsync.client.api import APIError, RemoteFile
from dropsync.client.capabilities import AccessDeniedError
from dropsync.client.state import ProjectState
from dropsync.client.sync.differ import DEFAULT_SKEW_TOLERANCE, diff_manifest
from dropsync.client.sync.types import PushResult, SyncError, UploadError

if TYPE_CHECKING:
    from dropsync.client.api import HTTPClient
    from dropsync.client.sync.download import FileDownloader
    from dropsync.client.sync.upload import FileUploader

logger = logging.getLogger(__name__)

# Seconds between issuing a project upload and re-checking the manifest
DEFAULT_REFRESH_DELAY = 2.0


class SyncCoordinator:
    """Drives manifest checks, pulls and project uploads.

    Usage:
        coordinator = SyncCoordinator(client, downloader, uploader)
        await coordinator.check_for_updates()
        for remote in list(coordinator.state.outdated_files):
            await coordinator.pull(remote)
        await coordinator.upload_project(Path("~/Projects/Site").expanduser())
        await coordinator.wait_for_pending()
    """

    def __init__(
        self,
        client: HTTPClient,
        downloader: FileDownloader,
        uploader: FileUploader,
        state: ProjectState | None = None,
        refresh_delay: float = DEFAULT_REFRESH_DELAY,
        tolerance: int = DEFAULT_SKEW_TOLERANCE,
    ) -> None:
        """Initialize the coordinator.

        Args:
            client: HTTP client for manifest requests.
            downloader: Performs pulls into the local root.
            uploader: Performs project uploads.
            state: State object to mutate (a fresh one by default).
            refresh_delay: Seconds to wait after an upload before re-checking.
            tolerance: Allowed mtime skew in seconds.
        """
        self._client = client
        self._downloader = downloader
        self._uploader = uploader
        self._state = state or ProjectState()
        self._refresh_delay = refresh_delay
        self._tolerance = tolerance
        self._pending: set[asyncio.Task[Any]] = set()

    @property
    def state(self) -> ProjectState:
        """Get the project state."""
        return self._state

    @property
    def local_root(self) -> Path:
        """Get the local sync target."""
        return self._downloader.local_root

    async def check_for_updates(self) -> list[RemoteFile] | None:
        """Fetch the manifest and recompute the outdated set.

        On failure the previous outdated set is kept and the error is
        reported through ``status_message``. ``is_syncing`` is cleared on
        every exit path.

        Returns:
            The new outdated files, or None if the check failed.
        """
        self._state.update(is_syncing=True)
        try:
            manifest = await self._client.browse()
            outdated = diff_manifest(manifest, self.local_root, self._tolerance)
        except APIError as e:
            logger.warning(f"Checking for updates failed: {e}")
            self._state.update(status_message=f"Check failed: {e}")
            return None
        except Exception as e:
            logger.exception("Unexpected error while checking for updates")
            self._state.update(status_message=f"Check failed: {e}")
            return None
        finally:
            self._state.update(is_syncing=False)

        logger.info(f"{len(outdated)} of {len(manifest)} remote entries outdated")
        self._state.update(
            outdated_files=outdated,
            status_message=f"{len(outdated)} file(s) to update",
        )
        return outdated

    async def pull(self, file: RemoteFile | str) -> bool:
        """Pull one remote file and drop it from the outdated set.

        Every outdated entry with the same name is removed on success; a
        name that is not in the set leaves it unchanged.

        Args:
            file: Manifest entry or its relative name.

        Returns:
            True if the file was written locally.
        """
        name = file.name if isinstance(file, RemoteFile) else file

        try:
            await self._downloader.pull(name)
        except SyncError as e:
            logger.warning(f"Pull failed: {e}")
            self._state.update(status_message=str(e))
            return False

        remaining = [f for f in self._state.outdated_files if f.name != name]
        self._state.update(outdated_files=remaining, status_message=f"Pulled {name}")
        return True

    async def pull_all(self) -> int:
        """Pull every file currently in the outdated set.

        Returns:
            Number of files pulled successfully.
        """
        pulled = 0
        for remote in list(self._state.outdated_files):
            if await self.pull(remote):
                pulled += 1
        return pulled

    async def upload_project(self, folder: Path) -> PushResult | None:
        """Upload a project folder and schedule a manifest refresh.

        Args:
            folder: Folder selected by the user.

        Returns:
            PushResult for the issued uploads, or None if nothing was issued.
        """
        try:
            result = await self._uploader.push(folder)
        except AccessDeniedError as e:
            logger.warning(f"Access to {folder} denied: {e}")
            self._state.update(status_message=f"Access denied: {folder}")
            return None
        except UploadError as e:
            logger.warning(f"Project upload failed: {e}")
            self._state.update(status_message=str(e))
            return None

        self._state.update(
            status_message=f"Uploading {len(result.relative_paths)} file(s) from {folder.name}"
        )
        self.schedule_refresh()
        return result

    def schedule_refresh(self, delay: float | None = None) -> None:
        """Re-check the manifest after ``delay`` seconds without waiting for it."""
        delay = self._refresh_delay if delay is None else delay
        self._spawn(self._delayed_check(delay))

    async def wait_for_pending(self) -> None:
        """Wait for issued uploads and scheduled refreshes to finish."""
        await self._uploader.wait_for_uploads()
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def cancel_pending(self) -> None:
        """Cancel scheduled refreshes."""
        tasks = list(self._pending)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    async def _delayed_check(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self.check_for_updates()

    def _spawn(self, coro: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
