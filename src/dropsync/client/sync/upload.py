"""Project upload ("broadcast project").

This module provides:
- enumerate_project: list the regular, non-hidden files of a folder with
  paths relative to the folder's parent
- FileUploader: uploads every file of a project as its own request
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Coroutine
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dropsync.client.api import APIError
from dropsync.client.capabilities import AccessDeniedError, LocalFolderAccess, scoped_access
from dropsync.client.paths import is_hidden
from dropsync.client.sync.types import PushResult, UploadCallback, UploadError, UploadResult

if TYPE_CHECKING:
    from dropsync.client.api import HTTPClient
    from dropsync.client.capabilities import FolderAccess

logger = logging.getLogger(__name__)


def _raise_walk_error(error: OSError) -> None:
    raise error


def enumerate_project(folder: Path) -> list[tuple[Path, str]]:
    """Recursively list the files to upload from ``folder``.

    Hidden files and directories are skipped. Relative paths use the
    folder's own name as first component, so ``Proj/sub/b.txt`` is
    reported for ``<folder>/sub/b.txt`` when the folder is ``Proj``.

    Args:
        folder: Project folder.

    Returns:
        Sorted (local path, relative path) pairs.

    Raises:
        OSError: If a directory cannot be listed.
    """
    anchor = folder.name
    entries: list[tuple[Path, str]] = []

    for dirpath, dirnames, filenames in os.walk(folder, onerror=_raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))

        for filename in sorted(filenames):
            local_path = Path(dirpath) / filename
            parts = local_path.relative_to(folder).parts
            if is_hidden(parts) or not local_path.is_file():
                continue
            relative = "/".join((anchor, *parts)) if anchor else "/".join(parts)
            entries.append((local_path, relative))

    return entries


class FileUploader:
    """Uploads project folders to the drop server.

    Each file is sent as an independent fire-and-forget task. A failing file
    is logged and reported in the PushResult without affecting its siblings.
    """

    def __init__(
        self,
        client: HTTPClient,
        access: FolderAccess | None = None,
        on_upload: UploadCallback | None = None,
    ) -> None:
        """Initialize the uploader.

        Args:
            client: HTTP client for server communication.
            access: Grants scoped access to the selected folder.
            on_upload: Optional callback invoked after every finished upload.
        """
        self._client = client
        self._access = access or LocalFolderAccess()
        self._on_upload = on_upload
        self._tasks: set[asyncio.Task[UploadResult]] = set()

    @property
    def pending(self) -> int:
        """Number of uploads still in flight."""
        return len(self._tasks)

    async def push(self, folder: Path) -> PushResult:
        """Issue uploads for every file of ``folder``.

        The folder grant is held while the tree is enumerated and the
        uploads are issued, and released on every exit path. The returned
        result is filled in as uploads finish.

        Args:
            folder: Project folder selected by the user.

        Returns:
            PushResult listing the issued relative paths.

        Raises:
            AccessDeniedError: If the folder grant is refused.
            UploadError: If the folder cannot be enumerated.
        """
        result = PushResult(folder=folder)

        try:
            with scoped_access(self._access, folder):
                for local_path, relative_path in enumerate_project(folder):
                    result.relative_paths.append(relative_path)
                    self._spawn(self._upload_one(local_path, relative_path, result))
        except AccessDeniedError:
            raise
        except OSError as e:
            raise UploadError(f"Cannot read project folder {folder}: {e}") from e

        logger.info(f"Issued {len(result.relative_paths)} upload(s) from {folder}")
        return result

    async def wait_for_uploads(self) -> None:
        """Wait until every issued upload has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, UploadResult]) -> None:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _upload_one(
        self,
        local_path: Path,
        relative_path: str,
        push_result: PushResult,
    ) -> UploadResult:
        """Upload a single file and record the outcome."""
        try:
            size = local_path.stat().st_size
            await self._client.upload_file(relative_path, local_path)
            upload = UploadResult(relative_path=relative_path, local_path=local_path, size=size)
            logger.info(f"Uploaded {relative_path} ({size} bytes)")
        except (APIError, OSError) as e:
            logger.warning(f"Upload of {relative_path} failed: {e}")
            upload = UploadResult(
                relative_path=relative_path,
                local_path=local_path,
                size=0,
                error=str(e),
            )

        push_result.uploads.append(upload)
        if self._on_upload:
            self._on_upload(upload)
        return upload
