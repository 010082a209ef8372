"""Capability interfaces for platform services used by the sync engine.

This module provides:
- FolderAccess: acquire/release a scoped read grant on a user-selected folder
- scoped_access: context manager holding a grant for the duration of a block
- Exporter: hand a finished file to the platform ("present for export")

Default implementations target desktop systems; tests and other front ends
can substitute their own objects implementing the same protocols.
"""

from __future__ import annotations

import logging
import os
import platform
import subprocess
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class AccessDeniedError(PermissionError):
    """Access to a user-selected folder was not granted."""


class FolderAccess(Protocol):
    """Grants scoped read access to a folder."""

    def acquire(self, folder: Path) -> bool:
        """Request access. Returns False if the grant is denied."""
        ...

    def release(self, folder: Path) -> None:
        """Give up a previously acquired grant."""
        ...


class Exporter(Protocol):
    """Presents a local file to the user for export or sharing."""

    def present(self, path: Path) -> None:
        """Present ``path``."""
        ...


class LocalFolderAccess:
    """Folder access backed by plain filesystem permissions."""

    def acquire(self, folder: Path) -> bool:
        """Grant access if the folder exists and is readable."""
        granted = folder.is_dir() and os.access(folder, os.R_OK | os.X_OK)
        if granted:
            logger.debug(f"Access granted to {folder}")
        return granted

    def release(self, folder: Path) -> None:
        """Nothing to release for plain filesystem access."""
        logger.debug(f"Access released for {folder}")


@contextmanager
def scoped_access(access: FolderAccess, folder: Path) -> Iterator[Path]:
    """Hold a folder grant for the duration of the block.

    The grant is released exactly once on exit, whether the block
    finishes normally or raises.

    Raises:
        AccessDeniedError: If the grant is refused.
    """
    if not access.acquire(folder):
        raise AccessDeniedError(f"Access to {folder} was denied")
    try:
        yield folder
    finally:
        access.release(folder)


class SystemExporter:
    """Opens exported files with the platform's default handler."""

    def present(self, path: Path) -> None:
        """Open ``path`` with the system opener.

        Args:
            path: File to present.
        """
        system = platform.system()

        if system == "Windows":
            os.startfile(path)  # type: ignore[attr-defined]
        elif system == "Darwin":
            subprocess.run(["open", str(path)], check=False)
        else:  # Linux
            subprocess.run(["xdg-open", str(path)], check=False)
        logger.info(f"Presented {path} for export")
