"""Local folders used by dropsync.

This module provides:
- The downloads root (watcher-triggered downloads) and the documents root
  (sync target for manifest-driven pulls)
- Unique filename allocation for downloads: "name (2).ext", "name (3).ext", ...
"""

from __future__ import annotations

import logging
from pathlib import Path

from dropsync.client.sync.types import FilenameExhaustedError

logger = logging.getLogger(__name__)

DOWNLOADS_FOLDER_NAME = "Downloads"
DOCUMENTS_FOLDER_NAME = "Documents"

# Highest " (n)" suffix probed before giving up
MAX_NAME_SUFFIX = 10_000


def default_base_dir() -> Path:
    """Get the default base directory holding both local roots."""
    return Path.home() / "DropSync"


def ensure_directory(path: Path) -> Path:
    """Create ``path`` (and parents) if needed and return it."""
    path.mkdir(parents=True, exist_ok=True)
    return path


def downloads_directory(base: Path | None = None, create: bool = True) -> Path:
    """Get (and by default create) the directory receiving watcher downloads."""
    path = (base or default_base_dir()) / DOWNLOADS_FOLDER_NAME
    return ensure_directory(path) if create else path


def documents_directory(base: Path | None = None, create: bool = True) -> Path:
    """Get (and by default create) the sync target directory for project pulls."""
    path = (base or default_base_dir()) / DOCUMENTS_FOLDER_NAME
    return ensure_directory(path) if create else path


def unique_destination(directory: Path, file_name: str) -> Path:
    """Find a free path for ``file_name`` inside ``directory``.

    If the name is taken, " (n)" is inserted before the extension for
    n = 2..10000.

    Args:
        directory: Target directory.
        file_name: Desired file name (empty names become "file").

    Returns:
        A path that does not exist yet.

    Raises:
        FilenameExhaustedError: If every candidate is taken.
    """
    candidate = directory / (file_name or "file")
    if not candidate.exists():
        return candidate

    stem = candidate.stem
    suffix = candidate.suffix
    for n in range(2, MAX_NAME_SUFFIX + 1):
        alternative = directory / f"{stem} ({n}){suffix}"
        if not alternative.exists():
            return alternative

    raise FilenameExhaustedError(
        f"Could not allocate unique filename for {file_name!r} in {directory}"
    )
