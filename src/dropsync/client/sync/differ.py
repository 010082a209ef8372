"""Manifest differ.

Computes which remote files are missing locally or strictly newer than the
local copy. Modification times are compared at one-second resolution with a
small tolerance that absorbs clock and timestamp-format rounding between the
two machines.
"""

from __future__ import annotations

import logging
import stat
from collections.abc import Iterable
from pathlib import Path

from dropsync.client.api import RemoteFile
from dropsync.client.paths import SecurityError, resolve_local_path

logger = logging.getLogger(__name__)

# Seconds a remote file may be ahead of the local copy and still count as synced
DEFAULT_SKEW_TOLERANCE = 2


def local_mtime(path: Path) -> int | None:
    """Get the modification time of a regular file in whole seconds.

    Returns:
        Seconds since the epoch, or None if there is no regular file.

    Raises:
        PermissionError: If the path cannot be inspected.
    """
    try:
        st = path.stat()
    except (FileNotFoundError, NotADirectoryError):
        # A missing parent or a file where a parent directory belongs
        return None
    if not stat.S_ISREG(st.st_mode):
        return None
    return int(st.st_mtime)


def is_outdated(
    remote: RemoteFile,
    local_root: Path,
    tolerance: int = DEFAULT_SKEW_TOLERANCE,
) -> bool:
    """Check a single manifest entry against the local root.

    Args:
        remote: Manifest entry (must not be a directory).
        local_root: Directory holding the local copies.
        tolerance: Allowed clock skew in seconds.

    Returns:
        True if the file is absent locally or newer beyond the tolerance.
    """
    mtime = local_mtime(resolve_local_path(local_root, remote.name))
    if mtime is None:
        return True
    return remote.modified > mtime + tolerance


def diff_manifest(
    remote_files: Iterable[RemoteFile],
    local_root: Path,
    tolerance: int = DEFAULT_SKEW_TOLERANCE,
) -> list[RemoteFile]:
    """Compute the outdated set for a manifest.

    Directories are skipped, as are unsafe names and entries whose local
    copy cannot be inspected. Entries keep manifest order.

    Args:
        remote_files: Entries returned by the server.
        local_root: Directory holding the local copies.
        tolerance: Allowed clock skew in seconds.

    Returns:
        Remote files that should be pulled.
    """
    outdated: list[RemoteFile] = []
    for remote in remote_files:
        if remote.is_dir:
            continue
        try:
            if is_outdated(remote, local_root, tolerance):
                outdated.append(remote)
        except SecurityError as e:
            logger.warning(f"Skipping unsafe manifest entry {remote.name!r}: {e}")
        except PermissionError as e:
            logger.warning(f"Skipping unreadable local copy of {remote.name!r}: {e}")

    logger.debug(f"Manifest diff: {len(outdated)} outdated file(s)")
    return outdated
