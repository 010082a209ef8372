"""Shared types and dataclasses for sync operations.

This module provides:
- SyncError, DownloadError, UploadError: Transfer exception classes
- FilenameExhaustedError: No free download name left
- DownloadResult, UploadResult, PushResult: Operation result dataclasses
- Type aliases for callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path


class SyncError(Exception):
    """Base exception for sync errors."""


class DownloadError(SyncError):
    """Failed to download a file."""


class UploadError(SyncError):
    """Failed to upload a file or project."""


class FilenameExhaustedError(SyncError):
    """Every candidate download name is already taken."""


@dataclass
class DownloadResult:
    """Result of a file download operation."""

    name: str
    local_path: Path
    size: int


@dataclass
class UploadResult:
    """Result of a single file upload."""

    relative_path: str
    local_path: Path
    size: int
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        """Check whether the upload went through."""
        return self.error is None


@dataclass
class PushResult:
    """Result of issuing a project upload.

    Attributes:
        folder: Folder that was enumerated.
        relative_paths: Relative paths an upload was issued for, in order.
        uploads: Results of finished uploads (filled as tasks complete).
    """

    folder: Path
    relative_paths: list[str] = field(default_factory=list)
    uploads: list[UploadResult] = field(default_factory=list)

    @property
    def failed(self) -> list[UploadResult]:
        """Uploads that finished with an error."""
        return [u for u in self.uploads if not u.succeeded]


# Type alias for upload completion callback
UploadCallback = Callable[[UploadResult], None]
