"""Sync operations for the file drop.

Architecture:
    SyncCoordinator → FileDownloader / FileUploader → HTTPClient

Components:
- **SyncCoordinator**: Manifest checks, pulls and project uploads for one
  local project folder
- **diff_manifest**: Decides which remote files are outdated locally
- **FileDownloader**: Temp-file-then-replace downloads
- **FileUploader**: One upload task per project file
- **files**: Local download/documents roots and free-name allocation

All public symbols are re-exported here.
"""

from dropsync.client.sync.coordinator import DEFAULT_REFRESH_DELAY, SyncCoordinator
from dropsync.client.sync.differ import (
    DEFAULT_SKEW_TOLERANCE,
    diff_manifest,
    is_outdated,
    local_mtime,
)
from dropsync.client.sync.download import FileDownloader, replace_file
from dropsync.client.sync.files import (
    DOCUMENTS_FOLDER_NAME,
    DOWNLOADS_FOLDER_NAME,
    MAX_NAME_SUFFIX,
    default_base_dir,
    documents_directory,
    downloads_directory,
    ensure_directory,
    unique_destination,
)
from dropsync.client.sync.types import (
    DownloadError,
    DownloadResult,
    FilenameExhaustedError,
    PushResult,
    SyncError,
    UploadCallback,
    UploadError,
    UploadResult,
)
from dropsync.client.sync.upload import FileUploader, enumerate_project

__all__ = [
    # Constants
    "DEFAULT_REFRESH_DELAY",
    "DEFAULT_SKEW_TOLERANCE",
    "DOCUMENTS_FOLDER_NAME",
    "DOWNLOADS_FOLDER_NAME",
    "MAX_NAME_SUFFIX",
    # Types and dataclasses
    "DownloadError",
    "DownloadResult",
    "FilenameExhaustedError",
    "PushResult",
    "SyncError",
    "UploadCallback",
    "UploadError",
    "UploadResult",
    # Differ
    "diff_manifest",
    "is_outdated",
    "local_mtime",
    # Local folders
    "default_base_dir",
    "documents_directory",
    "downloads_directory",
    "ensure_directory",
    "unique_destination",
    # Transfers
    "FileDownloader",
    "FileUploader",
    "enumerate_project",
    "replace_file",
    # Coordinator
    "SyncCoordinator",
]
