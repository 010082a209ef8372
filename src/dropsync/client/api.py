"""HTTP client for the companion machine's drop server.

This module provides:
- HTTPClient: async HTTP client shared by the status watcher and sync engine
- Data models decoded from server responses (status, inbox, manifest)
- Streaming download and multipart upload helpers
"""

from __future__ import annotations

import logging
import re
import secrets
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any
from urllib.parse import quote

import httpx

from dropsync.core.config import ServerConfig

logger = logging.getLogger(__name__)

# File name reported while the server has not seen any transfer yet
WAITING_SENTINEL = "Waiting..."

# Used when /download does not announce a file name
DEFAULT_DOWNLOAD_NAME = "downloaded_file"

_DISPOSITION_FILENAME = re.compile(r'filename="?([^";]+)"?')

# Status polls must never be answered from an intermediate cache
_NO_CACHE_HEADERS = {"Cache-Control": "no-cache", "Pragma": "no-cache"}


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(APIError):
    """Resource not found."""


class NetworkError(APIError):
    """Server unreachable or request timed out."""


class DecodeError(APIError):
    """Response body could not be decoded."""


@dataclass(frozen=True)
class RemoteFile:
    """Entry of the remote project manifest (GET /browse)."""

    name: str
    is_dir: bool
    size: int
    modified: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RemoteFile:
        """Create from API response dictionary."""
        return cls(
            name=str(data["name"]),
            is_dir=bool(data.get("is_dir", False)),
            size=int(data.get("size", 0)),
            modified=int(data.get("modified", 0)),
        )


@dataclass(frozen=True)
class SentFileInfo:
    """Last file the server pushed out through the file drop."""

    name: str
    peer_id: str = ""
    size: int = 0
    timestamp: int = 0
    succeeded: bool = False
    sending: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SentFileInfo:
        """Create from API response dictionary."""
        return cls(
            name=str(data["name"]),
            peer_id=str(data.get("peer_id") or ""),
            size=int(data.get("size") or 0),
            timestamp=int(data.get("timestamp") or 0),
            succeeded=bool(data.get("succeeded", False)),
            sending=bool(data.get("sending", False)),
        )


@dataclass(frozen=True)
class WaitingFile:
    """File waiting in the server's drop inbox (GET /files)."""

    name: str
    size: int

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WaitingFile:
        """Create from API response dictionary."""
        return cls(name=str(data["name"]), size=int(data.get("size") or 0))


@dataclass(frozen=True)
class StatusSnapshot:
    """Decoded GET /status response.

    Attributes:
        file_name: Resolved name of the most recent file, or the sentinel.
        last_sent: Nested last_sent_file object, if present.
        last_received_file: Flat last_received_file string, if present.
        server_cwd: Directory the server is sharing, if reported.
    """

    file_name: str
    last_sent: SentFileInfo | None = None
    last_received_file: str | None = None
    server_cwd: str | None = None


def parse_status(data: Any) -> StatusSnapshot:
    """Decode a status payload.

    The nested ``last_sent_file.name`` takes precedence over the flat
    ``last_received_file`` string. Absence of both yields the sentinel.

    Args:
        data: Parsed JSON body.

    Returns:
        StatusSnapshot with the resolved file name.

    Raises:
        DecodeError: If the payload is not a JSON object.
    """
    if not isinstance(data, dict):
        raise DecodeError(f"Unexpected status payload: {type(data).__name__}")

    last_sent: SentFileInfo | None = None
    nested = data.get("last_sent_file")
    if isinstance(nested, dict) and isinstance(nested.get("name"), str):
        try:
            last_sent = SentFileInfo.from_dict(nested)
        except (TypeError, ValueError) as e:
            raise DecodeError(f"Malformed last_sent_file: {e}") from e

    flat = data.get("last_received_file")
    last_received = flat if isinstance(flat, str) else None

    if last_sent is not None:
        file_name = last_sent.name
    elif last_received is not None:
        file_name = last_received
    else:
        file_name = WAITING_SENTINEL

    server_cwd = data.get("server_cwd")
    return StatusSnapshot(
        file_name=file_name,
        last_sent=last_sent,
        last_received_file=last_received,
        server_cwd=server_cwd if isinstance(server_cwd, str) else None,
    )


def filename_from_disposition(header: str | None) -> str | None:
    """Extract the file name from a Content-Disposition header.

    Only the final path component is kept so a server cannot steer writes
    outside the destination directory.
    """
    if not header:
        return None
    match = _DISPOSITION_FILENAME.search(header)
    if not match:
        return None
    name = PurePosixPath(match.group(1).replace("\\", "/")).name
    return name if name not in ("", ".", "..") else None


class HTTPClient:
    """Async HTTP client for the drop server API.

    All methods are coroutines and must be awaited from the event loop that
    owns the client state.
    """

    def __init__(self, config: ServerConfig) -> None:
        """Initialize the client.

        Args:
            config: Server configuration with URL and timeouts.
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
        )

    @property
    def server_url(self) -> str:
        """Base URL requests are sent to."""
        return self._config.server_url

    @server_url.setter
    def server_url(self, url: str) -> None:
        self._config.server_url = url.rstrip("/")
        self._client.base_url = self._config.server_url
        logger.info(f"Server URL set to {self._config.server_url}")

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> HTTPClient:
        """Async context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Async context manager exit."""
        await self.aclose()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Raise the matching exception for error responses."""
        if response.status_code == 404:
            raise NotFoundError(f"Not found: {response.request.url.path}", 404)
        if response.status_code >= 400:
            detail = response.text.strip()[:200] or response.reason_phrase
            raise APIError(f"HTTP {response.status_code}: {detail}", response.status_code)
        return response

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send a request, mapping transport failures to NetworkError."""
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Request to {url} timed out") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Cannot reach server: {e}") from e
        return self._handle_response(response)

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as e:
            raise DecodeError(f"Invalid JSON from {response.request.url.path}: {e}") from e

    # === Status ===

    async def get_status(self) -> StatusSnapshot:
        """Fetch the server's transfer status.

        Uses the short status timeout and bypasses any caches.

        Returns:
            Decoded status snapshot.
        """
        response = await self._request(
            "GET",
            "/status",
            headers=_NO_CACHE_HEADERS,
            timeout=self._config.status_timeout,
        )
        return parse_status(self._decode_json(response))

    async def list_waiting_files(self) -> list[WaitingFile]:
        """List files waiting in the server's drop inbox.

        Returns:
            Waiting files, possibly empty.
        """
        response = await self._request("GET", "/files", headers=_NO_CACHE_HEADERS)
        data = self._decode_json(response)
        entries = data.get("files") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            return []
        try:
            return [WaitingFile.from_dict(f) for f in entries]
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Malformed inbox entry: {e}") from e

    # === Manifest ===

    async def browse(self, path: str | None = None) -> list[RemoteFile]:
        """Fetch the remote project manifest.

        Args:
            path: Optional directory on the server to list.

        Returns:
            List of manifest entries.
        """
        params = {"path": path} if path else None
        response = await self._request("GET", "/browse", params=params)
        data = self._decode_json(response)
        if not isinstance(data, list):
            raise DecodeError("Manifest is not a JSON array")
        try:
            return [RemoteFile.from_dict(f) for f in data]
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"Malformed manifest entry: {e}") from e

    # === Transfers ===

    async def download(self, destination: Path, name: str | None = None) -> str:
        """Stream a file from the server into ``destination``.

        Args:
            destination: Path to write the bytes to (overwritten).
            name: Remote file name, or None for the most recent file.

        Returns:
            File name announced by the server, falling back to the
            requested name or DEFAULT_DOWNLOAD_NAME.
        """
        url = "/download" if name is None else f"/download/{quote(name)}"
        try:
            async with self._client.stream("GET", url) as response:
                if response.status_code >= 400:
                    await response.aread()
                    self._handle_response(response)

                filename = filename_from_disposition(
                    response.headers.get("content-disposition")
                )
                if filename is None:
                    filename = PurePosixPath(name).name if name else DEFAULT_DOWNLOAD_NAME

                bytes_written = 0
                with open(destination, "wb") as f:
                    async for chunk in response.aiter_bytes():
                        f.write(chunk)
                        bytes_written += len(chunk)
        except httpx.TimeoutException as e:
            raise NetworkError(f"Download of {url} timed out") from e
        except httpx.RequestError as e:
            raise NetworkError(f"Download of {url} failed: {e}") from e

        logger.debug(f"Downloaded {url}: {bytes_written} bytes")
        return filename

    async def upload_file(self, relative_path: str, local_path: Path) -> None:
        """Upload one file as a single-part multipart/form-data POST.

        The destination path is communicated through the form field name
        and filename, which are both set to ``relative_path``.

        Args:
            relative_path: Path the server should store the file under.
            local_path: File to read.

        Raises:
            APIError: If the server does not answer 200.
        """
        boundary = secrets.token_hex(16)
        with open(local_path, "rb") as f:
            response = await self._request(
                "POST",
                "/upload",
                files={relative_path: (relative_path, f, "application/octet-stream")},
                headers={"Content-Type": f"multipart/form-data; boundary={boundary}"},
            )
        if response.status_code != 200:
            raise APIError(
                f"Upload of {relative_path} returned {response.status_code}",
                response.status_code,
            )
