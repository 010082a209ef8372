"""Tests for FileDownloader."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from dropsync.client.api import HTTPClient
from dropsync.client.sync.download import FileDownloader, replace_file
from dropsync.client.sync.types import DownloadError
from dropsync.core.config import ServerConfig

SERVER = "http://drop.test"


def make_client() -> HTTPClient:
    """Create an HTTPClient for testing."""
    return HTTPClient(ServerConfig(server_url=SERVER))


class TestReplaceFile:
    """Tests for replace_file."""

    def test_replaces_existing(self, tmp_path: Path) -> None:
        """Should delete the destination and move the source into place."""
        source = tmp_path / "new.tmp"
        source.write_text("new")
        destination = tmp_path / "file.txt"
        destination.write_text("old")

        replace_file(source, destination)

        assert destination.read_text() == "new"
        assert not source.exists()

    def test_moves_without_existing(self, tmp_path: Path) -> None:
        """Should move when nothing exists at the destination."""
        source = tmp_path / "new.tmp"
        source.write_text("new")

        replace_file(source, tmp_path / "file.txt")

        assert (tmp_path / "file.txt").read_text() == "new"


class TestPull:
    """Tests for manifest-driven pulls."""

    @pytest.mark.asyncio
    async def test_pull_creates_parents(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should write nested files below the local root."""
        httpx_mock.add_response(url=f"{SERVER}/download/sub/b.txt", content=b"remote b")

        async with make_client() as client:
            result = await FileDownloader(client, tmp_path).pull("sub/b.txt")

        assert result.local_path == tmp_path / "sub" / "b.txt"
        assert result.local_path.read_bytes() == b"remote b"
        assert result.size == 8
        assert not (tmp_path / "sub" / "b.txt.tmp").exists()

    @pytest.mark.asyncio
    async def test_pull_overwrites_local_copy(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should replace an outdated local copy."""
        (tmp_path / "a.txt").write_text("stale")
        httpx_mock.add_response(url=f"{SERVER}/download/a.txt", content=b"fresh")

        async with make_client() as client:
            await FileDownloader(client, tmp_path).pull("a.txt")

        assert (tmp_path / "a.txt").read_text() == "fresh"

    @pytest.mark.asyncio
    async def test_pull_failure_keeps_local_copy(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should leave the destination untouched and clean the temp file."""
        (tmp_path / "a.txt").write_text("stale")
        httpx_mock.add_response(url=f"{SERVER}/download/a.txt", status_code=500)

        async with make_client() as client:
            with pytest.raises(DownloadError):
                await FileDownloader(client, tmp_path).pull("a.txt")

        assert (tmp_path / "a.txt").read_text() == "stale"
        assert not (tmp_path / "a.txt.tmp").exists()

    @pytest.mark.asyncio
    async def test_pull_rejects_traversal(self, tmp_path: Path) -> None:
        """Should refuse names escaping the local root without a request."""
        async with make_client() as client:
            with pytest.raises(DownloadError, match="Refusing"):
                await FileDownloader(client, tmp_path / "root").pull("../evil.txt")

        assert not (tmp_path / "evil.txt").exists()

    @pytest.mark.asyncio
    async def test_pull_blocked_parent_raises_download_error(self, tmp_path: Path) -> None:
        """Should wrap a parent directory that cannot be created."""
        (tmp_path / "docs").write_text("not a directory")

        async with make_client() as client:
            with pytest.raises(DownloadError, match="docs/x.txt"):
                await FileDownloader(client, tmp_path).pull("docs/x.txt")

        assert (tmp_path / "docs").read_text() == "not a directory"


class TestSaveDownload:
    """Tests for watcher downloads into the downloads root."""

    @pytest.mark.asyncio
    async def test_saves_under_announced_name(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should store the latest file under its Content-Disposition name."""
        downloads = tmp_path / "Downloads"
        httpx_mock.add_response(
            url=f"{SERVER}/download",
            content=b"pdf",
            headers={"Content-Disposition": 'attachment; filename="report.pdf"'},
        )

        async with make_client() as client:
            result = await FileDownloader(client, tmp_path, downloads).save_download()

        assert result.local_path == downloads / "report.pdf"
        assert result.name == "report.pdf"
        assert sorted(p.name for p in downloads.iterdir()) == ["report.pdf"]

    @pytest.mark.asyncio
    async def test_never_overwrites(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should add a " (n)" suffix when the name is taken."""
        downloads = tmp_path / "Downloads"
        downloads.mkdir()
        (downloads / "a.txt").write_text("first")
        httpx_mock.add_response(url=f"{SERVER}/download/a.txt", content=b"second")

        async with make_client() as client:
            result = await FileDownloader(client, tmp_path, downloads).save_download("a.txt")

        assert result.local_path == downloads / "a (2).txt"
        assert (downloads / "a.txt").read_text() == "first"
        assert result.local_path.read_text() == "second"

    @pytest.mark.asyncio
    async def test_failure_leaves_no_partial_file(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should remove the temporary file on failure."""
        downloads = tmp_path / "Downloads"
        httpx_mock.add_response(url=f"{SERVER}/download", status_code=404)

        async with make_client() as client:
            with pytest.raises(DownloadError):
                await FileDownloader(client, tmp_path, downloads).save_download()

        assert list(downloads.iterdir()) == []


class TestDownloadAndShare:
    """Tests for download-and-share."""

    @pytest.mark.asyncio
    async def test_presents_downloaded_file(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should hand the finished file to the exporter."""
        httpx_mock.add_response(
            url=f"{SERVER}/download",
            content=b"image",
            headers={"Content-Disposition": 'attachment; filename="photo.jpg"'},
        )
        exporter = MagicMock()

        async with make_client() as client:
            downloader = FileDownloader(client, tmp_path)
            result = await downloader.download_and_share(exporter)

        assert result.local_path == downloader.share_dir / "photo.jpg"
        assert result.local_path.read_bytes() == b"image"
        exporter.present.assert_called_once_with(result.local_path)

    @pytest.mark.asyncio
    async def test_overwrites_stale_copy(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should replace a previous file of the same name."""
        httpx_mock.add_response(url=f"{SERVER}/download", content=b"old")
        httpx_mock.add_response(url=f"{SERVER}/download", content=b"new")
        exporter = MagicMock()

        async with make_client() as client:
            downloader = FileDownloader(client, tmp_path)
            await downloader.download_and_share(exporter)
            result = await downloader.download_and_share(exporter)

        assert result.local_path.read_bytes() == b"new"
        assert exporter.present.call_count == 2

    @pytest.mark.asyncio
    async def test_failure_does_not_present(  # type: ignore[no-untyped-def]
        self, httpx_mock, tmp_path: Path
    ) -> None:
        """Should not call the exporter when the download fails."""
        httpx_mock.add_response(url=f"{SERVER}/download", status_code=500)
        exporter = MagicMock()

        async with make_client() as client:
            with pytest.raises(DownloadError):
                await FileDownloader(client, tmp_path).download_and_share(exporter)

        exporter.present.assert_not_called()
