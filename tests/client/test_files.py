"""Tests for local folders and download name allocation."""

from pathlib import Path
from unittest.mock import patch

import pytest

from dropsync.client.sync.files import (
    DOCUMENTS_FOLDER_NAME,
    DOWNLOADS_FOLDER_NAME,
    documents_directory,
    downloads_directory,
    unique_destination,
)
from dropsync.client.sync.types import FilenameExhaustedError


class TestLocalFolders:
    """Tests for the local root helpers."""

    def test_downloads_directory_created(self, tmp_path: Path) -> None:
        """Should create the downloads root below the base."""
        path = downloads_directory(tmp_path)

        assert path == tmp_path / DOWNLOADS_FOLDER_NAME
        assert path.is_dir()

    def test_documents_directory_without_create(self, tmp_path: Path) -> None:
        """Should only compute the path when create is False."""
        path = documents_directory(tmp_path, create=False)

        assert path == tmp_path / DOCUMENTS_FOLDER_NAME
        assert not path.exists()


class TestUniqueDestination:
    """Tests for the " (n)" collision policy."""

    def test_free_name(self, tmp_path: Path) -> None:
        """Should keep the name when it is free."""
        assert unique_destination(tmp_path, "photo.jpg") == tmp_path / "photo.jpg"

    def test_first_collision(self, tmp_path: Path) -> None:
        """Should start numbering at 2."""
        (tmp_path / "photo.jpg").touch()

        assert unique_destination(tmp_path, "photo.jpg") == tmp_path / "photo (2).jpg"

    def test_skips_taken_numbers(self, tmp_path: Path) -> None:
        """Should probe until a free number is found."""
        (tmp_path / "photo.jpg").touch()
        (tmp_path / "photo (2).jpg").touch()
        (tmp_path / "photo (3).jpg").touch()

        assert unique_destination(tmp_path, "photo.jpg") == tmp_path / "photo (4).jpg"

    def test_name_without_extension(self, tmp_path: Path) -> None:
        """Should append the number at the end without an extension."""
        (tmp_path / "README").touch()

        assert unique_destination(tmp_path, "README") == tmp_path / "README (2)"

    def test_empty_name(self, tmp_path: Path) -> None:
        """Should fall back to a generic name."""
        assert unique_destination(tmp_path, "") == tmp_path / "file"

    def test_exhausted(self, tmp_path: Path) -> None:
        """Should fail when every candidate is taken."""
        (tmp_path / "a.txt").touch()
        for n in range(2, 5):
            (tmp_path / f"a ({n}).txt").touch()

        with patch("dropsync.client.sync.files.MAX_NAME_SUFFIX", 4):
            with pytest.raises(FilenameExhaustedError):
                unique_destination(tmp_path, "a.txt")
