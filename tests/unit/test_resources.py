"""Tests for identifier resolution and access policies."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from iiifserve.errors import ResourceNotFoundError
from iiifserve.resources import DenyListPolicy, FileSystemResolver, ImageSource

ImageWriter = Callable[..., Path]


class TestFileSystemResolver:
    """Tests for FileSystemResolver.resolve()."""

    def test_exact_filename(self, image_root: Path, write_image: ImageWriter) -> None:
        path = write_image("page.png", (8, 8))
        source = FileSystemResolver(image_root).resolve("page.png")
        assert source == ImageSource(identifier="page.png", path=path)

    def test_extensionless_identifier(
        self, image_root: Path, write_image: ImageWriter
    ) -> None:
        path = write_image("page-001.jpg", (8, 8))
        source = FileSystemResolver(image_root).resolve("page-001")
        assert source.path == path
        assert source.identifier == "page-001"

    def test_extension_match_is_case_insensitive(
        self, image_root: Path, write_image: ImageWriter
    ) -> None:
        path = write_image("SCAN.JPG", (8, 8))
        assert FileSystemResolver(image_root).resolve("SCAN").path == path

    def test_nested_identifier(
        self, image_root: Path, write_image: ImageWriter
    ) -> None:
        path = write_image("books/vol1/p1.png", (8, 8))
        assert FileSystemResolver(image_root).resolve("books/vol1/p1").path == path

    def test_unsupported_extension_ignored(self, image_root: Path) -> None:
        (image_root / "notes.txt").write_text("x")
        with pytest.raises(ResourceNotFoundError, match="Image not found"):
            FileSystemResolver(image_root).resolve("notes")

    def test_ambiguous_identifier(
        self, image_root: Path, write_image: ImageWriter
    ) -> None:
        write_image("page.png", (8, 8))
        write_image("page.jpg", (8, 8))
        with pytest.raises(ResourceNotFoundError, match="ambiguous"):
            FileSystemResolver(image_root).resolve("page")

    def test_missing(self, image_root: Path) -> None:
        with pytest.raises(ResourceNotFoundError, match="Image not found") as exc_info:
            FileSystemResolver(image_root).resolve("nope")
        assert exc_info.value.identifier == "nope"

    @pytest.mark.parametrize("identifier", ["", "../secret", "a/../../b", "/etc/passwd"])
    def test_rejects_identifiers_leaving_root(
        self, image_root: Path, identifier: str
    ) -> None:
        with pytest.raises(ResourceNotFoundError, match="Invalid identifier"):
            FileSystemResolver(image_root).resolve(identifier)


class TestImageSource:
    """Tests for ImageSource.open()."""

    def test_open_reads_bytes(self, tmp_path: Path) -> None:
        path = tmp_path / "data.bin"
        path.write_bytes(b"abc")
        with ImageSource("data", path).open() as stream:
            assert stream.read() == b"abc"

    def test_open_missing_file(self, tmp_path: Path) -> None:
        source = ImageSource("gone", tmp_path / "gone.png")
        with pytest.raises(ResourceNotFoundError, match="unreadable"):
            source.open()


class TestDenyListPolicy:
    """Tests for DenyListPolicy."""

    def test_allows_by_default(self) -> None:
        assert DenyListPolicy().is_allowed("anything")

    def test_denies_listed(self) -> None:
        policy = DenyListPolicy(denied=frozenset({"secret"}))
        assert not policy.is_allowed("secret")
        assert policy.is_allowed("public")
