"""Shared pytest fixtures and configuration."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from PIL import Image

from iiifserve.codec.types import NativeImageDescriptor
from iiifserve.config import Settings
from iiifserve.utils.logging import clear_correlation_context, configure_logging

# Quadrant colors of the orientation test image
RED = (255, 0, 0)
GREEN = (0, 255, 0)
BLUE = (0, 0, 255)
WHITE = (255, 255, 255)

ImageWriter = Callable[..., Path]


def quadrant_image(size: tuple[int, int], mode: str = "RGB") -> Image.Image:
    """Create an image whose quadrants are red, green / blue, white.

    Every rotation and mirror of it is distinguishable from the others.
    """
    width, height = size
    image = Image.new("RGB", size, WHITE)
    half_w, half_h = width // 2, height // 2
    image.paste(RED, (0, 0, half_w, half_h))
    image.paste(GREEN, (half_w, 0, width, half_h))
    image.paste(BLUE, (0, half_h, half_w, height))
    return image if mode == "RGB" else image.convert(mode)


@pytest.fixture(autouse=True)
def reset_logging_context() -> Iterator[None]:
    """Reset correlation context between tests."""
    clear_correlation_context()
    yield
    clear_correlation_context()


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Create a Settings instance with test-safe defaults."""
    return Settings(
        IMAGE_ROOT=tmp_path,
        LOG_LEVEL="DEBUG",
        LOG_FORMAT="console",
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def configure_test_logging() -> Iterator[None]:
    """Configure logging for tests with console output."""
    configure_logging(level="DEBUG", log_format="console")
    yield


@pytest.fixture
def image_root(tmp_path: Path) -> Path:
    """Directory that holds generated source images."""
    root = tmp_path / "images"
    root.mkdir()
    return root


@pytest.fixture
def write_image(image_root: Path) -> ImageWriter:
    """Write a quadrant test image under image_root.

    Usage:
        path = write_image("page.jpg", (600, 400))
        path = write_image("gray.png", (64, 64), mode="L")
    """

    def _write(
        name: str,
        size: tuple[int, int],
        mode: str = "RGB",
        **save_options: object,
    ) -> Path:
        path = image_root / name
        path.parent.mkdir(parents=True, exist_ok=True)
        quadrant_image(size, mode).save(path, **save_options)
        return path

    return _write


@pytest.fixture
def write_pyramid(image_root: Path) -> Callable[[str, list[tuple[int, int]]], Path]:
    """Write a multi-page TIFF whose pages form a resolution pyramid."""

    def _write(name: str, sizes: list[tuple[int, int]]) -> Path:
        path = image_root / name
        pages = [quadrant_image(size) for size in sizes]
        pages[0].save(path, format="TIFF", save_all=True, append_images=pages[1:])
        return path

    return _write


@pytest.fixture
def pyramid_native() -> NativeImageDescriptor:
    """2000x1000 source with levels at scale factors 1.0, 0.5 and 0.25."""
    return NativeImageDescriptor(
        decoder_name="pillow",
        width=2000,
        height=1000,
        level_dimensions=((2000, 1000), (1000, 500), (500, 250)),
    )


@pytest.fixture
def rotating_native() -> NativeImageDescriptor:
    """600x400 single-level source decoded by a rotation-capable decoder."""
    return NativeImageDescriptor(
        decoder_name="jpeg",
        width=600,
        height=400,
        level_dimensions=((600, 400),),
        decode_time_rotation=True,
        block_scaling=True,
    )


@pytest.fixture
def make_quadrant() -> Callable[..., Image.Image]:
    """Return the quadrant image factory for in-memory tests."""
    return quadrant_image
