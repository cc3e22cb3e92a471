"""Decoders backed by Pillow.

PillowDecoder is the generic decoder: anything Pillow can open is served
from level 0, except multi-page TIFFs laid out as a resolution pyramid,
whose pages become levels. JpegDecoder adds decode-time rotation and
reduced-resolution decoding through JPEG's block scaling steps.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

from PIL import Image, UnidentifiedImageError

from iiifserve.codec.pixels import normalize_pixel_format, rotate_clockwise
from iiifserve.codec.types import DecodedBuffer
from iiifserve.errors import (
    InvalidParametersError,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from iiifserve.geometry import Region, Size, clip_region

if TYPE_CHECKING:
    from types import TracebackType

    from iiifserve.resources import ImageSource

_TIFF_TAG_TILE_WIDTH = 322

# Errors Pillow raises for data it cannot make sense of
_CORRUPT_DATA_ERRORS = (OSError, SyntaxError, Image.DecompressionBombError)


def probe_format(source: ImageSource) -> str | None:
    """Return Pillow's format name for the source, or None if unreadable."""
    with source.open() as stream:
        try:
            with Image.open(stream) as image:
                return image.format
        except (UnidentifiedImageError, *_CORRUPT_DATA_ERRORS):
            return None


def _tile_width(image: Image.Image) -> int | None:
    tags = getattr(image, "tag_v2", None)
    if tags is None:
        return None
    value = tags.get(_TIFF_TAG_TILE_WIDTH)
    return int(value) if value else None


def _scaled_box(
    region: Region, factor: float, bounds: tuple[int, int]
) -> tuple[int, int, int, int]:
    """Map a level region onto a reduced decode, covering every source pixel."""
    if factor == 1.0:
        return region.to_box()
    left = math.floor(region.x * factor)
    top = math.floor(region.y * factor)
    right = min(bounds[0], max(left + 1, math.ceil(region.right * factor)))
    bottom = min(bounds[1], max(top + 1, math.ceil(region.bottom * factor)))
    return left, top, right, bottom


def _is_pyramid_step(
    previous: tuple[int, int],
    size: tuple[int, int],
    base: tuple[int, int],
) -> bool:
    """Check that a page is a smaller copy of the base page."""
    width, height = size
    if width <= 0 or height <= 0 or size == previous:
        return False
    if width > previous[0] or height > previous[1]:
        return False
    expected_height = width * base[1] / base[0]
    return abs(height - expected_height) <= max(1.0, 0.01 * height)


class PillowDecoder:
    """Generic decoder for any format Pillow can open."""

    name = "pillow"

    __slots__ = ("_image", "_levels", "_source", "_stream", "_tile_widths")

    def __init__(self, source: ImageSource) -> None:
        """Open a source image.

        Raises:
            UnsupportedFormatError: If Pillow cannot identify the data.
        """
        self._source = source
        self._stream = source.open()
        try:
            self._image = Image.open(self._stream)
        except (UnidentifiedImageError, *_CORRUPT_DATA_ERRORS) as e:
            self._stream.close()
            raise UnsupportedFormatError(
                f"Failed to open image: {e}", identifier=source.identifier
            ) from e
        self._levels, self._tile_widths = self._discover_levels(self._image)

    @staticmethod
    def _discover_levels(
        image: Image.Image,
    ) -> tuple[tuple[tuple[int, int], ...], tuple[int | None, ...]]:
        """Collect pyramid levels from TIFF pages, stopping at the first misfit."""
        base = image.size
        levels = [base]
        tiles = [_tile_width(image)]
        if image.format == "TIFF":
            for frame in range(1, getattr(image, "n_frames", 1)):
                image.seek(frame)
                if not _is_pyramid_step(levels[-1], image.size, base):
                    break
                levels.append(image.size)
                tiles.append(_tile_width(image))
            image.seek(0)
        return tuple(levels), tuple(tiles)

    @property
    def width(self) -> int:
        return self._levels[0][0]

    @property
    def height(self) -> int:
        return self._levels[0][1]

    @property
    def level_count(self) -> int:
        return len(self._levels)

    def level_dimensions(self, level: int) -> tuple[int, int]:
        if level < 0 or level >= self.level_count:
            raise InvalidParametersError(
                f"Invalid level {level}. Must be in range [0, {self.level_count - 1}]",
                identifier=self._source.identifier,
                level=level,
            )
        return self._levels[level]

    def is_natively_tiled(self) -> bool:
        return self._tile_widths[0] is not None

    def tile_width(self, level: int) -> int | None:
        self.level_dimensions(level)
        return self._tile_widths[level]

    def supports_decode_time_rotation(self) -> bool:
        return False

    def supports_block_scaling(self) -> bool:
        return False

    def decode(
        self,
        level: int,
        region: Region,
        rotation: int = 0,
        scale: float = 1.0,
    ) -> DecodedBuffer:
        """Decode a region of a level, clipped to the level's bounds.

        The buffer holds the region at the resolution chosen by
        _prepare_level, which is the full level unless the codec can
        reduce while decoding.
        """
        identifier = self._source.identifier
        if rotation and not self.supports_decode_time_rotation():
            raise UnsupportedOperationError(
                f"{self.name} decoder cannot rotate while decoding",
                identifier=identifier,
            )

        level_size = Size.from_tuple(self.level_dimensions(level))
        clipped = clip_region(region, level_size)
        if clipped is None:
            raise InvalidParametersError(
                "Decode region lies outside the level",
                identifier=identifier,
                region=region.to_tuple(),
                level=level,
            )

        try:
            factor = self._prepare_level(level, scale)
            pixels = self._image.crop(_scaled_box(clipped, factor, self._image.size))
            pixels = normalize_pixel_format(pixels)
            pixels = rotate_clockwise(pixels, rotation)
        except _CORRUPT_DATA_ERRORS as e:
            raise InvalidParametersError(
                f"Failed to decode image data: {e}",
                identifier=identifier,
                region=clipped.to_tuple(),
                level=level,
            ) from e
        except (ValueError, EOFError) as e:
            raise UnsupportedOperationError(
                f"Decoder rejected the request: {e}", identifier=identifier
            ) from e

        return DecodedBuffer(image=pixels, level=level, rotation=rotation)

    def _prepare_level(self, level: int, scale: float) -> float:
        """Seek to a level; return the decoded resolution relative to it."""
        self._image.seek(level)
        return 1.0

    def close(self) -> None:
        """Close the image and its stream."""
        self._image.close()
        self._stream.close()

    def __enter__(self) -> PillowDecoder:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the decoder."""
        self.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"{type(self).__name__}(identifier={self._source.identifier!r})"


class JpegDecoder(PillowDecoder):
    """Baseline JPEG decoder that rotates while decoding.

    JPEG scales cheaply by 1/2, 1/4 and 1/8 at the block level. Those
    steps are not exposed as levels; decode() uses them through Pillow's
    draft mode when the caller needs less than full resolution, and they
    are advertised so that the capability descriptor can offer synthetic
    tiles.
    """

    name = "jpeg"

    __slots__ = ("_loaded",)

    def __init__(self, source: ImageSource) -> None:
        super().__init__(source)
        self._loaded = False

    def supports_decode_time_rotation(self) -> bool:
        return True

    def supports_block_scaling(self) -> bool:
        return True

    def _prepare_level(self, level: int, scale: float) -> float:
        # Draft mode only applies before the first load
        if self._loaded:
            self._reopen()
        self._loaded = True
        if scale < 1.0:
            requested = (
                max(1, math.ceil(self.width * scale)),
                max(1, math.ceil(self.height * scale)),
            )
            self._image.draft(self._image.mode, requested)
        return self._image.size[0] / self.width

    def _reopen(self) -> None:
        self._image.close()
        self._stream.close()
        self._stream = self._source.open()
        self._image = Image.open(self._stream)


class PillowDecoderFactory:
    """Accepts anything Pillow can identify."""

    name = "pillow"

    def accepts(self, source: ImageSource) -> bool:
        return probe_format(source) is not None

    def open(self, source: ImageSource) -> PillowDecoder:
        return PillowDecoder(source)


class JpegDecoderFactory:
    """Accepts JPEG sources."""

    name = "jpeg"

    def accepts(self, source: ImageSource) -> bool:
        return probe_format(source) == "JPEG"

    def open(self, source: ImageSource) -> JpegDecoder:
        return JpegDecoder(source)
