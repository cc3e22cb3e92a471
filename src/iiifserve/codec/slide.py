"""Whole-slide decoder wrapping OpenSlide.

Slides are natively tiled pyramids. OpenSlide addresses read locations
in level 0 coordinates while sizes are given at the read level; the
decoder converts from the level coordinates the planner produces.
"""

from __future__ import annotations

import ctypes
from typing import TYPE_CHECKING

import openslide

from iiifserve.codec.types import DecodedBuffer
from iiifserve.errors import (
    InvalidParametersError,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from iiifserve.geometry import Region, Size, clip_region, level_to_level0

if TYPE_CHECKING:
    from types import TracebackType

    from iiifserve.resources import ImageSource


class OpenSlideDecoder:
    """Natively tiled decoder for whole-slide images."""

    name = "openslide"

    __slots__ = ("_slide", "_source")

    def __init__(self, source: ImageSource) -> None:
        """Open a slide.

        Raises:
            UnsupportedFormatError: If OpenSlide cannot open the file.
        """
        self._source = source
        try:
            self._slide = openslide.OpenSlide(str(source.path))
        except openslide.OpenSlideError as e:
            raise UnsupportedFormatError(
                f"Failed to open slide: {e}", identifier=source.identifier
            ) from e

    @property
    def width(self) -> int:
        return int(self._slide.dimensions[0])

    @property
    def height(self) -> int:
        return int(self._slide.dimensions[1])

    @property
    def level_count(self) -> int:
        return int(self._slide.level_count)

    def level_dimensions(self, level: int) -> tuple[int, int]:
        if level < 0 or level >= self.level_count:
            raise InvalidParametersError(
                f"Invalid level {level}. Must be in range [0, {self.level_count - 1}]",
                identifier=self._source.identifier,
                level=level,
            )
        width, height = self._slide.level_dimensions[level]
        return (int(width), int(height))

    def _tile_property(self, level: int) -> int | None:
        value = self._slide.properties.get(f"openslide.level[{level}].tile-width")
        if value is None:
            return None
        try:
            return int(value)
        except (ValueError, TypeError):
            return None

    def is_natively_tiled(self) -> bool:
        return self._tile_property(0) is not None

    def tile_width(self, level: int) -> int | None:
        self.level_dimensions(level)
        return self._tile_property(level)

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
        """Decode a region of a level; alpha from slide padding is dropped.

        The scale hint is ignored: slides expose their own levels.
        """
        identifier = self._source.identifier
        if rotation:
            raise UnsupportedOperationError(
                "openslide decoder cannot rotate while decoding",
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

        factor = level_size.width / self.width
        location = level_to_level0((clipped.x, clipped.y), factor)
        try:
            rgba = self._slide.read_region(location, level, clipped.size.to_tuple())
            pixels = rgba.convert("RGB")
        except (openslide.OpenSlideError, ctypes.ArgumentError) as e:
            raise InvalidParametersError(
                f"Failed to read slide region: {e}",
                identifier=identifier,
                region=clipped.to_tuple(),
                level=level,
            ) from e

        return DecodedBuffer(image=pixels, level=level, rotation=0)

    def close(self) -> None:
        """Close the slide."""
        self._slide.close()

    def __enter__(self) -> OpenSlideDecoder:
        """Enter context manager."""
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit context manager and close the slide."""
        self.close()

    def __repr__(self) -> str:
        """Return string representation."""
        return f"OpenSlideDecoder(identifier={self._source.identifier!r})"


class OpenSlideDecoderFactory:
    """Accepts files OpenSlide recognizes as slides."""

    name = "openslide"

    def accepts(self, source: ImageSource) -> bool:
        try:
            return openslide.OpenSlide.detect_format(str(source.path)) is not None
        except openslide.OpenSlideError:
            return False

    def open(self, source: ImageSource) -> OpenSlideDecoder:
        return OpenSlideDecoder(source)
