"""Type definitions for the codec gateway.

Contains the decoder/encoder protocols, the per-request decoded pixel
buffer and the immutable description of an opened source image. Level 0
is always the full native resolution; higher levels are coarser.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, BinaryIO, Protocol

from PIL import Image

from iiifserve.geometry import Region, Size

if TYPE_CHECKING:
    from iiifserve.resources import ImageSource


@dataclass
class DecodedBuffer:
    """Decoded pixels owned by a single request.

    The transform pipeline replaces ``image`` stage by stage; the buffer
    is released once the output has been encoded or the request failed.

    Attributes:
        image: Pillow image holding the pixels.
        level: Level the pixels were decoded from.
        rotation: Clockwise rotation the decoder already applied.
    """

    image: Image.Image
    level: int = 0
    rotation: int = 0

    @property
    def size(self) -> Size:
        """Return the current pixel dimensions."""
        return Size(width=self.image.width, height=self.image.height)

    @property
    def pixel_format(self) -> str:
        """Return the Pillow mode of the pixels (e.g. "RGB", "L", "1")."""
        return self.image.mode

    def release(self) -> None:
        """Free the pixel memory."""
        self.image.close()


class ImageDecoder(Protocol):
    """Protocol for an opened source image.

    Capabilities are queried, never inferred from the decoder's type:
    a generic decoder reports none, a rotation-capable decoder rotates
    while decoding, a natively tiled decoder reports tile geometry.
    """

    @property
    def name(self) -> str:
        """Short decoder family name (e.g. "jpeg", "pillow", "openslide")."""
        ...

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    @property
    def level_count(self) -> int: ...

    def level_dimensions(self, level: int) -> tuple[int, int]:
        """Return (width, height) of a level."""
        ...

    def is_natively_tiled(self) -> bool: ...

    def tile_width(self, level: int) -> int | None:
        """Return the tile width of a level, or None if untiled."""
        ...

    def supports_decode_time_rotation(self) -> bool: ...

    def supports_block_scaling(self) -> bool:
        """Return True if the codec scales cheaply in power-of-two blocks."""
        ...

    def decode(
        self,
        level: int,
        region: Region,
        rotation: int = 0,
        scale: float = 1.0,
    ) -> DecodedBuffer:
        """Decode a region of a level.

        Args:
            level: Level index (0 = native resolution).
            region: Rectangle in that level's coordinates. Parts outside
                the level are clipped.
            rotation: Clockwise rotation hint; only honored by decoders
                that support decode-time rotation.
            scale: Fraction of the region's resolution the caller needs.
                Decoders with block scaling may return a smaller buffer,
                never smaller than region size * scale; others ignore it.

        Raises:
            InvalidParametersError: If the region misses the level or the
                pixel data is corrupt.
            UnsupportedOperationError: If the codec refuses the call.
        """
        ...

    def close(self) -> None: ...


class DecoderFactory(Protocol):
    """Probes sources and opens decoders of one family."""

    name: str

    def accepts(self, source: ImageSource) -> bool:
        """Return True if this family can decode the source."""
        ...

    def open(self, source: ImageSource) -> ImageDecoder:
        """Open a fresh decoder for the source.

        Raises:
            UnsupportedFormatError: If the source cannot be opened.
        """
        ...


class ImageEncoder(Protocol):
    """Writes pixels to a sink in one container format."""

    def encode(self, image: Image.Image, sink: BinaryIO) -> int:
        """Encode and write the image, returning the byte count written."""
        ...


@dataclass(frozen=True)
class NativeImageDescriptor:
    """Immutable description of an opened source image.

    Attributes:
        decoder_name: Family of the decoder that opened the image.
        width: Native (level 0) width in pixels.
        height: Native (level 0) height in pixels.
        level_dimensions: (width, height) per level, level 0 first.
        tile_width: Level 0 tile width, None if not natively tiled.
        tile_scale_factors: Level 0 tile width divided by each level's
            tile width, in level order without duplicates.
        natively_tiled: Decoder reports native tiling.
        decode_time_rotation: Decoder can rotate while decoding.
        block_scaling: Decoder scales in power-of-two blocks that are not
            exposed as levels.
    """

    decoder_name: str
    width: int
    height: int
    level_dimensions: tuple[tuple[int, int], ...]
    tile_width: int | None = None
    tile_scale_factors: tuple[int, ...] = ()
    natively_tiled: bool = False
    decode_time_rotation: bool = False
    block_scaling: bool = False

    def __post_init__(self) -> None:
        if not self.level_dimensions:
            raise ValueError("At least one level is required")
        if self.level_dimensions[0] != (self.width, self.height):
            raise ValueError(
                f"Level 0 {self.level_dimensions[0]} must match native size "
                f"{(self.width, self.height)}"
            )
        for (pw, ph), (w, h) in zip(
            self.level_dimensions, self.level_dimensions[1:], strict=False
        ):
            if w > pw or h > ph:
                raise ValueError("Levels must not grow in size")

    @classmethod
    def from_decoder(cls, decoder: ImageDecoder) -> NativeImageDescriptor:
        """Capture geometry and capabilities of an opened decoder."""
        levels = tuple(
            decoder.level_dimensions(i) for i in range(decoder.level_count)
        )
        tiled = decoder.is_natively_tiled()
        tile_width = decoder.tile_width(0) if tiled else None

        factors: list[int] = []
        if tile_width:
            for i in range(len(levels)):
                level_tile = decoder.tile_width(i)
                if not level_tile:
                    continue
                factor = tile_width // level_tile
                if factor > 0 and factor not in factors:
                    factors.append(factor)

        return cls(
            decoder_name=decoder.name,
            width=decoder.width,
            height=decoder.height,
            level_dimensions=levels,
            tile_width=tile_width,
            tile_scale_factors=tuple(factors),
            natively_tiled=tiled,
            decode_time_rotation=decoder.supports_decode_time_rotation(),
            block_scaling=decoder.supports_block_scaling(),
        )

    @property
    def size(self) -> Size:
        """Return native dimensions as a Size."""
        return Size(width=self.width, height=self.height)

    @property
    def level_count(self) -> int:
        """Return the number of available levels."""
        return len(self.level_dimensions)

    def level_size(self, level: int) -> Size:
        """Get dimensions for a level.

        Raises:
            IndexError: If level is out of range.
        """
        if level < 0 or level >= self.level_count:
            raise IndexError(f"Level {level} out of range [0, {self.level_count - 1}]")
        return Size.from_tuple(self.level_dimensions[level])

    def level_scale_factor(self, level: int) -> float:
        """Get a level's width relative to the native width (1.0 for level 0)."""
        return self.level_size(level).width / self.width
