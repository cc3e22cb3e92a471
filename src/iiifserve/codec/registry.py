"""Decoder and encoder discovery.

Decoder factories are probed in order; the first one that accepts the
source wins. Every call opens a fresh decoder or encoder, so instances
are never shared between requests.
"""

from __future__ import annotations

from collections.abc import Sequence

from iiifserve.codec.encoder import WRITABLE_PIXEL_FORMATS, PillowEncoder
from iiifserve.codec.pillow import JpegDecoderFactory, PillowDecoderFactory
from iiifserve.codec.slide import OpenSlideDecoderFactory
from iiifserve.codec.types import DecoderFactory, ImageDecoder
from iiifserve.errors import UnsupportedFormatError
from iiifserve.resources import ImageSource
from iiifserve.selector.models import OutputFormat
from iiifserve.utils.logging import get_logger

logger = get_logger(__name__)


def default_decoder_factories() -> tuple[DecoderFactory, ...]:
    """Return the built-in decoder families in probing order."""
    return (
        OpenSlideDecoderFactory(),
        JpegDecoderFactory(),
        PillowDecoderFactory(),
    )


class CodecRegistry:
    """Finds decoders for sources and encoders for output formats."""

    __slots__ = ("_decoders", "_jpeg_quality")

    def __init__(
        self,
        decoders: Sequence[DecoderFactory] | None = None,
        jpeg_quality: int = 85,
    ) -> None:
        """Initialize the registry.

        Args:
            decoders: Decoder factories in probing order. Defaults to the
                built-in OpenSlide, JPEG and generic Pillow decoders.
            jpeg_quality: Quality passed to lossy encoders.
        """
        self._decoders = tuple(decoders) if decoders is not None else (
            default_decoder_factories()
        )
        self._jpeg_quality = jpeg_quality

    @property
    def decoder_names(self) -> tuple[str, ...]:
        """Return the registered decoder family names in probing order."""
        return tuple(factory.name for factory in self._decoders)

    def open_decoder(self, source: ImageSource) -> ImageDecoder:
        """Open the first decoder that accepts the source.

        Raises:
            UnsupportedFormatError: If no registered decoder accepts it.
        """
        for factory in self._decoders:
            if factory.accepts(source):
                logger.debug("Decoder selected", decoder=factory.name)
                return factory.open(source)
        raise UnsupportedFormatError(
            "No decoder accepts the source image", identifier=source.identifier
        )

    def open_encoder(
        self,
        pixel_format: str,
        format_name: OutputFormat | str,
    ) -> PillowEncoder:
        """Find an encoder able to write pixel_format into the named container.

        Raises:
            UnsupportedFormatError: If the format is unknown or cannot hold
                the pixel format.
        """
        try:
            output_format = OutputFormat(format_name)
        except ValueError:
            raise UnsupportedFormatError(
                "Unknown output format", format_name=str(format_name)
            ) from None

        if pixel_format not in WRITABLE_PIXEL_FORMATS[output_format]:
            raise UnsupportedFormatError(
                "Output format cannot store the pixel format",
                format_name=output_format.value,
                pixel_format=pixel_format,
            )
        return PillowEncoder(output_format, quality=self._jpeg_quality)
