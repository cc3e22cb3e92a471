"""Codec gateway for iiifserve.

Opens decoders for source images, describes them, and finds encoders
for output containers. Pixel work is delegated to Pillow and, for
whole-slide images, OpenSlide.

Key Components:
    - CodecRegistry: decoder probing and encoder lookup
    - ImageDecoder: protocol every decoder implements
    - NativeImageDescriptor: immutable geometry + capabilities of a source
    - DecodedBuffer: request-owned decoded pixels

Example:
    from iiifserve.codec import CodecRegistry, NativeImageDescriptor

    registry = CodecRegistry()
    with registry.open_decoder(source) as decoder:
        native = NativeImageDescriptor.from_decoder(decoder)
"""

from iiifserve.codec.encoder import WRITABLE_PIXEL_FORMATS, PillowEncoder
from iiifserve.codec.pillow import (
    JpegDecoder,
    JpegDecoderFactory,
    PillowDecoder,
    PillowDecoderFactory,
)
from iiifserve.codec.registry import CodecRegistry, default_decoder_factories
from iiifserve.codec.slide import OpenSlideDecoder, OpenSlideDecoderFactory
from iiifserve.codec.types import (
    DecodedBuffer,
    DecoderFactory,
    ImageDecoder,
    ImageEncoder,
    NativeImageDescriptor,
)

__all__ = [
    "WRITABLE_PIXEL_FORMATS",
    "CodecRegistry",
    "DecodedBuffer",
    "DecoderFactory",
    "ImageDecoder",
    "ImageEncoder",
    "JpegDecoder",
    "JpegDecoderFactory",
    "NativeImageDescriptor",
    "OpenSlideDecoder",
    "OpenSlideDecoderFactory",
    "PillowDecoder",
    "PillowDecoderFactory",
    "PillowEncoder",
    "default_decoder_factories",
]
