"""Pillow encoder for the supported output containers."""

from __future__ import annotations

from io import BytesIO
from typing import Any, BinaryIO

from PIL import Image

from iiifserve.errors import UnsupportedFormatError
from iiifserve.selector.models import OutputFormat

# Pixel formats each container can store without conversion
WRITABLE_PIXEL_FORMATS: dict[OutputFormat, frozenset[str]] = {
    OutputFormat.JPG: frozenset({"1", "L", "RGB"}),
    OutputFormat.PNG: frozenset({"1", "L", "LA", "RGB", "RGBA"}),
    OutputFormat.TIF: frozenset({"1", "L", "LA", "RGB", "RGBA"}),
    OutputFormat.GIF: frozenset({"1", "L", "RGB"}),
    OutputFormat.WEBP: frozenset({"L", "RGB", "RGBA"}),
}

# JPEG quality bounds (PIL accepts 1-100)
_QUALITY_MIN = 1
_QUALITY_MAX = 100


class PillowEncoder:
    """Encodes one pixel format into one container.

    Output is rendered into memory first, so the sink receives either the
    complete image in a single write or nothing at all.
    """

    __slots__ = ("_format", "_quality")

    def __init__(self, output_format: OutputFormat, quality: int = 85) -> None:
        """Initialize the encoder.

        Args:
            output_format: Container to produce.
            quality: Lossy quality for jpg/webp, 1-100.

        Raises:
            ValueError: If quality is out of range.
        """
        if not _QUALITY_MIN <= quality <= _QUALITY_MAX:
            raise ValueError(
                f"quality must be {_QUALITY_MIN}-{_QUALITY_MAX}, got {quality}"
            )
        self._format = output_format
        self._quality = quality

    @property
    def output_format(self) -> OutputFormat:
        """Return the container this encoder produces."""
        return self._format

    def _save_options(self) -> dict[str, Any]:
        if self._format in (OutputFormat.JPG, OutputFormat.WEBP):
            return {"quality": self._quality}
        return {}

    def encode(self, image: Image.Image, sink: BinaryIO) -> int:
        """Encode the image and write it to the sink.

        Returns:
            Number of bytes written.

        Raises:
            UnsupportedFormatError: If Pillow cannot write the pixels.
        """
        buffer = BytesIO()
        try:
            image.save(buffer, format=self._format.pil_format, **self._save_options())
        except (OSError, ValueError, KeyError) as e:
            raise UnsupportedFormatError(
                f"Failed to encode image: {e}",
                format_name=self._format.value,
                pixel_format=image.mode,
            ) from e
        data = buffer.getvalue()
        sink.write(data)
        return len(data)
