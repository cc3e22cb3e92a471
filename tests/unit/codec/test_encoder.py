"""Tests for PillowEncoder."""

from __future__ import annotations

from io import BytesIO

import pytest
from PIL import Image

from iiifserve.codec import WRITABLE_PIXEL_FORMATS, PillowEncoder
from iiifserve.errors import UnsupportedFormatError
from iiifserve.selector import OutputFormat

MAGIC: dict[OutputFormat, tuple[bytes, ...]] = {
    OutputFormat.JPG: (b"\xff\xd8",),
    OutputFormat.PNG: (b"\x89PNG",),
    OutputFormat.TIF: (b"II*\x00", b"MM\x00*"),
    OutputFormat.GIF: (b"GIF8",),
    OutputFormat.WEBP: (b"RIFF",),
}


class CountingSink(BytesIO):
    """BytesIO that counts write calls."""

    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def write(self, data: bytes) -> int:  # type: ignore[override]
        self.writes += 1
        return super().write(data)


class TestPillowEncoder:
    """Tests for encode()."""

    @pytest.mark.parametrize("output_format", list(OutputFormat))
    def test_encodes_rgb_in_one_write(self, output_format: OutputFormat) -> None:
        sink = CountingSink()
        encoder = PillowEncoder(output_format)

        written = encoder.encode(Image.new("RGB", (16, 12), (200, 10, 10)), sink)

        assert sink.writes == 1
        assert written == len(sink.getvalue())
        assert sink.getvalue().startswith(MAGIC[output_format])
        assert encoder.output_format is output_format

    def test_png_keeps_alpha(self) -> None:
        sink = BytesIO()
        PillowEncoder(OutputFormat.PNG).encode(Image.new("RGBA", (4, 4)), sink)
        sink.seek(0)
        with Image.open(sink) as decoded:
            assert decoded.mode == "RGBA"

    def test_jpeg_quality_affects_size(self) -> None:
        image = Image.effect_noise((64, 64), 50).convert("RGB")
        low, high = BytesIO(), BytesIO()
        PillowEncoder(OutputFormat.JPG, quality=10).encode(image, low)
        PillowEncoder(OutputFormat.JPG, quality=95).encode(image, high)
        assert len(low.getvalue()) < len(high.getvalue())

    def test_unwritable_mode_writes_nothing(self) -> None:
        sink = CountingSink()
        with pytest.raises(UnsupportedFormatError) as exc_info:
            PillowEncoder(OutputFormat.JPG).encode(Image.new("RGBA", (4, 4)), sink)
        assert sink.writes == 0
        assert exc_info.value.pixel_format == "RGBA"
        assert exc_info.value.format_name == "jpg"

    @pytest.mark.parametrize("quality", [0, 101])
    def test_quality_out_of_range(self, quality: int) -> None:
        with pytest.raises(ValueError, match="quality"):
            PillowEncoder(OutputFormat.JPG, quality=quality)


def test_every_format_can_store_gray() -> None:
    assert all("L" in modes for modes in WRITABLE_PIXEL_FORMATS.values())
