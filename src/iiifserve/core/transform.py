"""Post-decode pixel transforms.

Stages run in a fixed order and each is skipped when it would not
change anything:

    1. Scale to the target size (LANCZOS).
    2. Rotate clockwise by the residual rotation.
    3. Mirror horizontally.
    4. Convert to the requested quality band.

Mirroring always follows rotation; a 90 degree rotation followed by a
mirror is a different image than the reverse order.

Alpha policy for quality conversion:
    color and gray keep an existing alpha band (RGBA / LA) only when the
    output container can store it, otherwise they produce plain RGB / L.
    Bitonal always drops alpha and thresholds luminance at 50% without
    dithering so that the result is deterministic.
"""

from __future__ import annotations

from PIL import Image

from iiifserve.codec.encoder import WRITABLE_PIXEL_FORMATS
from iiifserve.codec.pixels import has_alpha, mirror, rotate_clockwise
from iiifserve.codec.types import DecodedBuffer
from iiifserve.errors import UnsupportedOperationError
from iiifserve.geometry import Size
from iiifserve.selector.models import OutputFormat, Quality
from iiifserve.utils.logging import get_logger

logger = get_logger(__name__)


def target_pixel_format(
    current: str,
    quality: Quality,
    alpha: bool,
    output_format: OutputFormat | None = None,
) -> str:
    """Return the Pillow mode a quality band maps to.

    Args:
        current: Mode of the pixels before conversion.
        quality: Requested quality band.
        alpha: Whether the pixels carry an alpha band.
        output_format: Container the pixels will be written to. Alpha is
            kept only if it can store the alpha mode; None keeps it.
    """
    if quality is Quality.COLOR:
        return _with_alpha("RGB", "RGBA", alpha, output_format)
    if quality is Quality.GRAY:
        return _with_alpha("L", "LA", alpha, output_format)
    if quality is Quality.BITONAL:
        return "1"
    return current


def _with_alpha(
    plain: str,
    with_alpha: str,
    alpha: bool,
    output_format: OutputFormat | None,
) -> str:
    if not alpha:
        return plain
    if output_format is None or with_alpha in WRITABLE_PIXEL_FORMATS[output_format]:
        return with_alpha
    return plain


def _to_bitonal(image: Image.Image) -> Image.Image:
    gray = image.convert("L")
    return gray.convert("1", dither=Image.Dither.NONE)


class TransformPipeline:
    """Scales, rotates, mirrors and converts a decoded buffer in place."""

    def apply(
        self,
        buffer: DecodedBuffer,
        target_size: Size,
        residual_rotation: int = 0,
        mirror_horizontally: bool = False,
        quality: Quality = Quality.DEFAULT,
        output_format: OutputFormat | None = None,
    ) -> DecodedBuffer:
        """Run the pipeline.

        Args:
            buffer: Decoded pixels; its image is replaced stage by stage.
            target_size: Size to scale to before rotation.
            residual_rotation: Rotation the decoder did not perform.
            mirror_horizontally: Flip after rotating.
            quality: Output quality band.
            output_format: Container the result is encoded into; decides
                whether color and gray keep an alpha band.

        Returns:
            The same buffer, holding the final pixels.

        Raises:
            UnsupportedOperationError: If the rotation is not 0/90/180/270.
        """
        stages: list[str] = []

        if buffer.size != target_size:
            self._replace(
                buffer,
                buffer.image.resize(
                    target_size.to_tuple(), resample=Image.Resampling.LANCZOS
                ),
            )
            stages.append("scale")

        if residual_rotation:
            try:
                rotated = rotate_clockwise(buffer.image, residual_rotation)
            except ValueError as e:
                raise UnsupportedOperationError(str(e)) from e
            self._replace(buffer, rotated)
            stages.append("rotate")

        if mirror_horizontally:
            self._replace(buffer, mirror(buffer.image))
            stages.append("mirror")

        out_mode = target_pixel_format(
            buffer.pixel_format, quality, has_alpha(buffer.image), output_format
        )
        if out_mode != buffer.pixel_format:
            if out_mode == "1":
                converted = _to_bitonal(buffer.image)
            else:
                converted = buffer.image.convert(out_mode)
            self._replace(buffer, converted)
            stages.append("quality")

        logger.debug(
            "Transform applied",
            stages=stages,
            size=buffer.size.to_tuple(),
            pixel_format=buffer.pixel_format,
        )
        return buffer

    @staticmethod
    def _replace(buffer: DecodedBuffer, image: Image.Image) -> None:
        previous = buffer.image
        buffer.image = image
        if previous is not image:
            previous.close()
