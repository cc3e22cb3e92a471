"""Pillow pixel helpers shared by decoders and the transform pipeline."""

from __future__ import annotations

from PIL import Image

# Pixel formats a DecodedBuffer may carry
NATIVE_PIXEL_FORMATS: frozenset[str] = frozenset({"1", "L", "LA", "RGB", "RGBA"})

# Pillow's ROTATE_* constants turn counter-clockwise
_CLOCKWISE: dict[int, Image.Transpose] = {
    90: Image.Transpose.ROTATE_270,
    180: Image.Transpose.ROTATE_180,
    270: Image.Transpose.ROTATE_90,
}


def has_alpha(image: Image.Image) -> bool:
    """Return True if the image carries an alpha band."""
    return image.mode in ("LA", "RGBA", "PA", "La", "RGBa")


def normalize_pixel_format(image: Image.Image) -> Image.Image:
    """Convert decoded pixels to one of NATIVE_PIXEL_FORMATS.

    Palette images expand to RGB, or RGBA when they carry transparency.
    Integer and float grayscale collapse to 8-bit L; every other color
    space (CMYK, YCbCr, LAB, ...) becomes RGB.
    """
    mode = image.mode
    if mode in NATIVE_PIXEL_FORMATS:
        return image
    if mode in ("P", "PA"):
        transparent = mode == "PA" or "transparency" in image.info
        return image.convert("RGBA" if transparent else "RGB")
    if mode in ("La",):
        return image.convert("LA")
    if mode in ("RGBa",):
        return image.convert("RGBA")
    if mode.startswith("I") or mode == "F":
        return image.convert("L")
    return image.convert("RGB")


def rotate_clockwise(image: Image.Image, degrees: int) -> Image.Image:
    """Rotate by 0, 90, 180 or 270 degrees clockwise.

    Raises:
        ValueError: For any other angle.
    """
    if degrees == 0:
        return image
    try:
        method = _CLOCKWISE[degrees]
    except KeyError:
        raise ValueError(f"Can only rotate by multiples of 90, got {degrees}") from None
    return image.transpose(method)


def mirror(image: Image.Image) -> Image.Image:
    """Flip horizontally."""
    return image.transpose(Image.Transpose.FLIP_LEFT_RIGHT)
