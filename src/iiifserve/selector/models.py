"""Image selector models.

An ImageSelector is the parsed form of a client request: which part of
the image (region), at what output size, rotated and mirrored how, in
which quality band and container format. Selectors are expressed in
native image terms and are independent of any decode level.
"""

from __future__ import annotations

from enum import Enum
from typing import Self

from pydantic import BaseModel, Field, model_validator


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return format(value, "f").rstrip("0").rstrip(".")


class RegionKind(str, Enum):
    """How the requested region is expressed."""

    FULL = "full"
    SQUARE = "square"
    ABSOLUTE = "absolute"  # x,y,w,h in native pixels
    PERCENT = "percent"  # pct:x,y,w,h relative to native size


class SizeKind(str, Enum):
    """How the requested output size is expressed."""

    MAX = "max"  # max (or full): the cropped size itself
    WIDTH = "width"  # w,
    HEIGHT = "height"  # ,h
    PERCENT = "percent"  # pct:n
    EXACT = "exact"  # w,h (aspect ratio may change)
    BEST_FIT = "best_fit"  # !w,h


class Quality(str, Enum):
    """Requested output color band."""

    DEFAULT = "default"
    COLOR = "color"
    GRAY = "gray"
    BITONAL = "bitonal"


class OutputFormat(str, Enum):
    """Output container formats, keyed by their file extension."""

    JPG = "jpg"
    PNG = "png"
    TIF = "tif"
    GIF = "gif"
    WEBP = "webp"

    @property
    def media_type(self) -> str:
        """Return the MIME type of the container."""
        return _MEDIA_TYPES[self]

    @property
    def pil_format(self) -> str:
        """Return the Pillow format name used to encode the container."""
        return _PIL_FORMATS[self]


_MEDIA_TYPES: dict[OutputFormat, str] = {
    OutputFormat.JPG: "image/jpeg",
    OutputFormat.PNG: "image/png",
    OutputFormat.TIF: "image/tiff",
    OutputFormat.GIF: "image/gif",
    OutputFormat.WEBP: "image/webp",
}

_PIL_FORMATS: dict[OutputFormat, str] = {
    OutputFormat.JPG: "JPEG",
    OutputFormat.PNG: "PNG",
    OutputFormat.TIF: "TIFF",
    OutputFormat.GIF: "GIF",
    OutputFormat.WEBP: "WEBP",
}


class RegionRequest(BaseModel, frozen=True):
    """Requested region of the native image.

    Coordinates are only meaningful for ABSOLUTE (pixels) and PERCENT
    (percent of native width/height) requests.
    """

    kind: RegionKind = RegionKind.FULL
    x: float = Field(default=0.0, ge=0)
    y: float = Field(default=0.0, ge=0)
    width: float = Field(default=0.0, ge=0)
    height: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def _validate_extent(self) -> Self:
        if self.kind in (RegionKind.ABSOLUTE, RegionKind.PERCENT) and (
            self.width <= 0 or self.height <= 0
        ):
            raise ValueError("Region width and height must be positive")
        return self

    def canonical(self) -> str:
        """Render the region in its wire form."""
        if self.kind is RegionKind.FULL:
            return "full"
        if self.kind is RegionKind.SQUARE:
            return "square"
        coords = ",".join(
            _format_number(v) for v in (self.x, self.y, self.width, self.height)
        )
        return f"pct:{coords}" if self.kind is RegionKind.PERCENT else coords


class SizeRequest(BaseModel, frozen=True):
    """Requested output size, relative to the cropped region."""

    kind: SizeKind = SizeKind.MAX
    width: int | None = Field(default=None, gt=0)
    height: int | None = Field(default=None, gt=0)
    percentage: float | None = Field(default=None, gt=0)

    @model_validator(mode="after")
    def _validate_fields(self) -> Self:
        needs_width = self.kind in (SizeKind.WIDTH, SizeKind.EXACT, SizeKind.BEST_FIT)
        needs_height = self.kind in (
            SizeKind.HEIGHT,
            SizeKind.EXACT,
            SizeKind.BEST_FIT,
        )
        if needs_width and self.width is None:
            raise ValueError(f"Size '{self.kind.value}' requires a width")
        if needs_height and self.height is None:
            raise ValueError(f"Size '{self.kind.value}' requires a height")
        if self.kind is SizeKind.PERCENT and self.percentage is None:
            raise ValueError("Size 'percent' requires a percentage")
        return self

    def canonical(self) -> str:
        """Render the size in its wire form."""
        if self.kind is SizeKind.MAX:
            return "max"
        if self.kind is SizeKind.WIDTH:
            return f"{self.width},"
        if self.kind is SizeKind.HEIGHT:
            return f",{self.height}"
        if self.kind is SizeKind.PERCENT:
            assert self.percentage is not None
            return f"pct:{_format_number(self.percentage)}"
        prefix = "!" if self.kind is SizeKind.BEST_FIT else ""
        return f"{prefix}{self.width},{self.height}"


class RotationRequest(BaseModel, frozen=True):
    """Clockwise rotation in degrees, optionally preceded by a mirror flip."""

    degrees: float = Field(default=0.0, ge=0, le=360)
    mirror: bool = False

    @property
    def is_right_angle(self) -> bool:
        """Return True if the rotation is a multiple of 90 degrees."""
        return self.degrees % 90 == 0

    @property
    def normalized(self) -> int:
        """Return the rotation as one of 0, 90, 180, 270.

        Raises:
            ValueError: If the rotation is not a multiple of 90 degrees.
        """
        if not self.is_right_angle:
            raise ValueError(f"Rotation {self.degrees} is not a multiple of 90")
        return int(self.degrees) % 360

    def canonical(self) -> str:
        """Render the rotation in its wire form."""
        prefix = "!" if self.mirror else ""
        return f"{prefix}{_format_number(self.degrees)}"


class ImageSelector(BaseModel, frozen=True):
    """A fully parsed image request.

    Attributes:
        region: Which part of the native image to return.
        size: Output size, applied to the cropped region.
        rotation: Rotation and mirroring applied after scaling.
        quality: Output color band.
        format: Output container format.
    """

    region: RegionRequest = RegionRequest()
    size: SizeRequest = SizeRequest()
    rotation: RotationRequest = RotationRequest()
    quality: Quality = Quality.DEFAULT
    format: OutputFormat = OutputFormat.JPG

    def canonical(self) -> str:
        """Render the selector as region/size/rotation/quality.format."""
        return "/".join(
            (
                self.region.canonical(),
                self.size.canonical(),
                self.rotation.canonical(),
                f"{self.quality.value}.{self.format.value}",
            )
        )
