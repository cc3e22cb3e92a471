"""Selector resolution: from an abstract selector to absolute pixels.

Resolution is pure geometry on the native dimensions. It knows nothing
about decode levels, so the same native size and selector always yield
the same ResolvedGeometry.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING

from iiifserve.errors import InvalidParametersError
from iiifserve.geometry import Region, Size, clip_box
from iiifserve.selector.models import (
    ImageSelector,
    RegionKind,
    RegionRequest,
    SizeKind,
    SizeRequest,
)

if TYPE_CHECKING:
    from iiifserve.codec.types import NativeImageDescriptor


@dataclass(frozen=True)
class ResolvedGeometry:
    """Absolute request geometry in native coordinates.

    Attributes:
        target_region: Requested rectangle, clamped to the native bounds.
        target_size: Output dimensions before rotation.
    """

    target_region: Region
    target_size: Size

    @property
    def target_scale_factor(self) -> float:
        """Return output width per native region width."""
        return self.target_size.width / self.target_region.width


def resolve_region(request: RegionRequest, native: Size) -> Region:
    """Resolve a region request against the native size.

    Rectangles that extend past the image are clamped to it. Percentage
    origins are rounded down and percentage extents rounded up before
    clamping.

    Raises:
        InvalidParametersError: If nothing of the rectangle lies inside
            the image.
    """
    if request.kind is RegionKind.FULL:
        return Region.full(native)

    if request.kind is RegionKind.SQUARE:
        side = min(native.width, native.height)
        return Region(
            x=(native.width - side) // 2,
            y=(native.height - side) // 2,
            width=side,
            height=side,
        )

    if request.kind is RegionKind.PERCENT:
        x = math.floor(request.x * native.width / 100)
        y = math.floor(request.y * native.height / 100)
        width = math.ceil(request.width * native.width / 100)
        height = math.ceil(request.height * native.height / 100)
    else:
        x, y = int(request.x), int(request.y)
        width, height = int(request.width), int(request.height)

    clipped = clip_box(x, y, width, height, native)
    if clipped is None:
        raise InvalidParametersError(
            "Requested region does not overlap the image",
            region=(x, y, width, height),
        )
    return clipped


def resolve_size(request: SizeRequest, cropped: Size) -> Size:
    """Reduce a size request to absolute output dimensions.

    All computations are relative to the cropped region, never to the
    native image. Each edge is rounded to the nearest pixel, minimum 1.
    """
    width, height = cropped.width, cropped.height

    if request.kind is SizeKind.MAX:
        return cropped
    if request.kind is SizeKind.EXACT:
        assert request.width is not None and request.height is not None
        return Size(width=request.width, height=request.height)
    if request.kind is SizeKind.WIDTH:
        assert request.width is not None
        out_w = request.width
        out_h = height * request.width / width
    elif request.kind is SizeKind.HEIGHT:
        assert request.height is not None
        out_w = width * request.height / height
        out_h = request.height
    elif request.kind is SizeKind.PERCENT:
        assert request.percentage is not None
        out_w = width * request.percentage / 100
        out_h = height * request.percentage / 100
    else:
        assert request.width is not None and request.height is not None
        scale = min(request.width / width, request.height / height)
        out_w = width * scale
        out_h = height * scale

    return Size(width=max(1, round(out_w)), height=max(1, round(out_h)))


def resolve_geometry(
    native: NativeImageDescriptor,
    selector: ImageSelector,
) -> ResolvedGeometry:
    """Resolve a selector against an image's native dimensions.

    Args:
        native: Descriptor of the opened source image.
        selector: Parsed client request.

    Returns:
        ResolvedGeometry with the clamped target region and output size.

    Raises:
        InvalidParametersError: If the region has no overlap with the image.
    """
    region = resolve_region(selector.region, native.size)
    size = resolve_size(selector.size, region.size)
    return ResolvedGeometry(target_region=region, target_size=size)
