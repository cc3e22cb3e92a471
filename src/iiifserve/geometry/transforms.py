"""Coordinate conversions between native and decode resolution.

Request coordinates are always native (level 0). A decoder addresses
pixels in the coordinate space of the level it decodes, which is the
native space multiplied by the level's scale factor
(level width / native width).

Transform Direction Conventions:
    - project_region: native -> level, multiply by scale factor, ceil
    - level_to_level0: level -> native, divide by scale factor
"""

from __future__ import annotations

import math

from iiifserve.geometry.primitives import Region, Size


def scale_factor(level_size: Size, native_size: Size) -> float:
    """Return the width ratio of a level to the native image."""
    return level_size.width / native_size.width


def project_region(region: Region, factor: float) -> Region:
    """Project a native region into a level's coordinate space.

    Each component is scaled and rounded up independently, so the result
    can be up to one pixel larger per edge than the exact projection.
    Rounding up never clips content the caller asked for.

    Args:
        region: Region in native coordinates.
        factor: Scale factor of the target level (<= 1.0 for a pyramid).

    Returns:
        Region in the target level's coordinates.

    Raises:
        ValueError: If factor is not positive.
    """
    if factor <= 0:
        raise ValueError(f"scale factor must be positive, got {factor}")
    return Region(
        x=math.ceil(region.x * factor),
        y=math.ceil(region.y * factor),
        width=math.ceil(region.width * factor),
        height=math.ceil(region.height * factor),
    )


def level_to_level0(
    coord: tuple[int, int],
    factor: float,
) -> tuple[int, int]:
    """Transform level coordinates back to native coordinates.

    Args:
        coord: (x, y) coordinates in a level's space.
        factor: Scale factor of that level.

    Returns:
        (x, y) coordinates in native space.
    """
    x, y = coord
    return (int(x / factor), int(y / factor))

