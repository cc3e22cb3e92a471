"""Bounds handling for requested and decoded rectangles."""

from __future__ import annotations

from iiifserve.geometry.primitives import Region, Size


def clip_region(region: Region, bounds: Size) -> Region | None:
    """Clip a region to the rectangle (0, 0, bounds.width, bounds.height).

    Requests that run past the image edge are tolerated: the part inside
    the image is kept. Only a region with no overlap at all yields None.

    Args:
        region: The region to clip.
        bounds: Dimensions of the image the region refers to.

    Returns:
        The overlapping part of the region, or None if there is none.

    Example:
        >>> clip_region(Region(x=900, y=900, width=200, height=200),
        ...             Size(width=1000, height=1000)).to_tuple()
        (900, 900, 100, 100)
    """
    return region.intersection(Region.full(bounds))


def clip_box(
    x: int, y: int, width: int, height: int, bounds: Size
) -> Region | None:
    """Clip an unvalidated rectangle (possibly negative or empty) to bounds.

    Returns:
        The overlapping Region, or None when the rectangle is empty or
        lies entirely outside the bounds.
    """
    left = max(0, x)
    top = max(0, y)
    right = min(bounds.width, x + width)
    bottom = min(bounds.height, y + height)
    if right <= left or bottom <= top:
        return None
    return Region(x=left, y=top, width=right - left, height=bottom - top)
