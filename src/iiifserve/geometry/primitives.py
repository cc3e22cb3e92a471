"""Geometry primitives for image requests.

Immutable Pydantic models for sizes and rectangles in pixel coordinates.
(0, 0) is the top-left corner; x grows rightward and y downward. Unless
stated otherwise a Region is expressed in native (level 0) pixels.
"""

from __future__ import annotations

from typing import Self

from pydantic import BaseModel, Field


class Size(BaseModel, frozen=True):
    """Width and height in pixels, both strictly positive."""

    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")

    @property
    def area(self) -> int:
        """Calculate the area in square pixels."""
        return self.width * self.height

    def swapped(self) -> Size:
        """Return the size with width and height exchanged."""
        return Size(width=self.height, height=self.width)

    def to_tuple(self) -> tuple[int, int]:
        """Convert to (width, height) tuple."""
        return (self.width, self.height)

    @classmethod
    def from_tuple(cls, size: tuple[int, int]) -> Self:
        """Create Size from (width, height) tuple."""
        return cls(width=size[0], height=size[1])


class Region(BaseModel, frozen=True):
    """A rectangle defined by its top-left corner and extent.

    The right and bottom edges are exclusive, so a Region of width 10
    starting at x=0 covers columns 0..9.

    Attributes:
        x: Left edge X coordinate (>= 0).
        y: Top edge Y coordinate (>= 0).
        width: Horizontal extent in pixels (> 0).
        height: Vertical extent in pixels (> 0).
    """

    x: int = Field(..., ge=0, description="Left edge X coordinate")
    y: int = Field(..., ge=0, description="Top edge Y coordinate")
    width: int = Field(..., gt=0, description="Width in pixels")
    height: int = Field(..., gt=0, description="Height in pixels")

    @property
    def area(self) -> int:
        """Calculate the area in square pixels."""
        return self.width * self.height

    @property
    def right(self) -> int:
        """Return the X coordinate of the right edge (exclusive)."""
        return self.x + self.width

    @property
    def bottom(self) -> int:
        """Return the Y coordinate of the bottom edge (exclusive)."""
        return self.y + self.height

    @property
    def size(self) -> Size:
        """Return the dimensions as a Size."""
        return Size(width=self.width, height=self.height)

    def to_tuple(self) -> tuple[int, int, int, int]:
        """Convert to (x, y, width, height) tuple."""
        return (self.x, self.y, self.width, self.height)

    def to_box(self) -> tuple[int, int, int, int]:
        """Convert to a (left, upper, right, lower) box as Pillow expects."""
        return (self.x, self.y, self.right, self.bottom)

    @classmethod
    def from_tuple(cls, bbox: tuple[int, int, int, int]) -> Self:
        """Create Region from (x, y, width, height) tuple."""
        return cls(x=bbox[0], y=bbox[1], width=bbox[2], height=bbox[3])

    @classmethod
    def full(cls, size: Size) -> Self:
        """Create the Region covering an entire image of the given size."""
        return cls(x=0, y=0, width=size.width, height=size.height)

    def intersects(self, other: Region) -> bool:
        """Check if this region overlaps with another.

        Args:
            other: Another Region to check intersection with.

        Returns:
            True if the regions have any overlap.
        """
        return not (
            other.x >= self.right
            or other.right <= self.x
            or other.y >= self.bottom
            or other.bottom <= self.y
        )

    def intersection(self, other: Region) -> Region | None:
        """Compute the intersection of two regions.

        Args:
            other: Another Region to intersect with.

        Returns:
            Region representing the overlap, or None if no intersection.
        """
        if not self.intersects(other):
            return None

        new_x = max(self.x, other.x)
        new_y = max(self.y, other.y)
        new_right = min(self.right, other.right)
        new_bottom = min(self.bottom, other.bottom)

        return Region(
            x=new_x,
            y=new_y,
            width=new_right - new_x,
            height=new_bottom - new_y,
        )
