"""Geometry module for iiifserve.

Coordinate primitives, native <-> level projections and bounds clipping.

Example:
    from iiifserve.geometry import Region, Size, clip_region, project_region

    region = Region(x=1000, y=2000, width=500, height=500)
    clipped = clip_region(region, Size(width=4000, height=3000))
    at_half = project_region(clipped, 0.5)
"""

from iiifserve.geometry.primitives import Region, Size
from iiifserve.geometry.transforms import (
    level_to_level0,
    project_region,
    scale_factor,
)
from iiifserve.geometry.validators import clip_box, clip_region

__all__ = [
    "Region",
    "Size",
    "clip_box",
    "clip_region",
    "level_to_level0",
    "project_region",
    "scale_factor",
]
