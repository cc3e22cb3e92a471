"""Image selectors: models, wire-format parsing and geometry resolution.

Example:
    from iiifserve.selector import parse_selector, resolve_geometry

    selector = parse_selector("square", "!512,512", "90", "default.jpg")
    geometry = resolve_geometry(native, selector)
"""

from iiifserve.selector.models import (
    ImageSelector,
    OutputFormat,
    Quality,
    RegionKind,
    RegionRequest,
    RotationRequest,
    SizeKind,
    SizeRequest,
)
from iiifserve.selector.parser import (
    parse_quality_format,
    parse_region,
    parse_rotation,
    parse_selector,
    parse_size,
)
from iiifserve.selector.resolver import (
    ResolvedGeometry,
    resolve_geometry,
    resolve_region,
    resolve_size,
)

__all__ = [
    "ImageSelector",
    "OutputFormat",
    "Quality",
    "RegionKind",
    "RegionRequest",
    "ResolvedGeometry",
    "RotationRequest",
    "SizeKind",
    "SizeRequest",
    "parse_quality_format",
    "parse_region",
    "parse_rotation",
    "parse_selector",
    "parse_size",
    "resolve_geometry",
    "resolve_region",
    "resolve_size",
]
