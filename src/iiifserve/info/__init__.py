"""Capability descriptors (image info) for iiifserve."""

from iiifserve.info.builder import (
    COMPLIANCE_PROFILE,
    SUPPORTED_FEATURES,
    SYNTHETIC_SCALE_FACTORS,
    SYNTHETIC_TILE_WIDTHS,
    build_image_info,
)
from iiifserve.info.models import Feature, ImageInfo, TileInfo

__all__ = [
    "COMPLIANCE_PROFILE",
    "SUPPORTED_FEATURES",
    "SYNTHETIC_SCALE_FACTORS",
    "SYNTHETIC_TILE_WIDTHS",
    "Feature",
    "ImageInfo",
    "TileInfo",
    "build_image_info",
]
