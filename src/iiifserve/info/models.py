"""Capability descriptor models.

These are the in-memory form of an image's info document. Turning them
into a wire document (JSON-LD or otherwise) is up to the caller.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field

from iiifserve.geometry import Size
from iiifserve.selector.models import OutputFormat, Quality


class Feature(str, Enum):
    """Protocol features the service supports."""

    BASE_URI_REDIRECT = "baseUriRedirect"
    CORS = "cors"
    JSONLD_MEDIA_TYPE = "jsonldMediaType"
    MIRRORING = "mirroring"
    PROFILE_LINK_HEADER = "profileLinkHeader"
    REGION_BY_PCT = "regionByPct"
    REGION_BY_PX = "regionByPx"
    REGION_SQUARE = "regionSquare"
    ROTATION_BY_90S = "rotationBy90s"
    SIZE_BY_CONFINED_WH = "sizeByConfinedWh"
    SIZE_BY_H = "sizeByH"
    SIZE_BY_PCT = "sizeByPct"
    SIZE_BY_W = "sizeByW"
    SIZE_BY_WH = "sizeByWh"


class TileInfo(BaseModel, frozen=True):
    """Tile edge length and the scale factors tiles are available at."""

    width: int = Field(..., gt=0, description="Tile edge in pixels")
    scale_factors: tuple[int, ...] = Field(
        default=(), description="Downscale factors at which tiles are served"
    )


class ImageInfo(BaseModel, frozen=True):
    """Advertised capabilities of one image.

    Attributes:
        width: Native width.
        height: Native height.
        sizes: Discrete pre-computed sizes; empty for single-level sources.
        tiles: Tile descriptors; empty when tiling is not advertised.
        profile: Compliance level the features belong to.
        features: Supported protocol features.
        formats: Output containers that can be requested.
        qualities: Quality bands that can be requested.
    """

    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)
    sizes: tuple[Size, ...] = ()
    tiles: tuple[TileInfo, ...] = ()
    profile: str = "level2"
    features: frozenset[Feature] = frozenset()
    formats: tuple[OutputFormat, ...] = tuple(OutputFormat)
    qualities: tuple[Quality, ...] = tuple(Quality)

    def tile_widths(self) -> tuple[int, ...]:
        """Return the advertised tile edges."""
        return tuple(tile.width for tile in self.tiles)
