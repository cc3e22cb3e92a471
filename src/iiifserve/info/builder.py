"""Capability descriptor construction.

Tile policy:
    - Natively tiled sources advertise their own tile width and the
      scale factors derived from per-level tile widths.
    - Sources decoded by a block-scaling codec (JPEG) advertise synthetic
      512 and 1024 tiles at scale factors 1, 2, 4, 8, 16. These values
      are a practical approximation of the codec's MCU-aligned scaling
      steps, not something derived from the image. A tier is only
      offered when the image is at least that large on both axes.
    - Everything else advertises no tiles.
"""

from __future__ import annotations

from iiifserve.codec.types import NativeImageDescriptor
from iiifserve.geometry import Size
from iiifserve.info.models import Feature, ImageInfo, TileInfo

SUPPORTED_FEATURES: frozenset[Feature] = frozenset(
    {
        Feature.BASE_URI_REDIRECT,
        Feature.CORS,
        Feature.JSONLD_MEDIA_TYPE,
        Feature.MIRRORING,
        Feature.PROFILE_LINK_HEADER,
        Feature.REGION_BY_PCT,
        Feature.REGION_BY_PX,
        Feature.REGION_SQUARE,
        Feature.ROTATION_BY_90S,
        Feature.SIZE_BY_CONFINED_WH,
        Feature.SIZE_BY_H,
        Feature.SIZE_BY_PCT,
        Feature.SIZE_BY_W,
        Feature.SIZE_BY_WH,
    }
)

COMPLIANCE_PROFILE = "level2"

# Synthetic tiling for block-scaling codecs
SYNTHETIC_TILE_WIDTHS: tuple[int, ...] = (512, 1024)
SYNTHETIC_SCALE_FACTORS: tuple[int, ...] = (1, 2, 4, 8, 16)


def _tiles_for(native: NativeImageDescriptor) -> tuple[TileInfo, ...]:
    if native.natively_tiled and native.tile_width:
        return (
            TileInfo(width=native.tile_width, scale_factors=native.tile_scale_factors),
        )
    if native.block_scaling:
        return tuple(
            TileInfo(width=edge, scale_factors=SYNTHETIC_SCALE_FACTORS)
            for edge in SYNTHETIC_TILE_WIDTHS
            if native.width >= edge and native.height >= edge
        )
    return ()


def build_image_info(native: NativeImageDescriptor) -> ImageInfo:
    """Build the capability descriptor for an opened image.

    Args:
        native: Descriptor of the opened source.

    Returns:
        ImageInfo with the static feature set, native size, discrete
        sizes (only when more than one level exists) and tiles.
    """
    sizes: tuple[Size, ...] = ()
    if native.level_count > 1:
        sizes = tuple(Size.from_tuple(dims) for dims in native.level_dimensions)

    return ImageInfo(
        width=native.width,
        height=native.height,
        sizes=sizes,
        tiles=_tiles_for(native),
        profile=COMPLIANCE_PROFILE,
        features=SUPPORTED_FEATURES,
    )
