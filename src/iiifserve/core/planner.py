"""Decode planning: which level to decode, where, and who rotates.

The planner picks the pre-computed level whose scale factor is nearest
to the scale the request needs, projects the target region into that
level's coordinates, and decides whether the decoder or the transform
pipeline performs the rotation.

Algorithm:
    1. target_scale = target width / target region width.
    2. Scan levels from 0; keep the level whose scale factor
       (level width / native width) is strictly closer to target_scale
       than the best so far. The initial best is level 0 at 1.0, so ties
       resolve to the finer level.
    3. decode_region = ceil(target_region * level scale), per component.
    4. decode_scale_hint = target size / decode_region size on the
       larger axis, capped at 1.0. Decoders that reduce cheaply while
       decoding (JPEG) use it to skip pixels the pipeline would discard.

This is a nearest match, not an upscale-safe search: the chosen level
may be coarser than requested and the transform pipeline then upsamples.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import NamedTuple, Protocol

from iiifserve.codec.types import NativeImageDescriptor
from iiifserve.errors import InvalidParametersError, UnsupportedOperationError
from iiifserve.geometry import Region, Size, project_region
from iiifserve.selector.models import ImageSelector
from iiifserve.selector.resolver import ResolvedGeometry
from iiifserve.utils.logging import get_logger

logger = get_logger(__name__)


class SelectedLevel(NamedTuple):
    """Result of level selection.

    Attributes:
        level: Level index (0 = native resolution).
        scale_factor: Level width relative to native width (1.0 for level 0).
    """

    level: int
    scale_factor: float


@dataclass(frozen=True)
class DecodePlan:
    """Everything needed to decode and finish one request.

    Attributes:
        level: Level to decode.
        decode_region: Target region in the level's coordinates.
        decode_scale_factor: The level's scale factor.
        decode_scale_hint: Fraction of the decode region's resolution
            the output needs (1.0 = full resolution).
        rotation_by_decoder: The decoder rotates while decoding.
        decoder_rotation: Rotation hint passed to the decoder (0 if none).
        residual_rotation: Rotation left for the transform pipeline.
        target_size: Output size the pipeline scales to; swapped for a
            90/270 rotation done by the decoder.
    """

    level: int
    decode_region: Region
    decode_scale_factor: float
    decode_scale_hint: float
    rotation_by_decoder: bool
    decoder_rotation: int
    residual_rotation: int
    target_size: Size


class DecodePlannerProtocol(Protocol):
    """Protocol for decode planners (allows alternative strategies in tests)."""

    def plan(
        self,
        native: NativeImageDescriptor,
        geometry: ResolvedGeometry,
        selector: ImageSelector,
    ) -> DecodePlan: ...


def select_level(native: NativeImageDescriptor, target_scale: float) -> SelectedLevel:
    """Find the level whose scale factor is nearest to target_scale.

    Args:
        native: Descriptor listing the available levels.
        target_scale: Output pixels per native pixel.

    Returns:
        SelectedLevel with the chosen index and its scale factor.
    """
    best_level = 0
    best_factor = 1.0
    for level in range(native.level_count):
        factor = native.level_scale_factor(level)
        if abs(target_scale - factor) < abs(target_scale - best_factor):
            best_factor = factor
            best_level = level
    return SelectedLevel(level=best_level, scale_factor=best_factor)


def decode_scale_hint(decode_region: Region, target_size: Size) -> float:
    """Return how much of the decode region's resolution the output needs."""
    if decode_region.width <= 0 or decode_region.height <= 0:
        return 1.0
    scale = max(
        target_size.width / decode_region.width,
        target_size.height / decode_region.height,
    )
    return min(1.0, scale)


class DecodePlanner:
    """Turns resolved request geometry into a DecodePlan.

    Example:
        >>> planner = DecodePlanner()
        >>> plan = planner.plan(native, resolve_geometry(native, selector), selector)
        >>> decoder.decode(
        ...     plan.level,
        ...     plan.decode_region,
        ...     plan.decoder_rotation,
        ...     plan.decode_scale_hint,
        ... )
    """

    __slots__ = ("_max_decode_dimension",)

    def __init__(self, max_decode_dimension: int = 0) -> None:
        """Initialize the planner.

        Args:
            max_decode_dimension: Largest allowed edge of a decode region
                in pixels. 0 (or negative) disables the check.
        """
        self._max_decode_dimension = max_decode_dimension

    def plan(
        self,
        native: NativeImageDescriptor,
        geometry: ResolvedGeometry,
        selector: ImageSelector,
    ) -> DecodePlan:
        """Plan the decode for a request.

        Raises:
            UnsupportedOperationError: If the rotation is not a multiple
                of 90 degrees. Checked before any decode work.
            InvalidParametersError: If the decode region exceeds the
                configured maximum dimension.
        """
        rotation_request = selector.rotation
        if not rotation_request.is_right_angle:
            raise UnsupportedOperationError(
                "Can only rotate by multiples of 90 degrees, "
                f"got {rotation_request.degrees}"
            )
        rotation = rotation_request.normalized

        selected = select_level(native, geometry.target_scale_factor)
        decode_region = project_region(geometry.target_region, selected.scale_factor)
        self._check_decode_dimension(decode_region, selected.level)

        target_size = geometry.target_size
        by_decoder = rotation != 0 and native.decode_time_rotation
        if by_decoder:
            if rotation in (90, 270):
                target_size = target_size.swapped()
            residual = 0
        else:
            residual = rotation

        plan = DecodePlan(
            level=selected.level,
            decode_region=decode_region,
            decode_scale_factor=selected.scale_factor,
            decode_scale_hint=decode_scale_hint(decode_region, geometry.target_size),
            rotation_by_decoder=by_decoder,
            decoder_rotation=rotation if by_decoder else 0,
            residual_rotation=residual,
            target_size=target_size,
        )
        logger.debug(
            "Decode planned",
            level=plan.level,
            decode_region=plan.decode_region.to_tuple(),
            scale_factor=plan.decode_scale_factor,
            scale_hint=plan.decode_scale_hint,
            rotation_by_decoder=plan.rotation_by_decoder,
            residual_rotation=plan.residual_rotation,
        )
        return plan

    def _check_decode_dimension(self, region: Region, level: int) -> None:
        limit = self._max_decode_dimension
        if limit > 0 and max(region.width, region.height) > limit:
            raise InvalidParametersError(
                f"Decode region {region.width}x{region.height} exceeds maximum "
                f"dimension {limit}px",
                region=region.to_tuple(),
                level=level,
            )
