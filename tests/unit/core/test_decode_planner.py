"""Tests for level selection and decode planning."""

from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from iiifserve.codec import NativeImageDescriptor
from iiifserve.core import DecodePlan, DecodePlanner, SelectedLevel, select_level
from iiifserve.errors import InvalidParametersError, UnsupportedOperationError
from iiifserve.geometry import Region, Size
from iiifserve.selector import parse_selector, resolve_geometry


def _plan(
    native: NativeImageDescriptor,
    region: str = "full",
    size: str = "max",
    rotation: str = "0",
    planner: DecodePlanner | None = None,
) -> DecodePlan:
    selector = parse_selector(region, size, rotation, "default.jpg")
    geometry = resolve_geometry(native, selector)
    return (planner or DecodePlanner()).plan(native, geometry, selector)


class TestSelectLevel:
    """Tests for select_level()."""

    def test_nearest_level(self, pyramid_native: NativeImageDescriptor) -> None:
        assert select_level(pyramid_native, 0.26) == SelectedLevel(level=2, scale_factor=0.25)

    def test_native_scale(self, pyramid_native: NativeImageDescriptor) -> None:
        assert select_level(pyramid_native, 1.0) == SelectedLevel(level=0, scale_factor=1.0)

    def test_upscale_uses_native(self, pyramid_native: NativeImageDescriptor) -> None:
        assert select_level(pyramid_native, 3.0).level == 0

    def test_tie_goes_to_finer_level(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        # 0.75 is equidistant from 1.0 and 0.5
        assert select_level(pyramid_native, 0.75).level == 0
        # 0.375 is equidistant from 0.5 and 0.25
        assert select_level(pyramid_native, 0.375).level == 1

    def test_may_pick_coarser_level(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        assert select_level(pyramid_native, 0.45).level == 1

    def test_single_level(self, rotating_native: NativeImageDescriptor) -> None:
        assert select_level(rotating_native, 0.1) == SelectedLevel(level=0, scale_factor=1.0)

    @given(target=st.floats(min_value=0.001, max_value=4.0))
    def test_selection_is_nearest(self, target: float) -> None:
        native = NativeImageDescriptor(
            decoder_name="pillow",
            width=2000,
            height=1000,
            level_dimensions=((2000, 1000), (1000, 500), (500, 250)),
        )
        selected = select_level(native, target)
        best = min(abs(target - f) for f in (1.0, 0.5, 0.25))
        assert abs(target - selected.scale_factor) == best


class TestPlanLevels:
    """Tests for level choice and region projection."""

    def test_full_request_at_native_size(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(pyramid_native)
        assert plan.level == 0
        assert plan.decode_region == Region(x=0, y=0, width=2000, height=1000)
        assert plan.target_size == Size(width=2000, height=1000)

    def test_downscaled_request_uses_coarse_level(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(pyramid_native, size="520,")
        assert plan.level == 2
        assert plan.decode_scale_factor == 0.25
        assert plan.decode_region == Region(x=0, y=0, width=500, height=250)
        assert plan.target_size == Size(width=520, height=260)

    def test_projection_rounds_up(self, pyramid_native: NativeImageDescriptor) -> None:
        plan = _plan(pyramid_native, region="101,3,201,5", size="pct:25")
        assert plan.level == 2
        assert plan.decode_region.to_tuple() == (26, 1, 51, 2)

    def test_max_decode_dimension(self, pyramid_native: NativeImageDescriptor) -> None:
        planner = DecodePlanner(max_decode_dimension=1000)
        with pytest.raises(InvalidParametersError, match="exceeds maximum") as exc_info:
            _plan(pyramid_native, planner=planner)
        assert exc_info.value.level == 0

    def test_max_decode_dimension_allows_coarser_level(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        planner = DecodePlanner(max_decode_dimension=1000)
        plan = _plan(pyramid_native, size="pct:50", planner=planner)
        assert plan.level == 1


class TestPlanScaleHint:
    """Tests for the reduced-resolution hint passed to decoders."""

    def test_downscale_within_single_level(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(rotating_native, size="150,")
        assert plan.level == 0
        assert plan.decode_scale_hint == 0.25

    def test_larger_axis_wins_when_distorting(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        assert _plan(rotating_native, size="300,100").decode_scale_hint == 0.5

    def test_decoder_rotation_uses_unrotated_size(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(rotating_native, size="300,200", rotation="90")
        assert plan.decode_scale_hint == 0.5

    def test_upscale_is_capped_at_full_resolution(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        assert _plan(rotating_native, size="1200,").decode_scale_hint == 1.0

    def test_coarse_level_needing_upsample(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(pyramid_native, size="520,")
        assert plan.level == 2
        assert plan.decode_scale_hint == 1.0

    @given(width=st.integers(min_value=1, max_value=600))
    def test_hint_keeps_enough_pixels(self, width: int) -> None:
        native = NativeImageDescriptor(
            decoder_name="jpeg",
            width=600,
            height=400,
            level_dimensions=((600, 400),),
            block_scaling=True,
        )
        plan = _plan(native, size=f"{width},")
        hint = plan.decode_scale_hint
        assert 0 < hint <= 1.0
        assert plan.decode_region.width * hint >= plan.target_size.width - 1e-9
        assert plan.decode_region.height * hint >= plan.target_size.height - 1e-9


class TestPlanRotation:
    """Tests for rotation ownership."""

    def test_non_right_angle_rejected(
        self, pyramid_native: NativeImageDescriptor
    ) -> None:
        with pytest.raises(UnsupportedOperationError, match="multiples of 90"):
            _plan(pyramid_native, rotation="45")

    def test_decoder_rotation_swaps_target_size(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(rotating_native, size="300,200", rotation="90")
        assert plan.rotation_by_decoder
        assert plan.decoder_rotation == 90
        assert plan.residual_rotation == 0
        assert plan.target_size == Size(width=200, height=300)

    def test_decoder_rotation_180_keeps_size(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(rotating_native, size="300,200", rotation="180")
        assert plan.rotation_by_decoder
        assert plan.target_size == Size(width=300, height=200)

    def test_pipeline_rotation(self, pyramid_native: NativeImageDescriptor) -> None:
        plan = _plan(pyramid_native, size="500,", rotation="270")
        assert not plan.rotation_by_decoder
        assert plan.decoder_rotation == 0
        assert plan.residual_rotation == 270
        assert plan.target_size == Size(width=500, height=250)

    def test_full_turn_is_no_rotation(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        plan = _plan(rotating_native, rotation="360")
        assert not plan.rotation_by_decoder
        assert plan.residual_rotation == 0

    def test_mirror_does_not_affect_plan(
        self, rotating_native: NativeImageDescriptor
    ) -> None:
        assert _plan(rotating_native, rotation="!90") == _plan(
            rotating_native, rotation="90"
        )
