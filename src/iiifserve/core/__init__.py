"""Core algorithms for iiifserve.

Public API:
    - DecodePlanner: chooses the decode level, region and rotation handling.
    - DecodePlan: frozen result of planning.
    - select_level: nearest-scale-factor level search.
    - TransformPipeline: scale / rotate / mirror / quality stages.
"""

from iiifserve.core.planner import (
    DecodePlan,
    DecodePlanner,
    DecodePlannerProtocol,
    SelectedLevel,
    select_level,
)
from iiifserve.core.transform import TransformPipeline, target_pixel_format

__all__ = [
    "DecodePlan",
    "DecodePlanner",
    "DecodePlannerProtocol",
    "SelectedLevel",
    "TransformPipeline",
    "select_level",
    "target_pixel_format",
]
