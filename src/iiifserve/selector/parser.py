"""Parser for the selector wire format.

Requests arrive as four path segments::

    {region}/{size}/{rotation}/{quality}.{format}

    region   full | square | x,y,w,h | pct:x,y,w,h
    size     max | full | w, | ,h | w,h | pct:n | !w,h
    rotation n | !n        (degrees clockwise, ! = mirror first)
    quality  default | color | gray | bitonal

Anything malformed fails with InvalidParametersError. An unknown output
format fails with UnsupportedFormatError since the request itself is
well-formed. Whether the rotation is a multiple of 90 degrees is checked
later by the decode planner.
"""

from __future__ import annotations

import math

from pydantic import ValidationError

from iiifserve.errors import InvalidParametersError, UnsupportedFormatError
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

_PERCENT_PREFIX = "pct:"


def _parse_number(token: str, what: str) -> float:
    try:
        value = float(token)
    except ValueError:
        raise InvalidParametersError(f"Invalid {what}: {token!r}") from None
    if not math.isfinite(value) or value < 0:
        raise InvalidParametersError(f"Invalid {what}: {token!r}")
    return value


def _parse_int(token: str, what: str) -> int:
    if not token.isdigit():
        raise InvalidParametersError(f"Invalid {what}: {token!r}")
    value = int(token)
    if value <= 0:
        raise InvalidParametersError(f"{what.capitalize()} must be positive")
    return value


def parse_region(token: str) -> RegionRequest:
    """Parse the region segment.

    Raises:
        InvalidParametersError: If the segment is malformed or has an
            empty extent.
    """
    if token == "full":
        return RegionRequest(kind=RegionKind.FULL)
    if token == "square":
        return RegionRequest(kind=RegionKind.SQUARE)

    kind = RegionKind.ABSOLUTE
    body = token
    if token.startswith(_PERCENT_PREFIX):
        kind = RegionKind.PERCENT
        body = token[len(_PERCENT_PREFIX) :]

    parts = body.split(",")
    if len(parts) != 4:
        raise InvalidParametersError(f"Invalid region: {token!r}")
    if kind is RegionKind.ABSOLUTE:
        x, y, w, h = (float(_parse_int_or_zero(p)) for p in parts)
    else:
        x, y, w, h = (_parse_number(p, "region") for p in parts)

    try:
        return RegionRequest(kind=kind, x=x, y=y, width=w, height=h)
    except ValidationError as e:
        raise InvalidParametersError(f"Invalid region: {token!r}") from e


def _parse_int_or_zero(token: str) -> int:
    if not token.isdigit():
        raise InvalidParametersError(f"Invalid region coordinate: {token!r}")
    return int(token)


def parse_size(token: str) -> SizeRequest:
    """Parse the size segment.

    Raises:
        InvalidParametersError: If the segment is malformed.
    """
    if token in ("max", "full"):
        return SizeRequest(kind=SizeKind.MAX)

    if token.startswith(_PERCENT_PREFIX):
        percentage = _parse_number(token[len(_PERCENT_PREFIX) :], "size percentage")
        if percentage <= 0 or percentage > 100:
            raise InvalidParametersError(
                f"Size percentage must be in (0, 100], got {token!r}"
            )
        return SizeRequest(kind=SizeKind.PERCENT, percentage=percentage)

    best_fit = token.startswith("!")
    body = token[1:] if best_fit else token
    parts = body.split(",")
    if len(parts) != 2:
        raise InvalidParametersError(f"Invalid size: {token!r}")
    width_token, height_token = parts

    if best_fit:
        if not width_token or not height_token:
            raise InvalidParametersError(f"Invalid size: {token!r}")
        return SizeRequest(
            kind=SizeKind.BEST_FIT,
            width=_parse_int(width_token, "width"),
            height=_parse_int(height_token, "height"),
        )
    if width_token and height_token:
        return SizeRequest(
            kind=SizeKind.EXACT,
            width=_parse_int(width_token, "width"),
            height=_parse_int(height_token, "height"),
        )
    if width_token:
        return SizeRequest(kind=SizeKind.WIDTH, width=_parse_int(width_token, "width"))
    if height_token:
        return SizeRequest(
            kind=SizeKind.HEIGHT, height=_parse_int(height_token, "height")
        )
    raise InvalidParametersError(f"Invalid size: {token!r}")


def parse_rotation(token: str) -> RotationRequest:
    """Parse the rotation segment.

    Raises:
        InvalidParametersError: If the value is not a number in [0, 360].
    """
    mirror = token.startswith("!")
    degrees = _parse_number(token[1:] if mirror else token, "rotation")
    if degrees > 360:
        raise InvalidParametersError(f"Rotation must be in [0, 360], got {token!r}")
    return RotationRequest(degrees=degrees, mirror=mirror)


def parse_quality_format(token: str) -> tuple[Quality, OutputFormat]:
    """Parse the ``quality.format`` segment.

    Raises:
        InvalidParametersError: If the segment has no format or an
            unknown quality.
        UnsupportedFormatError: If the output format is unknown.
    """
    quality_token, dot, format_token = token.rpartition(".")
    if not dot or not quality_token or not format_token:
        raise InvalidParametersError(f"Invalid quality/format: {token!r}")
    try:
        quality = Quality(quality_token)
    except ValueError:
        raise InvalidParametersError(f"Unknown quality: {quality_token!r}") from None
    try:
        output_format = OutputFormat(format_token.lower())
    except ValueError:
        raise UnsupportedFormatError(
            "Unknown output format", format_name=format_token
        ) from None
    return quality, output_format


def parse_selector(
    region: str,
    size: str,
    rotation: str,
    quality_format: str,
) -> ImageSelector:
    """Parse the four selector segments into an ImageSelector.

    Example:
        >>> parse_selector("pct:10,10,50,50", "!400,300", "!90", "gray.png").canonical()
        'pct:10,10,50,50/!400,300/!90/gray.png'
    """
    quality, output_format = parse_quality_format(quality_format)
    return ImageSelector(
        region=parse_region(region),
        size=parse_size(size),
        rotation=parse_rotation(rotation),
        quality=quality,
        format=output_format,
    )
