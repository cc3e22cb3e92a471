"""Unit tests for the error taxonomy and Result type."""

from __future__ import annotations

import pytest

from iiifserve.errors import (
    ErrorKind,
    ImageServiceError,
    InvalidParametersError,
    ResourceNotFoundError,
    Result,
    UnsupportedFormatError,
    UnsupportedOperationError,
)


class TestErrorKinds:
    """Each error class maps to exactly one kind."""

    @pytest.mark.parametrize(
        ("error_cls", "kind"),
        [
            (ResourceNotFoundError, ErrorKind.NOT_FOUND),
            (UnsupportedFormatError, ErrorKind.UNSUPPORTED_FORMAT),
            (InvalidParametersError, ErrorKind.INVALID_PARAMETERS),
            (UnsupportedOperationError, ErrorKind.UNSUPPORTED_OPERATION),
        ],
    )
    def test_kind(self, error_cls: type[ImageServiceError], kind: ErrorKind) -> None:
        error = error_cls("boom")
        assert error.kind is kind
        assert isinstance(error, ImageServiceError)
        assert isinstance(error, Exception)


class TestErrorMessages:
    """Tests for context formatting."""

    def test_message_only(self) -> None:
        error = ResourceNotFoundError("Image not found")
        assert str(error) == "Image not found"
        assert error.message == "Image not found"
        assert error.identifier is None

    def test_identifier_context(self) -> None:
        error = ResourceNotFoundError("Image not found", identifier="page-001")
        assert str(error) == "Image not found (identifier=page-001)"

    def test_unsupported_format_context(self) -> None:
        error = UnsupportedFormatError(
            "Output format cannot store the pixel format",
            format_name="jpg",
            pixel_format="RGBA",
        )
        assert "format=jpg" in str(error)
        assert "pixel_format=RGBA" in str(error)

    def test_invalid_parameters_context(self) -> None:
        error = InvalidParametersError(
            "Decode region lies outside the level",
            identifier="slide",
            region=(10, 20, 30, 40),
            level=2,
        )
        error_str = str(error)
        assert "identifier=slide" in error_str
        assert "level=2" in error_str
        assert "region=(10, 20, 30, 40)" in error_str
        assert error.level == 2
        assert error.region == (10, 20, 30, 40)


class TestResult:
    """Tests for Result."""

    def test_success(self) -> None:
        result = Result.success(42)
        assert result.ok
        assert result.kind is None
        assert result.unwrap() == 42

    def test_failure(self) -> None:
        error = UnsupportedOperationError("rotation")
        result: Result[int] = Result.failure(error)
        assert not result.ok
        assert result.kind is ErrorKind.UNSUPPORTED_OPERATION
        assert result.error is error

    def test_unwrap_failure_raises_carried_error(self) -> None:
        error = InvalidParametersError("empty region")
        result: Result[int] = Result.failure(error)
        with pytest.raises(InvalidParametersError, match="empty region"):
            result.unwrap()

    def test_requires_exactly_one_of_value_or_error(self) -> None:
        with pytest.raises(ValueError):
            Result()
        with pytest.raises(ValueError):
            Result(value=1, error=InvalidParametersError("x"))

    def test_is_immutable(self) -> None:
        result = Result.success("x")
        with pytest.raises(AttributeError):
            result.value = "y"  # type: ignore[misc]
