"""Error taxonomy for image requests.

Every failure a request can hit is one of four kinds. Internal layers
raise the matching exception; the public service operations hand them
back inside a Result so callers can branch on ``ErrorKind`` without
exception handling.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Terminal failure categories for a single request."""

    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    INVALID_PARAMETERS = "invalid_parameters"
    UNSUPPORTED_OPERATION = "unsupported_operation"


class ImageServiceError(Exception):
    """Base exception for all request failures."""

    kind: ClassVar[ErrorKind]

    def __init__(self, message: str, identifier: str | None = None) -> None:
        """Initialize error with optional identifier context.

        Args:
            message: Human-readable error description.
            identifier: Image identifier the request was made for.
        """
        self.message = message
        self.identifier = identifier
        super().__init__(self._format_message())

    def _context(self) -> list[str]:
        if self.identifier is not None:
            return [f"identifier={self.identifier}"]
        return []

    def _format_message(self) -> str:
        """Format error message with any available context."""
        context = self._context()
        if not context:
            return self.message
        return f"{self.message} ({', '.join(context)})"


class ResourceNotFoundError(ImageServiceError):
    """Raised when an identifier cannot be resolved or access is denied.

    Denied access deliberately uses the same error so that the response
    does not reveal whether the image exists.
    """

    kind = ErrorKind.NOT_FOUND


class UnsupportedFormatError(ImageServiceError):
    """Raised when no decoder accepts the source or no encoder fits the output."""

    kind = ErrorKind.UNSUPPORTED_FORMAT

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        *,
        format_name: str | None = None,
        pixel_format: str | None = None,
    ) -> None:
        self.format_name = format_name
        self.pixel_format = pixel_format
        super().__init__(message, identifier)

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.format_name is not None:
            parts.append(f"format={self.format_name}")
        if self.pixel_format is not None:
            parts.append(f"pixel_format={self.pixel_format}")
        return parts


class InvalidParametersError(ImageServiceError):
    """Raised for empty regions and parameters the codec rejects as invalid."""

    kind = ErrorKind.INVALID_PARAMETERS

    def __init__(
        self,
        message: str,
        identifier: str | None = None,
        *,
        region: tuple[int, int, int, int] | None = None,
        level: int | None = None,
    ) -> None:
        self.region = region
        self.level = level
        super().__init__(message, identifier)

    def _context(self) -> list[str]:
        parts = super()._context()
        if self.level is not None:
            parts.append(f"level={self.level}")
        if self.region is not None:
            parts.append(f"region={self.region}")
        return parts


class UnsupportedOperationError(ImageServiceError):
    """Raised for non-90 rotations and decode calls the codec refuses."""

    kind = ErrorKind.UNSUPPORTED_OPERATION


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a service operation: a value or one of the four errors.

    Attributes:
        value: Operation output when successful.
        error: The failure when unsuccessful.
    """

    value: T | None = None
    error: ImageServiceError | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("Result requires exactly one of value or error")

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: ImageServiceError) -> Result[T]:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        """Return True if the operation succeeded."""
        return self.error is None

    @property
    def kind(self) -> ErrorKind | None:
        """Return the error kind, or None on success."""
        return self.error.kind if self.error is not None else None

    def unwrap(self) -> T:
        """Return the value, raising the carried error on failure."""
        if self.error is not None:
            raise self.error
        assert self.value is not None
        return self.value
