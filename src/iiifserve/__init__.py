"""iiifserve: region/size/rotation delivery for large source images.

Clients ask for a region of an image at a size, rotation, quality and
format; iiifserve decodes as few pixels as the source allows and returns
exactly what was asked for.
"""

from iiifserve.errors import (
    ErrorKind,
    ImageServiceError,
    InvalidParametersError,
    ResourceNotFoundError,
    Result,
    UnsupportedFormatError,
    UnsupportedOperationError,
)
from iiifserve.resources import DenyListPolicy, FileSystemResolver, ImageSource
from iiifserve.selector import ImageSelector, parse_selector
from iiifserve.service import ImageService, RenderedImage

__version__ = "0.1.0"

__all__ = [
    "DenyListPolicy",
    "ErrorKind",
    "FileSystemResolver",
    "ImageSelector",
    "ImageService",
    "ImageServiceError",
    "ImageSource",
    "InvalidParametersError",
    "RenderedImage",
    "ResourceNotFoundError",
    "Result",
    "UnsupportedFormatError",
    "UnsupportedOperationError",
    "__version__",
    "parse_selector",
]
