"""Resource resolution and access control collaborators.

The image pipeline only ever sees an ImageSource. Where the bytes live is
the resolver's business; whether a caller may see them is the access
policy's. Both are narrow protocols so deployments can plug in their own.
"""

from __future__ import annotations

import glob
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Protocol

from iiifserve.errors import ResourceNotFoundError

# Source file extensions the filesystem resolver will match (case-insensitive)
SOURCE_EXTENSIONS: frozenset[str] = frozenset(
    {
        ".jpg",
        ".jpeg",
        ".png",
        ".tif",
        ".tiff",
        ".gif",
        ".webp",
        ".bmp",
        ".jp2",
        ".svs",  # Aperio
        ".ndpi",  # Hamamatsu
        ".mrxs",  # 3DHISTECH MIRAX
        ".scn",  # Leica SCN
        ".bif",  # Ventana BIF
        ".vms",  # Hamamatsu VMS
        ".svslide",  # Aperio SVS (alternate)
    }
)


@dataclass(frozen=True)
class ImageSource:
    """A resolved source image.

    Attributes:
        identifier: The identifier the client asked for.
        path: Local file holding the image bytes.
    """

    identifier: str
    path: Path

    def open(self) -> BinaryIO:
        """Open the source as a binary stream.

        Raises:
            ResourceNotFoundError: If the file cannot be opened.
        """
        try:
            return self.path.open("rb")
        except OSError as e:
            raise ResourceNotFoundError(
                "Image source unreadable", identifier=self.identifier
            ) from e


class ResourceResolver(Protocol):
    """Maps identifiers to image sources."""

    def resolve(self, identifier: str) -> ImageSource:
        """Resolve an identifier.

        Raises:
            ResourceNotFoundError: If the identifier is unknown.
        """
        ...


class AccessPolicy(Protocol):
    """Decides whether an identifier may be served."""

    def is_allowed(self, identifier: str) -> bool:
        """Return True if the identifier may be served."""
        ...


@dataclass(frozen=True)
class DenyListPolicy:
    """Access policy refusing a fixed set of identifiers."""

    denied: frozenset[str] = field(default_factory=frozenset)

    def is_allowed(self, identifier: str) -> bool:
        return identifier not in self.denied


@dataclass(frozen=True)
class FileSystemResolver:
    """Resolve identifiers to files under a root directory.

    Tries, in order:
    1. root / identifier
    2. root / identifier.<ext> for exactly one supported extension
    """

    root: Path

    @staticmethod
    def _validate_identifier(identifier: str) -> Path:
        rel = Path(identifier)
        if (
            not identifier
            or rel.is_absolute()
            or rel.drive
            or ".." in rel.parts
        ):
            raise ResourceNotFoundError("Invalid identifier", identifier=identifier)
        return rel

    def _try_resolve_extensionless(self, rel: Path) -> Path | None:
        parent = (self.root / rel).parent
        if not parent.is_dir():
            return None

        pattern = f"{glob.escape(rel.name)}.*"
        matches = sorted(
            p
            for p in parent.glob(pattern)
            if p.is_file() and p.suffix.lower() in SOURCE_EXTENSIONS
        )
        if len(matches) == 1:
            return matches[0]
        if len(matches) > 1:
            raise ResourceNotFoundError(
                f"Identifier is ambiguous: {len(matches)} candidate files",
                identifier=str(rel),
            )
        return None

    def resolve(self, identifier: str) -> ImageSource:
        """Resolve an identifier under the root directory.

        Raises:
            ResourceNotFoundError: If no file matches, several files match,
                or the identifier tries to leave the root.
        """
        rel = self._validate_identifier(identifier)

        direct_path = self.root / rel
        if direct_path.is_file():
            return ImageSource(identifier=identifier, path=direct_path)

        resolved = self._try_resolve_extensionless(rel)
        if resolved is not None:
            return ImageSource(identifier=identifier, path=resolved)

        raise ResourceNotFoundError("Image not found", identifier=identifier)
