"""iiifserve CLI - inspect images and render selectors from the shell.

Exit codes follow the error kind so scripts can tell client errors from
capability mismatches.
"""

from __future__ import annotations

import json
from io import BytesIO
from pathlib import Path
from typing import Annotated

import typer

from iiifserve import __version__
from iiifserve.config import ConfigError, Settings
from iiifserve.errors import ErrorKind, ImageServiceError
from iiifserve.resources import DenyListPolicy, FileSystemResolver
from iiifserve.selector.parser import parse_selector
from iiifserve.service import ImageService
from iiifserve.utils.logging import configure_logging, get_logger

app = typer.Typer(
    name="iiifserve",
    help="iiifserve: serve regions, sizes and rotations of large images",
    add_completion=False,
)

EXIT_CODES: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: 1,
    ErrorKind.INVALID_PARAMETERS: 2,
    ErrorKind.UNSUPPORTED_FORMAT: 3,
    ErrorKind.UNSUPPORTED_OPERATION: 4,
}


def _configure_logging(verbose: int) -> None:
    """Map -v counts to log levels (default WARNING)."""
    if verbose >= 2:
        level = "DEBUG"
    elif verbose == 1:
        level = "INFO"
    else:
        level = "WARNING"
    configure_logging(level=level)


def _build_service(root: Path | None, deny: list[str] | None) -> ImageService:
    settings = Settings() if root is None else Settings(IMAGE_ROOT=root)
    try:
        image_root = settings.require_image_root()
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(EXIT_CODES[ErrorKind.NOT_FOUND]) from None
    policy = DenyListPolicy(frozenset(deny)) if deny else None
    return ImageService(
        FileSystemResolver(image_root), access_policy=policy, settings=settings
    )


def _fail(error: ImageServiceError) -> typer.Exit:
    typer.echo(f"Error: {error}", err=True)
    return typer.Exit(EXIT_CODES[error.kind])


RootOption = Annotated[
    Path | None,
    typer.Option("--root", "-r", help="Image root directory (default: IMAGE_ROOT)"),
]
DenyOption = Annotated[
    list[str] | None,
    typer.Option("--deny", help="Identifier to refuse (repeatable)"),
]
VerboseOption = Annotated[
    int,
    typer.Option("--verbose", "-v", count=True, help="Increase verbosity (-v, -vv)"),
]


@app.command()
def version(
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show version information."""
    if json_output:
        typer.echo(json.dumps({"version": __version__}))
    else:
        typer.echo(f"iiifserve {__version__}")


@app.command()
def info(
    identifier: Annotated[str, typer.Argument(help="Image identifier")],
    root: RootOption = None,
    deny: DenyOption = None,
    verbose: VerboseOption = 0,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON")] = False,
) -> None:
    """Show the capability descriptor of an image."""
    _configure_logging(verbose)
    service = _build_service(root, deny)
    image_info = service.read_info(identifier)
    if image_info.error is not None:
        raise _fail(image_info.error)
    descriptor = image_info.unwrap()

    if json_output:
        payload = descriptor.model_dump(mode="json")
        payload["features"] = sorted(payload["features"])
        typer.echo(json.dumps(payload, indent=2))
        return

    typer.echo(f"Size: {descriptor.width}x{descriptor.height}")
    if descriptor.sizes:
        sizes = ", ".join(f"{s.width}x{s.height}" for s in descriptor.sizes)
        typer.echo(f"Sizes: {sizes}")
    for tile in descriptor.tiles:
        factors = ",".join(str(f) for f in tile.scale_factors)
        typer.echo(f"Tile: {tile.width} (scale factors {factors})")
    typer.echo(f"Profile: {descriptor.profile}")


@app.command()
def render(
    identifier: Annotated[str, typer.Argument(help="Image identifier")],
    region: Annotated[str, typer.Argument(help="full | square | x,y,w,h | pct:...")],
    size: Annotated[str, typer.Argument(help="max | w, | ,h | w,h | !w,h | pct:n")],
    rotation: Annotated[str, typer.Argument(help="Degrees clockwise, ! to mirror")],
    quality_format: Annotated[
        str, typer.Argument(help="quality.format, e.g. default.jpg")
    ],
    output: Annotated[Path, typer.Option("--output", "-o", help="Output file")],
    root: RootOption = None,
    deny: DenyOption = None,
    verbose: VerboseOption = 0,
) -> None:
    """Render a selector of an image into a file."""
    _configure_logging(verbose)
    logger = get_logger(__name__)

    try:
        selector = parse_selector(region, size, rotation, quality_format)
    except ImageServiceError as e:
        raise _fail(e) from None

    service = _build_service(root, deny)
    sink = BytesIO()
    result = service.process_image(identifier, selector, sink)
    if result.error is not None:
        raise _fail(result.error)

    # Only a finished render touches the output path
    rendered = result.unwrap()
    output.write_bytes(sink.getvalue())
    logger.info("Output written", path=str(output))
    typer.echo(
        f"Wrote {rendered.size.width}x{rendered.size.height} "
        f"{rendered.media_type} ({rendered.byte_count} bytes) to {output}"
    )
