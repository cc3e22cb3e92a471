"""Command-line interface for iiifserve."""

from iiifserve.cli.main import app

__all__ = ["app"]
