"""Fixtures for whole-slide integration tests.

These tests need a real slide file and are skipped when none is available.
Point SLIDE_TEST_FILE at a local slide, or drop one into ./data/. The
CMU-1-Small-Region.svs file (~10MB) is small enough for CI:
    https://openslide.cs.cmu.edu/download/openslide-testdata/Aperio/CMU-1-Small-Region.svs
"""

from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

pytestmark = pytest.mark.integration

_SLIDE_SUFFIXES = {".svs", ".ndpi", ".tiff", ".tif", ".mrxs", ".scn"}


def get_test_slide_path() -> Path | None:
    """Return a local slide file, or None if there is none."""
    env_path = os.environ.get("SLIDE_TEST_FILE")
    if env_path:
        path = Path(env_path)
        if path.is_file() and path.suffix.lower() in _SLIDE_SUFFIXES:
            return path

    test_data_dir = Path(__file__).parent / "data"
    if test_data_dir.exists():
        for svs_file in sorted(test_data_dir.glob("*.svs")):
            return svs_file

    return None


@pytest.fixture(scope="session")
def slide_test_file() -> Generator[Path, None, None]:
    """Provide a real slide file, skipping the test if unavailable."""
    path = get_test_slide_path()
    if path is None:
        pytest.skip(
            "No slide test file available. "
            "Set SLIDE_TEST_FILE or place an .svs file in tests/integration/slides/data. "
            "Example: curl -LO https://openslide.cs.cmu.edu/download/"
            "openslide-testdata/Aperio/CMU-1-Small-Region.svs"
        )
    yield path
