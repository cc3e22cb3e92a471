"""Tests for iiifserve.config module."""

from pathlib import Path

import pytest

from iiifserve.config import ConfigError, Settings


class TestSettings:
    """Tests for the Settings class."""

    def test_default_values(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that default values are set correctly."""
        for key in ("IMAGE_ROOT", "JPEG_QUALITY", "MAX_DECODE_DIMENSION", "LOG_LEVEL"):
            monkeypatch.delenv(key, raising=False)

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.IMAGE_ROOT == Path("images")
        assert settings.JPEG_QUALITY == 85
        assert settings.MAX_DECODE_DIMENSION == 20000
        assert settings.LOG_LEVEL == "INFO"
        assert settings.LOG_FORMAT == "console"

    def test_env_var_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test that environment variables override defaults."""
        monkeypatch.setenv("JPEG_QUALITY", "70")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("MAX_DECODE_DIMENSION", "0")

        settings = Settings(
            _env_file=None,  # type: ignore[call-arg]
        )

        assert settings.JPEG_QUALITY == 70
        assert settings.LOG_LEVEL == "DEBUG"
        assert settings.MAX_DECODE_DIMENSION == 0

    def test_log_format_options(self) -> None:
        """Test that LOG_FORMAT accepts valid options."""
        settings = Settings(
            LOG_FORMAT="json",
            _env_file=None,  # type: ignore[call-arg]
        )
        assert settings.LOG_FORMAT == "json"


class TestRequireImageRoot:
    """Tests for Settings.require_image_root()."""

    def test_returns_existing_directory(self, tmp_path: Path) -> None:
        """Test an existing root is returned resolved."""
        settings = Settings(
            IMAGE_ROOT=tmp_path,
            _env_file=None,  # type: ignore[call-arg]
        )
        assert settings.require_image_root() == tmp_path.resolve()

    def test_missing_directory_raises_config_error(self, tmp_path: Path) -> None:
        """Test a missing root raises ConfigError naming the variable."""
        settings = Settings(
            IMAGE_ROOT=tmp_path / "missing",
            _env_file=None,  # type: ignore[call-arg]
        )
        with pytest.raises(ConfigError, match="IMAGE_ROOT") as exc_info:
            settings.require_image_root()
        assert exc_info.value.env_var == "IMAGE_ROOT"

    def test_file_is_not_a_root(self, tmp_path: Path) -> None:
        """Test a regular file is rejected as image root."""
        some_file = tmp_path / "file.txt"
        some_file.write_text("x")
        settings = Settings(
            IMAGE_ROOT=some_file,
            _env_file=None,  # type: ignore[call-arg]
        )
        with pytest.raises(ConfigError):
            settings.require_image_root()
