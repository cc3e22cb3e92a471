"""iiifserve configuration using pydantic-settings.

All configuration is strongly typed and supports environment variables
and .env files.
"""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid.

    Example:
        >>> Settings(IMAGE_ROOT="/nonexistent", _env_file=None).require_image_root()
        Traceback (most recent call last):
        ...
        ConfigError: Image root directory not configured. Set it in .env file or
        IMAGE_ROOT environment variable.
    """

    def __init__(self, key_name: str, env_var: str) -> None:
        """Initialize configuration error.

        Args:
            key_name: Human-readable name of the missing key.
            env_var: Environment variable name to set.
        """
        self.key_name = key_name
        self.env_var = env_var
        message = (
            f"{key_name} not configured. "
            f"Set it in .env file or {env_var} environment variable."
        )
        super().__init__(message)


class Settings(BaseSettings):
    """Application settings loaded from environment variables or .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "console"  # "console" or "json"

    # Resource resolution
    IMAGE_ROOT: Path = Path("images")

    # Encoding
    JPEG_QUALITY: int = 85  # Used for jpg and webp output

    # Memory guard for a single decode rectangle (0 = no limit)
    MAX_DECODE_DIMENSION: int = 20000

    def require_image_root(self) -> Path:
        """Get the image root directory, raising ConfigError if it is missing.

        Returns:
            The configured image root as a resolved path.

        Raises:
            ConfigError: If IMAGE_ROOT does not point to a directory.
        """
        root = self.IMAGE_ROOT.expanduser()
        if not root.is_dir():
            raise ConfigError("Image root directory", "IMAGE_ROOT")
        return root.resolve()


# Singleton instance for import convenience
settings = Settings()
