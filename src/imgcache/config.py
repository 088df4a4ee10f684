"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from imgcache import __version__

# Baked-in placeholder shown when no image source is known
DEFAULT_COURSE_IMAGE = (
    "https://images.unsplash.com/photo-1587174486073-ae5e5cff23aa"
    "?ixlib=rb-1.2.1&auto=format&fit=crop&w=1350&q=80"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are optional:
        CACHE_DIR: Root of the platform cache area
        IMAGE_CACHE_SUBDIR: Directory under CACHE_DIR holding cached images
        IMAGE_EXTENSION: File extension for cached images
        DEFAULT_IMAGE_URL: Placeholder returned when nothing better is known
        FETCH_TIMEOUT_SECONDS: HTTP timeout for image downloads
        FETCH_MAX_ATTEMPTS: Attempts per download on transport errors
        USER_AGENT: User-Agent header sent with downloads
        LOG_LEVEL: Logging level
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Directories
    CACHE_DIR: Path = Field(
        default=Path.home() / ".cache" / "imgcache",
        description="Root cache directory",
    )
    IMAGE_CACHE_SUBDIR: str = Field(
        default="course-images",
        description="Directory under CACHE_DIR for cached images",
    )
    IMAGE_EXTENSION: str = Field(default=".jpg", description="Cached image extension")

    DEFAULT_IMAGE_URL: str = Field(
        default=DEFAULT_COURSE_IMAGE,
        min_length=1,
        description="Placeholder image URI",
    )

    # Network
    FETCH_TIMEOUT_SECONDS: float = Field(
        default=30.0, gt=0.0, description="HTTP timeout for image downloads"
    )
    FETCH_MAX_ATTEMPTS: int = Field(
        default=3, ge=1, le=10, description="Download attempts on transport errors"
    )
    USER_AGENT: str = Field(
        default=f"imgcache/{__version__}", description="User-Agent for downloads"
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )

    @field_validator("IMAGE_CACHE_SUBDIR")
    @classmethod
    def validate_subdir(cls, v: str) -> str:
        """Require a single, non-empty path segment."""
        v = v.strip()
        if not v or "/" in v or "\\" in v or v in (".", ".."):
            raise ValueError("IMAGE_CACHE_SUBDIR must be a single directory name")
        return v

    @field_validator("IMAGE_EXTENSION")
    @classmethod
    def validate_extension(cls, v: str) -> str:
        """Normalize the extension to start with a dot."""
        v = v.strip()
        if not v or v == ".":
            raise ValueError("IMAGE_EXTENSION must not be empty")
        return v if v.startswith(".") else f".{v}"

    @property
    def image_cache_dir(self) -> Path:
        """Directory holding cached image files."""
        return self.CACHE_DIR / self.IMAGE_CACHE_SUBDIR

    def ensure_directories(self) -> None:
        """Create the image cache directory if it doesn't exist."""
        self.image_cache_dir.mkdir(parents=True, exist_ok=True)

    def display(self) -> dict[str, str | int | float]:
        """Return settings for display."""
        return {
            "CACHE_DIR": str(self.CACHE_DIR),
            "IMAGE_CACHE_SUBDIR": self.IMAGE_CACHE_SUBDIR,
            "IMAGE_EXTENSION": self.IMAGE_EXTENSION,
            "DEFAULT_IMAGE_URL": self.DEFAULT_IMAGE_URL,
            "FETCH_TIMEOUT_SECONDS": self.FETCH_TIMEOUT_SECONDS,
            "FETCH_MAX_ATTEMPTS": self.FETCH_MAX_ATTEMPTS,
            "USER_AGENT": self.USER_AGENT,
            "LOG_LEVEL": self.LOG_LEVEL,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
