"""
Configuration management for the Mushaf library.

Uses Pydantic Settings for type-safe configuration with environment variable support.
All settings can be overridden via environment variables with the MUSHAF_ prefix.
"""

from pathlib import Path
from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MushafSettings(BaseSettings):
    """
    Configuration settings for the Mushaf library.

    All settings can be overridden via environment variables with MUSHAF_ prefix.

    Example:
        export MUSHAF_DATABASE_PATH="/var/lib/mushaf/quran_admin.sqlite"
        export MUSHAF_AUDIO_DIR="/var/lib/mushaf/audio"
        export MUSHAF_LOG_LEVEL="DEBUG"
    """

    model_config = SettingsConfigDict(
        env_prefix="MUSHAF_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ============ Storage ============

    database_path: Path = Field(
        default=Path("database/quran_admin.sqlite"),
        description="SQLite database file (':memory:' for a transient database)",
    )

    audio_dir: Path = Field(
        default=Path("public/audio"),
        description="Directory where uploaded recitation files are stored",
    )

    max_audio_size_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Largest accepted recitation upload",
        ge=1,
    )

    # ============ Logging ============

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Minimum level written to the log handlers",
    )

    log_file: Optional[Path] = Field(
        default=None,
        description="Optional rotating log file",
    )

    # ============ Search ============

    search_limit: int = Field(
        default=50,
        description="Default number of search results",
        ge=1,
    )

    max_search_limit: int = Field(
        default=200,
        description="Upper bound on requested search results",
        ge=1,
    )

    # ============ Bulk exchange ============

    csv_delimiter: str = Field(
        default=",",
        description="Field delimiter for flat-delimited import/export",
        min_length=1,
        max_length=1,
    )

    # ============ Activity log ============

    activity_page_size: int = Field(
        default=50,
        description="Default page size when listing activity records",
        ge=1,
        le=500,
    )

    # ============ Validators ============

    @field_validator("database_path", "audio_dir", mode="before")
    @classmethod
    def convert_to_path(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        if isinstance(v, str):
            return Path(v)
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v: str) -> str:
        return v.upper() if isinstance(v, str) else v


# Default settings instance
_default_settings: MushafSettings | None = None


def get_settings() -> MushafSettings:
    """
    Get the default settings instance (lazily created).

    Returns:
        MushafSettings: The default settings
    """
    global _default_settings
    if _default_settings is None:
        _default_settings = MushafSettings()
    return _default_settings


def configure(**kwargs) -> MushafSettings:
    """
    Create and set new default settings.

    Args:
        **kwargs: Settings to override

    Returns:
        MushafSettings: The new settings instance
    """
    global _default_settings
    _default_settings = MushafSettings(**kwargs)
    return _default_settings
