"""Configuration settings for winusb_maker.

Uses pydantic-settings for config parsing from environment variables
and defaults. Configuration precedence: CLI flags > env vars > defaults.

The three run inputs also answer to their short legacy names
(ISO_PATH, USB_DISK, AUTO) so existing shell invocations keep working.
"""

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_downloads_dir() -> Path:
    """Return the default directory scanned for ISO images."""
    return Path.home() / "Downloads"


class Settings(BaseSettings):
    """Application settings.

    Settings are loaded from environment variables with the WINUSB_ prefix.
    CLI flags can override these at runtime.
    """

    model_config = SettingsConfigDict(
        env_prefix="WINUSB_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # Run inputs
    iso_path: Path | None = Field(
        default=None,
        validation_alias=AliasChoices("WINUSB_ISO_PATH", "ISO_PATH", "iso_path"),
        description="Explicit ISO image path (skips discovery and menu)",
    )
    usb_disk: str | None = Field(
        default=None,
        validation_alias=AliasChoices("WINUSB_USB_DISK", "USB_DISK", "usb_disk"),
        description="Explicit target disk identifier, e.g. /dev/disk4",
    )
    auto: bool = Field(
        default=False,
        validation_alias=AliasChoices("WINUSB_AUTO", "AUTO", "auto"),
        description="Pick the newest ISO and the only external disk without asking",
    )

    # Paths
    downloads_dir: Path = Field(
        default_factory=_default_downloads_dir,
        description="Directory scanned for *.iso candidates",
    )
    volumes_root: Path = Field(
        default=Path("/Volumes"),
        description="Directory where freshly formatted volumes are mounted",
    )

    # Media layout
    volume_label: str = Field(
        default="WIN11",
        min_length=1,
        max_length=11,
        description="FAT32 volume label for the erased disk",
    )
    split_size_mib: int = Field(
        default=3800,
        ge=1,
        le=4095,
        description="Maximum size of each install.swm chunk in MiB",
    )
    min_image_bytes: int = Field(
        default=1_000_000_000,
        ge=0,
        description="Images smaller than this trigger a warning",
    )

    # Operational modes
    use_sudo: bool = Field(
        default=True,
        description="Run destructive diskutil commands through sudo",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    @field_validator("volume_label")
    @classmethod
    def validate_volume_label(cls, v: str) -> str:
        """FAT32 labels are stored upper-case and may not contain spaces."""
        if not v.isalnum():
            raise ValueError(f"volume_label must be alphanumeric, got '{v}'")
        return v.upper()


def get_settings() -> Settings:
    """Load the application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()


def print_settings_json(settings: Settings | None = None) -> str:
    """Render effective settings as JSON.

    Args:
        settings: Optional settings instance; uses default if not provided.

    Returns:
        JSON string of effective settings.
    """
    if settings is None:
        settings = get_settings()
    return settings.model_dump_json(indent=2)


__all__ = ["Settings", "get_settings", "print_settings_json"]
