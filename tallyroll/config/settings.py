"""
Configuration Management for tallyroll

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Every tunable (rounding precision, display widths, snapshot location)
is validated once, at startup, instead of being scattered as constants.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LedgerSettings(BaseSettings):
    """Ledger arithmetic configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TALLYROLL_LEDGER_",
        extra="ignore"
    )

    rounding_places: int = Field(
        default=8,
        ge=0,
        le=12,
        description="Decimal places kept after every accumulation"
    )


class DisplaySettings(BaseSettings):
    """Display formatting configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TALLYROLL_DISPLAY_",
        extra="ignore"
    )

    currency_symbol: str = Field(
        default="$",
        min_length=1,
        max_length=3,
        description="Symbol shown in currency mode"
    )
    max_display_length: int = Field(
        default=12,
        ge=6,
        le=40,
        description="Entries longer than this are shortened for display"
    )
    significant_digits: int = Field(
        default=12,
        ge=1,
        le=17,
        description="Significant digits kept when shortening"
    )
    exponent_digits: int = Field(
        default=6,
        ge=1,
        le=16,
        description="Fraction digits in exponent notation"
    )


class StorageSettings(BaseSettings):
    """Snapshot persistence configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TALLYROLL_STORAGE_",
        extra="ignore"
    )

    snapshot_path: Optional[str] = Field(
        default=None,
        description="JSON file holding the session snapshot; unset disables persistence"
    )
    autosave: bool = Field(
        default=True,
        description="Save a snapshot after every state change"
    )
    write_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per snapshot write before giving up"
    )

    @field_validator("snapshot_path")
    @classmethod
    def expand_snapshot_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ so the path can come straight from the environment."""
        if v is None or not v.strip():
            return None
        return str(Path(v).expanduser())


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    # Logging
    debug_mode: bool = Field(
        default=False,
        description="Log at DEBUG regardless of log_level"
    )
    log_level: str = Field(
        default="INFO",
        description="Minimum level for local logs"
    )
    log_json: bool = Field(
        default=True,
        description="Render logs as JSON (console renderer otherwise)"
    )

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug_mode else self.log_level

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    app: AppSettings = Field(default_factory=AppSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    for name, factory in (
        ("ledger", LedgerSettings),
        ("display", DisplaySettings),
        ("storage", StorageSettings),
        ("app", AppSettings),
    ):
        try:
            factory()
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
