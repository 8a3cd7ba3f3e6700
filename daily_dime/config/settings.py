"""
Configuration Management for Daily Dime

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Remote sync is optional, so the Supabase settings are only loaded
when something actually asks for them.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Remote data gateway (Supabase) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        extra="ignore"
    )

    url: str = Field(
        ...,
        description="Supabase project URL"
    )
    anon_key: str = Field(
        ...,
        description="Supabase anonymous (public) API key"
    )

    # Table names within the project
    transactions_table: str = Field(
        default="transactions",
        description="Table holding transaction rows"
    )
    loans_table: str = Field(
        default="loans",
        description="Table holding loan rows"
    )
    profiles_table: str = Field(
        default="profiles",
        description="Table holding one preferences row per user"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Project URLs are always served over http(s)."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Supabase URL must start with http:// or https://, got {v}")
        return v.rstrip("/")


class StorageSettings(BaseSettings):
    """Local durable storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="DAILY_DIME_STORAGE_",
        extra="ignore"
    )

    directory: Path = Field(
        default=Path.home() / ".daily-dime",
        description="Directory holding the persisted store snapshot"
    )
    namespace_key: str = Field(
        default="daily-dime-storage",
        min_length=1,
        description="Fixed key the store snapshot is saved under"
    )
    enabled: bool = Field(
        default=True,
        description="Persist the store to disk (disable for throwaway sessions)"
    )


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

    # Environment
    app_environment: str = Field(
        default="development",
        description="Application environment"
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    # Defaults for a fresh store
    default_currency: str = Field(
        default="INR",
        min_length=3,
        max_length=3,
        description="ISO 4217 currency used before the user picks one"
    )
    recent_transactions_limit: int = Field(
        default=5,
        ge=1,
        le=50,
        description="How many transactions the dashboard lists"
    )


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

    # Sub-settings are loaded lazily so the app runs without a remote account

    @property
    def supabase(self) -> SupabaseSettings:
        return SupabaseSettings()

    @property
    def storage(self) -> StorageSettings:
        return StorageSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}, with an
    extra "<name>_error" entry for each failure.
    """
    results = {}

    settings = get_settings()

    for name in ("supabase", "storage", "app"):
        try:
            getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    return results
