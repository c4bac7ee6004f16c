"""
Configuration management for xyzload.

Provides type-safe settings using Pydantic BaseSettings with
environment variable support and .env file loading.
"""

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """xyzload settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Tile server under test
    target_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the tile server under test",
    )

    # Authentication token appended to every tile URL as ?token=
    api_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("api_token", "key"),
        description="Token appended to tile requests (API_TOKEN or KEY)",
    )

    # Region data
    regions_file: str | None = Field(
        default=None,
        description="Path to a region JSON file (default: bundled data)",
    )

    # Zoom configuration
    default_min_zoom: int = Field(
        default=0,
        ge=0,
        description="Minimum zoom used when a step does not set one",
    )
    default_max_zoom: int = Field(
        default=14,
        ge=0,
        description="Maximum zoom used when a step does not set one",
    )
    max_zoom: int = Field(
        default=22,
        ge=0,
        le=30,
        description="Highest zoom level accepted anywhere",
    )

    # Reproducible sampling
    random_seed: int | None = Field(
        default=None,
        description="Seed for the default random source (unset: nondeterministic)",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Level name for xyzload loggers (unknown names fall back to INFO)",
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
