"""Application settings.

Loaded from environment variables with the ``BIRDER_`` prefix (or a ``.env``
file in the working directory)::

    BIRDER_EBIRD_API_KEY=abc123 traveling-birder search point --lat 45.5 --lon -122.6
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from traveling_birder.reference import search as defaults


class Settings(BaseSettings):
    """Runtime configuration for searches, API access, and logging."""

    model_config = SettingsConfigDict(
        env_prefix="BIRDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "traveling-birder"
    app_env: str = Field(default="dev", description="Deployment environment name")
    debug: bool = False
    log_level: str = Field(default="INFO", description="Root logging level")

    # API credentials
    ebird_api_key: str | None = Field(default=None, description="eBird API 2.0 token")
    ors_api_key: str | None = Field(default=None, description="OpenRouteService API key")

    # Local data store (saved results, imported reference lists)
    data_dir: Path = Field(default=Path("data"))
    life_list_region: str | None = Field(
        default=None,
        description="eBird region whose species list stands in for a missing life list",
    )

    # Search defaults
    lat: float = Field(default=45.5, ge=-90, le=90)
    lon: float = Field(default=-122.6, ge=-180, le=180)
    default_radius_km: float = Field(default=defaults.DEFAULT_RADIUS_KM, gt=0)
    max_radius_km: float = Field(default=defaults.MAX_RADIUS_KM, gt=0)
    default_lookback_days: int = Field(default=defaults.DEFAULT_LOOKBACK_DAYS, ge=1)
    grid_spacing_miles: float = Field(default=defaults.GRID_SPACING_MILES, gt=0)
    max_sample_points: int = Field(default=defaults.MAX_SAMPLE_POINTS, ge=1)
    top_n: int = Field(default=defaults.DEFAULT_TOP_N, ge=1)


def get_settings(**overrides: Any) -> Settings:
    """Build settings from the environment, with optional keyword overrides."""
    return Settings(**overrides)
