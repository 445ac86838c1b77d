"""
Request models for searches.

Pydantic models describing what the caller wants searched. Observations and
hotspots coming back from eBird are plain dataclasses (see
``datasources/ebird/``); these models only cover validated user input.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from traveling_birder.reference import search as defaults

# =============================================================================
# Enums
# =============================================================================


class ListMode(StrEnum):
    """Which of the user's lists defines a "target" species."""

    ALL = "all"
    LIFE = "life"
    YEAR = "year"
    MONTH = "month"


class FrequencyTier(StrEnum):
    """How often a species shows up in a search's raw log."""

    EXPECTED = "expected"
    UNCOMMON = "uncommon"
    NOTABLE = "notable"
    RARE = "rare"


# =============================================================================
# Geographic
# =============================================================================


class Coordinate(BaseModel):
    """A latitude/longitude pair. Also used for planned sample points."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)

    def as_tuple(self) -> tuple[float, float]:
        return (self.lat, self.lng)


class BoundingBox(BaseModel):
    """SW/NE lat-lng rectangle."""

    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    south: float = Field(..., ge=-90, le=90)
    west: float = Field(..., ge=-180, le=180)
    north: float = Field(..., ge=-90, le=90)
    east: float = Field(..., ge=-180, le=180)

    @model_validator(mode="after")
    def _check_order(self) -> BoundingBox:
        if self.north < self.south:
            msg = f"north ({self.north}) is below south ({self.south})"
            raise ValueError(msg)
        if self.east < self.west:
            msg = f"east ({self.east}) is west of west ({self.west})"
            raise ValueError(msg)
        return self

    @property
    def south_west(self) -> Coordinate:
        return Coordinate(lat=self.south, lng=self.west)

    @property
    def north_east(self) -> Coordinate:
        return Coordinate(lat=self.north, lng=self.east)


# =============================================================================
# Search shapes
# =============================================================================


class PointShape(BaseModel):
    """Search around a single coordinate."""

    kind: Literal["point"] = "point"
    center: Coordinate


class BoxShape(BaseModel):
    """Search a rectangle with a grid of overlapping circles."""

    kind: Literal["box"] = "box"
    bounds: BoundingBox


class PathShape(BaseModel):
    """Search along an already-known polyline (e.g. a resolved route)."""

    kind: Literal["path"] = "path"
    path: list[Coordinate] = Field(..., min_length=1)
    total_distance_miles: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class RouteShape(BaseModel):
    """Search along a driving route that still has to be resolved."""

    kind: Literal["route"] = "route"
    origin: Coordinate
    destination: Coordinate
    waypoints: list[Coordinate] = Field(default_factory=list)


class RegionShape(BaseModel):
    """Search a whole eBird region (e.g. ``US-OR``) with one request."""

    kind: Literal["region"] = "region"
    region_code: str = Field(..., pattern=r"^[A-Z]{2}(-[A-Z0-9]{1,3}){0,2}$")


SearchShape = Annotated[
    PointShape | BoxShape | PathShape | RouteShape | RegionShape,
    Field(discriminator="kind"),
]


class SearchRequest(BaseModel):
    """Everything one search invocation needs from the caller."""

    shape: SearchShape
    radius_km: float = Field(default=defaults.DEFAULT_RADIUS_KM, gt=0, allow_inf_nan=False)
    lookback_days: int = Field(default=defaults.DEFAULT_LOOKBACK_DAYS, ge=1)
    list_mode: ListMode = ListMode.ALL
    top_n: int = Field(default=defaults.DEFAULT_TOP_N, ge=1)
    species_code: str | None = Field(
        default=None, description="Narrow sightings to one eBird species code"
    )

    @property
    def effective_radius_km(self) -> float:
        """Radius clamped to the eBird ``dist`` ceiling."""
        return min(self.radius_km, defaults.MAX_RADIUS_KM)

    @property
    def effective_lookback_days(self) -> int:
        """Lookback clamped to the eBird ``back`` ceiling."""
        return min(self.lookback_days, defaults.MAX_LOOKBACK_DAYS)
