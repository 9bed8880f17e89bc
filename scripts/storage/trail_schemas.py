"""Pydantic schemas for the trail dataset consumed and produced by enrichment.

The dataset is a JSON document with provenance metadata and an ordered list of
trail records. Upstream stages (catalogue fetch, soil enrichment) may add
fields this pipeline does not know about, so both models keep unknown keys and
write them back out unchanged.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

Aspect = Literal["N", "NE", "E", "SE", "S", "SW", "W", "NW"]
ProfileSource = Literal["usgs", "interpolated"]


class ProfilePoint(BaseModel):
    """One point of an elevation profile."""

    distance_mi: float = Field(..., ge=0, description="Distance from trail start (miles)")
    elevation_m: float = Field(..., description="Elevation at this point (meters)")


class TrailGeometry(BaseModel):
    """GeoJSON-style line geometry made of one or more disjoint parts.

    Coordinates are [longitude, latitude] pairs.
    """

    type: Literal["MultiLineString", "LineString"] = "MultiLineString"
    coordinates: list = Field(default_factory=list)

    @property
    def parts(self) -> list[list[list[float]]]:
        """Coordinate sequences of the geometry, one per part."""
        if self.type == "LineString":
            return [self.coordinates]
        return self.coordinates


class TrailRecord(BaseModel):
    """A single trail, before or after elevation enrichment."""

    model_config = ConfigDict(extra="allow")

    cotrex_id: str | int
    name: str
    system: str | None = None
    manager: str | None = None
    surface: str | None = None
    open_to: str | None = None
    open_to_bikes: bool = False
    length_miles: float | None = None
    elevation_min_m: float | None = None
    elevation_max_m: float | None = None
    geometry: TrailGeometry = Field(default_factory=TrailGeometry)
    centroid_lat: float | None = None
    centroid_lon: float | None = None
    segment_count: int | None = None

    # Enriched fields
    elevation_min: float | None = None
    elevation_max: float | None = None
    elevation_gain: int | None = None
    dominant_aspect: Aspect | None = None
    elevation_profile: list[ProfilePoint] | None = None
    elevation_profile_source: ProfileSource | None = None

    @property
    def has_profile(self) -> bool:
        return bool(self.elevation_profile)

    def is_usgs_profile(self, interpolated_points: int) -> bool:
        """Whether the profile was derived from USGS samples.

        Records written before the source field existed are recognized by
        having more points than an interpolated profile.
        """
        if not self.has_profile:
            return False
        if self.elevation_profile_source is not None:
            return self.elevation_profile_source == "usgs"
        return len(self.elevation_profile) > interpolated_points


class TrailsDataset(BaseModel):
    """Dataset wrapper: provenance metadata plus the ordered trail records."""

    model_config = ConfigDict(extra="allow")

    fetched_at: str | None = None
    source: str | None = None
    source_url: str | None = None
    total_trails: int | None = None
    trails: list[TrailRecord] = Field(default_factory=list)
    elevation_enriched_at: str | None = None
