"""
Geometry Sampler

Produces evenly distance-spaced sample points along a trail geometry. Trails
are often stored as several disconnected line parts; samples are distributed
across the parts in proportion to their geodesic length, as if the parts were
walked end to end.
"""

from __future__ import annotations

import logging

from pydantic import BaseModel
from pyproj import Geod
from shapely.geometry import LineString

from scripts.storage.trail_schemas import TrailGeometry

logger = logging.getLogger(__name__)

GEOD = Geod(ellps="WGS84")
KM_TO_MILES = 0.621371


class SampledPoint(BaseModel):
    """A point sampled along a trail, with its distance from the start."""

    lat: float
    lon: float
    distance_mi: float


def _usable_parts(geometry: TrailGeometry) -> list[tuple[LineString, float]]:
    """Build LineStrings for every part that has a measurable length.

    Returns:
        List of (line, length_km) tuples in input order
    """
    parts = []
    for coords in geometry.parts:
        if len(coords) < 2:
            continue
        line = LineString([(c[0], c[1]) for c in coords])
        length_km = GEOD.geometry_length(line) / 1000
        if length_km > 0:
            parts.append((line, length_km))
    return parts


def _point_along(line: LineString, distance_km: float) -> tuple[float, float]:
    """
    Locate the point at a geodesic distance along a line.

    Args:
        line: Line in lon/lat coordinates
        distance_km: Distance from the first vertex in kilometers

    Returns:
        Tuple of (lon, lat). Distances beyond the line's end clamp to the last vertex.
    """
    remaining_m = distance_km * 1000
    coords = list(line.coords)

    for (lon1, lat1), (lon2, lat2) in zip(coords, coords[1:]):
        azimuth, _, segment_m = GEOD.inv(lon1, lat1, lon2, lat2)
        if remaining_m <= segment_m:
            if remaining_m <= 0:
                return lon1, lat1
            lon, lat, _ = GEOD.fwd(lon1, lat1, azimuth, remaining_m)
            return lon, lat
        remaining_m -= segment_m

    return coords[-1]


def sample_points(
    geometry: TrailGeometry,
    num_samples: int,
    trail_length_mi: float | None = None,
) -> list[SampledPoint]:
    """
    Sample evenly spaced points along a (possibly disjoint) trail geometry.

    Args:
        geometry: Trail geometry with one or more coordinate sequences
        num_samples: Number of points to return (at least 1)
        trail_length_mi: Known trail length. When missing, the geodesic length
                         of the geometry is used for the reported distances

    Returns:
        list[SampledPoint]: Exactly num_samples points with non-decreasing
        distance, the first at 0 and the last at the total length. Empty when
        the geometry has no sampleable part, which callers should treat as
        "no real sampling possible".

    Raises:
        ValueError: If num_samples is less than 1
    """
    if num_samples < 1:
        raise ValueError(f"num_samples must be at least 1 (got {num_samples})")

    try:
        parts = _usable_parts(geometry)
    except (ValueError, TypeError, IndexError) as e:
        logger.warning(f"Could not build sample geometry: {e}")
        return []

    if not parts:
        return []

    total_km = sum(length_km for _, length_km in parts)
    total_mi = trail_length_mi or total_km * KM_TO_MILES

    samples = []
    last_part = len(parts) - 1

    for i in range(num_samples):
        fraction = 0.0 if num_samples == 1 else i / (num_samples - 1)
        target_km = fraction * total_km
        distance_mi = round(fraction * total_mi, 2)

        # Find the part containing the target; the last part absorbs rounding overshoot
        accumulated_km = 0.0
        for part_idx, (line, length_km) in enumerate(parts):
            if accumulated_km + length_km >= target_km or part_idx == last_part:
                within_km = min(target_km - accumulated_km, length_km)
                lon, lat = _point_along(line, max(0.0, within_km))
                samples.append(SampledPoint(lat=lat, lon=lon, distance_mi=distance_mi))
                break
            accumulated_km += length_km

    return samples
