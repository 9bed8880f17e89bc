"""
Aspect Estimator

Summarizes the overall direction of a trail as one of eight compass points.
Segment bearings are averaged on the circle (mean of unit vectors), so a trail
wandering between 350 and 10 degrees averages to north rather than south.
"""

from __future__ import annotations

import logging

import numpy as np
from pyproj import Geod

from scripts.storage.trail_schemas import Aspect, TrailGeometry

logger = logging.getLogger(__name__)

GEOD = Geod(ellps="WGS84")

# Octants ordered clockwise from north, each 45 degrees wide
COMPASS_POINTS: tuple[Aspect, ...] = ("N", "NE", "E", "SE", "S", "SW", "W", "NW")


def bearing_to_aspect(bearing: float) -> Aspect:
    """
    Map a bearing to its compass octant.

    Sectors are half-open and centered on each direction: N covers
    [337.5, 360) and [0, 22.5), NE covers [22.5, 67.5), and so on.

    Args:
        bearing: Bearing in degrees clockwise from north (any range)

    Returns:
        Aspect: One of N, NE, E, SE, S, SW, W, NW
    """
    normalized = bearing % 360
    return COMPASS_POINTS[int(((normalized + 22.5) % 360) // 45)]


def segment_bearings(coords: list[list[float]]) -> list[float]:
    """Initial bearings (0-360) of each non-degenerate consecutive coordinate pair.

    Zero-length segments and segments with out-of-range or non-finite
    coordinates (for which pyproj returns NaN) are skipped.
    """
    bearings = []
    for start, end in zip(coords, coords[1:]):
        azimuth, _, distance = GEOD.inv(start[0], start[1], end[0], end[1])
        if not (np.isfinite(azimuth) and np.isfinite(distance)) or distance == 0:
            continue
        bearings.append(azimuth % 360)
    return bearings


def calculate_dominant_aspect(geometry: TrailGeometry) -> Aspect | None:
    """
    Calculate the dominant aspect of a trail from its segment bearings.

    Parts are concatenated in input order; the jump between disjoint parts is
    treated as an ordinary segment.

    Args:
        geometry: Trail geometry

    Returns:
        Aspect | None: Compass octant of the circular mean bearing, or None when
        the geometry has fewer than two distinct coordinates, the bearings
        cancel out, or the computation fails
    """
    coords = [coord for part in geometry.parts for coord in part]
    if len(coords) < 2:
        return None

    try:
        bearings = np.radians(segment_bearings(coords))
    except (ValueError, TypeError, IndexError) as e:
        logger.warning(f"Could not compute bearings: {e}")
        return None

    if bearings.size == 0:
        return None

    sin_sum = float(np.sin(bearings).sum())
    cos_sum = float(np.cos(bearings).sum())
    if not (np.isfinite(sin_sum) and np.isfinite(cos_sum)):
        return None

    # Opposing bearings cancel out; there is no meaningful mean direction
    if np.hypot(sin_sum, cos_sum) < 1e-9:
        return None

    mean_bearing = np.degrees(np.arctan2(sin_sum, cos_sum))
    return bearing_to_aspect(float(mean_bearing))
