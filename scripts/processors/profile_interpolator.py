"""
Profile Interpolator

Synthesizes a triangular elevation profile for trails that are not sampled
against the USGS service: the profile climbs linearly from the minimum to the
maximum elevation at the trail midpoint and descends symmetrically back to the
minimum. It gives every trail a shape for rendering; it is not terrain data.

Also provides the elevation gain calculation shared by sampled and
interpolated profiles.
"""

from __future__ import annotations

import numpy as np

from config.settings import config
from scripts.storage.trail_schemas import ProfilePoint, TrailRecord


def _first_known(*values: float | None, default: float) -> float:
    for value in values:
        if value is not None:
            return value
    return default


def interpolate_profile(
    trail: TrailRecord, num_points: int | None = None
) -> list[ProfilePoint]:
    """
    Generate an up-then-down elevation profile from a trail's min/max elevation.

    Min/max come from the supplied COTREX values, then from previously resolved
    values, and finally from config defaults. Length defaults to one mile.

    Args:
        trail: Trail to build the profile for
        num_points: Number of profile points. Defaults to config.INTERPOLATED_PROFILE_POINTS

    Returns:
        list[ProfilePoint]: Profile spanning [0, length] with its peak at the midpoint
    """
    num_points = num_points or config.INTERPOLATED_PROFILE_POINTS

    min_elev = _first_known(
        trail.elevation_min_m, trail.elevation_min, default=config.DEFAULT_ELEVATION_MIN_M
    )
    max_elev = _first_known(
        trail.elevation_max_m, trail.elevation_max, default=config.DEFAULT_ELEVATION_MAX_M
    )
    length_mi = _first_known(trail.length_miles, default=config.DEFAULT_TRAIL_LENGTH_MI)

    fractions = np.linspace(0.0, 1.0, num_points) if num_points > 1 else np.zeros(1)

    profile = []
    for fraction in fractions:
        t = fraction * 2 if fraction <= 0.5 else 2 - fraction * 2
        profile.append(
            ProfilePoint(
                distance_mi=round(float(fraction * length_mi), 2),
                elevation_m=round(float(min_elev + t * (max_elev - min_elev))),
            )
        )

    return profile


def calculate_elevation_gain(profile: list[ProfilePoint]) -> int:
    """
    Sum the positive elevation changes between consecutive profile points.

    Args:
        profile: Profile ordered by increasing distance

    Returns:
        int: Total climb in meters, rounded; never negative
    """
    if len(profile) < 2:
        return 0

    elevations = np.array([point.elevation_m for point in profile], dtype=float)
    deltas = np.diff(elevations)
    return round(float(deltas[deltas > 0].sum()))
