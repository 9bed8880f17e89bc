"""Pydantic schemas for validating USGS Elevation API responses.

This module provides Pydantic validators for USGS Elevation Point Query Service
(EPQS) API responses and the lookup results handed back to the enrichment
pipeline.

Two validation stages:
1. USGSElevationResponse - Validates raw API response from USGS EPQS
2. ElevationLookup - Outcome of resolving a single coordinate, with an explicit
   status that separates "no data at this location" from "service unavailable"
"""

from typing import Literal, Self

from pydantic import BaseModel, Field, field_validator, model_validator

# USGS sentinel value for "no data available"
USGS_NO_DATA_VALUE = -1000000

ElevationStatus = Literal["RESOLVED", "NO_DATA", "UNAVAILABLE"]


class USGSElevationResponse(BaseModel):
    """Validates USGS Elevation Point Query Service (EPQS) API response.

    The USGS EPQS API returns a simple JSON structure with an elevation value.
    Example response: {"value": 123.45}

    Special cases:
    - value = -1000000: Indicates "no data available" for this location
    - value = None: API returned null (treated as no data)
    """

    value: float | int | None = Field(
        ..., description="Elevation in meters, or None if no data"
    )

    @field_validator("value")
    @classmethod
    def validate_elevation_value(cls, v: float | int | None) -> float | None:
        """Validate elevation value is within reasonable range or None.

        Args:
            v: The elevation value from API

        Returns:
            The validated elevation value or None

        Raises:
            ValueError: If elevation is outside reasonable range
        """
        # None is acceptable (no data)
        if v is None:
            return None

        if v == USGS_NO_DATA_VALUE:
            return None

        # Reasonable elevation range for Earth's land surface
        # Dead Sea: -430m, Mount Everest: 8849m, adding buffer
        if not (-500 <= v <= 9000):
            raise ValueError(
                f"Elevation {v}m outside valid range [-500, 9000]. "
                "This may indicate an API error or invalid location."
            )

        return float(v)


class ElevationLookup(BaseModel):
    """Result of resolving the elevation of a single coordinate.

    Statuses:
    - RESOLVED: the service returned an elevation (``elevation_m`` is set)
    - NO_DATA: the service answered definitively that it has no data here
    - UNAVAILABLE: every attempt failed transiently; the point is unknown
    """

    status: ElevationStatus
    elevation_m: int | None = None
    attempts: int = Field(0, ge=0, description="HTTP attempts made for this lookup")
    cached: bool = False

    @model_validator(mode="after")
    def validate_elevation_matches_status(self) -> Self:
        """Only RESOLVED lookups carry an elevation.

        Returns:
            self: The validated model instance

        Raises:
            ValueError: If the elevation is inconsistent with the status
        """
        if self.status == "RESOLVED" and self.elevation_m is None:
            raise ValueError("RESOLVED lookup must carry an elevation")
        if self.status != "RESOLVED" and self.elevation_m is not None:
            raise ValueError(f"{self.status} lookup cannot carry an elevation")
        return self

    @property
    def is_resolved(self) -> bool:
        return self.status == "RESOLVED"
