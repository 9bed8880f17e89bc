"""Unit tests for USGS elevation validation schemas.

Tests the Pydantic schemas used for validating USGS Elevation Point Query
Service (EPQS) API responses and the per-coordinate lookup results.
"""

import pytest
from pydantic import ValidationError

from scripts.collectors.usgs_schemas import (
    USGS_NO_DATA_VALUE,
    ElevationLookup,
    USGSElevationResponse,
)


class TestUSGSElevationResponse:
    """Test USGS EPQS API response validation."""

    def test_float_elevation_is_kept(self):
        assert USGSElevationResponse(value=2345.67).value == 2345.67

    def test_integer_elevation_becomes_float(self):
        validated = USGSElevationResponse(value=500)
        assert validated.value == 500.0
        assert isinstance(validated.value, float)

    def test_null_value_means_no_data(self):
        assert USGSElevationResponse(value=None).value is None

    def test_no_data_sentinel_returns_none(self):
        """The documented -1000000 sentinel is a definitive 'no data' answer."""
        assert USGSElevationResponse(value=USGS_NO_DATA_VALUE).value is None

    @pytest.mark.parametrize("elevation", [-430, 0, 4401, 8849])
    def test_elevations_within_range(self, elevation):
        assert USGSElevationResponse(value=elevation).value == elevation

    @pytest.mark.parametrize("elevation", [-600, 10000])
    def test_elevation_outside_range_fails(self, elevation):
        with pytest.raises(ValidationError, match="outside valid range"):
            USGSElevationResponse(value=elevation)

    def test_missing_value_field_fails(self):
        """A body without 'value' is malformed, not a no-data answer."""
        with pytest.raises(ValidationError):
            USGSElevationResponse(**{})

    def test_non_numeric_value_fails(self):
        with pytest.raises(ValidationError):
            USGSElevationResponse(value="not_a_number")


class TestElevationLookup:
    """Test lookup result consistency between status and elevation."""

    def test_resolved_lookup_carries_elevation(self):
        lookup = ElevationLookup(status="RESOLVED", elevation_m=2346, attempts=1)
        assert lookup.is_resolved
        assert lookup.elevation_m == 2346
        assert lookup.cached is False

    def test_resolved_without_elevation_fails(self):
        with pytest.raises(ValidationError, match="must carry an elevation"):
            ElevationLookup(status="RESOLVED")

    @pytest.mark.parametrize("status", ["NO_DATA", "UNAVAILABLE"])
    def test_unresolved_lookup_has_no_elevation(self, status):
        lookup = ElevationLookup(status=status, attempts=3)
        assert not lookup.is_resolved
        assert lookup.elevation_m is None

    @pytest.mark.parametrize("status", ["NO_DATA", "UNAVAILABLE"])
    def test_unresolved_lookup_with_elevation_fails(self, status):
        with pytest.raises(ValidationError, match="cannot carry an elevation"):
            ElevationLookup(status=status, elevation_m=100)

    def test_unknown_status_fails(self):
        with pytest.raises(ValidationError):
            ElevationLookup(status="PENDING")

    def test_negative_attempts_fails(self):
        with pytest.raises(ValidationError, match="greater than or equal to 0"):
            ElevationLookup(status="NO_DATA", attempts=-1)
