"""
Shared test fixtures and configuration for the trail elevation enrichment test suite.

This file contains pytest fixtures that can be used across all test modules.
Fixtures defined here are automatically available to all test files.
"""

import json
import os
from unittest.mock import Mock

import pytest
from dotenv import load_dotenv

from scripts.collectors.usgs_schemas import ElevationLookup
from scripts.storage.checkpoint_store import CheckpointStore

# Load test environment variables (if any)
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


def meridian_geometry(lon=-105.0, lat_start=39.70, lat_end=39.72, parts=1):
    """Build a north-running MultiLineString; extra parts are shifted east."""
    return {
        "type": "MultiLineString",
        "coordinates": [
            [[lon + 0.05 * i, lat_start], [lon + 0.05 * i, lat_end]] for i in range(parts)
        ],
    }


def make_trail(cotrex_id, name, length_miles, **overrides):
    """Build a raw trail record as found in the catalogue file."""
    trail = {
        "cotrex_id": cotrex_id,
        "name": name,
        "system": "Test System",
        "manager": "Test Manager",
        "surface": "Dirt",
        "open_to": "Hiking",
        "open_to_bikes": False,
        "length_miles": length_miles,
        "elevation_min_m": 2000,
        "elevation_max_m": 2400,
        "geometry": meridian_geometry(),
        "centroid_lat": 39.71,
        "centroid_lon": -105.0,
        "segment_count": 1,
    }
    trail.update(overrides)
    return trail


def write_dataset(path, trails, **metadata):
    """Write a dataset document to disk and return its path as a string."""
    document = {
        "fetched_at": "2024-01-01T00:00:00+00:00",
        "source": "COTREX",
        "source_url": "https://example.com/cotrex",
        "total_trails": len(trails),
        "trails": trails,
    }
    document.update(metadata)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(document))
    return str(path)


@pytest.fixture
def mock_logger():
    """Fixture providing a mock logger."""
    return Mock()


@pytest.fixture
def sample_trails():
    """
    Provide three trails of different lengths.

    Longest first is "Long Loop", then "Middle Path", then "Short Spur".
    """
    return [
        make_trail(101, "Middle Path", 2.0),
        make_trail(102, "Long Loop", 5.0, soil_type="Loam"),
        make_trail(103, "Short Spur", 1.0),
    ]


@pytest.fixture
def input_file(tmp_path, sample_trails):
    """Write the sample trails as the enrichment input dataset."""
    return write_dataset(tmp_path / "enriched" / "trails_with_soil.json", sample_trails)


@pytest.fixture
def store(tmp_path, mock_logger):
    """Checkpoint store writing into the test's temporary directory."""
    return CheckpointStore(
        str(tmp_path / "enriched" / "trails_complete.json"),
        str(tmp_path / "enriched" / "elevation_progress.json"),
        logger=mock_logger,
    )


@pytest.fixture
def fake_client():
    """
    Stand-in USGS client resolving every point from its latitude.

    Elevation rises 10 m per 0.001 degree north of 39.70, so sampled
    profiles along the fixture geometry climb steadily.
    """
    client = Mock()

    def resolve(lat, lon):
        return ElevationLookup(
            status="RESOLVED", elevation_m=round(2000 + (lat - 39.70) * 10000), attempts=1
        )

    client.get_elevation.side_effect = resolve
    return client
