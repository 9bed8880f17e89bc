#!/usr/bin/env python3
"""
USGS Elevation Point Query Client

Resolves the elevation of single coordinates through the USGS Elevation Point
Query Service (EPQS). Every lookup ends in an explicit status instead of an
exception: transient failures are retried with a linearly increasing delay,
the documented "no data" sentinel is accepted as a definitive answer, and
exhausted retries downgrade the point to UNAVAILABLE.

Definitive answers are cached by coordinate and persisted to disk, so
resumed runs do not query the service again for points already resolved.
"""

from __future__ import annotations

import json
import logging
import math
import os
import threading
import time

import requests
from pydantic import ValidationError

from config.settings import config
from scripts.collectors.usgs_schemas import ElevationLookup, USGSElevationResponse


class USGSElevationClient:
    """Query point elevations from the USGS EPQS API with retries and caching."""

    def __init__(
        self,
        api_url: str | None = None,
        timeout: int | None = None,
        max_retries: int | None = None,
        retry_delay: float | None = None,
        cache_file: str | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            api_url: EPQS endpoint. Defaults to config.USGS_ELEVATION_API_URL
            timeout: Per-request timeout in seconds
            max_retries: Maximum number of attempts per coordinate
            retry_delay: Base delay in seconds; attempt N waits retry_delay * N
            cache_file: Path of the persistent elevation cache. An empty string
                        disables persistence
            logger: Logger instance for operation tracking
        """
        self.logger = logger or logging.getLogger(__name__)
        self.api_url = api_url or config.USGS_ELEVATION_API_URL
        self.timeout = timeout or config.USGS_ELEVATION_API_TIMEOUT
        self.max_retries = max_retries or config.USGS_ELEVATION_MAX_RETRIES
        self.retry_delay = (
            config.USGS_ELEVATION_RETRY_DELAY if retry_delay is None else retry_delay
        )
        self.cache_file = (
            config.USGS_ELEVATION_CACHE_FILE if cache_file is None else cache_file
        )
        self.wkid = config.USGS_ELEVATION_WKID

        self.elevation_cache: dict[str, int | None] = {}
        self._cache_lock = threading.Lock()
        self._load_cache()

    @staticmethod
    def _cache_key(lat: float, lon: float) -> str:
        return f"{lat:.6f},{lon:.6f}"

    def _load_cache(self) -> None:
        """Load elevation cache from disk."""
        if not self.cache_file or not os.path.exists(self.cache_file):
            return

        try:
            with open(self.cache_file, "r") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self.logger.error(f"Failed to load elevation cache: {e}")
            return

        if not isinstance(data, dict):
            self.logger.error(
                f"Ignoring elevation cache {self.cache_file}: expected a JSON object"
            )
            return

        # Older caches hold float elevations; anything not null or numeric is dropped
        for key, value in data.items():
            if value is None:
                self.elevation_cache[key] = None
            elif (
                isinstance(value, (int, float))
                and not isinstance(value, bool)
                and math.isfinite(value)
            ):
                self.elevation_cache[key] = round(value)

        dropped = len(data) - len(self.elevation_cache)
        if dropped:
            self.logger.warning(f"Ignored {dropped} malformed elevation cache entries")
        self.logger.info(f"Loaded {len(self.elevation_cache)} cached elevation points")

    def save_cache(self) -> None:
        """Save elevation cache to disk."""
        if not self.cache_file:
            return

        with self._cache_lock:
            snapshot = dict(self.elevation_cache)

        try:
            cache_dir = os.path.dirname(self.cache_file)
            if cache_dir:
                os.makedirs(cache_dir, exist_ok=True)
            with open(self.cache_file, "w") as f:
                json.dump(snapshot, f)
            self.logger.debug(f"Saved {len(snapshot)} elevation points to cache")
        except OSError as e:
            self.logger.error(f"Failed to save elevation cache: {e}")

    def get_elevation(self, lat: float, lon: float) -> ElevationLookup:
        """
        Resolve the elevation of a single coordinate.

        Args:
            lat: Latitude (WGS84)
            lon: Longitude (WGS84)

        Returns:
            ElevationLookup: RESOLVED with the elevation rounded to whole meters,
            NO_DATA when the service reports no data for the location, or
            UNAVAILABLE once every attempt has failed
        """
        cache_key = self._cache_key(lat, lon)
        with self._cache_lock:
            if cache_key in self.elevation_cache:
                cached = self.elevation_cache[cache_key]
                if cached is None:
                    return ElevationLookup(status="NO_DATA", cached=True)
                return ElevationLookup(
                    status="RESOLVED", elevation_m=cached, cached=True
                )

        params = {"x": lon, "y": lat, "units": "Meters", "wkid": self.wkid}

        for attempt in range(1, self.max_retries + 1):
            try:
                response = requests.get(self.api_url, params=params, timeout=self.timeout)
                response.raise_for_status()
                validated = USGSElevationResponse(**response.json())

            except requests.exceptions.RequestException as e:
                self.logger.warning(
                    f"USGS request failed for ({lat:.6f}, {lon:.6f}) "
                    f"(attempt {attempt}/{self.max_retries}): {e!s}"
                )
            except (ValidationError, TypeError, ValueError) as e:
                self.logger.warning(
                    f"USGS response validation failed for ({lat:.6f}, {lon:.6f}) "
                    f"(attempt {attempt}/{self.max_retries}): {e!s}"
                )
            else:
                if validated.value is None:
                    self._store(cache_key, None)
                    return ElevationLookup(status="NO_DATA", attempts=attempt)

                elevation = round(validated.value)
                self._store(cache_key, elevation)
                return ElevationLookup(
                    status="RESOLVED", elevation_m=elevation, attempts=attempt
                )

            if attempt < self.max_retries:
                time.sleep(self.retry_delay * attempt)

        self.logger.error(
            f"Max retries exceeded for ({lat:.6f}, {lon:.6f}); elevation unknown"
        )
        return ElevationLookup(status="UNAVAILABLE", attempts=self.max_retries)

    def _store(self, cache_key: str, elevation: int | None) -> None:
        with self._cache_lock:
            self.elevation_cache[cache_key] = elevation
