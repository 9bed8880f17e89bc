"""
Configuration settings for the trail elevation enrichment project.

This module centralizes all configuration values and provides a single source of truth for all
configurable parameters.
"""

import os


class Config:
    """
    Central configuration class for the trail elevation enrichment pipeline.

    This class consolidates all configuration values including USGS API settings,
    sampling and concurrency limits, checkpointing, file paths, and logging.
    """

    # USGS Elevation Point Query Service (EPQS)
    USGS_ELEVATION_API_URL: str = "https://epqs.nationalmap.gov/v1/json"
    USGS_ELEVATION_API_TIMEOUT: int = 30
    USGS_ELEVATION_MAX_RETRIES: int = 3
    USGS_ELEVATION_RETRY_DELAY: float = 1.0
    USGS_ELEVATION_WKID: int = 4326
    USGS_ELEVATION_CACHE_FILE: str = "cache/elevation_cache.json"

    # Profile sampling and concurrency
    PROFILE_SAMPLES: int = 15
    USGS_PROFILE_LIMIT: int = 100  # Only query USGS for top N longest trails
    USGS_CONCURRENCY: int = 5  # Concurrent USGS requests per trail

    # Checkpointing
    CHECKPOINT_INTERVAL: int = 25
    CHECKPOINT_ALL_TRAILS: bool = False

    # Interpolated profiles
    INTERPOLATED_PROFILE_POINTS: int = 10
    DEFAULT_ELEVATION_MIN_M: float = 2000
    DEFAULT_ELEVATION_MAX_M: float = 2500
    DEFAULT_TRAIL_LENGTH_MI: float = 1.0
    INTERPOLATED_LOG_EVERY: int = 200

    # File Paths
    DEFAULT_INPUT_FILE: str = "data/enriched/trails_with_soil.json"
    FALLBACK_INPUT_FILE: str = "data/raw/cotrex_trails.json"
    DEFAULT_OUTPUT_FILE: str = "data/enriched/trails_complete.json"
    DEFAULT_PROGRESS_FILE: str = "data/enriched/elevation_progress.json"

    # Logging Configuration
    LOG_LEVEL: str = "INFO"
    LOG_MAX_BYTES: int = 5 * 1024 * 1024  # 5MB
    LOG_BACKUP_COUNT: int = 3
    ELEVATION_LOG_FILE: str = "logs/elevation_enrichment.log"

    def __init__(self):
        """Initialize configuration by loading from environment variables."""
        self._load_from_env()
        self._validate()

    def _load_from_env(self):
        """Load configuration values from environment variables."""
        # USGS API settings
        api_url = os.getenv("USGS_ELEVATION_API_URL")
        if api_url:
            self.USGS_ELEVATION_API_URL = api_url

        api_timeout = os.getenv("USGS_ELEVATION_API_TIMEOUT")
        if api_timeout:
            self.USGS_ELEVATION_API_TIMEOUT = int(api_timeout)

        max_retries = os.getenv("USGS_ELEVATION_MAX_RETRIES")
        if max_retries:
            self.USGS_ELEVATION_MAX_RETRIES = int(max_retries)

        retry_delay = os.getenv("USGS_ELEVATION_RETRY_DELAY")
        if retry_delay:
            self.USGS_ELEVATION_RETRY_DELAY = float(retry_delay)

        # An empty value disables the cache
        cache_file = os.getenv("USGS_ELEVATION_CACHE_FILE")
        if cache_file is not None:
            self.USGS_ELEVATION_CACHE_FILE = cache_file

        # Sampling settings
        profile_samples = os.getenv("PROFILE_SAMPLES")
        if profile_samples:
            self.PROFILE_SAMPLES = int(profile_samples)

        profile_limit = os.getenv("USGS_PROFILE_LIMIT")
        if profile_limit:
            self.USGS_PROFILE_LIMIT = int(profile_limit)

        concurrency = os.getenv("USGS_CONCURRENCY")
        if concurrency:
            self.USGS_CONCURRENCY = int(concurrency)

        # Checkpoint settings
        checkpoint_interval = os.getenv("CHECKPOINT_INTERVAL")
        if checkpoint_interval:
            self.CHECKPOINT_INTERVAL = int(checkpoint_interval)

        checkpoint_all = os.getenv("CHECKPOINT_ALL_TRAILS")
        if checkpoint_all:
            self.CHECKPOINT_ALL_TRAILS = checkpoint_all.lower() in ("1", "true", "yes")

        # File paths
        input_file = os.getenv("ELEVATION_INPUT_FILE")
        if input_file:
            self.DEFAULT_INPUT_FILE = input_file

        output_file = os.getenv("ELEVATION_OUTPUT_FILE")
        if output_file:
            self.DEFAULT_OUTPUT_FILE = output_file

        progress_file = os.getenv("ELEVATION_PROGRESS_FILE")
        if progress_file:
            self.DEFAULT_PROGRESS_FILE = progress_file

        log_level = os.getenv("LOG_LEVEL")
        if log_level:
            self.LOG_LEVEL = log_level

    def _validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: If a count, limit, or interval is out of range.
        """
        positive_settings = {
            "USGS_ELEVATION_MAX_RETRIES": self.USGS_ELEVATION_MAX_RETRIES,
            "PROFILE_SAMPLES": self.PROFILE_SAMPLES,
            "USGS_CONCURRENCY": self.USGS_CONCURRENCY,
            "CHECKPOINT_INTERVAL": self.CHECKPOINT_INTERVAL,
            "INTERPOLATED_PROFILE_POINTS": self.INTERPOLATED_PROFILE_POINTS,
        }
        for name, value in positive_settings.items():
            if value < 1:
                raise ValueError(f"{name} must be at least 1 (got {value})")

        if self.USGS_PROFILE_LIMIT < 0:
            raise ValueError(
                f"USGS_PROFILE_LIMIT cannot be negative (got {self.USGS_PROFILE_LIMIT})"
            )


# Global configuration instance
config = Config()
