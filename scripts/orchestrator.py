#!/usr/bin/env python3
"""
Elevation Enrichment Orchestrator

This script enriches the trail dataset with elevation profiles and aspect data.
It uses the COTREX-provided min/max elevation for every trail. The longest
trails get elevation profiles sampled from the USGS Elevation Point Query
Service. All remaining trails get interpolated profiles built from min/max.

Pipeline Steps:
1. Load the input dataset (soil-enriched trails, or raw trails as fallback)
2. Resume from the last checkpoint if a previous run was interrupted
3. For each trail not yet profiled:
   a. Copy the supplied min/max elevation
   b. Compute the dominant aspect from the geometry
   c. Build a USGS-sampled profile (top N longest trails) or an interpolated one
   d. Periodically checkpoint the dataset and progress record
4. Write the final dataset and remove the progress record

Usage:
    # Full run
    python -m scripts.orchestrator

    # Sample the 50 longest trails with 20 points each
    python -m scripts.orchestrator --profile-limit 50 --samples 20

    # Ignore a previous interrupted run and start over
    python -m scripts.orchestrator --force-refresh

Features:
- Bounded concurrent USGS lookups per trail
- Retry with linear backoff; failed points are skipped, never fatal
- Per-trail error isolation with interpolated fallback
- Crash-resumable checkpoints and a persistent elevation cache
"""

from __future__ import annotations

import argparse
import logging
import os
import time
from concurrent.futures import Executor, ThreadPoolExecutor, wait
from datetime import datetime, timezone

from dotenv import load_dotenv
from pydantic import BaseModel

# Load .env before local imports that need env vars
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))

from config.settings import config
from scripts.collectors.usgs_elevation_client import USGSElevationClient
from scripts.collectors.usgs_schemas import ElevationLookup
from scripts.processors.aspect_estimator import calculate_dominant_aspect
from scripts.processors.geometry_sampler import SampledPoint, sample_points
from scripts.processors.profile_interpolator import (
    calculate_elevation_gain,
    interpolate_profile,
)
from scripts.storage.checkpoint_store import CheckpointStore, ProgressRecord
from scripts.storage.trail_schemas import ProfilePoint, TrailRecord, TrailsDataset
from utils.logging import setup_elevation_enrichment_logging

METERS_TO_FEET = 3.28084


class EnrichmentSummary(BaseModel):
    """Outcome of an enrichment run."""

    total_trails: int
    with_profile: int
    usgs_profiles: int
    interpolated_profiles: int
    with_aspect: int
    usgs_calls: int
    errors: int
    output_file: str
    elapsed_seconds: float


def select_usgs_eligible(trails: list[TrailRecord], limit: int) -> set[int]:
    """
    Select the indices of the longest trails for USGS-sampled profiles.

    Trails without a length rank as zero; ties keep dataset order, so the
    selection is reproducible across resumed runs.

    Args:
        trails: Trails in dataset order
        limit: Number of trails to select

    Returns:
        set[int]: Indices of the selected trails
    """
    ranked = sorted(range(len(trails)), key=lambda idx: -(trails[idx].length_miles or 0))
    return set(ranked[:limit])


class ElevationEnrichmentOrchestrator:
    """Drive elevation and aspect enrichment over the whole trail dataset."""

    def __init__(
        self,
        input_file: str | None = None,
        output_file: str | None = None,
        progress_file: str | None = None,
        fallback_input_file: str | None = None,
        profile_limit: int | None = None,
        profile_samples: int | None = None,
        concurrency: int | None = None,
        checkpoint_interval: int | None = None,
        checkpoint_all_trails: bool | None = None,
        client: USGSElevationClient | None = None,
        store: CheckpointStore | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Initialize the orchestrator. Unset arguments fall back to config values.

        Args:
            input_file: Input dataset path
            output_file: Enriched dataset path
            progress_file: Progress record path
            fallback_input_file: Raw dataset used when input_file is missing
            profile_limit: Number of longest trails to sample against USGS
            profile_samples: Points sampled per USGS profile
            concurrency: Maximum simultaneous USGS requests
            checkpoint_interval: Checkpoint every N trail indices
            checkpoint_all_trails: Also checkpoint after interpolated trails
            client: USGS client (injected in tests)
            store: Checkpoint store (injected in tests)
            logger: Logger instance for operation tracking
        """
        self.logger = logger or logging.getLogger(__name__)
        self.input_file = input_file or config.DEFAULT_INPUT_FILE
        self.fallback_input_file = (
            config.FALLBACK_INPUT_FILE
            if fallback_input_file is None
            else fallback_input_file
        )
        self.profile_limit = (
            config.USGS_PROFILE_LIMIT if profile_limit is None else profile_limit
        )
        self.profile_samples = profile_samples or config.PROFILE_SAMPLES
        self.concurrency = concurrency or config.USGS_CONCURRENCY
        self.checkpoint_interval = checkpoint_interval or config.CHECKPOINT_INTERVAL
        self.checkpoint_all_trails = (
            config.CHECKPOINT_ALL_TRAILS
            if checkpoint_all_trails is None
            else checkpoint_all_trails
        )
        self.interpolated_points = config.INTERPOLATED_PROFILE_POINTS

        self.client = client or USGSElevationClient()
        self.store = store or CheckpointStore(
            output_file or config.DEFAULT_OUTPUT_FILE,
            progress_file or config.DEFAULT_PROGRESS_FILE,
            logger=self.logger,
        )
        self.start_time = time.time()

    def run(self, force_refresh: bool = False) -> EnrichmentSummary:
        """
        Run the enrichment over every trail and write the final dataset.

        Args:
            force_refresh: Discard the state of an interrupted run and start over

        Returns:
            EnrichmentSummary: Counts for the completed run

        Raises:
            FileNotFoundError: If no input dataset exists
        """
        self.start_time = time.time()
        self.logger.info("⛰️  Elevation Enrichment (COTREX + USGS)")

        input_path = self.store.locate_input(self.input_file, self.fallback_input_file)
        dataset = self.store.load_dataset(input_path)
        total = len(dataset.trails)

        # Eligibility comes from the input lengths, before any resumed state is applied
        usgs_eligible = select_usgs_eligible(dataset.trails, self.profile_limit)

        progress = self._resume(dataset, force_refresh)

        self.logger.info(
            f"USGS elevation profiles: top {len(usgs_eligible)} longest trails"
        )
        self.logger.info(
            f"Interpolated profiles: remaining {total - len(usgs_eligible)} trails"
        )
        self.logger.info(f"Processing trails {progress.start_index} to {total - 1}...")

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for index in range(progress.start_index, total):
                trail = dataset.trails[index]

                # Already profiled by an earlier run
                if trail.has_profile:
                    continue

                eligible = index in usgs_eligible
                self._enrich_trail(index, total, trail, eligible, progress, executor)

                progress.last_processed_index = index
                progress.last_run_time = datetime.now(timezone.utc).isoformat()

                if self._should_checkpoint(index, eligible):
                    self.logger.info("💾 Saving checkpoint...")
                    self.store.save_checkpoint(dataset, progress)
                    self.client.save_cache()

        self.store.save_dataset(dataset)
        self.client.save_cache()
        self.store.clear_progress()

        summary = self._summarize(dataset, progress)
        self._log_summary(summary)
        return summary

    def _resume(self, dataset: TrailsDataset, force_refresh: bool) -> ProgressRecord:
        """
        Restore the state of an interrupted run, if there is a usable one.

        On resume the checkpointed trails replace the input trails in place.

        Returns:
            ProgressRecord: The loaded record, or a fresh one
        """
        if force_refresh:
            self.logger.info("Force refresh: discarding any previous progress")
            self.store.clear_progress()
            return ProgressRecord()

        progress = self.store.load_progress()
        if progress is None:
            return ProgressRecord()

        total = len(dataset.trails)
        if progress.last_processed_index >= total:
            self.logger.warning(
                f"Progress points at trail {progress.last_processed_index} but the "
                f"dataset has {total} trails; starting fresh"
            )
            return ProgressRecord()

        resumed_trails = self.store.load_resume_trails(total)
        if resumed_trails is None:
            self.logger.warning("Starting fresh")
            return ProgressRecord()

        dataset.trails = resumed_trails
        self.logger.info(f"Resuming from trail {progress.start_index}...")
        return progress

    def _enrich_trail(
        self,
        index: int,
        total: int,
        trail: TrailRecord,
        eligible: bool,
        progress: ProgressRecord,
        executor: Executor,
    ) -> None:
        """Resolve base fields, aspect, and profile for a single trail."""
        label = f"[{index + 1}/{total}] {trail.name[:35]:<35}"

        trail.elevation_min = trail.elevation_min_m
        trail.elevation_max = trail.elevation_max_m
        trail.dominant_aspect = calculate_dominant_aspect(trail.geometry)

        if not eligible:
            self._apply_interpolated_profile(trail)
            progress.processed_count += 1
            if index % config.INTERPOLATED_LOG_EVERY == 0:
                self.logger.info(f"[{index + 1}/{total}] Interpolating batch... ✓")
            return

        try:
            self._apply_usgs_profile(trail, progress, executor, label)
            progress.processed_count += 1
        except Exception as e:
            self.logger.error(f"{label} USGS ✗ Error: {e!s}")
            trail.elevation_profile = interpolate_profile(trail, self.interpolated_points)
            trail.elevation_profile_source = "interpolated"
            trail.elevation_gain = None
            progress.error_count += 1

    def _apply_usgs_profile(
        self,
        trail: TrailRecord,
        progress: ProgressRecord,
        executor: Executor,
        label: str,
    ) -> None:
        """Build the trail's profile from sampled USGS elevations."""
        points = sample_points(trail.geometry, self.profile_samples, trail.length_miles)
        lookups = self.fetch_elevations(points, executor)
        progress.usgs_call_count += sum(1 for lookup in lookups if not lookup.cached)

        profile = [
            ProfilePoint(distance_mi=point.distance_mi, elevation_m=lookup.elevation_m)
            for point, lookup in zip(points, lookups)
            if lookup.is_resolved
        ]

        if not profile:
            trail.elevation_profile = interpolate_profile(trail, self.interpolated_points)
            trail.elevation_profile_source = "interpolated"
            trail.elevation_gain = None
            self.logger.warning(f"{label} USGS ⚠ no elevation data, interpolated")
            return

        trail.elevation_profile = profile
        trail.elevation_profile_source = "usgs"
        trail.elevation_gain = calculate_elevation_gain(profile)

        # Fill min/max from the profile only where COTREX had no value
        elevations = [point.elevation_m for point in profile]
        if trail.elevation_min is None:
            trail.elevation_min = min(elevations)
        if trail.elevation_max is None:
            trail.elevation_max = max(elevations)

        min_ft = round(trail.elevation_min * METERS_TO_FEET)
        max_ft = round(trail.elevation_max * METERS_TO_FEET)
        self.logger.info(
            f"{label} USGS ✓ {len(profile)}pts {min_ft}-{max_ft}ft "
            f"+{trail.elevation_gain}m {trail.dominant_aspect or '?'}"
        )

    def _apply_interpolated_profile(self, trail: TrailRecord) -> None:
        trail.elevation_profile = interpolate_profile(trail, self.interpolated_points)
        trail.elevation_profile_source = "interpolated"
        if trail.elevation_max is not None and trail.elevation_min is not None:
            trail.elevation_gain = round((trail.elevation_max - trail.elevation_min) / 2)
        else:
            trail.elevation_gain = None

    def fetch_elevations(
        self, points: list[SampledPoint], executor: Executor
    ) -> list[ElevationLookup]:
        """
        Look up elevations for sampled points in concurrent batches.

        Each batch holds at most ``concurrency`` requests and is fully joined
        before the next one is submitted. Completion order is not guaranteed,
        so results are put back into sample order.

        Args:
            points: Sampled points in trail order
            executor: Executor running the lookups

        Returns:
            list[ElevationLookup]: One lookup per point, in the order of ``points``
        """
        indexed_results: list[tuple[int, ElevationLookup]] = []

        for batch_start in range(0, len(points), self.concurrency):
            batch = points[batch_start : batch_start + self.concurrency]
            futures = {
                executor.submit(self.client.get_elevation, point.lat, point.lon): batch_start
                + offset
                for offset, point in enumerate(batch)
            }
            done, _ = wait(futures)
            for future in done:
                indexed_results.append((futures[future], future.result()))

        indexed_results.sort(key=lambda item: item[0])
        return [lookup for _, lookup in indexed_results]

    def _should_checkpoint(self, index: int, eligible: bool) -> bool:
        if (index + 1) % self.checkpoint_interval != 0:
            return False
        return eligible or self.checkpoint_all_trails

    def _summarize(
        self, dataset: TrailsDataset, progress: ProgressRecord
    ) -> EnrichmentSummary:
        trails = dataset.trails
        with_profile = sum(1 for trail in trails if trail.has_profile)
        usgs_profiles = sum(
            1 for trail in trails if trail.is_usgs_profile(self.interpolated_points)
        )

        return EnrichmentSummary(
            total_trails=len(trails),
            with_profile=with_profile,
            usgs_profiles=usgs_profiles,
            interpolated_profiles=with_profile - usgs_profiles,
            with_aspect=sum(1 for trail in trails if trail.dominant_aspect),
            usgs_calls=progress.usgs_call_count,
            errors=progress.error_count,
            output_file=self.store.output_file,
            elapsed_seconds=time.time() - self.start_time,
        )

    def _log_summary(self, summary: EnrichmentSummary) -> None:
        """Print and log the enrichment summary."""
        elapsed_str = f"{summary.elapsed_seconds:.1f} seconds"
        if summary.elapsed_seconds > 60:
            elapsed_str = f"{summary.elapsed_seconds / 60:.1f} minutes"

        lines = [
            f"Trails with elevation profiles: {summary.with_profile} / {summary.total_trails}",
            f"USGS-based profiles: {summary.usgs_profiles}",
            f"Interpolated profiles: {summary.interpolated_profiles}",
            f"Trails with aspect: {summary.with_aspect}",
            f"Total USGS API calls: {summary.usgs_calls}",
            f"Errors: {summary.errors}",
            f"Runtime: {elapsed_str}",
            f"Output: {summary.output_file}",
        ]

        # User-friendly console output
        print("\n" + "=" * 60)
        print("ELEVATION ENRICHMENT SUMMARY")
        print("=" * 60)
        for line in lines:
            print(f"  {line}")

        # Also log the summary for audit trail
        self.logger.info("✅ Elevation enrichment complete!")
        for line in lines:
            self.logger.info(line)


def main() -> int:
    """
    Main function for elevation enrichment.

    Returns:
        int: Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(
        description="Enrich trails with elevation profiles and aspect data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s                                  # Enrich with default paths and limits
  %(prog)s --profile-limit 50               # Sample only the 50 longest trails
  %(prog)s --samples 20 --concurrency 3     # Denser profiles, gentler on USGS
  %(prog)s --force-refresh                  # Ignore an interrupted run, start over
  %(prog)s --log-level DEBUG                # Enable debug logging

Notes:
  - Interrupted runs resume from the last checkpoint automatically
  - Check logs/elevation_enrichment.log for detailed progress
        """,
    )
    parser.add_argument(
        "--input",
        default=config.DEFAULT_INPUT_FILE,
        metavar="FILE",
        help=f"Input trails JSON (default: {config.DEFAULT_INPUT_FILE})",
    )
    parser.add_argument(
        "--output",
        default=config.DEFAULT_OUTPUT_FILE,
        metavar="FILE",
        help=f"Output trails JSON (default: {config.DEFAULT_OUTPUT_FILE})",
    )
    parser.add_argument(
        "--progress-file",
        default=config.DEFAULT_PROGRESS_FILE,
        metavar="FILE",
        help=f"Progress checkpoint file (default: {config.DEFAULT_PROGRESS_FILE})",
    )
    parser.add_argument(
        "--profile-limit",
        type=int,
        default=config.USGS_PROFILE_LIMIT,
        metavar="N",
        help=f"Sample USGS profiles for the N longest trails (default: {config.USGS_PROFILE_LIMIT})",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=config.PROFILE_SAMPLES,
        metavar="N",
        help=f"Points sampled per USGS profile (default: {config.PROFILE_SAMPLES})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=config.USGS_CONCURRENCY,
        metavar="N",
        help=f"Concurrent USGS requests per trail (default: {config.USGS_CONCURRENCY})",
    )
    parser.add_argument(
        "--checkpoint-interval",
        type=int,
        default=config.CHECKPOINT_INTERVAL,
        metavar="N",
        help=f"Checkpoint every N trails (default: {config.CHECKPOINT_INTERVAL})",
    )
    parser.add_argument(
        "--force-refresh",
        action="store_true",
        help="Discard progress from an interrupted run and start over",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=config.LOG_LEVEL,
        help="Set logging level",
    )

    args = parser.parse_args()

    for name in ("samples", "concurrency", "checkpoint_interval"):
        if getattr(args, name) < 1:
            parser.error(f"--{name.replace('_', '-')} must be at least 1")
    if args.profile_limit < 0:
        parser.error("--profile-limit cannot be negative")

    logger = setup_elevation_enrichment_logging(args.log_level)

    try:
        orchestrator = ElevationEnrichmentOrchestrator(
            input_file=args.input,
            output_file=args.output,
            progress_file=args.progress_file,
            profile_limit=args.profile_limit,
            profile_samples=args.samples,
            concurrency=args.concurrency,
            checkpoint_interval=args.checkpoint_interval,
            logger=logger,
        )
        orchestrator.run(force_refresh=args.force_refresh)

    except FileNotFoundError as e:
        logger.error(f"❌ {e!s}")
        return 1
    except KeyboardInterrupt:
        print("\n🛑 Enrichment interrupted; rerun to resume from the last checkpoint")
        return 1
    except Exception as e:
        logger.error(f"💥 Elevation enrichment failed: {e!s}")
        return 1

    return 0


if __name__ == "__main__":
    exit(main())
