"""
Checkpoint Store

File-based persistence for the elevation enrichment run:

- the enriched dataset, always rewritten in full
- a small progress record whose presence marks an interrupted run

A checkpoint writes the dataset first and the progress record second, each via
a temporary file and an atomic rename. A progress record therefore never
points past work that is not on disk. The progress file is deleted once a run
completes, so its absence means there is nothing to resume.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from scripts.storage.trail_schemas import TrailRecord, TrailsDataset


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProgressRecord(BaseModel):
    """Progress of an enrichment run, threaded through the run and checkpointed.

    Serialized with camelCase keys (``lastProcessedIndex`` ...).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    last_processed_index: int = Field(-1, ge=-1)
    processed_count: int = Field(0, ge=0)
    error_count: int = Field(0, ge=0)
    usgs_call_count: int = Field(0, ge=0)
    last_run_time: str = Field(default_factory=_utc_now)
    started_at: str = Field(default_factory=_utc_now)

    @property
    def start_index(self) -> int:
        return self.last_processed_index + 1


class CheckpointStore:
    """Read and write the dataset and progress files of an enrichment run."""

    def __init__(
        self,
        output_file: str,
        progress_file: str,
        logger: logging.Logger | None = None,
    ) -> None:
        """
        Args:
            output_file: Path of the enriched dataset
            progress_file: Path of the progress record
            logger: Logger instance for operation tracking
        """
        self.output_file = output_file
        self.progress_file = progress_file
        self.logger = logger or logging.getLogger(__name__)

    def locate_input(self, input_file: str, fallback_file: str | None = None) -> str:
        """
        Find the input dataset, falling back to the raw catalogue file.

        Args:
            input_file: Preferred input (soil-enriched trails)
            fallback_file: Raw trails file used when the preferred input is missing

        Returns:
            str: Path of the input file to use

        Raises:
            FileNotFoundError: If neither file exists
        """
        if os.path.exists(input_file):
            return input_file

        if fallback_file and os.path.exists(fallback_file):
            self.logger.warning(
                f"Input file {input_file} not found, using raw trails from {fallback_file}"
            )
            return fallback_file

        raise FileNotFoundError(
            f"No input file found (looked for {input_file}"
            + (f" and {fallback_file}" if fallback_file else "")
            + "). Fetch the trail catalogue first."
        )

    def load_dataset(self, path: str) -> TrailsDataset:
        """
        Load and validate a trails dataset.

        Raises:
            OSError: If the file cannot be read
            json.JSONDecodeError: If the file is not valid JSON
            ValidationError: If the document does not match the dataset schema
        """
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        dataset = TrailsDataset.model_validate(data)
        self.logger.info(f"Loaded {len(dataset.trails)} trails from {path}")
        return dataset

    def load_progress(self) -> ProgressRecord | None:
        """
        Load the progress record of an interrupted run.

        Returns:
            ProgressRecord | None: The record, or None if there is no progress file
            or it cannot be used (it is then ignored and the run starts fresh)
        """
        if not os.path.exists(self.progress_file):
            return None

        try:
            with open(self.progress_file, "r", encoding="utf-8") as f:
                return ProgressRecord.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            self.logger.warning(
                f"Ignoring unreadable progress file {self.progress_file}: {e}"
            )
            return None

    def load_resume_trails(self, expected_count: int) -> list[TrailRecord] | None:
        """
        Load partially enriched trails written by the last checkpoint.

        Args:
            expected_count: Number of trails in the input dataset

        Returns:
            list[TrailRecord] | None: The checkpointed trails, or None if the output
            file is missing, unreadable, or does not line up with the input
        """
        if not os.path.exists(self.output_file):
            self.logger.warning(
                f"Progress file exists but output {self.output_file} is missing"
            )
            return None

        try:
            checkpoint = self.load_dataset(self.output_file)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            self.logger.warning(f"Cannot resume from {self.output_file}: {e}")
            return None

        if len(checkpoint.trails) != expected_count:
            self.logger.warning(
                f"Checkpoint has {len(checkpoint.trails)} trails but input has "
                f"{expected_count}; not resuming"
            )
            return None

        return checkpoint.trails

    def save_dataset(self, dataset: TrailsDataset) -> None:
        """Write the full dataset, stamped with the enrichment time."""
        dataset.elevation_enriched_at = _utc_now()
        self._write_json(
            self.output_file, dataset.model_dump(mode="json", exclude_unset=True)
        )

    def save_progress(self, progress: ProgressRecord) -> None:
        self._write_json(
            self.progress_file, progress.model_dump(mode="json", by_alias=True)
        )

    def save_checkpoint(self, dataset: TrailsDataset, progress: ProgressRecord) -> None:
        """Persist dataset, then progress; the progress record is the commit marker."""
        self.save_dataset(dataset)
        self.save_progress(progress)

    def clear_progress(self) -> None:
        """Delete the progress file after a completed run."""
        if os.path.exists(self.progress_file):
            os.remove(self.progress_file)
            self.logger.info(f"Removed progress file {self.progress_file}")

    def _write_json(self, path: str, payload: dict[str, Any]) -> None:
        directory = os.path.dirname(path) or "."
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(
            dir=directory, prefix=".tmp-", suffix=".json"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
            os.replace(tmp_path, path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise
