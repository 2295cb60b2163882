"""
Aggregation Coordinator
Map-reduce over one date's snapshot files.

Files are processed by a bounded worker pool; the partial grids they return
are folded batch by batch into one cumulative grid per point of interest,
which is then written out as a heatmap together with run metadata.
"""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Iterable, List, Optional

from lana.config import Config, PointOfInterest, Settings

from .grid import SpatialGrid
from .pool import TaskTimeout, WorkerPool
from .processor import (
    STATUS_FAILED,
    STATUS_OK,
    STATUS_QUARANTINED,
    STATUS_TIMEOUT,
    SnapshotResult,
    process_snapshot_file,
)

logger = logging.getLogger(__name__)


class CoordinatorState(Enum):
    """Lifecycle of one aggregation run; transitions only move forward."""

    IDLE = 0
    DISPATCHING = 1
    REDUCING = 2
    WRITING = 3
    DONE = 4


@dataclass
class FileStats:
    """Per-run file accounting."""

    total: int = 0
    processed: int = 0
    quarantined: int = 0
    timed_out: int = 0
    failed: int = 0
    observations: int = 0

    def record(self, result: SnapshotResult) -> None:
        if result.status == STATUS_OK:
            self.processed += 1
            self.observations += result.observations
        elif result.status == STATUS_QUARANTINED:
            self.quarantined += 1
        elif result.status == STATUS_TIMEOUT:
            self.timed_out += 1
        else:
            self.failed += 1

    @property
    def completed(self) -> int:
        return self.processed + self.quarantined + self.timed_out + self.failed


@dataclass
class RunSummary:
    """What a run produced."""

    date: str
    output_dir: str
    files: FileStats
    point_counts: Dict[str, int] = field(default_factory=dict)
    outputs: Dict[str, str] = field(default_factory=dict)  # POI -> file path
    errors: Dict[str, str] = field(default_factory=dict)  # POI -> message
    metadata_path: Optional[str] = None


def list_snapshot_files(directory: str, lightweight: bool = False) -> List[str]:
    """
    List snapshot files in a date directory, sorted by name.

    Args:
        directory: Directory holding one file per snapshot
        lightweight: Keep only every second file

    Returns:
        Sorted list of file paths
    """
    files = sorted(
        os.path.join(directory, name)
        for name in os.listdir(directory)
        if not name.startswith(".") and os.path.isfile(os.path.join(directory, name))
    )
    if lightweight:
        files = files[::2]
    return files


def write_points(path: str, points: Iterable[List[float]]) -> int:
    """
    Stream heatmap points to a JSON array file.

    Points are written one at a time into a temporary file that replaces
    the target only when complete, so a failed write leaves no partial
    output behind.

    Returns:
        Number of points written
    """
    directory = os.path.dirname(path) or "."
    fd, temp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    count = 0
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write("[")
            for point in points:
                if count:
                    f.write(",")
                f.write(json.dumps(point))
                count += 1
            f.write("]")
        os.replace(temp_path, path)
    except BaseException:
        try:
            os.remove(temp_path)
        except OSError:
            pass
        raise
    return count


class AggregationCoordinator:
    """
    Runs one aggregation pass: dispatch, reduce, write.

    Example:
        >>> config = Config('config.yaml')
        >>> summary = AggregationCoordinator(config).run()
        >>> summary.point_counts
        {'USA_WA_Seattle': 18342}
    """

    def __init__(self, config: Config, pool: Optional[WorkerPool] = None):
        """
        Initialize coordinator.

        Args:
            config: LANA configuration object
            pool: Worker pool (default: built from processing settings)
        """
        self.config = config
        self.pool = pool
        self.state = CoordinatorState.IDLE
        self.points: List[PointOfInterest] = []
        self.grids: Dict[str, SpatialGrid] = {}
        self.stats = FileStats()
        self._batch: List[SnapshotResult] = []

    def _advance(self, state: CoordinatorState) -> None:
        if state.value <= self.state.value:
            raise RuntimeError(f"Invalid transition {self.state.name} -> {state.name}")
        logger.debug("Coordinator %s -> %s", self.state.name, state.name)
        self.state = state

    def run(self) -> RunSummary:
        """
        Process every snapshot file of the configured date.

        Raises:
            ConfigurationError: If the input directory or points of
                interest are missing
            RuntimeError: If the coordinator has already run
        """
        if self.state is not CoordinatorState.IDLE:
            raise RuntimeError("AggregationCoordinator instances run only once")

        self.config.validate_runtime()

        self.points = self.config.points_of_interest
        self.grids = {
            poi.identifier: SpatialGrid.for_point(poi, self.config.cell_size_km)
            for poi in self.points
        }
        if self.pool is None:
            self.pool = WorkerPool(self.config.workers, self.config.file_timeout)

        files = list_snapshot_files(self.config.input_dir, self.config.lightweight_mode)
        self.stats.total = len(files)
        logger.info(
            "Processing %d snapshot files from %s for %d point(s) of interest "
            "with %d worker(s)",
            len(files),
            self.config.input_dir,
            len(self.points),
            self.pool.workers,
        )

        self._advance(CoordinatorState.DISPATCHING)
        self._dispatch(files)

        self._advance(CoordinatorState.REDUCING)
        self._flush_batch()

        self._advance(CoordinatorState.WRITING)
        summary = self._write()

        self._advance(CoordinatorState.DONE)
        return summary

    # --- Dispatching ---

    def _dispatch(self, files: List[str]) -> None:
        tasks = ((path, (path, self.points, self.config.cell_size_km)) for path in files)

        for outcome in self.pool.imap_unordered(process_snapshot_file, tasks):
            if outcome.ok:
                result = outcome.result
            elif isinstance(outcome.error, TaskTimeout):
                result = SnapshotResult.empty(outcome.key, STATUS_TIMEOUT)
            else:
                logger.error("Worker failed on %s: %s", outcome.key, outcome.error)
                result = SnapshotResult.empty(outcome.key, STATUS_FAILED)

            self._collect(result)
            self._report_progress()

    def _collect(self, result: SnapshotResult) -> None:
        self.stats.record(result)
        if result.grids:
            self._batch.append(result)
        if len(self._batch) >= self.config.batch_size:
            self._flush_batch()

    def _report_progress(self) -> None:
        done = self.stats.completed
        interval = max(1, self.config.progress_interval)
        if done % interval == 0 or done == self.stats.total:
            percent = round(done / self.stats.total * 100) if self.stats.total else 100
            logger.info("Processed %d/%d files (%d%%)", done, self.stats.total, percent)

    # --- Reducing ---

    def _flush_batch(self) -> None:
        """Fold the buffered partial results into the cumulative grids."""
        if not self._batch:
            return

        for poi in self.points:
            partials = [
                result.grids[poi.identifier]
                for result in self._batch
                if poi.identifier in result.grids
            ]
            batch_grid = SpatialGrid.merge_all(partials)
            if batch_grid is not None:
                self.grids[poi.identifier].merge(batch_grid)

        self._batch = []

    # --- Writing ---

    def heatmap_path(self, poi: PointOfInterest) -> str:
        return os.path.join(
            self.config.output_dir, f"{poi.identifier}{Settings.HEATMAP_FILE_SUFFIX}"
        )

    def _heatmap_points(self, grid: SpatialGrid) -> List[List[float]]:
        points = grid.to_points(self.config.output_format)
        points.sort(key=lambda point: point[2], reverse=True)
        return points[: self.config.max_points]

    def _write(self) -> RunSummary:
        summary = RunSummary(
            date=self.config.date, output_dir=self.config.output_dir, files=self.stats
        )

        try:
            os.makedirs(self.config.output_dir, exist_ok=True)
        except OSError as e:
            logger.error("Cannot create output directory %s: %s", self.config.output_dir, e)
            for poi in self.points:
                summary.errors[poi.identifier] = str(e)
            return summary

        for poi in self.points:
            path = self.heatmap_path(poi)
            points = self._heatmap_points(self.grids[poi.identifier])
            try:
                count = write_points(path, points)
            except OSError as e:
                logger.error("Failed to write heatmap for %s: %s", poi.identifier, e)
                summary.errors[poi.identifier] = str(e)
                continue

            summary.point_counts[poi.identifier] = count
            summary.outputs[poi.identifier] = path
            logger.info("Wrote %d points for %s to %s", count, poi.identifier, path)

        metadata_path = os.path.join(self.config.output_dir, Settings.METADATA_FILE)
        try:
            with open(metadata_path, "w", encoding="utf-8") as f:
                json.dump(self.build_metadata(summary), f, indent=2)
            summary.metadata_path = metadata_path
        except OSError as e:
            logger.error("Failed to write run metadata %s: %s", metadata_path, e)

        return summary

    def build_metadata(self, summary: RunSummary) -> Dict:
        """Run-level metadata record written next to the heatmaps."""
        return {
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "date": self.config.date,
            "points_of_interest": [poi.identifier for poi in self.points],
            "coordinates": {
                poi.identifier: {"latitude": poi.latitude, "longitude": poi.longitude}
                for poi in self.points
            },
            "radius_miles": self.config.radius_miles,
            "cell_size_km": self.config.cell_size_km,
            "output_format": self.config.output_format,
            "max_points": self.config.max_points,
            "point_counts": summary.point_counts,
            "files": {
                "total": self.stats.total,
                "processed": self.stats.processed,
                "quarantined": self.stats.quarantined,
                "timed_out": self.stats.timed_out,
                "failed": self.stats.failed,
            },
            "observations": self.stats.observations,
            "errors": summary.errors,
        }
