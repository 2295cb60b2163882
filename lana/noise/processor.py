"""
Snapshot Processor
Folds one gzip-compressed ADS-B snapshot into one grid per point of interest.
"""

import gzip
import json
import logging
import os
import zlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from lana.config import PointOfInterest, Settings
from lana.utils import distance_miles, haversine_distance

from .acoustics import AcousticModel, Observation
from .grid import SpatialGrid

logger = logging.getLogger(__name__)

# Result status values
STATUS_OK = "ok"
STATUS_QUARANTINED = "quarantined"
STATUS_FAILED = "failed"
STATUS_TIMEOUT = "timeout"


class CorruptSnapshotError(Exception):
    """A snapshot file could not be decompressed or parsed."""

    def __init__(self, path: str, reason: Exception):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


@dataclass(frozen=True)
class SnapshotResult:
    """Outcome of processing one snapshot file."""

    path: str
    status: str = STATUS_OK
    grids: Dict[str, SpatialGrid] = field(default_factory=dict)
    observations: int = 0  # Positioned observations in the file

    @classmethod
    def empty(cls, path: str, status: str) -> "SnapshotResult":
        return cls(path=path, status=status)


def quarantine(path: str) -> bool:
    """
    Remove a corrupt snapshot so later runs do not fail on it again.

    Returns:
        True if the file was deleted
    """
    try:
        os.remove(path)
    except FileNotFoundError:
        return False
    except OSError as e:
        logger.error("Could not quarantine %s: %s", path, e)
        return False

    logger.warning("Quarantined corrupt snapshot %s", path)
    return True


def read_snapshot(path: str) -> List[Dict[str, Any]]:
    """
    Decompress and parse a snapshot file.

    Any top-level shape other than {"aircraft": [...]} is empty input.

    Raises:
        CorruptSnapshotError: On truncated or invalid gzip or JSON data
    """
    try:
        with open(path, "rb") as f:
            raw = f.read()
        data = json.loads(gzip.decompress(raw).decode("utf-8"))
    except (
        EOFError,
        zlib.error,
        gzip.BadGzipFile,
        UnicodeDecodeError,
        ValueError,
        RecursionError,
    ) as e:
        # json.JSONDecodeError is a ValueError; deep nesting exhausts the parser stack
        raise CorruptSnapshotError(path, e) from e

    if not isinstance(data, dict):
        return []
    aircraft = data.get("aircraft")
    if not isinstance(aircraft, list):
        return []
    return [record for record in aircraft if isinstance(record, dict)]


class SnapshotProcessor:
    """
    Turns snapshot files into per point-of-interest partial grids.

    Example:
        >>> processor = SnapshotProcessor(config.points_of_interest)
        >>> result = processor.process('data/flight-history/2023-09-01/000000Z.json.gz')
        >>> len(result.grids['USA_WA_Seattle'])
    """

    def __init__(
        self,
        points: Sequence[PointOfInterest],
        cell_size_km: float = Settings.DEFAULT_CELL_SIZE_KM,
        model: Optional[AcousticModel] = None,
    ):
        """
        Initialize snapshot processor.

        Args:
            points: Points of interest (grid origins and radius filters)
            cell_size_km: Grid cell edge length
            model: Acoustic model (default: calibrated NPD tables)
        """
        self.points = list(points)
        self.cell_size_km = cell_size_km
        self.model = model or AcousticModel()

    def empty_grids(self) -> Dict[str, SpatialGrid]:
        return {
            poi.identifier: SpatialGrid.for_point(poi, self.cell_size_km)
            for poi in self.points
        }

    def process(self, path: str) -> SnapshotResult:
        """
        Process one snapshot file. Never raises.

        Corrupt files are quarantined and contribute empty grids.

        Args:
            path: Path to gzip-compressed JSON snapshot

        Returns:
            SnapshotResult with one grid per point of interest
        """
        try:
            records = read_snapshot(path)
        except CorruptSnapshotError as e:
            logger.warning("Failed to read snapshot %s: %s", path, e.reason)
            quarantine(path)
            return SnapshotResult(path, STATUS_QUARANTINED, self.empty_grids())
        except OSError as e:
            logger.error("Could not open snapshot %s: %s", path, e)
            return SnapshotResult(path, STATUS_FAILED, self.empty_grids())
        except Exception:
            logger.exception("Unexpected error reading %s", path)
            return SnapshotResult(path, STATUS_FAILED, self.empty_grids())

        try:
            observations = self.parse_observations(records)
            grids = self.fold(observations)
        except Exception:
            logger.exception("Unexpected error processing %s", path)
            return SnapshotResult(path, STATUS_FAILED, self.empty_grids())

        return SnapshotResult(path, STATUS_OK, grids, len(observations))

    @staticmethod
    def parse_observations(records: List[Dict[str, Any]]) -> List[Observation]:
        """Parse aircraft records, dropping those without a finite position."""
        observations = []
        for record in records:
            observation = Observation.from_record(record)
            if observation.has_position:
                observations.append(observation)
        return observations

    def fold(self, observations: List[Observation]) -> Dict[str, SpatialGrid]:
        """Fold observations into one fresh grid per point of interest."""
        grids = self.empty_grids()
        for poi in self.points:
            grid = grids[poi.identifier]
            for observation in observations:
                self.add_observation(grid, poi, observation)
        return grids

    def add_observation(
        self, grid: SpatialGrid, poi: PointOfInterest, observation: Observation
    ) -> bool:
        """
        Add an observation's received level to its own grid cell.

        The observation contributes only inside the point of interest's
        search radius and within the source's audible radius of the point.

        Returns:
            True if a cell was updated
        """
        if not observation.has_position:
            return False

        lat, lon = observation.lat, observation.lon
        if not distance_miles(poi.latitude, poi.longitude, lat, lon) <= poi.radius_miles:
            return False

        contribution = self.model.contribution(observation, poi.latitude, poi.longitude)
        if contribution is None:
            return False

        row, col, center_lat, center_lon = grid.cell_for(lat, lon)
        horizontal_km = haversine_distance(lat, lon, center_lat, center_lon)
        slant_km = self.model.slant_distance_km(horizontal_km, observation.altitude_ft)
        level = self.model.received_level(contribution.source_level_db, slant_km)
        grid.accumulate((row, col), level)
        return True


def process_snapshot_file(
    path: str,
    points: Sequence[PointOfInterest],
    cell_size_km: float = Settings.DEFAULT_CELL_SIZE_KM,
) -> SnapshotResult:
    """Worker entry point: process one file in a fresh processor."""
    return SnapshotProcessor(points, cell_size_km).process(path)
