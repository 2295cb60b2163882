"""
LANA Noise Component

Acoustic model and map-reduce pipeline turning ADS-B snapshot files into
noise heatmaps around points of interest.

Main Classes:
    - AcousticModel: Source level, propagation and audible radius
    - SpatialGrid: Equal-area linear power grid
    - SnapshotProcessor: One snapshot file to partial grids
    - WorkerPool: Bounded process pool with per-task timeout
    - AggregationCoordinator: Dispatch, reduce and write one run

Example:
    >>> from lana.config import Config
    >>> from lana.noise import AggregationCoordinator
    >>> summary = AggregationCoordinator(Config('config.yaml')).run()
"""

# Core noise components
from .acoustics import AcousticModel, Altitude, Contribution, Observation
from .constants import FlightPhase, NoiseTables, NPDProfile
from .grid import GridCell, SpatialGrid
from .processor import (
    CorruptSnapshotError,
    SnapshotProcessor,
    SnapshotResult,
    process_snapshot_file,
    quarantine,
)
from .pool import TaskOutcome, TaskTimeout, WorkerCrashed, WorkerPool
from .coordinator import AggregationCoordinator, CoordinatorState, RunSummary

# Tables
from . import constants

__all__ = [
    # Model
    "AcousticModel",
    "Altitude",
    "Contribution",
    "Observation",
    "FlightPhase",
    "NoiseTables",
    "NPDProfile",
    # Grid
    "GridCell",
    "SpatialGrid",
    # Processing
    "CorruptSnapshotError",
    "SnapshotProcessor",
    "SnapshotResult",
    "process_snapshot_file",
    "quarantine",
    "TaskOutcome",
    "TaskTimeout",
    "WorkerCrashed",
    "WorkerPool",
    "AggregationCoordinator",
    "CoordinatorState",
    "RunSummary",
    # Modules
    "constants",
]
