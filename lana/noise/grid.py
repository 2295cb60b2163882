"""
Spatial Grid
Equal-area bucketing of received noise around a point of interest.

Cells store linear sound power sums. Levels are converted to decibels only
when the grid is read out, so contributions from any number of aircraft
and files combine by plain addition regardless of order.
"""

from dataclasses import dataclass
from math import cos, floor
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from lana.config import Constants, PointOfInterest, Settings
from lana.utils import decibels_to_linear, linear_to_decibels, to_radians

CellKey = Tuple[int, int]  # (row, col)

# Keeps the longitude scale finite at the poles
_MIN_LON_SCALE = 1e-6


@dataclass
class GridCell:
    """Accumulated linear power for one cell."""

    linear_sum: float = 0.0
    count: int = 0
    center_lat: float = 0.0
    center_lon: float = 0.0

    @property
    def average_linear(self) -> float:
        return self.linear_sum / self.count if self.count else 0.0

    @property
    def average_db(self) -> float:
        average = self.average_linear
        return linear_to_decibels(average) if average > 0 else float("-inf")


class SpatialGrid:
    """
    Grid of ~cell_size_km square cells centred on an origin.

    Uses an equirectangular projection: north-south kilometers per degree
    are constant, east-west kilometers per degree are scaled by the cosine
    of the origin latitude.

    Example:
        >>> grid = SpatialGrid(47.6062, -122.3321)
        >>> key = grid.cell_key(47.61, -122.33)
        >>> grid.accumulate(key, 62.0)
        >>> grid.to_points('decibel')
    """

    def __init__(
        self,
        origin_lat: float,
        origin_lon: float,
        cell_size_km: float = Settings.DEFAULT_CELL_SIZE_KM,
    ):
        """
        Initialize an empty grid.

        Args:
            origin_lat: Grid origin latitude (point of interest)
            origin_lon: Grid origin longitude (point of interest)
            cell_size_km: Cell edge length in kilometers
        """
        self.origin_lat = origin_lat
        self.origin_lon = origin_lon
        self.cell_size_km = cell_size_km
        self.km_per_degree_lat = Constants.KM_PER_DEGREE_LAT
        self.km_per_degree_lon = Constants.KM_PER_DEGREE_LAT * max(
            cos(to_radians(origin_lat)), _MIN_LON_SCALE
        )
        self.cells: Dict[CellKey, GridCell] = {}

    @classmethod
    def for_point(
        cls, poi: PointOfInterest, cell_size_km: float = Settings.DEFAULT_CELL_SIZE_KM
    ) -> "SpatialGrid":
        """Create an empty grid with a point of interest as origin."""
        return cls(poi.latitude, poi.longitude, cell_size_km)

    # --- Addressing ---

    def cell_for(self, lat: float, lon: float) -> Tuple[int, int, float, float]:
        """
        Locate the cell containing a position.

        Returns:
            Tuple of (row, col, center_lat, center_lon)
        """
        row = floor((lat - self.origin_lat) * self.km_per_degree_lat / self.cell_size_km)
        col = floor((lon - self.origin_lon) * self.km_per_degree_lon / self.cell_size_km)
        center_lat, center_lon = self.cell_center((row, col))
        return row, col, center_lat, center_lon

    def cell_key(self, lat: float, lon: float) -> CellKey:
        row, col, _, _ = self.cell_for(lat, lon)
        return row, col

    def cell_center(self, key: CellKey) -> Tuple[float, float]:
        """Deterministic (lat, lon) centre of a cell."""
        row, col = key
        center_lat = self.origin_lat + (row + 0.5) * self.cell_size_km / self.km_per_degree_lat
        center_lon = self.origin_lon + (col + 0.5) * self.cell_size_km / self.km_per_degree_lon
        return center_lat, center_lon

    # --- Accumulation ---

    def _cell(self, key: CellKey) -> GridCell:
        cell = self.cells.get(key)
        if cell is None:
            center_lat, center_lon = self.cell_center(key)
            cell = GridCell(center_lat=center_lat, center_lon=center_lon)
            self.cells[key] = cell
        return cell

    def accumulate(self, key: CellKey, received_level_db: float) -> GridCell:
        """
        Add one received level to a cell.

        The level is converted to linear power before it is summed; decibel
        values are never averaged directly.
        """
        cell = self._cell(key)
        cell.linear_sum += decibels_to_linear(received_level_db)
        cell.count += 1
        return cell

    def add_power(self, key: CellKey, linear_sum: float, count: int) -> GridCell:
        """Add an already linear power sum covering `count` contributions."""
        cell = self._cell(key)
        cell.linear_sum += linear_sum
        cell.count += count
        return cell

    # --- Combination ---

    def is_compatible(self, other: "SpatialGrid") -> bool:
        return (
            self.origin_lat == other.origin_lat
            and self.origin_lon == other.origin_lon
            and self.cell_size_km == other.cell_size_km
        )

    def merge(self, other: "SpatialGrid") -> "SpatialGrid":
        """
        Fold another grid into this one, cell by cell.

        Sums and counts add, so merging is associative and commutative.

        Raises:
            ValueError: If the grids use a different origin or cell size
        """
        if not self.is_compatible(other):
            raise ValueError(
                "Cannot merge grids with different origin or cell size: "
                f"({self.origin_lat}, {self.origin_lon}, {self.cell_size_km}) vs "
                f"({other.origin_lat}, {other.origin_lon}, {other.cell_size_km})"
            )

        for key, cell in other.cells.items():
            self.add_power(key, cell.linear_sum, cell.count)
        return self

    @classmethod
    def merge_all(
        cls, grids: Iterable["SpatialGrid"], into: Optional["SpatialGrid"] = None
    ) -> Optional["SpatialGrid"]:
        """
        Merge several grids; the first one (or `into`) receives the rest.

        Returns:
            The merged grid, or None when nothing was given
        """
        result = into
        for grid in grids:
            if result is None:
                result = cls(grid.origin_lat, grid.origin_lon, grid.cell_size_km)
            result.merge(grid)
        return result

    # --- Read-out ---

    def to_points(
        self,
        output_format: str = Settings.DEFAULT_OUTPUT_FORMAT,
        floor_db: float = Settings.SIGNIFICANCE_FLOOR_DB,
    ) -> List[List[float]]:
        """
        Convert the grid to heatmap points.

        Args:
            output_format: 'linear' for average power, 'decibel' (or 'db')
                for the average level
            floor_db: Cells with an average level at or below are dropped

        Returns:
            List of [center_lat, center_lon, intensity]
        """
        output_format = Settings.OUTPUT_FORMAT_ALIASES.get(output_format, output_format)
        if output_format not in Settings.OUTPUT_FORMATS:
            raise ValueError(f"Unknown output format: {output_format}")

        points = []
        for cell in self.cells.values():
            if cell.count <= 0:
                continue
            average_db = cell.average_db
            if average_db <= floor_db:
                continue
            value = average_db if output_format == "decibel" else cell.average_linear
            points.append([cell.center_lat, cell.center_lon, value])

        return points

    # --- Container protocol ---

    def __len__(self) -> int:
        return len(self.cells)

    def __contains__(self, key: object) -> bool:
        return key in self.cells

    def __getitem__(self, key: CellKey) -> GridCell:
        return self.cells[key]

    def __iter__(self) -> Iterator[CellKey]:
        return iter(self.cells)

    @property
    def is_empty(self) -> bool:
        return not self.cells
