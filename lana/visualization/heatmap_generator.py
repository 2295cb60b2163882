"""
Heatmap Generator
Renders written noise heatmaps as interactive maps.
"""

import json
import logging
import os
from typing import Any, Dict, List, Optional

from folium import plugins

from lana.config import Settings

from .constants import (
    HEATMAP_BLUR,
    HEATMAP_GRADIENT,
    HEATMAP_MAX_ZOOM,
    HEATMAP_MIN_OPACITY,
    HEATMAP_RADIUS,
)
from .map_generator import MapGenerator

logger = logging.getLogger(__name__)


def normalize_points(points: List[List[float]]) -> List[List[float]]:
    """Scale intensities to [0, 1] relative to the loudest cell."""
    if not points:
        return []

    peak = max(point[2] for point in points)
    if peak <= 0:
        return [[lat, lon, 0.0] for lat, lon, _ in points]
    return [[lat, lon, max(0.0, value) / peak] for lat, lon, value in points]


class HeatmapGenerator:
    """
    Generates noise heatmap pages from an aggregation output directory.
    """

    def __init__(self, output_dir: str):
        """
        Initialize heatmap generator.

        Args:
            output_dir: Directory holding metadata.json and *_heatmap.json

        Raises:
            FileNotFoundError: If the run metadata is missing
        """
        self.output_dir = output_dir
        with open(os.path.join(output_dir, Settings.METADATA_FILE), "r", encoding="utf-8") as f:
            self.metadata: Dict[str, Any] = json.load(f)

    def load_points(self, identifier: str) -> List[List[float]]:
        """Load the heatmap points written for one point of interest."""
        path = os.path.join(self.output_dir, f"{identifier}{Settings.HEATMAP_FILE_SUFFIX}")
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)

    def _weights(self, points: List[List[float]]) -> List[List[float]]:
        # Decibel levels start at the significance floor, not at 0
        if self.metadata.get("output_format") == "decibel":
            floor = Settings.SIGNIFICANCE_FLOOR_DB
            points = [[lat, lon, value - floor] for lat, lon, value in points]
        return normalize_points(points)

    def generate_heatmap(self, identifier: str, output_file: Optional[str] = None) -> str:
        """
        Render the heatmap of one point of interest.

        Args:
            identifier: Point of interest identifier
            output_file: Output HTML filename (default: next to the JSON)

        Returns:
            Path of the written HTML file
        """
        coordinates = self.metadata.get("coordinates", {}).get(identifier)
        if coordinates is None:
            raise KeyError(f"Unknown point of interest: {identifier}")

        points = self.load_points(identifier)
        logger.info("Plotting %d cells for %s", len(points), identifier)

        map_gen = MapGenerator(
            coordinates["latitude"],
            coordinates["longitude"],
            title=identifier.replace("_", " "),
        )
        if self.metadata.get("radius_miles"):
            map_gen.add_radius(float(self.metadata["radius_miles"]))

        if points:
            plugins.HeatMap(
                self._weights(points),
                min_opacity=HEATMAP_MIN_OPACITY,
                max_zoom=HEATMAP_MAX_ZOOM,
                radius=HEATMAP_RADIUS,
                blur=HEATMAP_BLUR,
                gradient=HEATMAP_GRADIENT,
            ).add_to(map_gen.map)

        if output_file is None:
            output_file = os.path.join(self.output_dir, f"{identifier}_heatmap.html")
        map_gen.save(output_file)
        return output_file

    def generate_all(self) -> List[str]:
        """Render every point of interest that has a written heatmap."""
        written = []
        for identifier in self.metadata.get("points_of_interest", []):
            if identifier not in self.metadata.get("point_counts", {}):
                logger.warning("No heatmap written for %s, skipping", identifier)
                continue
            written.append(self.generate_heatmap(identifier))
        return written
