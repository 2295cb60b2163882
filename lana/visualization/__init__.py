"""
LANA Visualization Component

Interactive map visualizations of aggregated noise heatmaps.

Main Classes:
    - MapGenerator: Base interactive map creation with Folium
    - HeatmapGenerator: Noise heatmap pages from aggregation output

Example:
    >>> from lana.visualization import HeatmapGenerator
    >>> HeatmapGenerator('data/heatmaps').generate_all()
"""

# Main visualization components
from .map_generator import MapGenerator
from .heatmap_generator import HeatmapGenerator, normalize_points

# Utilities
from . import constants

__all__ = [
    # Main classes
    "MapGenerator",
    "HeatmapGenerator",
    "normalize_points",
    # Modules
    "constants",
]
