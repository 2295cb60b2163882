"""
Map Generator
Creates interactive Folium base maps around a point of interest.
"""

import logging

import folium

from .constants import (
    DEFAULT_MAP_STYLE,
    DEFAULT_ZOOM,
    MAP_TILE_URLS,
    METERS_PER_MILE,
    RADIUS_COLOR,
    RADIUS_OPACITY,
    RADIUS_WEIGHT,
)

logger = logging.getLogger(__name__)


class MapGenerator:
    """
    Generates interactive maps using Folium.
    """

    def __init__(
        self,
        center_lat: float,
        center_lon: float,
        zoom: int = DEFAULT_ZOOM,
        style: str = DEFAULT_MAP_STYLE,
        title: str = "Point of Interest",
    ):
        """
        Initialize map generator.

        Args:
            center_lat: Center latitude (point of interest)
            center_lon: Center longitude (point of interest)
            zoom: Initial zoom level (default: 10)
            style: Map style/theme (default: CartoDB.DarkMatter)
            title: Marker tooltip and HTML page title
        """
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.zoom = zoom
        self.style = style
        self.title = title

        # Create base map
        self.map = self._create_base_map()

    def _create_base_map(self) -> folium.Map:
        """Create base Folium map with a marker on the center."""

        if self.style in MAP_TILE_URLS:
            tiles = MAP_TILE_URLS[self.style]
        else:
            tiles = self.style

        m = folium.Map(
            location=[self.center_lat, self.center_lon],
            zoom_start=self.zoom,
            tiles=tiles,
            attr="LANA Noise Visualization",
        )

        folium.Marker(
            [self.center_lat, self.center_lon],
            popup=self.title,
            tooltip=self.title,
            icon=folium.Icon(color="red", icon="volume-up", prefix="fa"),
        ).add_to(m)

        return m

    def add_radius(self, radius_miles: float):
        """
        Outline the search radius around the center.

        Args:
            radius_miles: Radius in miles
        """
        folium.Circle(
            location=[self.center_lat, self.center_lon],
            radius=radius_miles * METERS_PER_MILE,
            color=RADIUS_COLOR,
            weight=RADIUS_WEIGHT,
            opacity=RADIUS_OPACITY,
            fill=False,
            tooltip=f"{radius_miles:g} mi search radius",
        ).add_to(self.map)

    def save(self, filename: str):
        """
        Save map to HTML file.

        Args:
            filename: Output filename (should end in .html)
        """
        self.map.save(filename)

        # Give the page a readable title
        with open(filename, "r", encoding="utf-8") as f:
            html_content = f.read()
        insert = f"<head>\n    <title>LANA - {self.title}</title>"
        html_content = html_content.replace("<head>", insert, 1)
        with open(filename, "w", encoding="utf-8") as f:
            f.write(html_content)

        logger.info("Map saved to %s", filename)
