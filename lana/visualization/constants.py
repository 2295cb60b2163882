"""
Visualization Constants
"""

# Map configuration
DEFAULT_MAP_STYLE = "CartoDB.DarkMatter"
DEFAULT_ZOOM = 10
MAP_TILE_URLS = {
    "CartoDB.DarkMatter": "https://{s}.basemaps.cartocdn.com/dark_all/{z}/{x}/{y}{r}.png",
    "CartoDB.Positron": "https://{s}.basemaps.cartocdn.com/light_all/{z}/{x}/{y}{r}.png",
    "OpenStreetMap": "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png",
}

HEATMAP_GRADIENT = {  # Neon Plasma
    0.0:  "#120018",
    0.25: "#6a00ff",
    0.5:  "#ff2fd2",
    0.75: "#ff9f1c",
    1.0:  "#fff200",
}

# Heatmap layer
HEATMAP_MIN_OPACITY = 0.3
HEATMAP_RADIUS = 12
HEATMAP_BLUR = 18
HEATMAP_MAX_ZOOM = 18

# Search radius overlay
RADIUS_COLOR = "#00b4ff"
RADIUS_WEIGHT = 1
RADIUS_OPACITY = 0.5

METERS_PER_MILE = 1609.344
