"""
LANA - Local Aircraft Noise Analysis

Turns a day of ADS-B snapshot files into noise heatmaps around your points
of interest.

Components:
    - noise: Acoustic model, spatial grid and parallel aggregation
    - visualization: Interactive heatmap rendering

Example:
    >>> from lana import Config
    >>> from lana.noise import AggregationCoordinator
    >>> config = Config('config.yaml')
    >>> AggregationCoordinator(config).run()
"""

import importlib

# Component imports for easy access
from . import noise
from . import utils
from . import config
from .config import Config

LANA_VERSION = "v0.1.0"

__version__ = LANA_VERSION
__author__ = "LANA Project"
__license__ = "MIT"

__all__ = [
    "noise",
    "visualization",
    "utils",
    "config",
    "Config",
]


def __getattr__(name):
    # visualization pulls in folium; worker processes never need it
    if name == "visualization":
        return importlib.import_module(".visualization", __name__)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
