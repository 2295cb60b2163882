"""
Shared fixtures for LANA tests.
"""

import gzip
import json
import sys
from pathlib import Path

import pytest

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from lana.config import Config, PointOfInterest

SEATTLE = PointOfInterest("USA_WA_Seattle", 47.6062, -122.3321, 50)


def heavy_jet(lat=SEATTLE.latitude, lon=SEATTLE.longitude, **overrides):
    """ADS-B record of a wide body in level flight at 5000 ft."""
    record = {
        "hex": "a1b2c3",
        "lat": lat,
        "lon": lon,
        "alt_baro": 5000,
        "gs": 250,
        "geom_rate": 0,
        "category": "A5",
        "t": "B77W",
    }
    record.update(overrides)
    return record


@pytest.fixture
def write_snapshot():
    """Return a helper writing a gzip-compressed snapshot file."""

    def _write(path, aircraft=None, payload=None):
        data = payload if payload is not None else {"now": 1693526400.0, "aircraft": aircraft or []}
        with gzip.open(path, "wt", encoding="utf-8") as f:
            json.dump(data, f)
        return str(path)

    return _write


@pytest.fixture
def run_config(tmp_path):
    """Configuration pointing at empty temporary input and output dirs."""
    input_root = tmp_path / "flight-history"
    (input_root / "2023-09-01").mkdir(parents=True)

    config = Config()
    config.set("data.flight_history_dir", str(input_root))
    config.set("data.date", "2023-09-01")
    config.set("data.output_dir", str(tmp_path / "heatmaps"))
    config.set("points_of_interest", {
        SEATTLE.identifier: {"latitude": SEATTLE.latitude, "longitude": SEATTLE.longitude},
    })
    config.set("heatmap.radius_miles", 50)
    config.set("processing.workers", 2)
    config.set("processing.file_timeout_seconds", 60)
    config.set("processing.progress_interval", 1)
    return config
