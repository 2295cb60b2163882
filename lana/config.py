"""
LANA Configuration Management

This module provides configuration management for the LANA noise heatmap
system. It includes physical constants, aggregation settings, logging setup,
and runtime configuration loaded from YAML files.
"""

import logging
import os
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger(__name__)

# =============================================================================
# Physical Constants
# =============================================================================


class Constants:
    """Physical constants representing real-world measurements."""

    EARTH_RADIUS_KM: float = 6371.0  # Earth's radius for distance calculations
    EARTH_RADIUS_MILES: float = 3958.8  # Earth's radius for the radius pre-filter
    EARTH_CIRCUMFERENCE_KM: float = 40075.0  # Equatorial circumference
    KM_PER_DEGREE_LAT: float = 40075.0 / 360  # Distance per degree latitude
    FEET_TO_KM: float = 0.0003048  # Altitude conversion factor
    FEET_TO_METERS: float = 0.3048


# =============================================================================
# Aggregation Settings
# =============================================================================


class Settings:
    """Defaults for the noise aggregation pipeline."""

    # --- Grid ---
    DEFAULT_CELL_SIZE_KM: float = 1.0  # Edge length of one grid cell
    DEFAULT_RADIUS_MILES: float = 50.0  # Search radius around each POI
    SIGNIFICANCE_FLOOR_DB: float = 35.0  # Cells at or below are not written
    AUDIBILITY_THRESHOLD_DB: float = 35.0  # Level bounding the audible radius

    # --- Output ---
    DEFAULT_MAX_POINTS: int = 50000  # Heatmap points written per POI
    OUTPUT_FORMATS = ("linear", "decibel")
    OUTPUT_FORMAT_ALIASES: Dict[str, str] = {"db": "decibel"}
    DEFAULT_OUTPUT_FORMAT: str = "linear"
    HEATMAP_FILE_SUFFIX: str = "_heatmap.json"
    METADATA_FILE: str = "metadata.json"

    # --- Processing ---
    MAX_DEFAULT_WORKERS: int = 8  # Each worker holds a decompressed file
    DEFAULT_FILE_TIMEOUT_SECONDS: float = 60.0
    DEFAULT_BATCH_SIZE: int = 50  # Partial results folded per reduction step
    DEFAULT_PROGRESS_INTERVAL: int = 100  # Files between progress log lines

    # --- Logging ---
    DEFAULT_LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def default_worker_count() -> int:
    """Worker count kept below the core count to bound memory."""
    cpus = os.cpu_count() or 1
    return max(1, min(cpus - 1, Settings.MAX_DEFAULT_WORKERS))


# =============================================================================
# Errors & Value Objects
# =============================================================================


class ConfigurationError(ValueError):
    """Raised when the configuration cannot support a run."""


@dataclass(frozen=True)
class PointOfInterest:
    """A named receiver location, also used as the grid origin."""

    identifier: str
    latitude: float
    longitude: float
    radius_miles: float = Settings.DEFAULT_RADIUS_MILES


# =============================================================================
# Runtime Configuration
# =============================================================================


class Config:
    """
    Runtime configuration manager for LANA.

    Loads settings from YAML files or uses sensible defaults.
    Provides property-based access to common settings.

    Example:
        >>> config = Config('config.yaml')
        >>> print(f"Processing {config.date} from {config.flight_history_dir}")
        >>> for poi in config.points_of_interest:
        ...     print(poi.identifier, poi.latitude, poi.longitude)
    """

    def __init__(self, config_path: Optional[str] = None) -> None:
        """
        Initialize configuration.

        Args:
            config_path: Path to YAML configuration file. If None or missing,
                        uses default configuration.
        """
        self.config_path = config_path
        self._config: Dict[str, Any] = self._load_config()

    def _load_config(self) -> Dict[str, Any]:
        """
        Load configuration from YAML file or return defaults.

        Returns:
            Configuration dictionary
        """
        if self.config_path is None or not os.path.exists(self.config_path):
            return self._get_default_config()

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Could not load config file %s: %s", self.config_path, e)
            return self._get_default_config()

        if self._validate_config(config):
            return config

        logger.warning("Invalid config structure in %s, using defaults", self.config_path)
        return self._get_default_config()

    def _validate_config(self, config: Dict[str, Any]) -> bool:
        """
        Validate configuration structure and required fields.

        An empty points-of-interest section is structurally valid; it is
        rejected by validate_runtime() so that the run fails loudly instead
        of silently falling back to the default cities.

        Args:
            config: Configuration dictionary to validate

        Returns:
            True if valid, False otherwise
        """
        try:
            # Required: data section
            assert "data" in config
            assert isinstance(config["data"]["flight_history_dir"], str)
            assert isinstance(config["data"]["output_dir"], str)
            assert "date" in config["data"]

            # Required: points of interest
            assert "points_of_interest" in config
            pois = config["points_of_interest"] or {}
            assert isinstance(pois, dict)
            for poi in pois.values():
                assert isinstance(poi["latitude"], (float, int))
                assert isinstance(poi["longitude"], (float, int))
                assert -90 <= poi["latitude"] <= 90
                assert -180 <= poi["longitude"] <= 180

            # Optional: heatmap radius must be positive when given
            heatmap = config.get("heatmap") or {}
            if "radius_miles" in heatmap:
                assert isinstance(heatmap["radius_miles"], (float, int))
                assert heatmap["radius_miles"] > 0

            return True
        except (AssertionError, KeyError, TypeError):
            return False

    def _get_default_config(self) -> Dict[str, Any]:
        """
        Get default configuration.

        Returns:
            Default configuration dictionary
        """
        return {
            "data": {
                "flight_history_dir": "data/flight-history",
                "date": "2023-09-01",
                "output_dir": "data/heatmaps",
            },
            "heatmap": {
                "radius_miles": Settings.DEFAULT_RADIUS_MILES,
                "cell_size_km": Settings.DEFAULT_CELL_SIZE_KM,
                "max_points": Settings.DEFAULT_MAX_POINTS,
                "output_format": Settings.DEFAULT_OUTPUT_FORMAT,
                "lightweight_mode": False,
            },
            "processing": {
                "workers": None,  # None: derived from CPU count
                "file_timeout_seconds": Settings.DEFAULT_FILE_TIMEOUT_SECONDS,
                "batch_size": Settings.DEFAULT_BATCH_SIZE,
                "progress_interval": Settings.DEFAULT_PROGRESS_INTERVAL,
            },
            "points_of_interest": {
                "USA_WA_Seattle": {"latitude": 47.6062, "longitude": -122.3321},
                "USA_IL_Chicago": {"latitude": 41.8781, "longitude": -87.6298},
                "GBR_London": {"latitude": 51.5074, "longitude": -0.1278},
                "DE_Berlin": {"latitude": 52.5200, "longitude": 13.4050},
            },
            "logging": {
                "level": "INFO",
                "format": Settings.DEFAULT_LOG_FORMAT,
                "directory": None,  # Set to e.g. 'logs' for daily log files
            },
        }

    def save_config(self) -> None:
        """
        Save current configuration to YAML file.

        Raises:
            ValueError: If config_path is not set
        """
        if self.config_path is None:
            raise ValueError("Cannot save config: no config_path specified")

        with open(self.config_path, "w", encoding="utf-8") as f:
            yaml.dump(self._config, f, default_flow_style=False)

    def validate_runtime(self) -> None:
        """
        Check that a run can start with this configuration.

        Raises:
            ConfigurationError: If the input directory is missing, no points
                of interest are configured, or a setting is out of range
        """
        if not self.points_of_interest:
            raise ConfigurationError("No points of interest configured")

        if not os.path.isdir(self.input_dir):
            raise ConfigurationError(f"Input directory not found: {self.input_dir}")

        if self.output_format not in Settings.OUTPUT_FORMATS:
            raise ConfigurationError(
                f"Unknown output format {self.get('heatmap.output_format')!r}, "
                f"expected one of {', '.join(Settings.OUTPUT_FORMATS)}"
            )

        if self.cell_size_km <= 0:
            raise ConfigurationError("heatmap.cell_size_km must be positive")

        if self.workers < 1 or self.batch_size < 1 or self.max_points < 0:
            raise ConfigurationError(
                "processing.workers and processing.batch_size must be >= 1, "
                "heatmap.max_points must be >= 0"
            )

        if self.file_timeout <= 0:
            raise ConfigurationError("processing.file_timeout_seconds must be positive")

    # --- Property Accessors ---

    @property
    def flight_history_dir(self) -> str:
        """Get root directory holding one snapshot directory per date."""
        return self._config["data"]["flight_history_dir"]

    @property
    def date(self) -> str:
        """Get run date (YYYY-MM-DD)."""
        value = self._config["data"]["date"]
        # YAML turns unquoted dates into date objects
        if isinstance(value, date):
            return value.isoformat()
        return str(value)

    @property
    def input_dir(self) -> str:
        """Get snapshot directory for the configured date."""
        return os.path.join(self.flight_history_dir, self.date)

    @property
    def output_dir(self) -> str:
        """Get directory receiving heatmap and metadata files."""
        return self._config["data"]["output_dir"]

    @property
    def radius_miles(self) -> float:
        """Get search radius in miles."""
        return float(self.get("heatmap.radius_miles", Settings.DEFAULT_RADIUS_MILES))

    @property
    def cell_size_km(self) -> float:
        """Get grid cell edge length in kilometers."""
        return float(self.get("heatmap.cell_size_km", Settings.DEFAULT_CELL_SIZE_KM))

    @property
    def max_points(self) -> int:
        """Get maximum number of heatmap points written per POI."""
        return int(self.get("heatmap.max_points", Settings.DEFAULT_MAX_POINTS))

    @property
    def output_format(self) -> str:
        """Get heatmap intensity format ('linear' or 'decibel')."""
        value = str(self.get("heatmap.output_format", Settings.DEFAULT_OUTPUT_FORMAT))
        value = value.lower()
        return Settings.OUTPUT_FORMAT_ALIASES.get(value, value)

    @property
    def lightweight_mode(self) -> bool:
        """Get whether every second snapshot file is skipped."""
        return bool(self.get("heatmap.lightweight_mode", False))

    @property
    def workers(self) -> int:
        """Get worker process count."""
        workers = self.get("processing.workers")
        if workers is None:
            return default_worker_count()
        return int(workers)

    @property
    def file_timeout(self) -> float:
        """Get per-file processing timeout in seconds."""
        return float(
            self.get(
                "processing.file_timeout_seconds",
                Settings.DEFAULT_FILE_TIMEOUT_SECONDS,
            )
        )

    @property
    def batch_size(self) -> int:
        """Get number of partial results folded per reduction batch."""
        return int(self.get("processing.batch_size", Settings.DEFAULT_BATCH_SIZE))

    @property
    def progress_interval(self) -> int:
        """Get number of processed files between progress reports."""
        return int(
            self.get("processing.progress_interval", Settings.DEFAULT_PROGRESS_INTERVAL)
        )

    @property
    def points_of_interest(self) -> List[PointOfInterest]:
        """Get configured points of interest, carrying the run radius."""
        pois = self._config.get("points_of_interest") or {}
        radius = self.radius_miles
        return [
            PointOfInterest(
                identifier=str(identifier),
                latitude=float(poi["latitude"]),
                longitude=float(poi["longitude"]),
                radius_miles=radius,
            )
            for identifier, poi in pois.items()
        ]

    @property
    def log_level(self) -> str:
        """Get logging level name."""
        return str(self.get("logging.level", "INFO")).upper()

    @property
    def log_format(self) -> str:
        """Get logging format string."""
        return self.get("logging.format", Settings.DEFAULT_LOG_FORMAT)

    @property
    def log_dir(self) -> Optional[str]:
        """Get directory for daily log files, if file logging is enabled."""
        return self.get("logging.directory")

    # --- Generic Accessors ---

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'heatmap.radius_miles')
            default: Default value if key not found

        Returns:
            Configuration value or default

        Example:
            >>> config.get('heatmap.radius_miles', 50)
            50
        """
        keys = key.split(".")
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Dot-separated key path (e.g., 'heatmap.radius_miles')
            value: Value to set

        Example:
            >>> config.set('processing.workers', 4)
        """
        keys = key.split(".")
        config = self._config

        # Navigate to parent of target key
        for k in keys[:-1]:
            if k not in config or config[k] is None:
                config[k] = {}
            config = config[k]

        # Set final value
        config[keys[-1]] = value


# =============================================================================
# Logging
# =============================================================================


def setup_logging(config: Config) -> None:
    """
    Configure the root logger from the 'logging' section.

    Writes to the console and, when a directory is configured, to a daily
    '<YYYY-MM-DD>.log' file inside it.

    Args:
        config: LANA configuration object
    """
    level = getattr(logging, config.log_level, logging.INFO)
    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        log_file = os.path.join(config.log_dir, f"{date.today().isoformat()}.log")
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=level, format=config.log_format, handlers=handlers, force=True
    )
