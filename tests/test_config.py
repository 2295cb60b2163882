"""
Tests for configuration management.
"""

import logging

import pytest
import yaml

from lana.config import Config, ConfigurationError, PointOfInterest, setup_logging


@pytest.fixture
def sample_config():
    """Get a custom configuration dictionary."""
    return {
        "data": {
            "flight_history_dir": "data/history",
            "date": "2023-09-02",
            "output_dir": "data/out",
        },
        "heatmap": {
            "radius_miles": 30,
            "cell_size_km": 0.5,
            "max_points": 1000,
            "output_format": "db",
        },
        "processing": {
            "workers": 3,
            "file_timeout_seconds": 15,
            "batch_size": 10,
        },
        "points_of_interest": {
            "USA_CO_Denver": {"latitude": 39.7392, "longitude": -104.9903},
        },
        "logging": {
            "level": "debug",
            "format": "%(levelname)s %(message)s",
        },
    }


class TestConfig:
    """Tests for Config class."""

    def test_default_config(self):
        """Test loading default configuration."""
        for path in ("non_existent_config.yaml", None):
            config = Config(config_path=path)
            assert config.date == "2023-09-01"
            assert config.radius_miles == 50
            assert config.output_format == "linear"
            assert "USA_WA_Seattle" in [p.identifier for p in config.points_of_interest]

    def test_custom_config(self, tmp_path, sample_config):
        """Test loading custom configuration from YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(sample_config))

        config = Config(config_path=str(path))
        assert config.date == "2023-09-02"
        assert config.input_dir.replace("\\", "/") == "data/history/2023-09-02"
        assert config.output_dir == "data/out"
        assert config.cell_size_km == 0.5
        assert config.max_points == 1000
        assert config.output_format == "decibel"
        assert config.workers == 3
        assert config.file_timeout == 15
        assert config.batch_size == 10
        assert config.points_of_interest == [
            PointOfInterest("USA_CO_Denver", 39.7392, -104.9903, 30.0)
        ]

    def test_unquoted_yaml_date(self, tmp_path, sample_config):
        """YAML parses bare dates; they still come back as strings."""
        path = tmp_path / "config.yaml"
        text = yaml.dump(sample_config).replace("'2023-09-02'", "2023-09-02")
        path.write_text(text)

        config = Config(config_path=str(path))
        assert config.date == "2023-09-02"

    def test_save_config(self, tmp_path, sample_config):
        """Test saving configuration to YAML file."""
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(sample_config))
        config = Config(config_path=str(path))

        config.set("heatmap.radius_miles", 75)
        config.save_config()

        reloaded = Config(config_path=str(path))
        assert reloaded.radius_miles == 75

    def test_save_without_path(self):
        with pytest.raises(ValueError):
            Config().save_config()

    def test_malformed_config(self, tmp_path):
        """Test handling of malformed configuration file."""
        path = tmp_path / "malformed.yaml"
        path.write_text(
            """
data:
  flight_history_dir: somewhere
points_of_interest:
  Nowhere:
    latitude: not_a_number
    longitude: 2.3522
"""
        )
        config = Config(config_path=str(path))
        # Should fall back to default config
        assert config.date == "2023-09-01"
        assert config.flight_history_dir == "data/flight-history"

    def test_unparseable_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("data: [unclosed")
        config = Config(config_path=str(path))
        assert config.output_dir == "data/heatmaps"

    def test_get_set_dot_notation(self):
        config = Config()
        assert config.get("heatmap.nonexistent", 7) == 7
        config.set("new.section.value", 3)
        assert config.get("new.section.value") == 3

    def test_default_workers(self):
        """Unset worker count is derived from the CPU count."""
        config = Config()
        config.set("processing.workers", None)
        assert 1 <= config.workers <= 8


class TestRuntimeValidation:
    """Tests for start-up validation."""

    def test_valid(self, run_config):
        run_config.validate_runtime()

    def test_missing_input_dir(self, run_config):
        run_config.set("data.date", "1999-01-01")
        with pytest.raises(ConfigurationError, match="Input directory"):
            run_config.validate_runtime()

    def test_no_points_of_interest(self, run_config):
        run_config.set("points_of_interest", {})
        with pytest.raises(ConfigurationError, match="points of interest"):
            run_config.validate_runtime()

    def test_empty_poi_section_in_file(self, tmp_path, sample_config):
        """An empty POI section is kept, not replaced by the defaults."""
        sample_config["points_of_interest"] = {}
        path = tmp_path / "config.yaml"
        path.write_text(yaml.dump(sample_config))

        config = Config(config_path=str(path))
        assert config.points_of_interest == []
        with pytest.raises(ConfigurationError):
            config.validate_runtime()

    def test_unknown_output_format(self, run_config):
        run_config.set("heatmap.output_format", "loudness")
        with pytest.raises(ConfigurationError, match="output format"):
            run_config.validate_runtime()

    def test_bad_worker_count(self, run_config):
        run_config.set("processing.workers", 0)
        with pytest.raises(ConfigurationError):
            run_config.validate_runtime()


@pytest.fixture
def restore_root_logger():
    """Undo setup_logging() changes to the root logger."""
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.usefixtures("restore_root_logger")
class TestLogging:
    """Tests for logging setup."""

    def test_setup_logging_level(self):
        config = Config()
        config.set("logging.level", "warning")
        setup_logging(config)
        assert logging.getLogger().level == logging.WARNING

    def test_setup_logging_file(self, tmp_path):
        config = Config()
        config.set("logging.directory", str(tmp_path / "logs"))
        setup_logging(config)
        logging.getLogger("lana.test").info("hello")

        log_files = list((tmp_path / "logs").glob("*.log"))
        assert len(log_files) == 1
