"""
Unit tests for ConfigLoader class.

This module contains tests for environment configuration loading, shared
spatial settings merging, validation and error handling.
"""

import json
import pytest
import tempfile
from pathlib import Path
from unittest.mock import patch

from geosim.config import ConfigLoader
from geosim.exceptions import GeoSimConfigurationError, GeoSimValidationError


class TestConfigLoader:
    """Test suite for ConfigLoader class."""

    @pytest.fixture
    def temp_config_dir(self):
        """Create a temporary directory for configuration files."""
        with tempfile.TemporaryDirectory() as temp_dir:
            yield Path(temp_dir)

    @pytest.fixture
    def valid_environment_config(self):
        """Valid environment configuration with shared spatial defaults."""
        return {
            "shared": {
                "spatial": {
                    "hierarchy": {"tie_break": "smallest_area"},
                    "lot_grid": {"cell_size_degrees": 0.001, "min_separation_km": 0.1},
                    "wander": {"min_distance_km": 200, "max_distance_km": 500, "batch_size": 50}
                }
            },
            "environments": {
                "development": {
                    "region_source": {"type": "geojson", "data_dir": "data/regions"},
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "processing": {"movement_tick_seconds": 5}
                },
                "production": {
                    "region_source": {"type": "geojson", "data_dir": "/var/lib/geosim/regions"},
                    "logging": {"level": "INFO", "format": "json"},
                    "processing": {"movement_tick_seconds": 5},
                    "spatial": {"wander": {"batch_size": 100}}
                }
            },
            "validation": {
                "required_environment_variables": ["GEOSIM_REGION_TOKEN"],
                "supported_environments": ["development", "production"]
            }
        }

    def _write(self, config_dir: Path, data) -> None:
        with open(config_dir / "environment_config.json", 'w') as f:
            json.dump(data, f)

    def test_init_default_config_dir(self):
        """Test ConfigLoader initialization with default config directory."""
        loader = ConfigLoader()
        assert loader.config_dir == Path("config")

    def test_init_custom_config_dir(self, temp_config_dir):
        """Test ConfigLoader initialization with custom config directory."""
        loader = ConfigLoader(str(temp_config_dir))
        assert loader.config_dir == temp_config_dir

    def test_load_environment_config_success(self, temp_config_dir, valid_environment_config):
        """Test successful loading of environment configuration."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))
        config = loader.load_environment_config("development")

        assert config["region_source"]["type"] == "geojson"
        assert config["logging"]["level"] == "DEBUG"
        assert config["spatial"]["lot_grid"]["cell_size_degrees"] == 0.001
        assert "_validation" in config

    def test_environment_spatial_override_merges_per_component(self, temp_config_dir, valid_environment_config):
        """Environment settings override single shared values without dropping the rest."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))
        wander = loader.get_spatial_config("production")["wander"]

        assert wander["batch_size"] == 100
        assert wander["min_distance_km"] == 200
        assert wander["max_distance_km"] == 500

    def test_shared_config_not_mutated_between_environments(self, temp_config_dir, valid_environment_config):
        """Loading production must not leak its overrides into development."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))
        loader.load_environment_config("production")

        assert loader.get_spatial_config("development")["wander"]["batch_size"] == 50

    def test_get_spatial_config_fills_missing_components(self, temp_config_dir, valid_environment_config):
        """Every spatial component is present even when not configured."""
        del valid_environment_config["shared"]
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))
        spatial = loader.get_spatial_config("development")

        assert spatial == {"hierarchy": {}, "lot_grid": {}, "wander": {}}

    def test_load_environment_config_file_not_found(self, temp_config_dir):
        """Test error when environment config file doesn't exist."""
        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="Environment configuration file not found"):
            loader.load_environment_config("development")

    def test_load_environment_config_invalid_json(self, temp_config_dir):
        """Test error when environment config contains invalid JSON."""
        with open(temp_config_dir / "environment_config.json", 'w') as f:
            f.write("{ invalid json }")

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="Invalid JSON"):
            loader.load_environment_config("development")

    def test_load_environment_config_unknown_environment(self, temp_config_dir, valid_environment_config):
        """Test error for an environment that is not configured."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="Environment 'staging' not found"):
            loader.load_environment_config("staging")

    def test_load_environment_config_missing_required_key(self, temp_config_dir, valid_environment_config):
        """Test error when an environment lacks a required section."""
        del valid_environment_config["environments"]["development"]["region_source"]
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="Missing required key 'region_source'"):
            loader.load_environment_config("development")

    def test_unknown_spatial_component_rejected(self, temp_config_dir, valid_environment_config):
        """Misspelt spatial components are reported instead of silently ignored."""
        valid_environment_config["environments"]["development"]["spatial"] = {"lotgrid": {}}
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="Unknown spatial components"):
            loader.load_environment_config("development")

    def test_get_region_source_requires_type(self, temp_config_dir, valid_environment_config):
        """Region source without a type is a configuration error."""
        valid_environment_config["environments"]["development"]["region_source"] = {"data_dir": "x"}
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimConfigurationError, match="missing 'type'"):
            loader.get_region_source("development")

    def test_get_region_source(self, temp_config_dir, valid_environment_config):
        """Region source section is returned as configured."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        assert loader.get_region_source("production")["data_dir"] == "/var/lib/geosim/regions"

    def test_load_environment_config_is_cached(self, temp_config_dir, valid_environment_config):
        """Repeated loads return the memoised configuration until the cache is cleared."""
        self._write(temp_config_dir, valid_environment_config)
        loader = ConfigLoader(str(temp_config_dir))

        first = loader.load_environment_config("development")
        assert loader.load_environment_config("development") is first

        loader.clear_cache()
        assert loader.load_environment_config("development") is not first

    @patch.dict('os.environ', {"GEOSIM_REGION_TOKEN": "secret"})
    def test_validate_environment_variables_success(self, temp_config_dir, valid_environment_config):
        """Test validation passes when required variables are set."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))
        loader.validate_environment_variables("development")

    @patch.dict('os.environ', {}, clear=True)
    def test_validate_environment_variables_missing(self, temp_config_dir, valid_environment_config):
        """Test validation error when required variables are missing."""
        self._write(temp_config_dir, valid_environment_config)

        loader = ConfigLoader(str(temp_config_dir))

        with pytest.raises(GeoSimValidationError, match="GEOSIM_REGION_TOKEN"):
            loader.validate_environment_variables("development")

    def test_repository_config_is_valid(self):
        """The shipped configuration loads for every supported environment."""
        config_dir = Path(__file__).resolve().parents[2] / "config"
        loader = ConfigLoader(str(config_dir))

        for environment in ("development", "production"):
            spatial = loader.get_spatial_config(environment)
            assert spatial["lot_grid"]["cell_size_degrees"] == 0.001
            assert spatial["wander"]["distance_band_attempts"] == 50
            assert spatial["wander"]["relaxed_attempts"] == 30
