"""Integration tests for service assembly and the command-line entry point.

Builds the spatial services from a temporary environment configuration over
GeoJSON region files and drives the CLI commands end to end.
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest

from geosim.config import ConfigLoader
from geosim.exceptions import GeoSimConfigurationError
from modules.spatial_reasoning import build_spatial_services
from modules.spatial_reasoning.factory import build_region_provider
from modules.spatial_reasoning.main import main
from modules.spatial_reasoning.models import AvailabilityReason, MobileAgent, Region, RegionLevel
from modules.spatial_reasoning.region_provider import GeoJSONRegionProvider, InMemoryRegionProvider


def square(min_lng, min_lat, max_lng, max_lat):
    return {
        "type": "Polygon",
        "coordinates": [[
            [min_lng, min_lat], [max_lng, min_lat], [max_lng, max_lat],
            [min_lng, max_lat], [min_lng, min_lat],
        ]],
    }


def collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


def feature(region_id, parent_id, geometry):
    properties = {"id": region_id, "name": region_id}
    if parent_id:
        properties["parent_id"] = parent_id
    return {"type": "Feature", "properties": properties, "geometry": geometry}


@pytest.fixture
def workspace():
    """Config directory plus GeoJSON region files for one country, state and city."""
    with tempfile.TemporaryDirectory() as temp_dir:
        root = Path(temp_dir)
        regions = root / "regions"
        regions.mkdir()
        files = {
            "countries.geojson": collection(feature("AA", None, square(0, 0, 10, 10))),
            "states.geojson": collection(feature("AA-1", "AA", square(0, 0, 5, 5))),
            "cities.geojson": collection(feature("AA-1-C", "AA-1", square(0, 0, 0.005, 0.005))),
        }
        for name, content in files.items():
            with open(regions / name, 'w') as f:
                json.dump(content, f)

        config = {
            "shared": {
                "spatial": {
                    "lot_grid": {"cell_size_degrees": 0.001},
                    "wander": {"batch_size": 5},
                }
            },
            "environments": {
                "development": {
                    "region_source": {"type": "geojson", "data_dir": str(regions)},
                    "logging": {"level": "DEBUG", "format": "standard"},
                    "processing": {"slow_operation_seconds": 30.0},
                    "spatial": {"wander": {"min_distance_km": 10, "max_distance_km": 100}},
                },
                "production": {
                    "region_source": {"type": "memory"},
                    "logging": {"level": "INFO", "format": "json"},
                    "processing": {},
                },
            },
        }
        with open(root / "environment_config.json", 'w') as f:
            json.dump(config, f)

        yield root


@pytest.fixture(autouse=True)
def restore_root_logger():
    yield
    root = logging.getLogger()
    for handler in root.handlers:
        handler.close()
    root.handlers.clear()
    root.setLevel(logging.WARNING)


class TestBuildSpatialServices:
    """Test build_spatial_services."""

    def test_services_from_configuration(self, workspace):
        services = build_spatial_services(ConfigLoader(str(workspace)), "development")

        assert isinstance(services.provider, GeoJSONRegionProvider)
        assert services.settings.wander.batch_size == 5
        assert services.settings.wander.max_distance_km == 100
        assert services.allocator.config.cell_size_degrees == 0.001
        assert services.driver.config.batch_size == 5
        assert services.monitor.slow_operation_seconds == 30.0

    def test_components_share_polygon_cache(self, workspace):
        services = build_spatial_services(ConfigLoader(str(workspace)), "development")

        assert services.allocator.polygon_lookup is services.index.polygon_lookup
        assert services.allocator.monitor is services.driver.monitor

    def test_end_to_end_resolve_allocate_and_move(self, workspace):
        services = build_spatial_services(ConfigLoader(str(workspace)), "development")

        hierarchy = services.index.resolve(0.002, 0.002)
        assert hierarchy.get_region_ids() == {"country": "AA", "state": "AA-1", "city": "AA-1-C"}

        lot = services.allocator.allocate_lot("AA-1-C", "building-1")
        assert lot.occupant_id == "building-1"
        assert services.allocator.get_grid_summary("AA-1-C") == {"total": 36, "occupied": 1, "free": 35}

        agent = MobileAgent(id="walker", position={"lat": 5, "lng": 5}, country_id="AA")
        tick = services.driver.run_tick([agent])
        assert tick.moved == 1
        assert services.monitor.get_operation_metrics("movement_tick")

    def test_injected_provider_and_memory_source(self, workspace):
        provider = InMemoryRegionProvider([Region(id="ZZ", level="country", geometry=square(0, 0, 1, 1))])

        services = build_spatial_services(ConfigLoader(str(workspace)), "production", provider=provider)

        assert services.provider is provider
        assert services.index.resolve(0.5, 0.5).country.id == "ZZ"

    def test_scoped_invalidation_reaches_allocator(self, workspace):
        provider = InMemoryRegionProvider([
            Region(id="ZZ", level="country", geometry=square(0, 0, 1, 1)),
            Region(id="ZZ-1", level="state", parent_id="ZZ", geometry=square(0, 0, 1, 1)),
            Region(id="ZZ-1-C", level="city", parent_id="ZZ-1", geometry=square(0, 0, 0.005, 0.005)),
        ])
        services = build_spatial_services(ConfigLoader(str(workspace)), "production", provider=provider)
        assert services.index.resolve(0.004, 0.004).city.id == "ZZ-1-C"
        assert services.allocator.validate_availability("ZZ-1-C", (0.004, 0.004)).available is True

        provider.upsert_region(
            Region(id="ZZ-1-C", level="city", parent_id="ZZ-1", geometry=square(0, 0, 0.002, 0.002))
        )
        services.index.invalidate(RegionLevel.CITY, "ZZ-1")

        assert services.index.resolve(0.004, 0.004).city is None
        result = services.allocator.validate_availability("ZZ-1-C", (0.004, 0.004))
        assert result.reason is AvailabilityReason.OUTSIDE_BOUNDARY

    def test_unknown_region_source(self):
        with pytest.raises(GeoSimConfigurationError):
            build_region_provider({"type": "postgres"})

    def test_geojson_source_requires_directory(self):
        with pytest.raises(GeoSimConfigurationError):
            build_region_provider({"type": "geojson"})


def run_cli(workspace, *args):
    return main(["--config-dir", str(workspace), "--log-level", "ERROR", *args])


class TestCommandLine:
    """Test the spatial reasoning CLI."""

    def test_resolve(self, workspace, capsys):
        exit_code = run_cli(workspace, "resolve", "--lat", "3", "--lng", "3")

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["regions"] == {"country": "AA", "state": "AA-1", "city": None}
        assert output["depth"] == 2

    def test_grid(self, workspace, capsys):
        exit_code = run_cli(workspace, "grid", "--city-id", "AA-1-C")

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["lot_count"] == 36
        assert output["free"] == 36

    def test_availability_outside_city(self, workspace, capsys):
        exit_code = run_cli(workspace, "availability", "--city-id", "AA-1-C", "--lat", "4", "--lng", "4")

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["available"] is False
        assert output["reason"] == "outside_city_boundary"

    def test_unknown_city_reports_error(self, workspace, capsys):
        exit_code = run_cli(workspace, "grid", "--city-id", "nowhere")

        assert exit_code == 1
        assert "nowhere" in json.loads(capsys.readouterr().err)["error"]

    def test_data_dir_override(self, workspace, capsys):
        empty = workspace / "empty"
        empty.mkdir()

        run_cli(workspace, "--data-dir", str(empty), "resolve", "--lat", "3", "--lng", "3")

        assert json.loads(capsys.readouterr().out)["valid"] is False

    def test_command_required(self, workspace):
        with pytest.raises(SystemExit):
            run_cli(workspace)
