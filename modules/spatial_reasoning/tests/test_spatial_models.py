"""Unit tests for spatial reasoning data models.

Tests pydantic validation of regions, lots, agents, results and component
configuration.
"""

import pytest
from pydantic import ValidationError

from modules.spatial_reasoning.models import (
    AgentMove,
    AvailabilityReason,
    AvailabilityResult,
    DestinationMethod,
    DestinationResult,
    GeoPoint,
    HierarchyResult,
    Lot,
    LotGridConfig,
    MobileAgent,
    MovementBatchResult,
    Region,
    RegionLevel,
    SpatialSettings,
    TieBreak,
    WanderConfig,
)

SQUARE = {"type": "Polygon", "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]]}


class TestGeoPoint:
    """Test GeoPoint model."""

    def test_valid_point(self):
        point = GeoPoint(lat=-23.55, lng=-46.63)

        assert point.as_tuple() == (-23.55, -46.63)
        assert GeoPoint.from_tuple((-23.55, -46.63)) == point

    @pytest.mark.parametrize("lat, lng", [(91, 0), (0, -181)])
    def test_out_of_range_rejected(self, lat, lng):
        with pytest.raises(ValidationError):
            GeoPoint(lat=lat, lng=lng)

    def test_points_are_hashable(self):
        assert len({GeoPoint(lat=1, lng=2), GeoPoint(lat=1, lng=2)}) == 1


class TestRegion:
    """Test Region model."""

    def test_country_region(self):
        region = Region(id="BR", name="Brazil", level=RegionLevel.COUNTRY, geometry=SQUARE)

        assert region.parent_id is None
        assert region.get_shape() is not None
        assert region.summary() == {"id": "BR", "name": "Brazil", "level": "country", "parent_id": None}

    def test_country_with_parent_rejected(self):
        with pytest.raises(ValidationError, match="cannot have a parent_id"):
            Region(id="BR", level="country", parent_id="EARTH")

    def test_blank_parent_normalised(self):
        region = Region(id="SP", level="state", parent_id="  ")

        assert region.parent_id is None

    def test_orphan_state_is_valid_record(self):
        region = Region(id="XX-1", level="state", parent_id="XX")

        assert region.parent_id == "XX"

    def test_malformed_geometry_yields_no_shape(self):
        region = Region(id="BAD", level="city", parent_id="SP", geometry={"type": "Polygon"})

        assert region.get_shape() is None

    def test_child_level(self):
        assert RegionLevel.COUNTRY.child_level is RegionLevel.STATE
        assert RegionLevel.STATE.child_level is RegionLevel.CITY
        assert RegionLevel.CITY.child_level is None


class TestHierarchyResult:
    """Test HierarchyResult model."""

    def test_empty_result_is_not_valid(self):
        result = HierarchyResult(message="Coordinates are not inside any known country")

        assert result.valid is False
        assert result.depth == 0
        assert result.get_region_ids() == {"country": None, "state": None, "city": None}

    def test_partial_result_is_valid(self):
        country = Region(id="BR", level="country")
        state = Region(id="SP", level="state", parent_id="BR")

        result = HierarchyResult(country=country, state=state)

        assert result.valid is True
        assert result.depth == 2
        assert result.get_region_ids()["state"] == "SP"


class TestLot:
    """Test Lot model."""

    def test_free_lot(self):
        lot = Lot(lot_id="lot_c_1_2", city_id="c", grid_x=1, grid_y=2, lat=0.02, lng=0.01)

        assert lot.occupied is False
        assert lot.grid_key == ("c", 1, 2)

    def test_make_lot_id(self):
        assert Lot.make_lot_id("sao-paulo", 3, 4) == "lot_sao-paulo_3_4"

    @pytest.mark.parametrize("occupied, occupant_id", [(True, None), (False, "agent-1")])
    def test_occupancy_invariant(self, occupied, occupant_id):
        with pytest.raises(ValidationError, match="occupant_id"):
            Lot(lot_id="l", city_id="c", grid_x=0, grid_y=0, lat=0, lng=0,
                occupied=occupied, occupant_id=occupant_id)

    def test_negative_grid_index_rejected(self):
        with pytest.raises(ValidationError):
            Lot(lot_id="l", city_id="c", grid_x=-1, grid_y=0, lat=0, lng=0)

    def test_availability_result(self):
        result = AvailabilityResult(available=False, reason=AvailabilityReason.OUTSIDE_BOUNDARY)

        assert result.nearest_lot_id is None
        assert result.model_dump(mode="json")["reason"] == "outside_city_boundary"


class TestMobileAgentModels:
    """Test agent and movement models."""

    def test_agent_can_wander(self):
        agent = MobileAgent(id="a-1", position=GeoPoint(lat=5, lng=5), country_id="AA")

        assert agent.can_wander() is True
        assert MobileAgent(id="a-2", country_id="AA").can_wander() is False
        assert MobileAgent(id="a-3", position=GeoPoint(lat=5, lng=5)).can_wander() is False

    def test_no_destination_result(self):
        result = DestinationResult.no_destination(80)

        assert result.method is DestinationMethod.NO_DESTINATION
        assert result.has_destination is False
        assert result.attempts == 80

    def test_agent_move_defaults_to_walking(self):
        move = AgentMove(agent_id="a-1", position=GeoPoint(lat=1, lng=1))

        assert move.status.value == "walking"

    def test_batch_result_summary(self):
        result = MovementBatchResult(moved=3, stayed=2, errored=1, group_count=1, processing_duration=0.5)

        assert result.total == 6
        assert result.get_summary() == "3 moved, 2 stayed, 1 errored in 0.50s (1 groups)"
        assert MovementBatchResult(skipped_overlap=True).get_summary().startswith("Tick skipped")


class TestSpatialConfigModels:
    """Test component configuration models."""

    def test_defaults(self):
        settings = SpatialSettings.from_config({})

        assert settings.hierarchy.tie_break is TieBreak.SMALLEST_AREA
        assert settings.lot_grid.cell_size_degrees == 0.001
        assert settings.lot_grid.min_separation_km == 0.1
        assert settings.lot_grid.max_grid_cells == 1_000_000
        assert settings.wander.distance_band_attempts == 50
        assert settings.wander.relaxed_attempts == 30
        assert settings.wander.batch_size == 50

    def test_null_sections_use_defaults(self):
        settings = SpatialSettings.from_config({"hierarchy": None, "lot_grid": {"cell_size_degrees": 0.01}})

        assert settings.hierarchy.bbox_prefilter is True
        assert settings.lot_grid.cell_size_degrees == 0.01

    def test_inverted_distance_band_rejected(self):
        with pytest.raises(ValidationError, match="max_distance_km"):
            WanderConfig(min_distance_km=500, max_distance_km=200)

    @pytest.mark.parametrize("kwargs", [
        {"cell_size_degrees": 0},
        {"cell_size_degrees": -0.01},
        {"min_separation_km": -1},
        {"allocation_attempts": 0},
        {"max_grid_cells": 0},
    ])
    def test_lot_grid_bounds(self, kwargs):
        with pytest.raises(ValidationError):
            LotGridConfig(**kwargs)

    def test_unknown_tie_break_rejected(self):
        with pytest.raises(ValidationError):
            SpatialSettings.from_config({"hierarchy": {"tie_break": "largest_area"}})
