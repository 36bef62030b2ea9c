"""Unit tests for geometry primitives.

Tests containment over simple, holed and multi-part polygons, bounding boxes,
bounding-box sampling, haversine distance and the "invalid" sentinel returned
for malformed input.
"""

import math
import random

import pytest
from shapely.geometry import Polygon

from modules.spatial_reasoning.geometry import (
    BoundingBox,
    RegionShape,
    as_lat_lng,
    bounding_box,
    contains,
    distance_km,
    is_valid_coordinate,
    random_point_in,
    to_region_shape,
)
from modules.spatial_reasoning.models import GeoPoint


def square_ring(min_lng, min_lat, max_lng, max_lat):
    return [
        [min_lng, min_lat], [max_lng, min_lat], [max_lng, max_lat],
        [min_lng, max_lat], [min_lng, min_lat],
    ]


def geojson_square(min_lng, min_lat, max_lng, max_lat):
    return {"type": "Polygon", "coordinates": [square_ring(min_lng, min_lat, max_lng, max_lat)]}


class TestCoordinateValidation:
    """Test coordinate validation helpers."""

    @pytest.mark.parametrize("lat, lng", [(0, 0), (-90, -180), (90, 180), (45.5, -122.3)])
    def test_valid_coordinates(self, lat, lng):
        assert is_valid_coordinate(lat, lng) is True

    @pytest.mark.parametrize("lat, lng", [
        (91, 0), (0, 181), (-90.0001, 0),
        (float("nan"), 0), (0, float("inf")),
        ("10", "20"), (None, 0), (True, 0),
    ])
    def test_invalid_coordinates(self, lat, lng):
        assert is_valid_coordinate(lat, lng) is False

    def test_as_lat_lng_accepts_points_and_tuples(self):
        assert as_lat_lng((1, 2)) == (1.0, 2.0)
        assert as_lat_lng(GeoPoint(lat=3.5, lng=4.5)) == (3.5, 4.5)

    @pytest.mark.parametrize("value", [None, (1,), (1, 2, 3), "ab", (100, 0)])
    def test_as_lat_lng_rejects_malformed(self, value):
        assert as_lat_lng(value) is None


class TestContains:
    """Test point-in-polygon containment."""

    def test_strictly_inside_and_outside_square(self):
        """Property check over a grid of points clearly inside or outside."""
        polygon = geojson_square(0, 0, 10, 10)
        rng = random.Random(7)

        for _ in range(200):
            lat, lng = rng.uniform(0.01, 9.99), rng.uniform(0.01, 9.99)
            assert contains(polygon, (lat, lng)) is True

        for _ in range(200):
            lat, lng = rng.uniform(10.01, 20), rng.uniform(-20, 20)
            assert contains(polygon, (lat, lng)) is False
            assert contains(polygon, (rng.uniform(-10, 10), rng.uniform(-20, -0.01))) is False

    def test_boundary_points_are_contained(self):
        polygon = geojson_square(0, 0, 10, 10)

        assert contains(polygon, (0, 5)) is True
        assert contains(polygon, (10, 10)) is True

    def test_multipart_polygon_is_or_across_parts(self):
        """Islands: a point in any part is contained, the gap between them is not."""
        islands = {
            "type": "MultiPolygon",
            "coordinates": [
                [square_ring(0, 0, 1, 1)],
                [square_ring(5, 5, 6, 6)],
            ],
        }

        assert contains(islands, (0.5, 0.5)) is True
        assert contains(islands, (5.5, 5.5)) is True
        assert contains(islands, (3, 3)) is False

    def test_list_of_bare_rings_is_multipart(self):
        rings = [square_ring(0, 0, 1, 1), square_ring(5, 5, 6, 6)]

        assert contains(rings, (5.5, 5.5)) is True
        assert contains(rings, (3, 3)) is False

    def test_bare_ring(self):
        assert contains(square_ring(0, 0, 2, 2), (1, 1)) is True

    def test_polygon_hole_excludes_points(self):
        holed = {
            "type": "Polygon",
            "coordinates": [square_ring(0, 0, 10, 10), square_ring(4, 4, 6, 6)],
        }

        assert contains(holed, (5, 5)) is False
        assert contains(holed, (1, 1)) is True

    def test_feature_wrapper_and_shapely_input(self):
        feature = {"type": "Feature", "properties": {}, "geometry": geojson_square(0, 0, 1, 1)}

        assert contains(feature, (0.5, 0.5)) is True
        assert contains(Polygon([(0, 0), (1, 0), (1, 1), (0, 1)]), (0.5, 0.5)) is True

    def test_self_intersecting_polygon_is_repaired(self):
        bowtie = [[0, 0], [2, 2], [2, 0], [0, 2], [0, 0]]

        shape = to_region_shape(bowtie)

        assert shape is not None
        assert shape.area > 0

    @pytest.mark.parametrize("polygon", [
        None,
        {},
        {"type": "Point", "coordinates": [0, 0]},
        {"type": "Polygon", "coordinates": []},
        {"type": "Polygon", "coordinates": [[[0, 0], [1, 1], [0, 0]]]},
        {"type": "Polygon", "coordinates": [[[0, 0], ["a", 1], [1, 0], [0, 0]]]},
        {"type": "Polygon", "coordinates": [[[0, 0], [float("nan"), 1], [1, 0], [0, 0]]]},
        {"type": "MultiPolygon", "coordinates": []},
        [[0, 0], [0, 0], [0, 0]],
        "not a polygon",
        42,
    ])
    def test_malformed_polygon_returns_sentinel(self, polygon):
        """Malformed polygons never raise; they yield None."""
        assert contains(polygon, (0.5, 0.5)) is None
        assert bounding_box(polygon) is None

    def test_invalid_point_returns_sentinel(self):
        assert contains(geojson_square(0, 0, 1, 1), (200, 0)) is None


class TestBoundingBox:
    """Test bounding boxes."""

    def test_bounding_box_order(self):
        bbox = bounding_box(geojson_square(-3, 1, 4, 2))

        assert bbox == BoundingBox(-3, 1, 4, 2)
        assert bbox.width == 7
        assert bbox.height == 1

    def test_bounding_box_spans_all_parts(self):
        bbox = bounding_box([square_ring(0, 0, 1, 1), square_ring(5, 5, 6, 6)])

        assert bbox == BoundingBox(0, 0, 6, 6)

    def test_bbox_contains_is_inclusive(self):
        bbox = BoundingBox(0, 0, 1, 1)

        assert bbox.contains(1, 1) is True
        assert bbox.contains(1.0001, 0.5) is False

    def test_region_shape_passthrough(self):
        shape = to_region_shape(geojson_square(0, 0, 1, 1))

        assert isinstance(shape, RegionShape)
        assert to_region_shape(shape) is shape
        assert shape.area == pytest.approx(1.0)


class TestRandomPointIn:
    """Test uniform bounding-box sampling."""

    def test_samples_stay_in_box(self):
        rng = random.Random(3)
        bbox = (10, -5, 12, 5)

        for _ in range(500):
            lat, lng = random_point_in(bbox, rng)
            assert -5 <= lat <= 5
            assert 10 <= lng <= 12

    def test_seeded_sampling_is_reproducible(self):
        bbox = BoundingBox(0, 0, 1, 1)

        assert random_point_in(bbox, random.Random(1)) == random_point_in(bbox, random.Random(1))

    @pytest.mark.parametrize("bbox", [None, (0, 0, 1), (1, 0, 0, 1), (0, float("nan"), 1, 1), "abcd"])
    def test_malformed_box_returns_sentinel(self, bbox):
        assert random_point_in(bbox) is None


class TestDistanceKm:
    """Test haversine distance."""

    def test_zero_distance(self):
        assert distance_km((5, 5), (5, 5)) == 0

    def test_one_degree_of_latitude(self):
        assert distance_km((0, 0), (1, 0)) == pytest.approx(111.19, abs=0.05)

    def test_symmetric(self):
        a, b = (-23.55, -46.63), (40.71, -74.0)

        assert distance_km(a, b) == pytest.approx(distance_km(b, a))

    def test_antipodal_points(self):
        assert distance_km((0, 0), (0, 180)) == pytest.approx(math.pi * 6371.0)

    def test_accepts_geo_points(self):
        assert distance_km(GeoPoint(lat=0, lng=0), (0, 1)) == pytest.approx(111.19, abs=0.05)

    def test_invalid_point_returns_sentinel(self):
        assert distance_km((0, 0), (95, 0)) is None
        assert distance_km(None, (0, 0)) is None
