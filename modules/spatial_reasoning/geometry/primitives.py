"""Geometry Primitives

Pure geometric helpers used by every spatial component: polygon parsing,
point-in-polygon containment, bounding boxes, bounding-box sampling and
great-circle distance.

Malformed input never raises. Every primitive returns ``None`` as the
"invalid" sentinel instead, because callers scan large batches of external
region records where a single partial record must not abort the scan.

Coordinates follow GeoJSON order (lng, lat) inside polygon data; points are
passed as ``(lat, lng)`` tuples or any object with ``lat``/``lng`` attributes.
"""

import logging
import math
import numbers
import random
from dataclasses import dataclass, field
from typing import Any, List, NamedTuple, Optional, Sequence, Tuple

from shapely.errors import ShapelyError
from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry
from shapely.prepared import prep
from shapely.validation import make_valid

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0

LatLng = Tuple[float, float]


class BoundingBox(NamedTuple):
    """Axis-aligned box in degrees, ordered (minLng, minLat, maxLng, maxLat)."""
    min_lng: float
    min_lat: float
    max_lng: float
    max_lat: float

    def contains(self, lat: float, lng: float) -> bool:
        """O(1) inclusive containment test used to pre-filter polygon tests."""
        return self.min_lat <= lat <= self.max_lat and self.min_lng <= lng <= self.max_lng

    @property
    def width(self) -> float:
        return self.max_lng - self.min_lng

    @property
    def height(self) -> float:
        return self.max_lat - self.min_lat


@dataclass(frozen=True)
class RegionShape:
    """Parsed, validated polygon ready for repeated containment tests.

    A shape is one or more disjoint parts (islands). A point is contained when
    it falls inside any part; holes are only expressed inside a GeoJSON
    Polygon part, never by overlapping parts.
    """
    parts: Tuple[Polygon, ...]
    bbox: BoundingBox
    area: float
    _prepared: Tuple[Any, ...] = field(default=(), repr=False, compare=False)

    @classmethod
    def from_parts(cls, parts: Sequence[Polygon]) -> "RegionShape":
        min_lng = min(part.bounds[0] for part in parts)
        min_lat = min(part.bounds[1] for part in parts)
        max_lng = max(part.bounds[2] for part in parts)
        max_lat = max(part.bounds[3] for part in parts)
        return cls(
            parts=tuple(parts),
            bbox=BoundingBox(min_lng, min_lat, max_lng, max_lat),
            area=sum(part.area for part in parts),
            _prepared=tuple(prep(part) for part in parts),
        )

    def contains(self, lat: float, lng: float) -> bool:
        """Bounding-box pre-filter followed by the exact per-part test."""
        if not self.bbox.contains(lat, lng):
            return False
        return self.contains_exact(lat, lng)

    def contains_exact(self, lat: float, lng: float) -> bool:
        """Exact test, boundary inclusive, OR across parts."""
        point = Point(lng, lat)
        return any(prepared.covers(point) for prepared in self._prepared)


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """Check that lat/lng are finite numbers inside the WGS84 ranges."""
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, numbers.Real):
            return False
        if not math.isfinite(value):
            return False
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def as_lat_lng(point: Any) -> Optional[LatLng]:
    """Normalise a point-like value to a ``(lat, lng)`` tuple, or None if invalid."""
    if point is None:
        return None
    if hasattr(point, "lat") and hasattr(point, "lng"):
        lat, lng = point.lat, point.lng
    else:
        try:
            lat, lng = point
        except (TypeError, ValueError):
            return None
    if not is_valid_coordinate(lat, lng):
        return None
    return float(lat), float(lng)


def _position(raw: Any) -> Tuple[float, float]:
    if isinstance(raw, (str, bytes)) or len(raw) < 2:
        raise ValueError(f"Invalid position: {raw!r}")
    lng, lat = raw[0], raw[1]
    if not is_valid_coordinate(lat, lng):
        raise ValueError(f"Invalid coordinate in position: {raw!r}")
    return float(lng), float(lat)


def _ring(raw: Any) -> List[Tuple[float, float]]:
    positions = [_position(item) for item in raw]
    if len(set(positions)) < 3:
        raise ValueError("Ring needs at least 3 distinct positions")
    return positions


def _polygon_from_rings(rings: Any) -> Polygon:
    if not rings:
        raise ValueError("Polygon has no rings")
    shell = _ring(rings[0])
    holes = [_ring(hole) for hole in rings[1:]]
    return Polygon(shell, holes)


def _is_position(value: Any) -> bool:
    return (
        isinstance(value, (list, tuple))
        and len(value) >= 2
        and all(isinstance(v, numbers.Real) for v in value[:2])
    )


def _polygonal_parts(geometry: BaseGeometry) -> List[Polygon]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, Polygon):
        return [geometry]
    parts: List[Polygon] = []
    for child in getattr(geometry, "geoms", []):
        parts.extend(_polygonal_parts(child))
    return parts


def _raw_parts(geometry: Any) -> List[Polygon]:
    if isinstance(geometry, BaseGeometry):
        return _polygonal_parts(geometry)

    if isinstance(geometry, dict):
        if geometry.get("type") == "Feature":
            return _raw_parts(geometry.get("geometry"))
        geometry_type = geometry.get("type")
        coordinates = geometry.get("coordinates")
        if geometry_type == "Polygon":
            return [_polygon_from_rings(coordinates)]
        if geometry_type == "MultiPolygon":
            if not coordinates:
                raise ValueError("MultiPolygon has no parts")
            return [_polygon_from_rings(rings) for rings in coordinates]
        raise ValueError(f"Unsupported geometry type: {geometry_type!r}")

    if isinstance(geometry, (list, tuple)) and geometry:
        # Bare ring: [[lng, lat], ...]
        if _is_position(geometry[0]):
            return [Polygon(_ring(geometry))]
        # Set of bare rings, one part per ring
        return [Polygon(_ring(ring)) for ring in geometry]

    raise ValueError(f"Unsupported polygon input: {type(geometry).__name__}")


def to_region_shape(geometry: Any) -> Optional[RegionShape]:
    """Parse polygon data into a RegionShape.

    Accepts GeoJSON Polygon/MultiPolygon (or a Feature wrapping one), shapely
    polygonal geometries, a bare ring, or a list of bare rings. Self-intersecting
    parts are repaired with ``make_valid``; anything that leaves no polygonal
    area behind is invalid.

    Returns:
        RegionShape, or None when the input is missing or malformed
    """
    if isinstance(geometry, RegionShape):
        return geometry
    if geometry is None:
        return None

    try:
        parts = []
        for part in _raw_parts(geometry):
            if not part.is_valid:
                parts.extend(_polygonal_parts(make_valid(part)))
            else:
                parts.append(part)
    except (TypeError, ValueError, KeyError, IndexError, ShapelyError) as e:
        logger.debug(f"Rejected malformed polygon: {e}")
        return None

    parts = [part for part in parts if part.area > 0]
    if not parts:
        return None
    return RegionShape.from_parts(parts)


def contains(polygon: Any, point: Any) -> Optional[bool]:
    """Point-in-polygon test, OR across the parts of a multi-part polygon.

    Returns:
        True/False, or None if the polygon or point is invalid
    """
    shape = to_region_shape(polygon)
    coords = as_lat_lng(point)
    if shape is None or coords is None:
        return None
    return shape.contains(*coords)


def bounding_box(polygon: Any) -> Optional[BoundingBox]:
    """Bounding box (minLng, minLat, maxLng, maxLat) of a polygon, or None if invalid."""
    shape = to_region_shape(polygon)
    if shape is None:
        return None
    return shape.bbox


def random_point_in(bbox: Sequence[float], rng: Optional[random.Random] = None) -> Optional[LatLng]:
    """Uniform sample over a bounding box (not the polygon).

    Callers must check containment themselves (rejection sampling).

    Returns:
        ``(lat, lng)``, or None if the box is malformed
    """
    try:
        min_lng, min_lat, max_lng, max_lat = (float(v) for v in bbox)
    except (TypeError, ValueError):
        return None
    if not all(math.isfinite(v) for v in (min_lng, min_lat, max_lng, max_lat)):
        return None
    if min_lng > max_lng or min_lat > max_lat:
        return None

    rng = rng or random
    return rng.uniform(min_lat, max_lat), rng.uniform(min_lng, max_lng)


def distance_km(p1: Any, p2: Any) -> Optional[float]:
    """Great-circle (haversine) distance in kilometres, or None for invalid points."""
    a = as_lat_lng(p1)
    b = as_lat_lng(p2)
    if a is None or b is None:
        return None

    lat1, lng1 = map(math.radians, a)
    lat2, lng2 = map(math.radians, b)
    dlat = lat2 - lat1
    dlng = lng2 - lng1

    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))
