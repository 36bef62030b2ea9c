"""Geometry Primitives for the Spatial Reasoning Core

Stateless helpers shared by the hierarchy index, the lot grid allocator and the
wander generator.
"""

from .primitives import (
    EARTH_RADIUS_KM,
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

__all__ = [
    'EARTH_RADIUS_KM',
    'BoundingBox',
    'RegionShape',
    'as_lat_lng',
    'bounding_box',
    'contains',
    'distance_km',
    'is_valid_coordinate',
    'random_point_in',
    'to_region_shape',
]
