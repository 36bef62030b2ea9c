"""Spatial Hierarchy Components

Region caching, single-region polygon lookups and the coordinate to
{country, state, city} resolver.
"""

from .region_cache import RegionCache
from .polygon_lookup import PolygonLookup
from .spatial_hierarchy_index import SpatialHierarchyIndex

__all__ = ['RegionCache', 'PolygonLookup', 'SpatialHierarchyIndex']
