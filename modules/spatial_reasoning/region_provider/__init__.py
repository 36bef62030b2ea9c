"""Region Providers for the Spatial Reasoning Core

This package defines the upstream region data interface and its in-memory and
GeoJSON file implementations.
"""

from .base import RegionProvider
from .in_memory_provider import InMemoryRegionProvider
from .geojson_provider import GeoJSONRegionProvider

__all__ = ['RegionProvider', 'InMemoryRegionProvider', 'GeoJSONRegionProvider']
