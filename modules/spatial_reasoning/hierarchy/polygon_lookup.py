"""Region Polygon Lookup

Fetches single region polygons through the region provider and caches the
parsed shapes per region id. Shared by the hierarchy index, the lot grid
allocator and the wander generator.
"""

import logging
from typing import Optional

from ..exceptions import InvalidGeometryError
from ..geometry import RegionShape, to_region_shape
from ..region_provider import RegionProvider
from .region_cache import RegionCache

logger = logging.getLogger(__name__)


class PolygonLookup:
    """Cached ``region id -> RegionShape`` lookups over a region provider."""
    
    def __init__(self, provider: RegionProvider, cache: Optional[RegionCache] = None):
        """Initialize the lookup.
        
        Args:
            provider: Upstream region provider
            cache: Cache instance to own; a fresh one is created if omitted
        """
        self.provider = provider
        self.cache = cache or RegionCache(name="polygons")
    
    def get_shape(self, region_id: str) -> RegionShape:
        """Return the parsed polygon of one region.
        
        Failures are not cached, so a fixed upstream record is picked up on the
        next request.
        
        Raises:
            RegionNotFoundError: If the provider does not know the id
            InvalidGeometryError: If the polygon data is malformed
        """
        return self.cache.get_or_load(region_id, lambda: self._load_shape(region_id))
    
    def invalidate(self, region_id: Optional[str] = None) -> None:
        """Drop one cached shape, or all of them."""
        if region_id is None:
            self.cache.clear()
        else:
            self.cache.invalidate(region_id)
    
    def _load_shape(self, region_id: str) -> RegionShape:
        geometry = self.provider.load_polygon(region_id)
        shape = to_region_shape(geometry)
        if shape is None:
            logger.warning(f"Region {region_id} has malformed polygon data")
            raise InvalidGeometryError(f"Region {region_id} has malformed polygon data", region_id)
        return shape
