"""Spatial Hierarchy Index

Resolves a coordinate to its {country, state, city} hierarchy by scanning the
regions of each level with a bounding-box pre-filter followed by the exact
polygon test, loading child regions lazily per parent through the region cache.
"""

import logging
import threading
from typing import Dict, List, Optional, Set, Tuple

from ..geometry import RegionShape, as_lat_lng
from ..models import HierarchyConfig, HierarchyResult, GeoPoint, Region, RegionLevel, TieBreak
from ..region_provider import RegionProvider
from .polygon_lookup import PolygonLookup
from .region_cache import RegionCache

logger = logging.getLogger(__name__)

CacheKey = Tuple[RegionLevel, Optional[str]]


class SpatialHierarchyIndex:
    """Coordinate to administrative hierarchy resolver.

    Features:
    - Lazily populated child-region cache keyed by (level, parent_id)
    - O(1) bounding-box rejection before exact containment tests
    - Deterministic tie-break between overlapping siblings
    - Malformed region records skipped and logged, never propagated
    """

    def __init__(self, provider: RegionProvider,
                 cache: Optional[RegionCache] = None,
                 config: Optional[HierarchyConfig] = None,
                 polygon_lookup: Optional[PolygonLookup] = None):
        """Initialize the hierarchy index.

        Args:
            provider: Upstream region provider
            cache: Child-region cache to own; a fresh one is created if omitted
            config: Index settings (tie-break, bbox pre-filter)
            polygon_lookup: Shared single-region polygon lookup
        """
        self.provider = provider
        self.cache = cache or RegionCache(name="region_children")
        self.config = config or HierarchyConfig()
        self.polygon_lookup = polygon_lookup or PolygonLookup(provider)

        self._stats_lock = threading.Lock()
        self._reported_invalid: Set[str] = set()
        self._bbox_rejections = 0
        self._exact_tests = 0

        logger.info(f"SpatialHierarchyIndex initialized (tie_break={self.config.tie_break.value})")

    def resolve(self, lat: float, lng: float) -> HierarchyResult:
        """Resolve a coordinate to {country, state, city}.

        Any trailing level may be absent; that is a complete answer, not an error.
        Invalid coordinates and points outside every country return a result
        with no hierarchy rather than raising.

        Args:
            lat: Latitude in decimal degrees
            lng: Longitude in decimal degrees

        Returns:
            HierarchyResult with whichever prefix of the hierarchy matched
        """
        coords = as_lat_lng((lat, lng))
        if coords is None:
            return HierarchyResult(message=f"Invalid coordinate: lat={lat}, lng={lng}")
        lat, lng = coords
        point = GeoPoint(lat=lat, lng=lng)

        country = self._find_containing(self.load_children(RegionLevel.COUNTRY, None), lat, lng)
        if country is None:
            logger.debug(f"No country contains ({lat}, {lng})")
            return HierarchyResult(
                coordinates=point,
                message="Coordinates are not inside any known country"
            )

        state = self._find_containing(self.load_children(RegionLevel.STATE, country.id), lat, lng)
        city = None
        if state is not None:
            city = self._find_containing(self.load_children(RegionLevel.CITY, state.id), lat, lng)

        result = HierarchyResult(country=country, state=state, city=city, coordinates=point)
        logger.debug(f"Resolved ({lat}, {lng}) to {result.get_region_ids()}")
        return result

    def load_children(self, level: RegionLevel, parent_id: Optional[str]) -> List[Region]:
        """Return the cached children of a parent, loading them on first miss.

        Args:
            level: Level of the children (COUNTRY with parent_id None for the roots)
            parent_id: Parent region id

        Returns:
            Ordered list of child regions, as returned by the provider
        """
        key: CacheKey = (level, parent_id)
        return self.cache.get_or_load(key, lambda: self._fetch_children(level, parent_id))

    def get_region_shape(self, region_id: str) -> RegionShape:
        """Return one region's parsed polygon.

        Raises:
            RegionNotFoundError: If the region is unknown
            InvalidGeometryError: If its polygon data is malformed
        """
        return self.polygon_lookup.get_shape(region_id)

    def invalidate(self, level: Optional[RegionLevel] = None, parent_id: Optional[str] = None) -> None:
        """Explicitly invalidate cached regions.

        - ``invalidate(level, parent_id)`` drops one cache entry
        - ``invalidate(level)`` drops every entry of that level
        - ``invalidate()`` drops everything

        The cached polygons of every region in a dropped entry go with it, so
        shape lookups agree with the reloaded records.

        Raises:
            ValueError: If parent_id is given without level
        """
        if level is None and parent_id is not None:
            raise ValueError("parent_id requires a level")

        if level is None:
            self.cache.clear()
            self.polygon_lookup.invalidate()
            with self._stats_lock:
                self._reported_invalid.clear()
            logger.info("Hierarchy index fully invalidated")
            return

        if parent_id is None and level is not RegionLevel.COUNTRY:
            # Shapes of this level may be cached without any listing
            self.polygon_lookup.invalidate()
            self.cache.invalidate_where(lambda key: key[0] is level)
        else:
            key: CacheKey = (level, parent_id)
            self._invalidate_polygons(key)
            self.cache.invalidate(key)

    def get_stats(self) -> Dict[str, int]:
        """Cache and scan statistics for monitoring."""
        stats = dict(self.cache.get_cache_stats())
        with self._stats_lock:
            stats.update({
                "skipped_invalid_regions": len(self._reported_invalid),
                "bbox_rejections": self._bbox_rejections,
                "exact_tests": self._exact_tests,
            })
        return stats

    def _fetch_children(self, level: RegionLevel, parent_id: Optional[str]) -> List[Region]:
        children = [
            region for region in self.provider.load_children(level, parent_id)
            if region.level is level
        ]
        logger.info(f"Loaded {len(children)} {level.value} regions for parent {parent_id}")
        return children

    def _find_containing(self, candidates: List[Region], lat: float, lng: float) -> Optional[Region]:
        matches: List[Tuple[Region, RegionShape]] = []
        bbox_rejections = 0
        exact_tests = 0

        for region in candidates:
            shape = region.get_shape()
            if shape is None:
                self._report_invalid(region)
                continue

            if self.config.bbox_prefilter and not shape.bbox.contains(lat, lng):
                bbox_rejections += 1
                continue

            exact_tests += 1
            if shape.contains_exact(lat, lng):
                matches.append((region, shape))
                if self.config.tie_break is TieBreak.FIRST_MATCH:
                    break

        with self._stats_lock:
            self._bbox_rejections += bbox_rejections
            self._exact_tests += exact_tests

        if not matches:
            return None
        if len(matches) > 1:
            logger.debug(f"{len(matches)} overlapping regions contain ({lat}, {lng}); applying tie-break")
        region, _ = min(matches, key=lambda match: (match[1].area, match[0].id))
        return region

    def _invalidate_polygons(self, key: CacheKey) -> None:
        children = self.cache.peek(key)
        if children is None:
            logger.info(f"No cached listing for {key[0].value} of {key[1]}, dropping all cached polygons")
            self.polygon_lookup.invalidate()
            return

        for region in children:
            self.polygon_lookup.invalidate(region.id)
        logger.debug(f"Dropped cached polygons of {len(children)} {key[0].value} regions")

    def _report_invalid(self, region: Region) -> None:
        with self._stats_lock:
            first_time = region.id not in self._reported_invalid
            self._reported_invalid.add(region.id)
        if first_time:
            logger.warning(f"Skipping {region.level.value} {region.id}: missing or malformed polygon")
