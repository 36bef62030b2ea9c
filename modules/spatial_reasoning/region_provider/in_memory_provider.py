"""In-memory Region Provider

Keeps normalized Region records in process memory. Used when regions are
embedded by the caller and throughout the test-suite.
"""

import logging
import threading
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from ..exceptions import RegionNotFoundError
from ..models import Region, RegionLevel
from .base import RegionProvider

logger = logging.getLogger(__name__)


class InMemoryRegionProvider(RegionProvider):
    """Region provider backed by a dictionary, preserving insertion order."""
    
    def __init__(self, regions: Optional[Iterable[Region]] = None):
        self._lock = threading.Lock()
        self._regions: Dict[str, Region] = {}
        for region in regions or []:
            self.upsert_region(region)
    
    def upsert_region(self, region: Region) -> None:
        """Add or replace a region (simulates an upstream edit)."""
        with self._lock:
            self._regions[region.id] = region
        logger.debug(f"Stored region {region.id} ({region.level.value})")
    
    def remove_region(self, region_id: str) -> bool:
        """Remove a region; returns False if it was unknown."""
        with self._lock:
            return self._regions.pop(region_id, None) is not None
    
    def load_children(self, level: RegionLevel, parent_id: Optional[str]) -> List[Region]:
        with self._lock:
            return [
                region for region in self._regions.values()
                if region.level is level and region.parent_id == parent_id
            ]
    
    def load_polygon(self, region_id: str) -> Optional[Any]:
        with self._lock:
            region = self._regions.get(region_id)
        if region is None:
            raise RegionNotFoundError(f"Region {region_id} not found", region_id)
        return region.geometry
    
    def get_region_counts(self) -> Dict[str, int]:
        """Number of stored regions per level."""
        counts: Dict[str, int] = defaultdict(int)
        with self._lock:
            for region in self._regions.values():
                counts[region.level.value] += 1
        return dict(counts)
