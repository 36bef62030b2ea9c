"""GeoJSON File Region Provider

Loads regions from one GeoJSON FeatureCollection per level
(``countries.geojson``, ``states.geojson``, ``cities.geojson``). Each feature
carries already-normalized ``id``, ``name`` and ``parent_id`` properties.
Files are read lazily, once, with retries on transient I/O errors.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import ValidationError
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception_type

from geosim.exceptions import GeoSimDataSourceError
from ..exceptions import RegionNotFoundError
from ..models import Region, RegionLevel
from .base import RegionProvider

logger = logging.getLogger(__name__)

LEVEL_FILES = {
    RegionLevel.COUNTRY: "countries.geojson",
    RegionLevel.STATE: "states.geojson",
    RegionLevel.CITY: "cities.geojson",
}


@retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception_type(OSError),
    reraise=True
)
def _read_feature_collection(path: Path) -> Dict[str, Any]:
    with open(path, 'r', encoding='utf-8') as f:
        return json.load(f)


class GeoJSONRegionProvider(RegionProvider):
    """Region provider reading GeoJSON files from a data directory."""
    
    def __init__(self, data_dir: Union[str, Path]):
        """Initialize the provider.
        
        Args:
            data_dir: Directory holding the per-level GeoJSON files
        """
        self.data_dir = Path(data_dir)
        self._lock = threading.Lock()
        self._by_level: Dict[RegionLevel, List[Region]] = {}
        self._by_id: Dict[str, Region] = {}
        logger.info(f"GeoJSONRegionProvider initialized for {self.data_dir}")
    
    def load_children(self, level: RegionLevel, parent_id: Optional[str]) -> List[Region]:
        return [region for region in self._load_level(level) if region.parent_id == parent_id]
    
    def load_polygon(self, region_id: str) -> Optional[Any]:
        for level in RegionLevel:
            self._load_level(level)
        region = self._by_id.get(region_id)
        if region is None:
            raise RegionNotFoundError(f"Region {region_id} not found", region_id)
        return region.geometry
    
    def reload(self) -> None:
        """Forget loaded files so the next request re-reads them."""
        with self._lock:
            self._by_level.clear()
            self._by_id.clear()
        logger.info(f"Cleared loaded region files for {self.data_dir}")
    
    def _load_level(self, level: RegionLevel) -> List[Region]:
        loaded = self._by_level.get(level)
        if loaded is not None:
            return loaded
        
        with self._lock:
            if level in self._by_level:
                return self._by_level[level]
            
            path = self.data_dir / LEVEL_FILES[level]
            if not path.exists():
                logger.warning(f"No {level.value} file at {path}; level treated as empty")
                regions: List[Region] = []
            else:
                regions = self._parse_features(level, self._read(path))
            
            self._by_level[level] = regions
            for region in regions:
                self._by_id.setdefault(region.id, region)
            logger.info(f"Loaded {len(regions)} {level.value} regions from {path.name}")
            return regions
    
    def _read(self, path: Path) -> Dict[str, Any]:
        try:
            return _read_feature_collection(path)
        except json.JSONDecodeError as e:
            raise GeoSimDataSourceError(f"Invalid JSON in region file: {e}", {"path": str(path)})
        except OSError as e:
            raise GeoSimDataSourceError(f"Could not read region file after retries: {e}", {"path": str(path)})
    
    def _parse_features(self, level: RegionLevel, collection: Dict[str, Any]) -> List[Region]:
        if not isinstance(collection, dict) or collection.get("type") != "FeatureCollection":
            raise GeoSimDataSourceError(
                "Region file is not a GeoJSON FeatureCollection", {"level": level.value}
            )
        
        regions = []
        for index, feature in enumerate(collection.get("features") or []):
            if not isinstance(feature, dict):
                logger.warning(f"Skipping {level.value} feature #{index}: not a GeoJSON feature")
                continue
            properties = feature.get("properties") or {}
            parent_id = properties.get("parent_id")
            try:
                regions.append(Region(
                    id=str(properties["id"]),
                    name=str(properties.get("name") or ""),
                    level=level,
                    parent_id=str(parent_id) if parent_id is not None else None,
                    geometry=feature.get("geometry"),
                ))
            except (KeyError, ValidationError) as e:
                # Partial records are skipped so the rest of the file stays usable
                logger.warning(f"Skipping {level.value} feature #{index}: {e}")
        return regions
