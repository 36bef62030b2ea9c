"""Region Provider Interface

The upstream collaborator that owns region records. The spatial core only ever
reads through this interface; creating and editing regions is the store's job.
"""

from abc import ABC, abstractmethod
from typing import Any, List, Optional

from ..models import Region, RegionLevel


class RegionProvider(ABC):
    """Abstract source of administrative regions and their polygons."""
    
    @abstractmethod
    def load_children(self, level: RegionLevel, parent_id: Optional[str]) -> List[Region]:
        """Return the direct children of ``parent_id`` at ``level``.
        
        Countries are requested with ``parent_id=None``. Unknown parents yield
        an empty list.
        """
        pass
    
    @abstractmethod
    def load_polygon(self, region_id: str) -> Optional[Any]:
        """Return a single region's polygon data.
        
        A known region with no polygon data yields None.
        
        Raises:
            RegionNotFoundError: If no region has this id
        """
        pass
    
    def load_countries(self) -> List[Region]:
        """Return every country region."""
        return self.load_children(RegionLevel.COUNTRY, None)
