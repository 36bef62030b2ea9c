"""GeoPoint Data Model

Validated latitude/longitude pair used for agent positions, lot centres and
query coordinates.
"""

from typing import Tuple
from pydantic import BaseModel, ConfigDict, Field


class GeoPoint(BaseModel):
    """A WGS84 coordinate in decimal degrees.
    
    Immutable and hashable so points can be compared and used as dictionary keys.
    """
    model_config = ConfigDict(frozen=True)
    
    lat: float = Field(..., ge=-90.0, le=90.0, description="Latitude in decimal degrees")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Longitude in decimal degrees")
    
    @classmethod
    def from_tuple(cls, lat_lng: Tuple[float, float]) -> "GeoPoint":
        """Build a point from a ``(lat, lng)`` tuple."""
        lat, lng = lat_lng
        return cls(lat=lat, lng=lng)
    
    def as_tuple(self) -> Tuple[float, float]:
        """Return the point as a ``(lat, lng)`` tuple."""
        return self.lat, self.lng
