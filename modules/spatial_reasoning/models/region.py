"""Region and Hierarchy Result Data Models

This module defines the Pydantic models for administrative regions and for the
result of resolving a coordinate to its country/state/city hierarchy.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator, model_validator

from ..geometry import RegionShape, to_region_shape
from .geo_point import GeoPoint


class RegionLevel(str, Enum):
    """Administrative level of a region, outermost first."""
    COUNTRY = "country"
    STATE = "state"
    CITY = "city"
    
    @property
    def child_level(self) -> Optional["RegionLevel"]:
        """Level directly below this one, or None for cities."""
        if self is RegionLevel.COUNTRY:
            return RegionLevel.STATE
        if self is RegionLevel.STATE:
            return RegionLevel.CITY
        return None


class Region(BaseModel):
    """Named administrative area with its polygon.
    
    Regions are read-only inputs owned by an external store. A state or city
    whose parent cannot be resolved is still a valid record; it is simply
    unreachable through hierarchy traversal.
    
    Attributes:
        id: Stable region identifier (e.g. ISO code for countries)
        name: Display name
        level: country, state or city
        parent_id: Id of the enclosing region, None for countries
        geometry: Polygon data (GeoJSON Polygon/MultiPolygon, bare ring or ring list)
    """
    
    id: str = Field(..., min_length=1, description="Region identifier")
    name: str = Field("", description="Region display name")
    level: RegionLevel = Field(..., description="Administrative level")
    parent_id: Optional[str] = Field(None, description="Enclosing region id (None for countries)")
    geometry: Any = Field(None, description="Polygon data for containment tests")
    
    _shape: Optional[RegionShape] = PrivateAttr(default=None)
    _shape_parsed: bool = PrivateAttr(default=False)
    
    @field_validator('parent_id')
    @classmethod
    def validate_parent_id(cls, v: Optional[str]) -> Optional[str]:
        """Normalise empty parent ids to None."""
        if v is not None and not str(v).strip():
            return None
        return v
    
    @model_validator(mode='after')
    def validate_country_parent(self) -> "Region":
        """Countries sit at the top of the hierarchy and have no parent."""
        if self.level is RegionLevel.COUNTRY and self.parent_id is not None:
            raise ValueError('Country regions cannot have a parent_id')
        return self
    
    def get_shape(self) -> Optional[RegionShape]:
        """Parsed polygon, computed once per record; None if malformed."""
        if not self._shape_parsed:
            self._shape = to_region_shape(self.geometry)
            self._shape_parsed = True
        return self._shape
    
    def summary(self) -> Dict[str, Any]:
        """Compact representation without geometry, for logs and CLI output."""
        return {
            "id": self.id,
            "name": self.name,
            "level": self.level.value,
            "parent_id": self.parent_id,
        }


class HierarchyResult(BaseModel):
    """Result of resolving a coordinate to {country, state, city}.
    
    Any trailing level may be absent. A country-only or country+state result is
    a complete, legitimate answer, not a partial failure.
    """
    
    country: Optional[Region] = Field(None, description="Matched country")
    state: Optional[Region] = Field(None, description="Matched state within the country")
    city: Optional[Region] = Field(None, description="Matched city within the state")
    coordinates: Optional[GeoPoint] = Field(None, description="Resolved coordinate")
    message: Optional[str] = Field(None, description="Explanation when no country matched")
    
    @property
    def valid(self) -> bool:
        """True when at least a country was resolved."""
        return self.country is not None
    
    @property
    def depth(self) -> int:
        """Number of resolved levels (0-3)."""
        return sum(1 for region in (self.country, self.state, self.city) if region is not None)
    
    def get_region_ids(self) -> Dict[str, Optional[str]]:
        """Resolved ids per level."""
        return {
            "country": self.country.id if self.country else None,
            "state": self.state.id if self.state else None,
            "city": self.city.id if self.city else None,
        }
