"""Lot Data Models

Pydantic models for allocatable grid parcels and for availability checks
against a city's lot grid.
"""

from enum import Enum
from typing import Optional, Tuple

from pydantic import BaseModel, Field, model_validator


class Lot(BaseModel):
    """One cell of a city's fixed-step lot grid.
    
    ``(city_id, grid_x, grid_y)`` is unique per city, and ``occupied`` is true
    exactly when ``occupant_id`` is set. This is also the persisted shape at
    the storage boundary.
    """
    
    lot_id: str = Field(..., min_length=1, description="Lot identifier")
    city_id: str = Field(..., min_length=1, description="City the lot belongs to")
    grid_x: int = Field(..., ge=0, description="Column offset from the city's bounding-box minimum")
    grid_y: int = Field(..., ge=0, description="Row offset from the city's bounding-box minimum")
    lat: float = Field(..., ge=-90.0, le=90.0, description="Lot centre latitude")
    lng: float = Field(..., ge=-180.0, le=180.0, description="Lot centre longitude")
    occupied: bool = Field(False, description="Whether the lot is taken")
    occupant_id: Optional[str] = Field(None, description="Id of the occupying entity")
    
    @model_validator(mode='after')
    def validate_occupancy(self) -> "Lot":
        """Occupied lots carry an occupant id and free lots do not."""
        if self.occupied != (self.occupant_id is not None):
            raise ValueError('occupied must be True exactly when occupant_id is set')
        return self
    
    @property
    def grid_key(self) -> Tuple[str, int, int]:
        """Uniqueness key of the lot within the whole grid store."""
        return self.city_id, self.grid_x, self.grid_y
    
    @staticmethod
    def make_lot_id(city_id: str, grid_x: int, grid_y: int) -> str:
        """Deterministic lot id, identical across instances for the same cell."""
        return f"lot_{city_id}_{grid_x}_{grid_y}"


class AvailabilityReason(str, Enum):
    """Why a position is (un)available for placement."""
    AVAILABLE = "position_available"
    INVALID_COORDINATE = "invalid_coordinate"
    CITY_NOT_FOUND = "city_not_found"
    INVALID_GEOMETRY = "invalid_city_geometry"
    OUTSIDE_BOUNDARY = "outside_city_boundary"
    NEAREST_LOT_OCCUPIED = "nearest_lot_occupied"
    GRID_TOO_LARGE = "city_grid_too_large"


class AvailabilityResult(BaseModel):
    """Result of validating a placement position inside a city."""
    
    available: bool = Field(..., description="Whether the position can be used")
    reason: AvailabilityReason = Field(..., description="Reason for the decision")
    nearest_lot_id: Optional[str] = Field(None, description="Nearest lot to the position, if any")
    distance_km: Optional[float] = Field(None, ge=0, description="Distance to the nearest lot")
