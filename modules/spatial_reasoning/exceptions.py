"""Spatial Reasoning Specific Exceptions

Extends framework exception hierarchy with the error taxonomy of the spatial
reasoning core. "No destination this cycle" is deliberately absent: it is an
expected outcome reported through DestinationResult, not an error.
"""

from typing import Optional
from geosim.exceptions import GeoSimProcessingError, GeoSimValidationError


class SpatialReasoningError(GeoSimProcessingError):
    """Base exception for spatial reasoning operations."""
    pass


class NotFoundError(SpatialReasoningError):
    """Exception for an explicitly requested id that does not exist."""
    
    def __init__(self, message: str, entity_id: Optional[str] = None):
        super().__init__(message, {"id": entity_id} if entity_id is not None else None)
        self.entity_id = entity_id


class RegionNotFoundError(NotFoundError):
    """Exception for an unknown region id."""
    pass


class LotNotFoundError(NotFoundError):
    """Exception for an unknown lot id."""
    pass


class InvalidGeometryError(GeoSimValidationError):
    """Exception for a region whose polygon data is missing or malformed.
    
    Only raised when a single region is requested explicitly; scans over many
    regions log and skip malformed records instead.
    """
    
    def __init__(self, message: str, region_id: Optional[str] = None):
        super().__init__(message, {"region_id": region_id} if region_id is not None else None)
        self.region_id = region_id


class NoAvailableLotError(SpatialReasoningError):
    """Exception raised when every lot of a city is occupied."""
    
    def __init__(self, message: str, city_id: Optional[str] = None):
        super().__init__(message, {"city_id": city_id} if city_id is not None else None)
        self.city_id = city_id


class AlreadyOccupiedError(SpatialReasoningError):
    """Exception raised when occupying a lot that is already taken."""
    
    def __init__(self, message: str, lot_id: Optional[str] = None, occupant_id: Optional[str] = None):
        super().__init__(message, {"lot_id": lot_id, "occupant_id": occupant_id})
        self.lot_id = lot_id
        self.occupant_id = occupant_id
