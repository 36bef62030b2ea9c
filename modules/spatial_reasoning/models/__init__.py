"""Spatial Reasoning Data Models

This package contains Pydantic data models for regions, lots, mobile agents and
component configuration, providing validation and type safety across the core.
"""

from .geo_point import GeoPoint
from .region import Region, RegionLevel, HierarchyResult
from .lot import Lot, AvailabilityReason, AvailabilityResult
from .mobile_agent import (
    AgentStatus,
    MobileAgent,
    DestinationMethod,
    DestinationResult,
    AgentMove,
    MovementBatchResult,
)
from .spatial_config import TieBreak, HierarchyConfig, LotGridConfig, WanderConfig, SpatialSettings

__all__ = [
    'GeoPoint',
    'Region', 'RegionLevel', 'HierarchyResult',
    'Lot', 'AvailabilityReason', 'AvailabilityResult',
    'AgentStatus', 'MobileAgent', 'DestinationMethod', 'DestinationResult',
    'AgentMove', 'MovementBatchResult',
    'TieBreak', 'HierarchyConfig', 'LotGridConfig', 'WanderConfig', 'SpatialSettings',
]
