"""Spatial Reasoning Module

Coordinate to administrative hierarchy resolution, lot grid allocation and
boundary-constrained wandering for mobile agents.
"""

from .hierarchy import SpatialHierarchyIndex
from .lot_grid import LotGridAllocator
from .wander import WanderGenerator, WanderBatchDriver, MovementTickProcessor
from .factory import SpatialServices, build_spatial_services

__all__ = [
    'SpatialHierarchyIndex',
    'LotGridAllocator',
    'WanderGenerator',
    'WanderBatchDriver',
    'MovementTickProcessor',
    'SpatialServices',
    'build_spatial_services',
]
