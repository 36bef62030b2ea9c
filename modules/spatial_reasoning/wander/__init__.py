"""Wander Components

Boundary-constrained destination generation, the batch tick driver and the
movement tick module processor.
"""

from .wander_generator import WanderGenerator, is_point_far_enough
from .batch_driver import WanderBatchDriver
from .movement_processor import MovementTickProcessor

__all__ = ['WanderGenerator', 'is_point_far_enough', 'WanderBatchDriver', 'MovementTickProcessor']
