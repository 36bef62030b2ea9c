"""Lot Grid Components

Lot persistence boundary and the grid allocator built on it.
"""

from .lot_store import LotStore, InMemoryLotStore
from .grid_allocator import LotGridAllocator

__all__ = ['LotStore', 'InMemoryLotStore', 'LotGridAllocator']
