"""Lot Store Persistence Boundary

Abstract storage interface for lots plus the process-local in-memory store.
Creation is upsert-style on ``(city_id, grid_x, grid_y)`` so that several
independent instances generating the same grid never create duplicates.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional, Tuple

from geosim.utils import KeyedLocks

from ..exceptions import AlreadyOccupiedError, LotNotFoundError
from ..models import Lot

logger = logging.getLogger(__name__)


class LotStore(ABC):
    """Storage boundary for lots, the only state expected to be durable."""

    @abstractmethod
    def find_by_city(self, city_id: str) -> List[Lot]:
        """Return a city's lots in stored order (empty if none)."""
        pass

    @abstractmethod
    def get(self, lot_id: str) -> Lot:
        """Return one lot.

        Raises:
            LotNotFoundError: If the lot does not exist
        """
        pass

    @abstractmethod
    def upsert_many(self, lots: Iterable[Lot]) -> List[Lot]:
        """Create lots whose grid key is not yet stored.

        Existing lots (same city and grid position) are left untouched,
        including their occupancy.

        Returns:
            The lots actually created
        """
        pass

    @abstractmethod
    def occupy(self, lot_id: str, occupant_id: str) -> Lot:
        """Atomically mark a free lot as occupied.

        Raises:
            LotNotFoundError: If the lot does not exist
            AlreadyOccupiedError: If the lot is already occupied
        """
        pass

    @abstractmethod
    def free(self, lot_id: str) -> Lot:
        """Mark a lot free; freeing a free lot returns it unchanged.

        Raises:
            LotNotFoundError: If the lot does not exist
        """
        pass


class InMemoryLotStore(LotStore):
    """Process-local lot store with one lock per city.

    Occupancy changes for lots of different cities never contend; a short
    global guard only protects the id and city indexes themselves. A city lock
    lives only while some caller holds or awaits it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._city_locks = KeyedLocks()
        self._lots: Dict[str, Lot] = {}
        self._lots_by_city: Dict[str, List[str]] = {}
        self._grid_index: Dict[Tuple[str, int, int], str] = {}
        self._lot_city: Dict[str, str] = {}

    def find_by_city(self, city_id: str) -> List[Lot]:
        with self._city_locks.hold(city_id):
            return [self._lots[lot_id] for lot_id in self._lots_by_city.get(city_id, [])]

    def get(self, lot_id: str) -> Lot:
        city_id = self._city_of(lot_id)
        with self._city_locks.hold(city_id):
            return self._lots[lot_id]

    def upsert_many(self, lots: Iterable[Lot]) -> List[Lot]:
        by_city: Dict[str, List[Lot]] = {}
        for lot in lots:
            by_city.setdefault(lot.city_id, []).append(lot)

        created: List[Lot] = []
        for city_id, city_lots in by_city.items():
            with self._city_locks.hold(city_id):
                for lot in city_lots:
                    with self._guard:
                        if lot.grid_key in self._grid_index or lot.lot_id in self._lots:
                            continue
                        self._grid_index[lot.grid_key] = lot.lot_id
                        self._lot_city[lot.lot_id] = city_id
                        self._lots[lot.lot_id] = lot
                        self._lots_by_city.setdefault(city_id, []).append(lot.lot_id)
                    created.append(lot)

        if created:
            logger.debug(f"Stored {len(created)} new lots across {len(by_city)} cities")
        return created

    def occupy(self, lot_id: str, occupant_id: str) -> Lot:
        city_id = self._city_of(lot_id)
        with self._city_locks.hold(city_id):
            lot = self._lots[lot_id]
            if lot.occupied:
                raise AlreadyOccupiedError(
                    f"Lot {lot_id} is already occupied by {lot.occupant_id}",
                    lot_id,
                    lot.occupant_id
                )
            updated = lot.model_copy(update={"occupied": True, "occupant_id": occupant_id})
            self._lots[lot_id] = updated
        logger.debug(f"Lot {lot_id} occupied by {occupant_id}")
        return updated

    def free(self, lot_id: str) -> Lot:
        city_id = self._city_of(lot_id)
        with self._city_locks.hold(city_id):
            lot = self._lots[lot_id]
            if not lot.occupied:
                return lot
            updated = lot.model_copy(update={"occupied": False, "occupant_id": None})
            self._lots[lot_id] = updated
        logger.debug(f"Lot {lot_id} freed")
        return updated

    def count(self, city_id: Optional[str] = None) -> int:
        """Number of stored lots, overall or for one city."""
        with self._guard:
            if city_id is None:
                return len(self._lots)
            return len(self._lots_by_city.get(city_id, []))

    def _city_of(self, lot_id: str) -> str:
        with self._guard:
            city_id = self._lot_city.get(lot_id)
        if city_id is None:
            raise LotNotFoundError(f"Lot {lot_id} not found", lot_id)
        return city_id
