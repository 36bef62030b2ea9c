"""Lot Grid Allocator

Partitions a city's polygon into a fixed-step grid of allocatable lots, tracks
their occupancy through a LotStore and answers availability and placement
queries. Grids are generated lazily on first use and never regenerated.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from geosim.utils import KeyedLocks, log_performance

from ..exceptions import AlreadyOccupiedError, InvalidGeometryError, NoAvailableLotError, RegionNotFoundError
from ..geometry import RegionShape, as_lat_lng, distance_km
from ..hierarchy import PolygonLookup
from ..models import AvailabilityReason, AvailabilityResult, Lot, LotGridConfig
from ..performance import PerformanceMonitor
from ..region_provider import RegionProvider
from .lot_store import InMemoryLotStore, LotStore

logger = logging.getLogger(__name__)

# Absorbs float error in span / step so an exact multiple keeps its last sample
_STEP_EPSILON = 1e-9


class LotGridAllocator:
    """Grid generation, placement and occupancy for city lots.

    Grid generation for one city never blocks another city: each city has its
    own generation lock, and occupancy changes are serialized by the store
    per city.
    """

    def __init__(self, provider: RegionProvider,
                 store: Optional[LotStore] = None,
                 config: Optional[LotGridConfig] = None,
                 polygon_lookup: Optional[PolygonLookup] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        """Initialize the allocator.

        Args:
            provider: Upstream region provider used to read city polygons
            store: Lot persistence boundary (in-memory store if omitted)
            config: Grid settings
            polygon_lookup: Shared polygon lookup; one is created over ``provider`` if omitted
            monitor: Optional performance monitor for grid generation
        """
        self.provider = provider
        self.store = store or InMemoryLotStore()
        self.config = config or LotGridConfig()
        self.polygon_lookup = polygon_lookup or PolygonLookup(provider)
        self.monitor = monitor

        self._grid_locks = KeyedLocks()

        logger.info(f"LotGridAllocator initialized (cell_size={self.config.cell_size_degrees} degrees)")

    def ensure_grid(self, city_id: str) -> List[Lot]:
        """Return the city's lots, generating the grid on first call.

        Idempotent: once a city has lots they are returned unchanged. A city
        with malformed polygon data, or whose grid would exceed
        ``max_grid_cells``, yields an empty list and nothing is remembered, so
        a repaired polygon or raised limit is picked up on the next call.

        Args:
            city_id: City region id

        Returns:
            The city's lots in stored order

        Raises:
            RegionNotFoundError: If the city is unknown
        """
        lots = self.store.find_by_city(city_id)
        if lots:
            return lots

        with self._grid_locks.hold(city_id):
            lots = self.store.find_by_city(city_id)
            if lots:
                return lots

            try:
                shape = self.polygon_lookup.get_shape(city_id)
            except InvalidGeometryError:
                logger.warning(f"Cannot generate lots for city {city_id}: malformed polygon")
                return []

            columns, rows = self._grid_dimensions(shape)
            if self._exceeds_cell_limit(city_id, columns, rows):
                return []

            candidates = self._build_grid(city_id, shape, columns, rows)
            created = self.store.upsert_many(candidates)
            logger.info(f"Created {len(created)} lots for city {city_id} "
                        f"({len(candidates) - len(created)} already present)")
            return self.store.find_by_city(city_id)

    def find_available_lot(self, city_id: str, preferred_point: Any = None) -> Lot:
        """Find a free lot in a city.

        Args:
            city_id: City region id
            preferred_point: Optional ``(lat, lng)`` or GeoPoint; the free lot
                nearest to it is returned instead of the first free lot

        Returns:
            A currently unoccupied lot

        Raises:
            NoAvailableLotError: If every lot is occupied (or the city has none)
            ValueError: If preferred_point is given but is not a valid coordinate
        """
        target = None
        if preferred_point is not None:
            target = as_lat_lng(preferred_point)
            if target is None:
                raise ValueError(f"Invalid preferred point: {preferred_point!r}")

        free_lots = [lot for lot in self.ensure_grid(city_id) if not lot.occupied]
        if not free_lots:
            raise NoAvailableLotError(f"No available lot in city {city_id}", city_id)

        if target is None:
            return free_lots[0]
        return min(free_lots, key=lambda lot: distance_km(target, (lot.lat, lot.lng)))

    def allocate_lot(self, city_id: str, occupant_id: str, preferred_point: Any = None) -> Lot:
        """Find and occupy a free lot, retrying if another caller wins the race.

        Returns:
            The occupied lot

        Raises:
            NoAvailableLotError: If no lot could be occupied within the attempt budget
        """
        for attempt in range(1, self.config.allocation_attempts + 1):
            lot = self.find_available_lot(city_id, preferred_point)
            try:
                return self.occupy(lot.lot_id, occupant_id)
            except AlreadyOccupiedError:
                logger.debug(f"Lot {lot.lot_id} taken concurrently (attempt {attempt})")

        logger.warning(f"Could not allocate a lot in city {city_id} for {occupant_id} "
                       f"after {self.config.allocation_attempts} attempts")
        raise NoAvailableLotError(f"No lot could be allocated in city {city_id}", city_id)

    def occupy(self, lot_id: str, occupant_id: str) -> Lot:
        """Transition a lot from free to occupied.

        Raises:
            ValueError: If occupant_id is empty
            AlreadyOccupiedError: If the lot is already taken
            LotNotFoundError: If the lot does not exist
        """
        if not occupant_id:
            raise ValueError("occupant_id is required to occupy a lot")
        lot = self.store.occupy(lot_id, occupant_id)
        logger.info(f"Lot {lot_id} occupied by {occupant_id}")
        return lot

    def free(self, lot_id: str) -> Lot:
        """Transition a lot to free; freeing a free lot is a no-op.

        Raises:
            LotNotFoundError: If the lot does not exist
        """
        lot = self.store.free(lot_id)
        logger.info(f"Lot {lot_id} freed")
        return lot

    def get_lot(self, lot_id: str) -> Lot:
        return self.store.get(lot_id)

    def validate_availability(self, city_id: str, point: Any) -> AvailabilityResult:
        """Check whether a position can be used for a new placement.

        A position outside the city polygon is rejected before any grid is
        generated, as is a city whose grid would exceed ``max_grid_cells``.
        Otherwise the grid is ensured and the position is rejected only when
        its nearest lot is occupied and closer than the configured minimum
        separation.

        Args:
            city_id: City region id
            point: ``(lat, lng)`` tuple or GeoPoint

        Returns:
            AvailabilityResult with reason and, when known, the nearest lot
        """
        coords = as_lat_lng(point)
        if coords is None:
            return AvailabilityResult(available=False, reason=AvailabilityReason.INVALID_COORDINATE)

        try:
            shape = self.polygon_lookup.get_shape(city_id)
        except RegionNotFoundError:
            return AvailabilityResult(available=False, reason=AvailabilityReason.CITY_NOT_FOUND)
        except InvalidGeometryError:
            return AvailabilityResult(available=False, reason=AvailabilityReason.INVALID_GEOMETRY)

        if not shape.contains(*coords):
            return AvailabilityResult(available=False, reason=AvailabilityReason.OUTSIDE_BOUNDARY)

        if not self.store.find_by_city(city_id):
            columns, rows = self._grid_dimensions(shape)
            if self._exceeds_cell_limit(city_id, columns, rows):
                return AvailabilityResult(available=False, reason=AvailabilityReason.GRID_TOO_LARGE)

        lots = self.ensure_grid(city_id)
        if not lots:
            return AvailabilityResult(available=True, reason=AvailabilityReason.AVAILABLE)

        nearest, nearest_km = min(
            ((lot, distance_km(coords, (lot.lat, lot.lng))) for lot in lots),
            key=lambda item: item[1]
        )

        if nearest.occupied and nearest_km < self.config.min_separation_km:
            return AvailabilityResult(
                available=False,
                reason=AvailabilityReason.NEAREST_LOT_OCCUPIED,
                nearest_lot_id=nearest.lot_id,
                distance_km=nearest_km
            )

        return AvailabilityResult(
            available=True,
            reason=AvailabilityReason.AVAILABLE,
            nearest_lot_id=nearest.lot_id,
            distance_km=nearest_km
        )

    def get_grid_summary(self, city_id: str) -> Dict[str, int]:
        """Occupancy counts for a city's existing lots (no generation)."""
        lots = self.store.find_by_city(city_id)
        occupied = sum(1 for lot in lots if lot.occupied)
        return {"total": len(lots), "occupied": occupied, "free": len(lots) - occupied}

    def invalidate_city(self, city_id: str) -> None:
        """Forget the cached polygon of a city.

        Existing lots are persistent and are not removed.
        """
        self.polygon_lookup.invalidate(city_id)

    def _build_grid(self, city_id: str, shape: RegionShape, columns: int, rows: int) -> List[Lot]:
        if self.monitor is None:
            return self._generate_candidates(city_id, shape, columns, rows)
        with self.monitor.monitor_operation("generate_lot_grid", columns * rows):
            return self._generate_candidates(city_id, shape, columns, rows)

    def _grid_dimensions(self, shape: RegionShape) -> Tuple[int, int]:
        step = self.config.cell_size_degrees
        columns = math.floor(shape.bbox.width / step + _STEP_EPSILON) + 1
        rows = math.floor(shape.bbox.height / step + _STEP_EPSILON) + 1
        return columns, rows

    def _exceeds_cell_limit(self, city_id: str, columns: int, rows: int) -> bool:
        cells = columns * rows
        if cells <= self.config.max_grid_cells:
            return False
        logger.warning(f"Refusing lot grid for {city_id}: {columns}x{rows} = {cells} cells "
                       f"exceeds max_grid_cells ({self.config.max_grid_cells})")
        return True

    @log_performance
    def _generate_candidates(self, city_id: str, shape: RegionShape, columns: int, rows: int) -> List[Lot]:
        step = self.config.cell_size_degrees
        precision = self.config.coordinate_precision
        bbox = shape.bbox

        candidates = []
        for grid_y in range(rows):
            lat = min(bbox.min_lat + grid_y * step, bbox.max_lat)
            for grid_x in range(columns):
                lng = min(bbox.min_lng + grid_x * step, bbox.max_lng)
                if not shape.contains_exact(lat, lng):
                    continue
                candidates.append(Lot(
                    lot_id=Lot.make_lot_id(city_id, grid_x, grid_y),
                    city_id=city_id,
                    grid_x=grid_x,
                    grid_y=grid_y,
                    lat=round(lat, precision),
                    lng=round(lng, precision)
                ))

        logger.debug(f"City {city_id}: {len(candidates)} of {columns * rows} grid samples inside polygon")
        return candidates
