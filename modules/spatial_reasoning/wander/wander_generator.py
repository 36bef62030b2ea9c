"""Constrained Wander Generator

Chooses new positions for mobile agents confined to their country's polygon by
rejection sampling over the country's bounding box, with a graceful
degradation ladder:

1. up to K1 samples that must land inside the polygon within the distance band
2. up to K2 further samples that only need to land inside the polygon
3. otherwise no destination ("stay put this cycle")
"""

import logging
import random
from typing import Any, Iterable, Optional

from ..geometry import as_lat_lng, distance_km, random_point_in
from ..hierarchy import SpatialHierarchyIndex
from ..models import (
    AgentMove,
    AgentStatus,
    DestinationMethod,
    DestinationResult,
    GeoPoint,
    MobileAgent,
    WanderConfig,
)

logger = logging.getLogger(__name__)


def is_point_far_enough(point: Any, others: Iterable[Any], min_km: float) -> bool:
    """Check that a point is at least ``min_km`` from every other point.

    Invalid entries in ``others`` are ignored; an invalid ``point`` is never
    far enough.
    """
    if as_lat_lng(point) is None:
        return False
    for other in others:
        distance = distance_km(point, other)
        if distance is not None and distance < min_km:
            return False
    return True


class WanderGenerator:
    """Boundary-constrained destination and spawn position generator.

    Region polygons are read through the hierarchy index, so they share its
    polygon cache and invalidation.
    """

    def __init__(self, index: SpatialHierarchyIndex,
                 config: Optional[WanderConfig] = None,
                 rng: Optional[random.Random] = None):
        """Initialize the generator.

        Args:
            index: Hierarchy index providing region polygon lookups
            config: Distance band and retry budgets
            rng: Random source; pass a seeded instance for reproducible runs
        """
        self.index = index
        self.config = config or WanderConfig()
        self.rng = rng or random.Random()

    def generate_destination(self, agent: MobileAgent,
                             min_km: Optional[float] = None,
                             max_km: Optional[float] = None,
                             rng: Optional[random.Random] = None) -> DestinationResult:
        """Generate the next wander destination of an agent.

        Args:
            agent: Agent with a position and a country
            min_km: Lower bound of the distance band (config default if None)
            max_km: Upper bound of the distance band (config default if None)
            rng: Random source for this call (the generator's own if None)

        Returns:
            DestinationResult; ``NO_DESTINATION`` means the agent stays put
            this cycle and is not an error

        Raises:
            ValueError: If the band is inverted or the agent has no valid position
            RegionNotFoundError: If the agent's country is unknown
            InvalidGeometryError: If the country polygon is malformed
        """
        min_km = self.config.min_distance_km if min_km is None else min_km
        max_km = self.config.max_distance_km if max_km is None else max_km
        if min_km > max_km:
            raise ValueError(f"min_km ({min_km}) must not exceed max_km ({max_km})")

        origin = as_lat_lng(agent.position)
        if origin is None:
            raise ValueError(f"Agent {agent.id} has no valid position")
        if not agent.country_id:
            raise ValueError(f"Agent {agent.id} has no country")

        shape = self.index.get_region_shape(agent.country_id)
        rng = rng or self.rng
        attempts = 0

        for _ in range(self.config.distance_band_attempts):
            attempts += 1
            sample = random_point_in(shape.bbox, rng)
            if not shape.contains(*sample):
                continue
            distance = distance_km(origin, sample)
            if min_km <= distance <= max_km:
                logger.debug(f"Agent {agent.id} will walk {distance:.0f}km (attempt {attempts})")
                return self._result(sample, DestinationMethod.DISTANCE_BAND, attempts, distance)

        logger.debug(f"Agent {agent.id}: no point in [{min_km}, {max_km}]km after "
                     f"{self.config.distance_band_attempts} attempts, relaxing distance")

        for _ in range(self.config.relaxed_attempts):
            attempts += 1
            sample = random_point_in(shape.bbox, rng)
            if shape.contains(*sample):
                return self._result(sample, DestinationMethod.RELAXED, attempts, distance_km(origin, sample))

        logger.warning(f"Agent {agent.id} found no destination in country {agent.country_id} "
                       f"after {attempts} attempts, staying put")
        return DestinationResult.no_destination(attempts)

    def generate_spawn_position(self, country_id: str,
                                existing_positions: Iterable[Any] = (),
                                min_separation_km: Optional[float] = None) -> Optional[GeoPoint]:
        """Pick an initial position inside a country, away from existing agents.

        Args:
            country_id: Country region id
            existing_positions: Positions the new point must keep clear of
            min_separation_km: Required clearance (config default if None)

        Returns:
            GeoPoint, or None if no position was found within the attempt budget

        Raises:
            RegionNotFoundError: If the country is unknown
            InvalidGeometryError: If the country polygon is malformed
        """
        min_separation_km = (self.config.spawn_min_separation_km
                             if min_separation_km is None else min_separation_km)
        existing = list(existing_positions)
        shape = self.index.get_region_shape(country_id)

        for _ in range(self.config.spawn_attempts):
            sample = random_point_in(shape.bbox, self.rng)
            if not shape.contains(*sample):
                continue
            if existing and not is_point_far_enough(sample, existing, min_separation_km):
                continue
            return GeoPoint(lat=sample[0], lng=sample[1])

        logger.warning(f"No spawn position found in country {country_id} "
                       f"after {self.config.spawn_attempts} attempts")
        return None

    def plan_move(self, agent: MobileAgent, rng: Optional[random.Random] = None) -> Optional[AgentMove]:
        """Turn a generated destination into the update the caller applies.

        Args:
            agent: Agent to move
            rng: Random source for this move (the generator's own if None)

        Returns:
            AgentMove setting the new position and WALKING status, or None when
            the agent cannot wander or stays put this cycle
        """
        if not agent.can_wander():
            return None

        result = self.generate_destination(agent, rng=rng)
        if not result.has_destination:
            return None

        return AgentMove(
            agent_id=agent.id,
            position=result.destination,
            status=AgentStatus.WALKING,
            distance_km=result.distance_km
        )

    @staticmethod
    def _result(sample, method: DestinationMethod, attempts: int, distance: float) -> DestinationResult:
        lat, lng = sample
        return DestinationResult(
            destination=GeoPoint(lat=lat, lng=lng),
            method=method,
            attempts=attempts,
            distance_km=distance
        )
