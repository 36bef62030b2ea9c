#!/usr/bin/env python3
"""
Example usage of the GeoSim spatial reasoning core.

This script builds a small in-memory world and demonstrates hierarchy
resolution, lot grid allocation, availability checks and one movement tick
driven through the MovementTickProcessor module interface.
"""

import random

from geosim.config import ConfigLoader
from geosim.exceptions import GeoSimBaseException
from geosim.utils import setup_logging, get_logger
from modules.spatial_reasoning import MovementTickProcessor, build_spatial_services
from modules.spatial_reasoning.exceptions import AlreadyOccupiedError
from modules.spatial_reasoning.models import GeoPoint, MobileAgent, Region
from modules.spatial_reasoning.region_provider import InMemoryRegionProvider


def square(min_lng, min_lat, max_lng, max_lat):
    """GeoJSON polygon for an axis-aligned box."""
    return {
        "type": "Polygon",
        "coordinates": [[
            [min_lng, min_lat], [max_lng, min_lat], [max_lng, max_lat],
            [min_lng, max_lat], [min_lng, min_lat],
        ]],
    }


def build_world():
    """One country with two states and a small city."""
    return InMemoryRegionProvider([
        Region(id="BR", name="Brazil", level="country", geometry=square(-60, -30, -40, -10)),
        Region(id="SP", name="Sao Paulo", level="state", parent_id="BR", geometry=square(-53, -25, -44, -20)),
        Region(id="RJ", name="Rio de Janeiro", level="state", parent_id="BR", geometry=square(-44, -23.5, -41, -20.5)),
        Region(id="sao-paulo", name="Sao Paulo City", level="city", parent_id="SP",
               geometry=square(-46.64, -23.56, -46.63, -23.55)),
    ])


def main():
    """Main function demonstrating the spatial reasoning components."""
    print("GeoSim Spatial Reasoning Core - Demo")
    print("=" * 60)

    setup_logging(environment="development", log_level="INFO")
    logger = get_logger(__name__)

    config_loader = ConfigLoader()
    try:
        services = build_spatial_services(config_loader, "development",
                                          provider=build_world(), rng=random.Random(2024))
    except GeoSimBaseException as e:
        logger.error(f"Could not build spatial services: {e}")
        print(f"Configuration error: {e}")
        return

    # 1. Hierarchy resolution
    print("\n1. Resolving coordinates...")
    for lat, lng in [(-23.555, -46.635), (-22.0, -43.0), (-15.0, -50.0), (40.0, -3.0)]:
        result = services.index.resolve(lat, lng)
        print(f"   ({lat}, {lng}) -> {result.get_region_ids()}"
              + ("" if result.valid else f" [{result.message}]"))

    # 2. Lot grid
    print("\n2. Allocating lots...")
    lot = services.allocator.allocate_lot("sao-paulo", "building-1", GeoPoint(lat=-23.555, lng=-46.635))
    print(f"   building-1 -> {lot.lot_id} at ({lot.lat}, {lot.lng})")
    print(f"   Grid summary: {services.allocator.get_grid_summary('sao-paulo')}")

    try:
        services.allocator.occupy(lot.lot_id, "building-2")
    except AlreadyOccupiedError as e:
        print(f"   Second occupant rejected: {e}")

    availability = services.allocator.validate_availability("sao-paulo", (lot.lat, lot.lng))
    print(f"   Availability at occupied lot: {availability.reason.value}")

    # 3. Movement tick
    print("\n3. Running one movement tick...")
    agents = {}
    for i in range(5):
        position = services.wander.generate_spawn_position(
            "BR", [a.position for a in agents.values()]
        )
        agents[f"npc-{i}"] = MobileAgent(id=f"npc-{i}", position=position, country_id="BR")
    agents["npc-lost"] = MobileAgent(id="npc-lost", country_id="BR")

    def apply_move(move):
        agent = agents[move.agent_id]
        agents[move.agent_id] = agent.model_copy(update={"position": move.position, "status": move.status})

    processor = MovementTickProcessor(config_loader, services.driver, lambda: list(agents.values()),
                                      apply_move, environment="development")
    result = processor.process()
    print(f"   {result.get_summary()}")
    counters = {key: result.metadata[key] for key in ("moved", "stayed", "errored")}
    print(f"   Counters: {counters}")
    print(f"   Module status: {processor.get_status().status.value}")

    print("\n" + "=" * 60)
    print("Performance summary:")
    for name, stats in services.monitor.get_performance_summary().get("operation_breakdown", {}).items():
        print(f"   {name}: {stats}")


if __name__ == "__main__":
    main()
