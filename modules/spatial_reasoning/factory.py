"""Spatial Service Assembly

Builds the spatial reasoning services for one environment from configuration,
sharing a single polygon lookup and performance monitor between them so that
explicit invalidation reaches every component.
"""

import logging
import random
from dataclasses import dataclass
from typing import Optional

from geosim.config import ConfigLoader
from geosim.exceptions import GeoSimConfigurationError

from .hierarchy import PolygonLookup, RegionCache, SpatialHierarchyIndex
from .lot_grid import InMemoryLotStore, LotGridAllocator, LotStore
from .models import SpatialSettings
from .performance import PerformanceMonitor
from .region_provider import GeoJSONRegionProvider, InMemoryRegionProvider, RegionProvider
from .wander import WanderBatchDriver, WanderGenerator

logger = logging.getLogger(__name__)


@dataclass
class SpatialServices:
    """Wired spatial reasoning services for one environment."""
    settings: SpatialSettings
    provider: RegionProvider
    index: SpatialHierarchyIndex
    allocator: LotGridAllocator
    wander: WanderGenerator
    driver: WanderBatchDriver
    monitor: PerformanceMonitor


def build_region_provider(region_source: dict, data_dir: Optional[str] = None) -> RegionProvider:
    """Create the region provider described by a ``region_source`` config section.

    Args:
        region_source: Section with ``type`` ('geojson' or 'memory') and ``data_dir``
        data_dir: Overrides the configured GeoJSON directory

    Raises:
        GeoSimConfigurationError: For an unknown provider type or missing data_dir
    """
    source_type = region_source.get("type")
    if source_type == "memory":
        return InMemoryRegionProvider()
    if source_type == "geojson":
        directory = data_dir or region_source.get("data_dir")
        if not directory:
            raise GeoSimConfigurationError("GeoJSON region source requires 'data_dir'")
        return GeoJSONRegionProvider(directory)
    raise GeoSimConfigurationError(
        f"Unsupported region source type: {source_type}",
        {"supported": "geojson, memory"}
    )


def build_spatial_services(config_loader: ConfigLoader,
                           environment: str,
                           provider: Optional[RegionProvider] = None,
                           lot_store: Optional[LotStore] = None,
                           data_dir: Optional[str] = None,
                           rng: Optional[random.Random] = None) -> SpatialServices:
    """Assemble hierarchy index, lot allocator and wander components.

    Args:
        config_loader: Loader for the environment configuration
        environment: Environment name
        provider: Region provider to use instead of the configured one
        lot_store: Lot store to use instead of a fresh in-memory store
        data_dir: Overrides the configured GeoJSON directory
        rng: Random source for the wander generator

    Returns:
        SpatialServices sharing one polygon cache and performance monitor
    """
    env_config = config_loader.load_environment_config(environment)
    settings = SpatialSettings.from_config(config_loader.get_spatial_config(environment))

    if provider is None:
        provider = build_region_provider(config_loader.get_region_source(environment), data_dir)

    processing = env_config.get("processing", {})
    monitor = PerformanceMonitor(slow_operation_seconds=processing.get("slow_operation_seconds", 5.0))

    polygon_lookup = PolygonLookup(provider, RegionCache(name="polygons"))
    index = SpatialHierarchyIndex(
        provider,
        cache=RegionCache(name="region_children"),
        config=settings.hierarchy,
        polygon_lookup=polygon_lookup
    )
    allocator = LotGridAllocator(
        provider,
        store=lot_store or InMemoryLotStore(),
        config=settings.lot_grid,
        polygon_lookup=polygon_lookup,
        monitor=monitor
    )
    wander = WanderGenerator(index, config=settings.wander, rng=rng)
    driver = WanderBatchDriver(wander, config=settings.wander, monitor=monitor)

    logger.info(f"Spatial services built for environment: {environment}")
    return SpatialServices(
        settings=settings,
        provider=provider,
        index=index,
        allocator=allocator,
        wander=wander,
        driver=driver,
        monitor=monitor
    )
