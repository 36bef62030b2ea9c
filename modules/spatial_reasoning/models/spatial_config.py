"""Spatial Component Configuration Models

Validation models for the ``spatial`` section of the environment configuration,
one model per component.
"""

from enum import Enum
from typing import Any, Dict
import logging

from pydantic import BaseModel, Field, field_validator, model_validator

logger = logging.getLogger(__name__)


class TieBreak(str, Enum):
    """Rule for choosing between overlapping sibling regions."""
    SMALLEST_AREA = "smallest_area"
    FIRST_MATCH = "first_match"


class HierarchyConfig(BaseModel):
    """Settings for the spatial hierarchy index."""
    tie_break: TieBreak = Field(TieBreak.SMALLEST_AREA, description="Overlap tie-break rule")
    bbox_prefilter: bool = Field(True, description="Reject candidates by bounding box before the exact test")


class LotGridConfig(BaseModel):
    """Settings for the lot grid allocator."""
    cell_size_degrees: float = Field(0.001, gt=0, le=1.0, description="Grid step in degrees (0.001 ~ 111m)")
    min_separation_km: float = Field(0.1, ge=0, description="Distance under which an occupied nearest lot blocks a position")
    coordinate_precision: int = Field(7, ge=0, le=12, description="Decimal places kept for lot coordinates")
    allocation_attempts: int = Field(3, ge=1, le=100, description="Retries of find-then-occupy when racing other callers")
    max_grid_cells: int = Field(1_000_000, ge=1, description="Largest grid (columns x rows) generated for one city")


class WanderConfig(BaseModel):
    """Settings for the constrained wander generator and its batch driver.
    
    ``distance_band_attempts`` and ``relaxed_attempts`` are the K1 and K2
    retry budgets of the destination ladder.
    """
    min_distance_km: float = Field(200.0, ge=0, description="Lower bound of the distance band")
    max_distance_km: float = Field(500.0, ge=0, description="Upper bound of the distance band")
    distance_band_attempts: int = Field(50, ge=0, le=100000, description="K1: samples honouring the distance band")
    relaxed_attempts: int = Field(30, ge=0, le=100000, description="K2: samples accepting any interior point")
    batch_size: int = Field(50, ge=1, le=5000, description="Agents processed concurrently per group")
    spawn_attempts: int = Field(100, ge=1, le=100000, description="Samples when choosing a spawn position")
    spawn_min_separation_km: float = Field(50.0, ge=0, description="Minimum distance between spawned agents")
    
    @model_validator(mode='after')
    def validate_distance_band(self) -> "WanderConfig":
        """Ensure the distance band is not inverted."""
        if self.max_distance_km < self.min_distance_km:
            raise ValueError(
                f"max_distance_km ({self.max_distance_km}) must be >= min_distance_km ({self.min_distance_km})"
            )
        return self


class SpatialSettings(BaseModel):
    """All spatial component settings for one environment."""
    hierarchy: HierarchyConfig = Field(default_factory=HierarchyConfig)
    lot_grid: LotGridConfig = Field(default_factory=LotGridConfig)
    wander: WanderConfig = Field(default_factory=WanderConfig)
    
    @field_validator('hierarchy', 'lot_grid', 'wander', mode='before')
    @classmethod
    def default_empty_sections(cls, v: Any) -> Any:
        """Treat a missing or null section as all defaults."""
        return {} if v is None else v
    
    @classmethod
    def from_config(cls, spatial_config: Dict[str, Any]) -> "SpatialSettings":
        """Build settings from ConfigLoader.get_spatial_config output."""
        settings = cls.model_validate(spatial_config or {})
        logger.debug(f"Spatial settings loaded: {settings.model_dump(mode='json')}")
        return settings
