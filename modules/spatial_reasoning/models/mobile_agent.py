"""Mobile Agent and Movement Data Models

Models for agents wandering inside their country, for the destination chosen
by the wander generator, and for the per-tick batch summary.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .geo_point import GeoPoint


class AgentStatus(str, Enum):
    """Movement state of an agent."""
    IDLE = "idle"
    WALKING = "walking"


class MobileAgent(BaseModel):
    """Autonomous agent owned by the caller and confined to one country."""
    
    id: str = Field(..., min_length=1, description="Agent identifier")
    position: Optional[GeoPoint] = Field(None, description="Current position")
    country_id: Optional[str] = Field(None, description="Country whose polygon confines the agent")
    status: AgentStatus = Field(AgentStatus.IDLE, description="Current movement state")
    
    def can_wander(self) -> bool:
        """Agents need a position and a country before they can be moved."""
        return self.position is not None and bool(self.country_id)


class DestinationMethod(str, Enum):
    """Rung of the degradation ladder that produced a destination."""
    DISTANCE_BAND = "distance_band"
    RELAXED = "relaxed"
    NO_DESTINATION = "no_destination"


class DestinationResult(BaseModel):
    """Outcome of generating a wander destination.
    
    ``NO_DESTINATION`` is an expected outcome meaning "stay put this cycle".
    """
    
    destination: Optional[GeoPoint] = Field(None, description="Accepted destination, if any")
    method: DestinationMethod = Field(..., description="How the destination was found")
    attempts: int = Field(..., ge=0, description="Samples drawn before returning")
    distance_km: Optional[float] = Field(None, ge=0, description="Distance from the current position")
    
    @property
    def has_destination(self) -> bool:
        return self.destination is not None
    
    @classmethod
    def no_destination(cls, attempts: int) -> "DestinationResult":
        return cls(method=DestinationMethod.NO_DESTINATION, attempts=attempts)


class AgentMove(BaseModel):
    """Update the caller applies to an agent as one atomic write."""
    
    agent_id: str = Field(..., description="Agent being moved")
    position: GeoPoint = Field(..., description="New position")
    status: AgentStatus = Field(AgentStatus.WALKING, description="New status")
    distance_km: Optional[float] = Field(None, ge=0, description="Distance covered by the move")


class MovementBatchResult(BaseModel):
    """Summary of one movement tick over a batch of agents."""
    
    moved: int = Field(0, ge=0, description="Agents given a new destination")
    stayed: int = Field(0, ge=0, description="Agents left in place this cycle")
    errored: int = Field(0, ge=0, description="Agents whose processing failed")
    skipped_overlap: bool = Field(False, description="Tick skipped because a previous tick was running")
    group_count: int = Field(0, ge=0, description="Concurrent groups processed")
    processing_duration: float = Field(0.0, ge=0, description="Tick duration in seconds")
    moves: List[AgentMove] = Field(default_factory=list, description="Updates for the caller to apply")
    errors: List[str] = Field(default_factory=list, description="Per-agent error messages")
    processing_timestamp: datetime = Field(default_factory=datetime.now, description="When the tick completed")
    
    @property
    def total(self) -> int:
        return self.moved + self.stayed + self.errored
    
    def get_summary(self) -> str:
        """Generate human-readable tick summary."""
        if self.skipped_overlap:
            return "Tick skipped: previous tick still running"
        return (f"{self.moved} moved, {self.stayed} stayed, {self.errored} errored "
                f"in {self.processing_duration:.2f}s ({self.group_count} groups)")
