"""GeoSim Module Processor Interface

Abstract base class and result models that every periodically triggered GeoSim
processing module (movement ticks, grid warm-up jobs) implements, so external
schedulers can drive them uniformly.
"""

from abc import ABC, abstractmethod
from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, Dict, List, Any
from datetime import datetime


class ModuleState(str, Enum):
    """Operational state reported by a processing module."""
    READY = "ready"
    RUNNING = "running"
    ERROR = "error"
    DISABLED = "disabled"


class ProcessingResult(BaseModel):
    """Result data model for one module processing run.

    Standardizes success/failure reporting, counters and error details so the
    external trigger can log or export them without knowing the module.
    """

    success: bool = Field(..., description="Whether the run completed without a run-level failure")
    records_processed: int = Field(ge=0, description="Number of records handled in this run")
    records_failed: int = Field(0, ge=0, description="Number of records isolated as failures")
    errors: List[str] = Field(default_factory=list, description="Error messages collected during the run")
    metadata: Dict[str, Any] = Field(default_factory=dict, description="Module-specific counters and details")
    execution_time: float = Field(ge=0.0, description="Processing execution time in seconds")

    def get_summary(self) -> str:
        """Generate a one-line human-readable summary."""
        outcome = "succeeded" if self.success else "failed"
        return (f"Run {outcome}: {self.records_processed} processed, "
                f"{self.records_failed} failed in {self.execution_time:.2f}s")


class ModuleStatus(BaseModel):
    """Status data model for module health and configuration reporting."""

    module_name: str = Field(..., description="Name of the processing module")
    is_configured: bool = Field(..., description="Whether the module is properly configured")
    last_run: Optional[datetime] = Field(None, description="Timestamp of the last completed run")
    status: ModuleState = Field(..., description="Current module state")
    health_check: bool = Field(..., description="Result of the most recent health check")


class ModuleProcessor(ABC):
    """Abstract base class for all GeoSim processing modules.

    A processing module is invoked by an external periodic trigger; it owns no
    scheduler of its own. Implementations must be safe to trigger while a
    previous run is still in progress (typically by skipping the new run).
    """

    @abstractmethod
    def __init__(self, config_loader):
        """Initialize module with shared configuration.

        Args:
            config_loader: ConfigLoader instance providing access to framework configuration
        """
        pass

    @abstractmethod
    def validate_configuration(self) -> bool:
        """Validate module-specific configuration.

        Returns:
            bool: True if configuration is valid and complete, False otherwise
        """
        pass

    @abstractmethod
    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Execute one processing run.

        Args:
            dry_run: If True, compute everything but apply no state changes

        Returns:
            ProcessingResult: Standardized result object with success status, metrics, and errors
        """
        pass

    @abstractmethod
    def get_status(self) -> ModuleStatus:
        """Get current module processing status.

        Returns:
            ModuleStatus: Current module status and health information
        """
        pass
