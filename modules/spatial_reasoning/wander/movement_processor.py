"""Movement Tick Processor

ModuleProcessor implementation that an external periodic trigger calls once
per movement tick: it loads the agents, runs one guarded batch tick and
applies every accepted move through the caller's update callback.
"""

import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from geosim.config import ConfigLoader
from geosim.interfaces import ModuleProcessor, ModuleState, ModuleStatus, ProcessingResult

from ..models import AgentMove, MobileAgent, SpatialSettings
from .batch_driver import WanderBatchDriver

logger = logging.getLogger(__name__)

AgentSource = Callable[[], Iterable[MobileAgent]]
MoveApplier = Callable[[AgentMove], None]


class MovementTickProcessor(ModuleProcessor):
    """Movement tick module driven by an external scheduler."""

    MODULE_NAME = "movement_tick"

    def __init__(self, config_loader: ConfigLoader,
                 driver: WanderBatchDriver,
                 agent_source: AgentSource,
                 apply_move: MoveApplier,
                 environment: str = "development"):
        """Initialize the movement tick processor.

        Args:
            config_loader: ConfigLoader instance providing framework configuration
            driver: Batch driver planning the moves
            agent_source: Callable returning the agents to move this tick
            apply_move: Callable persisting one move as an atomic update
            environment: Configuration environment name
        """
        self.config_loader = config_loader
        self.driver = driver
        self.agent_source = agent_source
        self.apply_move = apply_move
        self.environment = environment

        self._last_run: Optional[datetime] = None
        self._last_error: Optional[str] = None

        logger.info(f"MovementTickProcessor initialized for environment: {environment}")

    def validate_configuration(self) -> bool:
        """Validate spatial configuration and collaborators.

        Returns:
            bool: True if the module can run
        """
        try:
            SpatialSettings.from_config(self.config_loader.get_spatial_config(self.environment))
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False

        if not callable(self.agent_source) or not callable(self.apply_move):
            logger.error("Agent source and move applier must be callable")
            return False

        return True

    def process(self, dry_run: bool = False) -> ProcessingResult:
        """Run one movement tick.

        Args:
            dry_run: If True, plan every move but apply none

        Returns:
            ProcessingResult whose metadata carries moved/stayed/errored/skipped_overlap
        """
        start_time = datetime.now()

        try:
            agents = list(self.agent_source())
            batch = self.driver.run_tick(agents)

            if batch.skipped_overlap:
                return ProcessingResult(
                    success=True,
                    records_processed=0,
                    metadata={"skipped_overlap": True, "dry_run": dry_run},
                    execution_time=(datetime.now() - start_time).total_seconds()
                )

            errors = list(batch.errors)
            applied = 0
            apply_failures = 0
            if dry_run:
                logger.info(f"Dry run: would apply {len(batch.moves)} moves")
            else:
                for move in batch.moves:
                    try:
                        self.apply_move(move)
                        applied += 1
                    except Exception as e:
                        apply_failures += 1
                        errors.append(f"Agent {move.agent_id}: failed to apply move: {e}")
                        logger.error(f"Failed to apply move for agent {move.agent_id}: {e}")

            self._last_run = datetime.now()
            self._last_error = None
            execution_time = (self._last_run - start_time).total_seconds()

            return ProcessingResult(
                success=True,
                records_processed=batch.total,
                records_failed=batch.errored + apply_failures,
                errors=errors,
                metadata={
                    "moved": batch.moved,
                    "stayed": batch.stayed,
                    "errored": batch.errored,
                    "skipped_overlap": False,
                    "applied": applied,
                    "apply_failures": apply_failures,
                    "group_count": batch.group_count,
                    "dry_run": dry_run,
                    "environment": self.environment
                },
                execution_time=execution_time
            )

        except Exception as e:
            self._last_error = str(e)
            logger.error(f"Movement tick failed: {e}")
            return ProcessingResult(
                success=False,
                records_processed=0,
                errors=[str(e)],
                metadata={"dry_run": dry_run, "error_occurred_at": datetime.now().isoformat()},
                execution_time=(datetime.now() - start_time).total_seconds()
            )

    def get_status(self) -> ModuleStatus:
        """Get current module processing status.

        Returns:
            ModuleStatus: running while a tick is in progress, error after a failed
            run or invalid configuration, ready otherwise
        """
        is_configured = self.validate_configuration()
        health_check = is_configured and self._last_error is None

        if self.driver.is_running:
            status = ModuleState.RUNNING
        elif health_check:
            status = ModuleState.READY
        else:
            status = ModuleState.ERROR

        return ModuleStatus(
            module_name=self.MODULE_NAME,
            is_configured=is_configured,
            last_run=self._last_run,
            status=status,
            health_check=health_check
        )
