"""Wander Batch Driver

Runs one movement tick over many agents for an external periodic trigger.
Agents are processed in bounded concurrent groups, failures are isolated per
agent, and a tick triggered while the previous one is still running is
skipped instead of overlapping it.

Each agent gets its own random source, seeded in agent order from the
generator's, so a seeded generator gives the same moves whatever the thread
scheduling.
"""

import logging
import random
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext
from typing import Iterable, Iterator, List, Optional

from ..models import MobileAgent, MovementBatchResult, WanderConfig
from ..performance import PerformanceMonitor
from .wander_generator import WanderGenerator

logger = logging.getLogger(__name__)


class WanderBatchDriver:
    """Non-reentrant movement tick over a batch of agents."""

    def __init__(self, generator: WanderGenerator,
                 config: Optional[WanderConfig] = None,
                 monitor: Optional[PerformanceMonitor] = None):
        """Initialize the driver.

        Args:
            generator: Wander generator planning each agent's move
            config: Batch settings (``batch_size`` bounds concurrent agents);
                defaults to the generator's configuration
            monitor: Optional performance monitor for tick timing
        """
        self.generator = generator
        self.config = config or generator.config
        self.monitor = monitor
        self._tick_lock = threading.Lock()

    @property
    def is_running(self) -> bool:
        """Whether a tick is currently in progress."""
        return self._tick_lock.locked()

    def run_tick(self, agents: Iterable[MobileAgent]) -> MovementBatchResult:
        """Plan one movement step for every agent.

        The returned moves are not applied here; the caller applies each one
        as a single atomic update.

        Args:
            agents: Agents to move this tick

        Returns:
            MovementBatchResult with moved/stayed/errored counters, or with
            ``skipped_overlap`` set if a previous tick is still running
        """
        if not self._tick_lock.acquire(blocking=False):
            logger.warning("Movement tick already in progress, skipping this trigger")
            return MovementBatchResult(skipped_overlap=True)

        try:
            agents = list(agents)
            logger.info(f"Processing movement of {len(agents)} agents")
            context = (self.monitor.monitor_operation("movement_tick", len(agents))
                       if self.monitor is not None else nullcontext())
            with context:
                result = self._run_groups(agents)
            logger.info(f"Movement tick complete: {result.get_summary()}")
            return result
        finally:
            self._tick_lock.release()

    def _run_groups(self, agents: List[MobileAgent]) -> MovementBatchResult:
        start_time = time.perf_counter()
        result = MovementBatchResult()

        with ThreadPoolExecutor(max_workers=self.config.batch_size,
                                thread_name_prefix="wander") as executor:
            for group_num, group in enumerate(self._batch_agents(agents, self.config.batch_size), 1):
                logger.debug(f"Processing agent group {group_num} with {len(group)} agents")
                result.group_count += 1

                futures = []
                for agent in group:
                    if not agent.can_wander():
                        result.stayed += 1
                        continue
                    agent_rng = random.Random(self.generator.rng.getrandbits(64))
                    futures.append((agent, executor.submit(self.generator.plan_move, agent, agent_rng)))

                # Each group completes before the next starts
                for agent, future in futures:
                    try:
                        move = future.result()
                    except Exception as e:
                        result.errored += 1
                        result.errors.append(f"Agent {agent.id}: {e}")
                        logger.error(f"Failed to move agent {agent.id}: {e}")
                        continue

                    if move is None:
                        result.stayed += 1
                    else:
                        result.moved += 1
                        result.moves.append(move)

        result.processing_duration = time.perf_counter() - start_time
        return result

    @staticmethod
    def _batch_agents(agents: List[MobileAgent], batch_size: int) -> Iterator[List[MobileAgent]]:
        for i in range(0, len(agents), batch_size):
            yield agents[i:i + batch_size]
