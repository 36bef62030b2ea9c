"""Performance Monitoring for Spatial Operations

Records execution time, resident memory growth and processing rate for grid
generation and movement ticks, warning on operations slower than a configured
threshold.
"""

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, List

import psutil

logger = logging.getLogger(__name__)


@dataclass
class PerformanceMetrics:
    """Performance metrics for one spatial operation."""
    operation_name: str
    execution_time: float
    memory_usage_mb: float
    records_processed: int
    processing_rate: float

    def get_summary(self) -> Dict[str, Any]:
        """Get performance summary dictionary."""
        return {
            "operation": self.operation_name,
            "execution_time_seconds": round(self.execution_time, 3),
            "memory_usage_mb": round(self.memory_usage_mb, 2),
            "records_processed": self.records_processed,
            "processing_rate_per_second": round(self.processing_rate, 2)
        }


class PerformanceMonitor:
    """Performance monitoring for grid generation and movement ticks.

    Safe to share between services running on different threads.
    """

    def __init__(self, slow_operation_seconds: float = 5.0, max_history: int = 1000):
        """Initialize performance monitor.

        Args:
            slow_operation_seconds: Operations slower than this are logged as warnings
            max_history: Number of metrics records kept before the oldest are dropped
        """
        self.slow_operation_seconds = slow_operation_seconds
        self.max_history = max_history
        self.metrics_history: List[PerformanceMetrics] = []
        self.process = psutil.Process()
        self._lock = threading.Lock()

    @contextmanager
    def monitor_operation(self, operation_name: str, records_count: int = 0):
        """Context manager for monitoring a spatial operation.

        Args:
            operation_name: Name of the operation being monitored
            records_count: Number of records being processed
        """
        start_time = time.perf_counter()
        start_memory = self.process.memory_info().rss / 1024 / 1024  # MB

        try:
            yield
        finally:
            execution_time = time.perf_counter() - start_time
            end_memory = self.process.memory_info().rss / 1024 / 1024  # MB
            processing_rate = records_count / execution_time if execution_time > 0 else 0.0

            metrics = PerformanceMetrics(
                operation_name=operation_name,
                execution_time=execution_time,
                memory_usage_mb=max(end_memory - start_memory, 0.0),
                records_processed=records_count,
                processing_rate=processing_rate
            )

            with self._lock:
                self.metrics_history.append(metrics)
                if len(self.metrics_history) > self.max_history:
                    del self.metrics_history[:len(self.metrics_history) - self.max_history]

            if execution_time > self.slow_operation_seconds:
                logger.warning(f"Slow operation detected: {operation_name} took {execution_time:.2f}s "
                               f"for {records_count} records ({processing_rate:.1f} records/sec)")
            else:
                logger.debug(f"Operation {operation_name}: {execution_time:.3f}s, "
                             f"{records_count} records, {processing_rate:.1f} records/sec")

    def get_operation_metrics(self, operation_name: str) -> List[PerformanceMetrics]:
        """Get metrics for a specific operation type."""
        with self._lock:
            return [m for m in self.metrics_history if m.operation_name == operation_name]

    def get_performance_summary(self) -> Dict[str, Any]:
        """Get performance summary grouped by operation."""
        with self._lock:
            history = list(self.metrics_history)

        if not history:
            return {"message": "No performance data collected"}

        operations: Dict[str, List[PerformanceMetrics]] = {}
        for metric in history:
            operations.setdefault(metric.operation_name, []).append(metric)

        total_time = sum(m.execution_time for m in history)
        total_records = sum(m.records_processed for m in history)

        return {
            "total_operations": len(history),
            "total_execution_time": round(total_time, 2),
            "total_records_processed": total_records,
            "overall_processing_rate": round(total_records / total_time, 2) if total_time > 0 else 0,
            "operation_breakdown": {
                name: {
                    "total_executions": len(metrics),
                    "total_time": round(sum(m.execution_time for m in metrics), 3),
                    "total_records": sum(m.records_processed for m in metrics),
                    "max_time": round(max(m.execution_time for m in metrics), 3),
                }
                for name, metrics in operations.items()
            }
        }

    def clear_metrics(self):
        """Clear collected metrics history."""
        with self._lock:
            self.metrics_history.clear()
        logger.debug("Performance metrics history cleared")
