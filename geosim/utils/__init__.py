"""
Utility modules for the GeoSim spatial reasoning core.

This module provides utility functions and setup for logging, per-key
locking and other common functionality used throughout the system.
"""

from .keyed_locks import KeyedLocks
from .logging_setup import JSONFormatter, setup_logging, setup_logging_from_config, get_logger, log_performance

__all__ = ["JSONFormatter", "setup_logging", "setup_logging_from_config", "get_logger", "log_performance",
           "KeyedLocks"]
