"""
Custom exceptions for the GeoSim spatial reasoning core.

This module provides domain-specific exception classes for error handling
and debugging throughout the system.
"""

from .custom_exceptions import (
    GeoSimBaseException,
    GeoSimConfigurationError,
    GeoSimValidationError,
    GeoSimDataSourceError,
    GeoSimProcessingError,
)

__all__ = [
    "GeoSimBaseException",
    "GeoSimConfigurationError",
    "GeoSimValidationError",
    "GeoSimDataSourceError",
    "GeoSimProcessingError",
]
