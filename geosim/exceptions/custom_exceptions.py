"""
Custom exception classes for the GeoSim spatial reasoning core.

This module defines domain-specific exceptions to provide clear error handling
and debugging information throughout the system.
"""

from typing import Optional, Dict, Any


class GeoSimBaseException(Exception):
    """Base exception class for all GeoSim exceptions."""
    
    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}
    
    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} (Context: {context_str})"
        return self.message


class GeoSimConfigurationError(GeoSimBaseException):
    """
    Exception raised when configuration loading or validation fails.
    
    This exception is raised when:
    - Configuration files are missing or invalid
    - Environment configuration is malformed
    - Required configuration values are missing
    """
    pass


class GeoSimValidationError(GeoSimBaseException):
    """
    Exception raised when data validation fails.
    
    This exception is raised when:
    - Configuration structure validation fails
    - Region geometry is malformed
    - Required environment variables are missing
    """
    pass


class GeoSimDataSourceError(GeoSimBaseException):
    """
    Exception raised when an upstream data source cannot be read.
    
    This exception is raised when:
    - Region data files are missing or unreadable
    - Region data files contain invalid JSON
    - Retries against the data source are exhausted
    """
    pass


class GeoSimProcessingError(GeoSimBaseException):
    """
    Exception raised when spatial processing fails.
    
    This exception is raised when:
    - A requested region or lot does not exist
    - Lot allocation cannot be satisfied
    - Movement planning fails for an agent
    """
    pass
