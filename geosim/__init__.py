"""
GeoSim Framework Core Package

This package contains the core infrastructure for the GeoSim spatial reasoning
backend, providing shared components and interfaces for processing modules.
"""

from .interfaces import ModuleProcessor, ProcessingResult, ModuleStatus, ModuleState

__version__ = "1.0.0"
__all__ = ['ModuleProcessor', 'ProcessingResult', 'ModuleStatus', 'ModuleState']
