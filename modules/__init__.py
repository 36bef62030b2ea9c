"""GeoSim Processing Modules

This package contains the processing modules built on the GeoSim framework core.
Each module exposes its services to in-process callers and implements the
ModuleProcessor interface where it is driven by an external periodic trigger.
"""
