"""
Configuration loader for the GeoSim spatial reasoning core.

This module provides the ConfigLoader class that handles loading and validating
JSON configuration files for multi-environment deployments.
"""

import copy
import json
import os
from pathlib import Path
from typing import Dict, Any, Optional
from functools import lru_cache

from ..exceptions import GeoSimConfigurationError, GeoSimValidationError
from ..utils import get_logger

REQUIRED_ENVIRONMENT_KEYS = ["region_source", "logging", "processing"]
SPATIAL_COMPONENTS = ["hierarchy", "lot_grid", "wander"]


class ConfigLoader:
    """
    Configuration loader and validator for the GeoSim core.

    This class handles loading environment-specific configuration from JSON files,
    validating required sections, and merging shared spatial settings into each
    environment.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the configuration loader.

        Args:
            config_dir: Directory containing configuration files (defaults to 'config/')
        """
        self.logger = get_logger(__name__)
        self.config_dir = Path(config_dir) if config_dir else Path("config")

    @lru_cache(maxsize=2)
    def load_environment_config(self, environment: str) -> Dict[str, Any]:
        """
        Load configuration for a specific environment.

        Args:
            environment: Environment name (development/production)

        Returns:
            Dictionary containing environment-specific configuration merged with shared config

        Raises:
            GeoSimConfigurationError: If configuration cannot be loaded or validated
        """
        try:
            env_config_path = self.config_dir / "environment_config.json"

            if not env_config_path.exists():
                raise GeoSimConfigurationError(
                    f"Environment configuration file not found: {env_config_path}"
                )

            with open(env_config_path, 'r') as f:
                config_data = json.load(f)

            self._validate_environment_config(config_data, environment)

            env_config = copy.deepcopy(config_data["environments"][environment])

            if "shared" in config_data:
                self._merge_shared_config(env_config, config_data["shared"])

            env_config["_validation"] = config_data.get("validation", {})

            self.logger.info(f"Loaded configuration for environment: {environment}")
            return env_config

        except json.JSONDecodeError as e:
            raise GeoSimConfigurationError(
                f"Invalid JSON in environment configuration: {str(e)}"
            )
        except GeoSimConfigurationError:
            raise
        except Exception as e:
            raise GeoSimConfigurationError(
                f"Failed to load environment configuration: {str(e)}"
            )

    def get_spatial_config(self, environment: str) -> Dict[str, Any]:
        """
        Get the merged spatial component settings for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary with 'hierarchy', 'lot_grid' and 'wander' sections (each possibly empty)
        """
        env_config = self.load_environment_config(environment)
        spatial = env_config.get("spatial", {})
        return {component: dict(spatial.get(component, {})) for component in SPATIAL_COMPONENTS}

    def get_region_source(self, environment: str) -> Dict[str, Any]:
        """
        Get the region data source settings for an environment.

        Args:
            environment: Environment name

        Returns:
            Dictionary describing the region provider (type, data_dir)

        Raises:
            GeoSimConfigurationError: If the region source has no type
        """
        region_source = self.load_environment_config(environment)["region_source"]
        if "type" not in region_source:
            raise GeoSimConfigurationError(
                "Region source configuration is missing 'type'",
                {"environment": environment}
            )
        return region_source

    def validate_environment_variables(self, environment: str) -> None:
        """
        Validate that required environment variables are set.

        Args:
            environment: Environment name to validate

        Raises:
            GeoSimValidationError: If required environment variables are missing
        """
        env_config = self.load_environment_config(environment)
        required_vars = env_config.get("_validation", {}).get("required_environment_variables", [])

        missing_vars = [var for var in required_vars if not os.getenv(var)]

        if missing_vars:
            raise GeoSimValidationError(
                f"Missing required environment variables: {', '.join(missing_vars)}"
            )

        self.logger.info(f"Environment variables validated for: {environment}")

    def _merge_shared_config(self, env_config: Dict[str, Any], shared_config: Dict[str, Any]) -> None:
        """
        Merge shared configuration into an environment block in place.

        The spatial section is merged per component so an environment can override
        a single setting (e.g. wander.batch_size) without repeating the rest.

        Args:
            env_config: Environment configuration to update
            shared_config: Shared configuration block
        """
        for key, value in shared_config.items():
            if key == "spatial":
                merged_spatial = {}
                env_spatial = env_config.get("spatial", {})
                for component in set(value) | set(env_spatial):
                    merged_component = dict(value.get(component, {}))
                    merged_component.update(env_spatial.get(component, {}))
                    merged_spatial[component] = merged_component
                env_config["spatial"] = merged_spatial
            elif key not in env_config:
                env_config[key] = copy.deepcopy(value)

    def _validate_environment_config(self, config_data: Dict[str, Any], environment: str) -> None:
        """
        Validate environment configuration structure.

        Args:
            config_data: Configuration data to validate
            environment: Environment name to validate

        Raises:
            GeoSimValidationError: If configuration is invalid
        """
        if "environments" not in config_data:
            raise GeoSimValidationError("Missing 'environments' key in configuration")

        if environment not in config_data["environments"]:
            available_envs = list(config_data["environments"].keys())
            raise GeoSimValidationError(
                f"Environment '{environment}' not found. Available: {available_envs}"
            )

        env_config = config_data["environments"][environment]

        for key in REQUIRED_ENVIRONMENT_KEYS:
            if key not in env_config:
                raise GeoSimValidationError(
                    f"Missing required key '{key}' in {environment} configuration"
                )

        # Unknown spatial components are almost always typos
        spatial_sections = dict(config_data.get("shared", {}).get("spatial", {}))
        spatial_sections.update(env_config.get("spatial", {}))
        unknown = sorted(set(spatial_sections) - set(SPATIAL_COMPONENTS))
        if unknown:
            raise GeoSimValidationError(
                f"Unknown spatial components in {environment} configuration: {unknown}"
            )

    def clear_cache(self) -> None:
        """Clear the configuration cache."""
        self.load_environment_config.cache_clear()
        self.logger.info("Configuration cache cleared")
