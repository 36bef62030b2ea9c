"""Spatial Reasoning Module Entry Point

Command-line interface for ad hoc queries against the configured region data:

    python -m modules.spatial_reasoning.main resolve --lat -23.55 --lng -46.63
    python -m modules.spatial_reasoning.main grid --city-id sao-paulo
    python -m modules.spatial_reasoning.main availability --city-id sao-paulo --lat -23.55 --lng -46.63
"""

import argparse
import json
import logging
import sys
from typing import Optional

from geosim.config import ConfigLoader
from geosim.exceptions import GeoSimBaseException
from geosim.utils import setup_logging

from .factory import build_spatial_services

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="GeoSim Spatial Reasoning - hierarchy resolution and lot grid queries"
    )
    parser.add_argument(
        "--environment",
        choices=["development", "production"],
        default="development",
        help="Environment to run against (default: development)"
    )
    parser.add_argument("--config-dir", default=None, help="Directory holding environment_config.json")
    parser.add_argument("--data-dir", default=None, help="Override the configured region data directory")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="Resolve a coordinate to country/state/city")
    resolve.add_argument("--lat", type=float, required=True)
    resolve.add_argument("--lng", type=float, required=True)

    grid = subparsers.add_parser("grid", help="Ensure and summarise a city's lot grid")
    grid.add_argument("--city-id", required=True)

    availability = subparsers.add_parser("availability", help="Check whether a position in a city is free")
    availability.add_argument("--city-id", required=True)
    availability.add_argument("--lat", type=float, required=True)
    availability.add_argument("--lng", type=float, required=True)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the spatial reasoning module.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parsed_args = _build_parser().parse_args(args)
    setup_logging(environment=parsed_args.environment, log_level=parsed_args.log_level)

    try:
        services = build_spatial_services(
            ConfigLoader(parsed_args.config_dir),
            parsed_args.environment,
            data_dir=parsed_args.data_dir
        )

        if parsed_args.command == "resolve":
            result = services.index.resolve(parsed_args.lat, parsed_args.lng)
            output = {
                "valid": result.valid,
                "depth": result.depth,
                "regions": result.get_region_ids(),
                "message": result.message,
            }
        elif parsed_args.command == "grid":
            lots = services.allocator.ensure_grid(parsed_args.city_id)
            output = {"city_id": parsed_args.city_id, "lot_count": len(lots)}
            output.update(services.allocator.get_grid_summary(parsed_args.city_id))
        else:
            result = services.allocator.validate_availability(
                parsed_args.city_id, (parsed_args.lat, parsed_args.lng)
            )
            output = result.model_dump(mode="json")

    except GeoSimBaseException as e:
        logger.error(f"Command failed: {e}")
        print(json.dumps({"error": str(e)}), file=sys.stderr)
        return 1

    print(json.dumps(output, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
