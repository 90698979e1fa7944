"""
Command line entry point

    python -m ado_exporter [--log-level DEBUG] [--log-json] [--env-file .env]
"""

import argparse
import asyncio
import sys

from ado_exporter import __version__
from ado_exporter.collectors.service_discovery import ServiceDiscoveryError
from ado_exporter.core.logging_config import get_logger, setup_logging
from ado_exporter.exporter import Exporter
from ado_exporter.secure_config import ConfigurationError, validate_config_on_startup

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ado-exporter", description="Azure DevOps Prometheus exporter")
    parser.add_argument("--log-level", help="Override LOG_LEVEL (DEBUG, INFO, WARNING, ERROR)")
    parser.add_argument("--log-json", action="store_true", default=None, help="Log JSON lines (overrides LOG_JSON)")
    parser.add_argument("--env-file", help="Load environment variables from this file")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = validate_config_on_startup(args.env_file)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    setup_logging(
        level=args.log_level or config.log_level,
        json_output=config.log_json if args.log_json is None else args.log_json,
    )

    try:
        asyncio.run(Exporter(config).run())
    except ServiceDiscoveryError as e:
        logger.error(f"Service discovery failed, exiting: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
