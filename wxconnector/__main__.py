"""Command line entry point: one fetch-and-write run, then exit."""
from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from . import __version__
from .aqi import AQIError
from .config import DEFAULT_CONFIG_PATH, ConfigError, load_config
from .providers.base import ProviderError
from .services.runner import Connector
from .sinks.influx import HealthCheckError


logger = logging.getLogger("wxconnector")

LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wxconnector",
        description="Write current OpenWeatherMap weather and air pollution to InfluxDB and/or MQTT.",
    )
    parser.add_argument("--config", default=DEFAULT_CONFIG_PATH, help="Configuration JSON file.")
    parser.add_argument(
        "--print-data", action="store_true", help="Print weather/pollution data to stdout."
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--version", action="version", version=__version__)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO, format=LOG_FORMAT)
    # urllib3 logs request lines with the query string, API key included.
    logging.getLogger("urllib3").setLevel(logging.WARNING)

    if not args.config:
        logger.error("--config is required")
        return 1

    try:
        config = load_config(args.config)
        report = Connector(config).run(print_data=args.print_data)
    except ConfigError as exc:
        logger.error("Configuration error: %s", exc)
        return 1
    except HealthCheckError as exc:
        logger.error("%s", exc)
        return 1
    except ProviderError as exc:
        logger.error("Failed to get data from OpenWeatherMap: %s", exc)
        return 1
    except AQIError as exc:
        logger.error("Failed to calculate US AQI: %s", exc)
        return 1

    for failure in report.failures:
        logger.warning("Undelivered: %s -> %s (%s)", failure.measurement, failure.sink, failure.error)
    return 0


if __name__ == "__main__":
    sys.exit(main())
