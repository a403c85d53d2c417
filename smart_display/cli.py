import argparse
import logging
import sys
from typing import List, Optional

from smart_display.exceptions import ConfigError
from smart_display.logging_config import get_logger, setup_logging
from smart_display.settings import ServiceSettings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='SmartDisplay picture frame server')
    parser.add_argument('-c', '--config', dest='config_path',
                        help='Path to the frame config JSON file (default: smart-display.json)')
    parser.add_argument('--host', help='Address to bind the HTTP server to')
    parser.add_argument('-p', '--port', type=int, help='Port to listen on (default: 3000)')
    parser.add_argument('--sensor-path', help='JSON file with temperature/humidity readings')
    parser.add_argument('--sensor-interval', dest='sensor_interval_secs', type=float,
                        help='Seconds between sensor file reads')
    parser.add_argument('-d', '--debug', action='store_true', default=None,
                        help='Enable debug logging')
    parser.add_argument('--log-format', choices=['readable', 'json'], default='readable',
                        help="Log output format (use 'json' for structured logging)")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        settings = ServiceSettings.from_env().with_overrides(
            config_path=args.config_path,
            host=args.host,
            port=args.port,
            sensor_path=args.sensor_path,
            sensor_interval_secs=args.sensor_interval_secs,
            debug=args.debug,
        )
    except ConfigError as e:
        print(f"Invalid settings: {e}", file=sys.stderr)
        return 2

    setup_logging(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format_type=args.log_format,
        include_location=settings.debug,
    )
    logger = get_logger(__name__)
    logger.debug(f"Settings: {settings.to_dict()}")

    # Imported after logging is configured
    from smart_display.service import SmartDisplayService

    service = SmartDisplayService(settings)
    try:
        service.serve()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0
