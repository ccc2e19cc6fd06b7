"""Command line entry point for the package detector."""

import argparse
import signal
import sys
from typing import List, Optional

import yaml

from . import __version__
from .config.defaults import DEFAULT_PATHS
from .config_manager import ConfigManager
from .detection_pipeline import DetectionPipeline
from .logging_config import get_logger, setup_logging
from .services.error_handler import ConfigurationError
from .services.notification_service import NotificationService

logger = get_logger("main")

SECRET_KEYS = {("email", "pass"), ("push", "key")}


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="package-detector",
        description="Detect package deliveries from an IP camera snapshot."
    )
    parser.add_argument("-c", "--config", default=DEFAULT_PATHS["config_file"],
                        help="The path to the config file.")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Console log level.")
    parser.add_argument("--log-dir", default=None,
                        help="Directory for rotating log files. Console only when omitted.")
    parser.add_argument("--check-config", action="store_true",
                        help="Validate the configuration file and exit.")
    parser.add_argument("--dump-config", action="store_true",
                        help="Print the effective configuration, defaults included, and exit.")
    parser.add_argument("--test-notify", action="store_true",
                        help="Send a restart notification on every configured channel and exit.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def dump_config(manager: ConfigManager) -> str:
    """Render the effective configuration as YAML with secrets masked."""
    exported = manager.export_config()
    for section, key in SECRET_KEYS:
        if exported[section][key]:
            exported[section][key] = "********"
    return yaml.safe_dump(exported, default_flow_style=False, sort_keys=False)


def send_test_notification(manager: ConfigManager) -> int:
    config = manager.get_config()
    service = NotificationService.from_config(config.email, config.push, config.webhook)
    results = service.send_test_notifications()
    if not results:
        logger.error("No notification channels are configured")
        return 1

    for name, ok in results.items():
        logger.info(f"{name}: {'sent' if ok else 'FAILED'}")
    return 0 if all(results.values()) else 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the detection system."""
    args = parse_args(argv)
    logging_manager = setup_logging(args.log_level, args.log_dir)

    logger.info(f"Starting Package Detector {__version__}")

    manager = ConfigManager(args.config)
    try:
        config = manager.load_config()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    if args.dump_config:
        sys.stdout.write(dump_config(manager))
        return 0

    if args.check_config:
        logger.info(f"Configuration {args.config} is valid")
        return 0

    if args.test_notify:
        return send_test_notification(manager)

    try:
        pipeline = DetectionPipeline(config)
        pipeline.start()
    except ConfigurationError as e:
        logger.error(str(e))
        return 1

    def handle_signal(signum, frame):
        logger.info(f"Received signal {signal.Signals(signum).name}, shutting down")
        pipeline.stop_event.set()

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        # Wake periodically so signal handlers run promptly on every platform
        while not pipeline.wait(timeout=1.0):
            pass
    finally:
        pipeline.stop()
        status = pipeline.get_status()
        logger.info(f"Stopped after {status['cycle_count']} cycle(s) and "
                    f"{status['detection_count']} detection(s)")
        if args.log_dir:
            logger.debug(f"Log files: {logging_manager.get_log_stats()['log_files']}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
