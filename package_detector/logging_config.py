"""Centralized logging configuration for the package detection system."""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional

from .config.defaults import SYSTEM_CONSTANTS
from .utils import get_file_size_mb

LOGGER_NAMESPACE = "package_detector"


class StructuredFormatter(logging.Formatter):
    """Custom formatter that adds structured information to log records."""

    def __init__(self, include_context: bool = True):
        self.include_context = include_context
        super().__init__()

    def format(self, record: logging.LogRecord) -> str:
        """Format log record with structured information."""
        base_format = "%(asctime)s | %(levelname)-8s | %(name)-35s | %(message)s"

        if self.include_context and hasattr(record, 'context'):
            context_str = " | ".join([f"{k}={v}" for k, v in record.context.items()])
            base_format += f" | Context: {context_str}"

        if record.levelno >= logging.ERROR and record.exc_info:
            base_format += " | %(pathname)s:%(lineno)d"

        formatter = logging.Formatter(base_format)
        return formatter.format(record)


class LoggingManager:
    """Owns the package logger's handlers.

    Console output always goes to stdout. When ``log_dir`` is given, a
    rotating main log and a rotating error log are written there as well.
    """

    def __init__(self, log_dir: Optional[str] = None, log_level: int = logging.INFO):
        self.log_dir = Path(log_dir) if log_dir else None
        self.log_level = log_level
        self.max_log_size = SYSTEM_CONSTANTS["LOG_ROTATION_SIZE_MB"] * 1024 * 1024
        self.backup_count = SYSTEM_CONSTANTS["LOG_BACKUP_COUNT"]

        self._setup_package_logger()

    def _setup_package_logger(self) -> None:
        package_logger = logging.getLogger(LOGGER_NAMESPACE)
        # Handlers filter by their own level; the file log keeps DEBUG records
        package_logger.setLevel(logging.DEBUG)
        package_logger.propagate = False

        for handler in list(package_logger.handlers):
            package_logger.removeHandler(handler)
            handler.close()

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(self.log_level)
        console_handler.setFormatter(StructuredFormatter(include_context=False))
        package_logger.addHandler(console_handler)

        if self.log_dir is not None:
            self.log_dir.mkdir(parents=True, exist_ok=True)

            main_file_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / "package_detector.log",
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            main_file_handler.setLevel(logging.DEBUG)
            main_file_handler.setFormatter(StructuredFormatter(include_context=True))
            package_logger.addHandler(main_file_handler)

            error_file_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / "errors.log",
                maxBytes=self.max_log_size,
                backupCount=self.backup_count
            )
            error_file_handler.setLevel(logging.ERROR)
            error_file_handler.setFormatter(StructuredFormatter(include_context=True))
            package_logger.addHandler(error_file_handler)

        package_logger.debug("Logging system initialized")

    def get_log_stats(self) -> Dict[str, Any]:
        stats = {
            "log_directory": str(self.log_dir) if self.log_dir else None,
            "log_files": {},
            "log_level": logging.getLevelName(self.log_level)
        }
        if self.log_dir is not None:
            for log_file in self.log_dir.glob("*.log"):
                stats["log_files"][log_file.name] = {
                    "size_mb": get_file_size_mb(str(log_file))
                }
        return stats


_component_loggers: Dict[str, logging.Logger] = {}
logging_manager: Optional[LoggingManager] = None


def get_logger(component_name: str) -> logging.Logger:
    """Convenience function to get a component logger."""
    if component_name in _component_loggers:
        return _component_loggers[component_name]

    logger = logging.getLogger(f"{LOGGER_NAMESPACE}.{component_name}")
    _component_loggers[component_name] = logger
    return logger


def log_with_context(logger: logging.Logger, level: int, message: str,
                     context: Optional[Dict[str, Any]] = None) -> None:
    """Log a message with structured key/value context."""
    if context:
        logger.log(level, message, extra={'context': context})
    else:
        logger.log(level, message)


def setup_logging(log_level: str = "INFO", log_dir: Optional[str] = None) -> LoggingManager:
    """Setup centralized logging system."""
    global logging_manager

    numeric_level = getattr(logging, log_level.upper(), logging.INFO)
    logging_manager = LoggingManager(log_dir, numeric_level)
    return logging_manager
