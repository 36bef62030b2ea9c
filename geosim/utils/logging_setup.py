"""
Logging configuration for the GeoSim spatial reasoning core.

This module provides centralized logging setup with environment-specific
configuration and structured logging capabilities.
"""

import functools
import json
import logging
import logging.handlers
import os
import sys
import time
from pathlib import Path
from typing import Optional, Dict, Any


# Attributes every LogRecord carries; anything else was passed via ``extra``.
_RESERVED_RECORD_ATTRS = frozenset([
    'name', 'msg', 'args', 'levelname', 'levelno', 'pathname', 'filename',
    'module', 'exc_info', 'exc_text', 'stack_info', 'lineno', 'funcName',
    'created', 'msecs', 'relativeCreated', 'thread', 'threadName',
    'processName', 'process', 'taskName', 'message', 'asctime',
])

_STANDARD_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class JSONFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as a single-line JSON object."""
        log_entry = {
            'timestamp': self.formatTime(record, self.datefmt),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'module': record.module,
            'function': record.funcName,
            'line': record.lineno,
        }

        if record.exc_info:
            log_entry['exception'] = self.formatException(record.exc_info)

        # Fields supplied through ``extra=`` (agent ids, counters, durations)
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_entry:
                log_entry[key] = value

        return json.dumps(log_entry, default=str)


def _build_formatter(log_format: str) -> logging.Formatter:
    if log_format == "json":
        return JSONFormatter(datefmt='%Y-%m-%d %H:%M:%S')
    return logging.Formatter(_STANDARD_FORMAT)


def setup_logging(environment: str = "development",
                  log_level: str = "INFO",
                  log_dir: Optional[str] = None,
                  log_format: Optional[str] = None) -> None:
    """
    Set up logging configuration for the GeoSim core.

    Args:
        environment: Environment name (development/production)
        log_level: Logging level (DEBUG/INFO/WARNING/ERROR)
        log_dir: Directory for rotating log files (optional)
        log_format: 'json' or 'standard'; defaults to json in production
    """
    if log_format is None:
        log_format = "json" if environment == "production" else "standard"

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger()
    logger.setLevel(getattr(logging, log_level.upper()))

    # Repeated setup must not duplicate output
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_build_formatter(log_format))
    logger.addHandler(console_handler)

    if log_dir:
        file_handler = logging.handlers.RotatingFileHandler(
            filename=os.path.join(log_dir, f"geosim_{environment}.log"),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5
        )
        file_handler.setFormatter(_build_formatter(log_format))
        logger.addHandler(file_handler)

    # Third-party geometry stack is noisy at DEBUG
    logging.getLogger("shapely").setLevel(logging.WARNING)


def setup_logging_from_config(environment: str, env_config: Dict[str, Any],
                              log_dir: Optional[str] = None) -> None:
    """
    Set up logging from the ``logging`` section of a loaded environment config.

    Args:
        environment: Environment name the config was loaded for
        env_config: Output of ConfigLoader.load_environment_config
        log_dir: Directory for rotating log files (optional)
    """
    logging_config = env_config.get("logging", {})
    setup_logging(
        environment=environment,
        log_level=logging_config.get("level", "INFO"),
        log_dir=log_dir or logging_config.get("log_dir"),
        log_format=logging_config.get("format"),
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def log_performance(func):
    """
    Decorator to log function execution time.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function with performance logging
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        start_time = time.perf_counter()

        logger.debug(f"Starting {func.__name__}")
        try:
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start_time
            logger.info(f"Completed {func.__name__} in {duration:.3f}s",
                        extra={"operation": func.__name__, "duration_seconds": round(duration, 6)})
            return result
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"Failed {func.__name__} after {duration:.3f}s: {str(e)}",
                         extra={"operation": func.__name__, "duration_seconds": round(duration, 6)})
            raise

    return wrapper
