"""
Centralized logging configuration for PisoPrint.

Thread-aware logging: every record carries the name of the thread that wrote
it, so lines from the parallel letter/legal conversion threads can be told
apart.

Features:
    - Automatic thread name and ID in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - Per-upload loggers keyed by basename

Log Format:
    2025-12-03 10:15:30 [INFO    ] [MainThread] piso_print.app - Starting application
    2025-12-03 10:15:31 [INFO    ] [Convert-letter] piso_print.upload.1733221530123 - Rasterized 4 pages
    2025-12-03 10:15:32 [INFO    ] [MainThread] piso_print.modules.estimator - Quote ready

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("This message includes thread context automatically")

    # For one upload's conversion
    upload_logger = get_upload_logger("1733221530123-report")
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "piso_print"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


# =============================================================================
# THREAD CONTEXT FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """
    Logging filter that adds thread context to all log records.

    Adds ``thread_name`` and ``thread_id`` to each record so the format string
    can show which thread (main, Convert-letter, Convert-legal) emitted it.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()

        # Never drop records, only annotate them
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    This sets up:
    1. Console handler (always enabled)
    2. Rotating file handler (optional)
    3. Error file handler (optional) - ERROR/CRITICAL only
    4. Thread context filter on every handler

    Args:
        app_name: Name of the root logger (default: "piso_print")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False

    # Replaced on every call; tests build several apps per process
    for old_handler in list(logger.handlers):
        logger.removeHandler(old_handler)
        old_handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    logger.addHandler(
        _configured(logging.StreamHandler(sys.stdout), log_level, formatter, thread_filter)
    )

    if enable_file_logging:
        log_dir = Path(log_dir) if log_dir is not None else Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(
            _configured(_rotating(app_log_file), log_level, formatter, thread_filter)
        )
        logger.addHandler(
            _configured(
                _rotating(log_dir / f"{app_name}_error.log"),
                logging.ERROR,
                formatter,
                thread_filter,
            )
        )
        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def _rotating(path: Path) -> RotatingFileHandler:
    return RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding="utf-8",
    )


def _configured(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
    thread_filter: logging.Filter,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


# =============================================================================
# LOGGER FACTORY FUNCTIONS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance under "piso_print"

    Example:
        # In services/cache_store.py
        logger = get_logger(__name__)
        # Logger name: "piso_print.services.cache_store"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def get_upload_logger(basename: str) -> logging.Logger:
    """
    Get a logger for a single upload's conversion.

    Basenames start with a millisecond timestamp, so the first 13 characters
    are enough to tell uploads apart in the logs.

    Args:
        basename: Upload basename

    Returns:
        Logger named "piso_print.upload.<prefix>"
    """
    short_id = basename[:13] if len(basename) >= 13 else basename
    return logging.getLogger(f"{APP_LOGGER_NAME}.upload.{short_id}")


def set_thread_name(name: str) -> None:
    """
    Set the name of the current thread.

    This name appears in log messages in the [thread_name] field.

    Example:
        set_thread_name("Convert-letter")
    """
    threading.current_thread().name = name
