"""
Centralized Logging
===================

This module provides the logging infrastructure for the texture store and
its command line. All diagnostic output goes through the standard library
`logging` package; modules obtain their logger with
`logging.getLogger(__name__)` and this module wires up the handlers once.

Key Features:
-------------
- File + Console Output: Detailed DEBUG logs to a file, INFO to the terminal.
- Operation Instrumentation: Decorator logging start, status and duration of
  long-running store operations (rehydration, pruning).
- Configuration Logging: Summary at INFO, full JSON dump at DEBUG.
"""

import json
import logging
import sys
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

DEFAULT_LOG_FORMAT = (
    '%(asctime)s - %(name)s - %(levelname)s - '
    '[%(filename)s:%(lineno)d] - %(message)s'
)
LOG_FILE_NAME = "texstore.log"


def setup_logging(
    log_dir: Optional[Union[str, Path]] = None,
    log_level: int = logging.DEBUG,
    console_level: int = logging.INFO,
    log_format: Optional[str] = None
) -> Path:
    """
    Initialize application-wide logging.

    Configs include:
    - Root Logger: Set to DEBUG to capture all events.
    - File Handler: Persists detailed logs to '<log_dir>/texstore.log',
      overwritten on each run.
    - Console Handler: Displays human-readable logs on stderr.

    Args:
        log_dir: Directory for the log file (defaults to ./logs).
        log_level: Granularity for the persistent log file.
        console_level: Granularity for the terminal output.
        log_format: Optional custom formatting string.

    Returns:
        Path: The path of the log file.
    """
    log_dir = Path(log_dir) if log_dir is not None else Path.cwd() / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    formatter = logging.Formatter(log_format or DEFAULT_LOG_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Capture everything, handlers will filter

    # Remove existing handlers to avoid duplicates
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()

    file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(console_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    logging.debug("=" * 80)
    logging.debug(f"texstore logging started - Log file: {log_file}")
    logging.debug("=" * 80)

    return log_file


def shutdown_logging():
    """
    Flush and close all root handlers. Call before process exit.
    """
    for handler in list(logging.root.handlers):
        handler.flush()
        handler.close()
        logging.root.removeHandler(handler)


def log_config(config_name: str, config_data: Dict[str, Any], logger: Optional[logging.Logger] = None):
    """
    Log configuration settings.

    Args:
        config_name: Name of the configuration being logged
        config_data: Dictionary of configuration settings
        logger: Optional logger instance (uses this module's logger if not provided)
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    logger.info(f"Configuration: {config_name}")
    logger.debug(f"{config_name} details: {json.dumps(config_data, indent=2, default=str)}")


def log_operation(func: Optional[Callable] = None, *, operation: str = "Store"):
    """
    Decorator for instrumentation of long-running store operations.

    Wraps a function to automatically log:
    1. The entry point.
    2. The execution status (Success/Failure) upon completion.
    3. Total duration in seconds.
    4. Full stack traces for any exception, which is re-raised.

    Args:
        func: The function to be instrumented.
        operation: Context label for the log entry (e.g., 'Prune').
    """
    def decorator(f: Callable) -> Callable:
        @wraps(f)
        def wrapper(*args, **kwargs):
            logger = logging.getLogger(f.__module__)
            func_name = f.__name__

            logger.debug(f"{operation} {func_name} started")
            start_time = time.time()
            error_occurred = False

            try:
                return f(*args, **kwargs)

            except Exception as e:
                error_occurred = True
                logger.error(
                    f"{operation} {func_name} failed: {type(e).__name__}: {str(e)}",
                    exc_info=True
                )
                raise

            finally:
                elapsed = time.time() - start_time
                status = "FAILED" if error_occurred else "SUCCESS"
                logger.debug(
                    f"{operation} {func_name} completed - Status: {status}, "
                    f"Duration: {elapsed:.3f}s"
                )

        return wrapper

    # Handle both @log_operation and @log_operation(operation="...")
    if func is None:
        return decorator
    else:
        return decorator(func)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)
