"""Centralized logging configuration for the simple-nominatim application.

Sets up standard Python logging on the root logger. Console logs go to
stderr so that stdout only carries API output; a log file can be added
through the ``logging.file`` setting.
"""

import logging
import sys
from typing import List, Optional

DEFAULT_LOG_LEVEL = logging.WARNING
DEFAULT_LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = None

# Third-party loggers that report every HTTP request at INFO
HTTP_CLIENT_LOGGERS = ("httpx", "httpcore")


def resolve_log_level(level_name: Optional[str], default: int = DEFAULT_LOG_LEVEL) -> int:
    """Maps a level name such as 'debug' to its logging constant."""
    if not level_name:
        return default
    level = logging.getLevelName(str(level_name).upper())
    return level if isinstance(level, int) else default


def _build_handlers(log_level: int, formatter: logging.Formatter, log_file: Optional[str]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        try:
            handlers.append(logging.FileHandler(log_file, encoding='utf-8'))
        except OSError as e:
            # Keep going with stderr only
            sys.stderr.write(f"Failed to set up file logging to {log_file}: {e}\n")
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(
    log_level: int = DEFAULT_LOG_LEVEL,
    log_format: str = DEFAULT_LOG_FORMAT,
    log_file: Optional[str] = DEFAULT_LOG_FILE
) -> None:
    """Configures the root logger for the application.

    Args:
        log_level: The minimum logging level (e.g., logging.DEBUG, logging.WARNING).
        log_format: The format string for log messages.
        log_file: Optional path to a file that receives the same records.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Replace whatever handlers a previous call (or a library) attached
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    for handler in _build_handlers(log_level, logging.Formatter(log_format), log_file):
        root_logger.addHandler(handler)

    http_level = logging.DEBUG if log_level <= logging.DEBUG else logging.WARNING
    for name in HTTP_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(http_level)

    logging.debug(f"Logging configured. Level={logging.getLevelName(log_level)}, file={log_file}")
