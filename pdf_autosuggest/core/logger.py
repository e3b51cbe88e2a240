"""
Logging setup for PDF Autosuggest.

All output goes through the root logger: a stdout handler and, when a logs
directory is configured, a size-rotated ``autosuggest.log``. The PDF
libraries are chatty below WARNING and are held at that level.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List


LOG_FILENAME = "autosuggest.log"

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# pdfminer (under pdfplumber) logs every parsed object at DEBUG
NOISY_LOGGERS = ("pdfminer", "pypdf")

_logger_initialized = False


def _build_handlers(
    formatter: logging.Formatter,
    logs_directory: Path,
    max_file_size_mb: int,
    backup_count: int
) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if logs_directory:
        logs_directory = Path(logs_directory)
        logs_directory.mkdir(parents=True, exist_ok=True)

        handlers.append(RotatingFileHandler(
            logs_directory / LOG_FILENAME,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        ))

    for handler in handlers:
        handler.setFormatter(formatter)

    return handlers


def setup_logging(
    log_level: str = "INFO",
    log_format: str = DEFAULT_FORMAT,
    logs_directory: Path = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5
) -> None:
    """
    Attach console and optional rotating file handlers to the root logger.

    Only the first call has an effect.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Format string for every handler.
        logs_directory: Directory for ``autosuggest.log``; None disables
            file output.
        max_file_size_mb: Size at which the log file rotates.
        backup_count: Rotated files to keep.
    """
    global _logger_initialized

    if _logger_initialized:
        return

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    formatter = logging.Formatter(log_format)
    for handler in _build_handlers(formatter, logs_directory, max_file_size_mb, backup_count):
        root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logger_initialized = True


def setup_logging_from_config(config) -> None:
    """Initialize logging from the ``logging`` and ``paths`` config sections."""
    setup_logging(
        log_level=config.logging.level,
        log_format=config.logging.format,
        logs_directory=config.paths.logs_directory,
        max_file_size_mb=config.logging.max_file_size_mb,
        backup_count=config.logging.backup_count
    )


def get_logger(name: str) -> logging.Logger:
    """
    Named logger; initializes logging from the active configuration on
    first use, or with defaults when no configuration can be loaded.
    """
    if not _logger_initialized:
        from .config_loader import get_config
        from .exceptions import ConfigurationError

        try:
            setup_logging_from_config(get_config())
        except (ConfigurationError, OSError):
            setup_logging()

    return logging.getLogger(name)
