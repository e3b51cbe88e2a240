"""
Core module providing foundational components.

This module contains the configuration loader, centralized logging setup,
and custom exception hierarchy. It has no internal dependencies.
"""

from .config_loader import get_config, reload_config, Config
from .logger import get_logger
from .exceptions import (
    AutosuggestError,
    ConfigurationError,
    ExtractionError,
    IndexOpenError,
    LockContentionError,
    IndexWriteError,
    InvalidDocumentError,
    QueryParseError,
    SearchError
)

__all__ = [
    "get_config",
    "reload_config",
    "Config",
    "get_logger",
    "AutosuggestError",
    "ConfigurationError",
    "ExtractionError",
    "IndexOpenError",
    "LockContentionError",
    "IndexWriteError",
    "InvalidDocumentError",
    "QueryParseError",
    "SearchError"
]
