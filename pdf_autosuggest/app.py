"""
Process entry point: prepare the index, then serve autosuggestions.

Usage:
    python -m pdf_autosuggest.app
    python -m pdf_autosuggest.app --config path/to/config.json --port 8081
"""

import argparse
import sys
from pathlib import Path

from .core import (
    get_config,
    get_logger,
    reload_config,
    Config,
    ConfigurationError,
    IndexOpenError,
    IndexWriteError,
    LockContentionError
)
from .core.logger import setup_logging_from_config
from .indexer import bootstrap_index
from .search import AutosuggestService


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Index local PDFs and serve keyword autosuggestions"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to custom config.json file"
    )

    parser.add_argument(
        "--host",
        type=str,
        help="Host to bind to (default from config)"
    )

    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (default from config)"
    )

    return parser.parse_args(argv)


def build_service(config: Config) -> AutosuggestService:
    """
    Open the index, ingest if it is empty, and assemble the service.

    Raises:
        IndexOpenError, LockContentionError, IndexWriteError: Fatal
            startup failures.
    """
    index, reader, stats = bootstrap_index(config)

    if stats is not None and stats.errors:
        get_logger(__name__).warning(f"{len(stats.errors)} file(s) could not be indexed")

    return AutosuggestService.from_config(reader, config)


def main(argv=None) -> None:
    """Main entry point for the server."""
    args = parse_args(argv)

    try:
        if args.config:
            config = reload_config(Path(args.config))
        else:
            config = get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}")
        sys.exit(1)

    setup_logging_from_config(config)
    logger = get_logger(__name__)

    try:
        service = build_service(config)
    except (IndexOpenError, LockContentionError, IndexWriteError) as e:
        logger.critical(f"Cannot start: {e.message} {e.details or ''}")
        sys.exit(1)

    import uvicorn
    from .api import create_app

    host = args.host or config.server.host
    port = args.port or config.server.port

    logger.info(f"Serving on http://{host}:{port}")
    # log_config=None keeps uvicorn on the handlers installed above
    uvicorn.run(create_app(service), host=host, port=port, log_config=None)


if __name__ == "__main__":
    main()
