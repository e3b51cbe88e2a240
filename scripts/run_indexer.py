"""
CLI script to run the ingestion pipeline without serving.

The index is only filled when it is empty, exactly as at server startup.

Usage:
    python scripts/run_indexer.py
    python scripts/run_indexer.py --source "~/Downloads/*.pdf"
    python scripts/run_indexer.py --force-unlock
    python scripts/run_indexer.py --config path/to/config.json
"""

import argparse
import sys
from dataclasses import replace
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from pdf_autosuggest.core import (
    get_config,
    reload_config,
    Config,
    ConfigurationError,
    IndexOpenError,
    IndexWriteError,
    LockContentionError
)
from pdf_autosuggest.indexer import IndexingStats, bootstrap_index

MAX_ERRORS_SHOWN = 20


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Index PDF files for keyword autosuggestions"
    )
    parser.add_argument("--config", type=str, help="Path to custom config.json file")
    parser.add_argument(
        "--source",
        type=str,
        help="Directory or glob pattern to ingest (overrides config)"
    )
    parser.add_argument(
        "--force-unlock",
        action="store_true",
        help="Remove a stale writer lock and retry once (unsafe if another writer is alive)"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress the progress bar")
    return parser.parse_args(argv)


def apply_overrides(config: Config, args) -> Config:
    """Fold command line overrides into a copy of the configuration."""
    if args.source:
        config = replace(
            config,
            paths=replace(config.paths, source=str(Path(args.source).expanduser().absolute()))
        )
    if args.force_unlock:
        config = replace(config, indexing=replace(config.indexing, force_unlock=True))
    return config


def progress_bar(current: int, total: int, filename: str) -> None:
    width = 30
    filled = width * current // total if total else 0
    percent = 100.0 * current / total if total else 0.0
    print(
        f"\r[{'#' * filled}{'.' * (width - filled)}] {percent:5.1f}% "
        f"({current}/{total}) {filename[:40]:<40}",
        end="",
        flush=True
    )


def print_summary(stats: IndexingStats) -> None:
    rows = [
        ("Files scanned", stats.files_scanned),
        ("Files indexed", stats.files_indexed),
        ("Files failed", stats.files_failed),
        ("Pages indexed", stats.pages_indexed),
        ("Commits", stats.commits),
    ]
    print()
    for label, value in rows:
        print(f"{label + ':':<18} {value:,}")

    if stats.errors:
        print(f"\nErrors ({len(stats.errors)}):")
        for error in stats.errors[:MAX_ERRORS_SHOWN]:
            print(f"  - {error}")
        hidden = len(stats.errors) - MAX_ERRORS_SHOWN
        if hidden > 0:
            print(f"  ... and {hidden} more")


def main(argv=None) -> int:
    args = parse_args(argv)

    try:
        config = reload_config(Path(args.config)) if args.config else get_config()
    except ConfigurationError as e:
        print(f"Configuration error: {e.message}")
        return 1

    config = apply_overrides(config, args)

    print(f"Source:          {config.paths.source}")
    print(f"Index directory: {config.paths.index_directory}")
    print(f"Commit every:    {config.indexing.commit_every} document(s)")

    try:
        _, reader, stats = bootstrap_index(
            config,
            progress_callback=None if args.quiet else progress_bar
        )
    except (IndexOpenError, LockContentionError, IndexWriteError) as e:
        print(f"\nFatal: {e.message}")
        return 1

    try:
        if stats is None:
            with reader.searcher() as searcher:
                print(f"Index already contains {searcher.num_docs():,} documents; nothing to do.")
            return 0
    finally:
        reader.close()

    print_summary(stats)

    return 1 if stats.files_failed else 0


if __name__ == "__main__":
    sys.exit(main())
