"""
File locator for PDF discovery.

Enumerates candidate files from a directory (walked recursively) or from a
glob pattern. Problems with individual entries (permissions, broken
symlinks, vanished files) are logged and skipped; they never abort a scan.
"""

import os
import re
from fnmatch import translate
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union

from ..core import get_config, get_logger
from ..core.config_loader import is_glob_pattern
from ..utils import get_file_size_mb

logger = get_logger(__name__)


class FileLocator:
    """
    Discovers PDF files from a source specification.

    The source is either a directory path or a glob pattern such as
    ``~/Downloads/*.pdf`` or ``/data/**/*.pdf``. Uses generator-based
    iteration so large collections are never held in memory.
    """

    def __init__(
        self,
        source: Union[str, Path] = None,
        extensions: List[str] = None,
        max_file_size_mb: float = None,
        case_sensitive: bool = None,
        recursive: bool = None
    ):
        """
        Initialize the file locator.

        Args:
            source: Directory or glob pattern to scan. Defaults to config value.
            extensions: File extensions to include in directory mode (e.g. [".pdf"]).
            max_file_size_mb: Skip files larger than this size.
            case_sensitive: Whether glob patterns match case-sensitively.
            recursive: Whether directory sources are walked recursively.
        """
        if None in (source, extensions, max_file_size_mb, case_sensitive, recursive):
            config = get_config()
            source = source if source is not None else config.paths.source
            extensions = extensions if extensions is not None else config.extraction.supported_extensions
            if max_file_size_mb is None:
                max_file_size_mb = config.extraction.max_file_size_mb
            if case_sensitive is None:
                case_sensitive = config.extraction.case_sensitive
            if recursive is None:
                recursive = config.extraction.recursive

        self.source = str(Path(source).expanduser())
        self.extensions = [ext.lower() for ext in extensions]
        self.max_file_size_mb = max_file_size_mb
        self.case_sensitive = case_sensitive
        self.recursive = recursive

    @property
    def is_glob(self) -> bool:
        return is_glob_pattern(self.source)

    def scan(self) -> Iterator[Path]:
        """
        Enumerate matching files.

        Yields:
            Path objects for each matching, readable file.
        """
        if self.is_glob:
            yield from self._scan_glob()
        else:
            yield from self._scan_directory()

    def _scan_directory(self) -> Iterator[Path]:
        root = Path(self.source)

        if not root.is_dir():
            logger.error(f"Source directory does not exist: {root}")
            return

        logger.info(f"Scanning directory: {root}")

        file_count = 0
        skipped = 0

        for dirpath, filename in self._walk(root, None):
            filepath = dirpath / filename

            if filepath.suffix.lower() not in self.extensions:
                continue

            if not self._accept(filepath):
                skipped += 1
                continue

            file_count += 1

            if file_count % 1000 == 0:
                logger.info(f"Discovered {file_count} files...")

            yield filepath

        logger.info(f"Scan complete: {file_count} files found, {skipped} skipped")

    def _scan_glob(self) -> Iterator[Path]:
        root, parts = split_glob(self.source)

        if not root.is_dir():
            logger.error(f"Glob root does not exist: {root}")
            return

        logger.info(f"Scanning pattern: {self.source}")

        flags = 0 if self.case_sensitive else re.IGNORECASE
        matchers = [
            part if part == "**" else re.compile(translate(part), flags)
            for part in parts
        ]
        max_depth = None if "**" in parts else len(parts) - 1

        file_count = 0
        skipped = 0

        for dirpath, filename in self._walk(root, max_depth):
            filepath = dirpath / filename
            rel_parts = filepath.relative_to(root).parts

            if not match_parts(matchers, rel_parts):
                continue

            if not self._accept(filepath):
                skipped += 1
                continue

            file_count += 1
            yield filepath

        logger.info(f"Scan complete: {file_count} files found, {skipped} skipped")

    def _walk(self, root: Path, max_depth: Optional[int]) -> Iterator[Tuple[Path, str]]:
        """Walk ``root`` in sorted order, logging unreadable directories."""

        def on_error(error: OSError) -> None:
            logger.warning(f"Cannot read directory {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
            current = Path(dirpath)
            depth = len(current.relative_to(root).parts)

            if (max_depth is not None and depth >= max_depth) or (
                max_depth is None and not self.recursive and not self.is_glob
            ):
                dirnames[:] = []
            else:
                dirnames.sort()

            for filename in sorted(filenames):
                yield current, filename

    def _accept(self, filepath: Path) -> bool:
        """Check that a candidate is a readable regular file within the size limit."""
        if filepath.is_symlink() and not filepath.exists():
            logger.warning(f"Skipping broken symlink: {filepath}")
            return False

        try:
            if not filepath.is_file():
                return False

            size_mb = get_file_size_mb(filepath)
        except OSError as e:
            logger.warning(f"Cannot access file {filepath}: {e}")
            return False

        if self.max_file_size_mb and size_mb > self.max_file_size_mb:
            logger.debug(f"Skipping large file ({size_mb}MB): {filepath.name}")
            return False

        return True

    def count(self) -> int:
        """Count matching files without loading all paths."""
        return sum(1 for _ in self.scan())


def split_glob(pattern: str) -> Tuple[Path, List[str]]:
    """
    Split a glob pattern into its literal root directory and the
    remaining pattern segments.

    >>> split_glob("/data/docs/**/*.pdf")
    (PosixPath('/data/docs'), ['**', '*.pdf'])
    """
    path = Path(pattern)
    parts = list(path.parts)

    root_parts = []
    for part in parts:
        if is_glob_pattern(part):
            break
        root_parts.append(part)

    # A literal final segment is still part of the pattern
    if len(root_parts) == len(parts):
        root_parts = parts[:-1]

    root = Path(*root_parts) if root_parts else Path(".")
    return root, parts[len(root_parts):]


def match_parts(matchers: list, rel_parts: Tuple[str, ...]) -> bool:
    """Match relative path segments against compiled glob segments; ``**`` spans any depth."""
    if not matchers:
        return not rel_parts

    head = matchers[0]

    if head == "**":
        return any(
            match_parts(matchers[1:], rel_parts[i:])
            for i in range(len(rel_parts) + 1)
        )

    if not rel_parts:
        return False

    return bool(head.match(rel_parts[0])) and match_parts(matchers[1:], rel_parts[1:])
