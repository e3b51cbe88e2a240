"""
Configuration loader for PDF Autosuggest.

Reads ``config/config.json`` into one dataclass per section. Every key is
optional; a missing key takes the dataclass default. The loaded instance is
cached process-wide and can be re-read with reload_config().
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from .exceptions import ConfigurationError


GLOB_CHARS = set("*?[")

CONFIG_RELATIVE_PATH = Path("config") / "config.json"

MAX_SEARCH_DEPTH = 10


class _Section:
    """Mixin building a section dataclass from a raw dict, defaults for absent keys."""

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        data = data or {}
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in data.items() if key in known})


@dataclass
class PathsConfig(_Section):
    """Where documents come from and where the index and logs go."""
    source: str = "data"
    index_directory: Path = Path("output/index")
    logs_directory: Path = Path("output/logs")

    @classmethod
    def resolve(cls, data: Optional[Dict[str, Any]], project_root: Path) -> "PathsConfig":
        raw = cls.from_dict(data)
        return cls(
            source=str(_absolute(raw.source, project_root)),
            index_directory=_absolute(raw.index_directory, project_root),
            logs_directory=_absolute(raw.logs_directory, project_root)
        )


@dataclass
class ExtractionConfig(_Section):
    primary_backend: str = "pypdf"
    fallback_backend: str = "pdfplumber"
    max_file_size_mb: int = 500
    supported_extensions: List[str] = field(default_factory=lambda: [".pdf"])
    case_sensitive: bool = False
    recursive: bool = True


@dataclass
class IndexingConfig(_Section):
    """
    Ingestion behavior.

    ``commit_every`` is the commit granularity in documents; 1 makes every
    document durable as soon as it is added. ``force_unlock`` allows the
    writer to remove a lock marker left by another process.
    """
    commit_every: int = 1
    title_source: str = "path"
    force_unlock: bool = False
    log_progress_every: int = 100

    def __post_init__(self):
        if self.commit_every < 1:
            raise ConfigurationError(
                "indexing.commit_every must be at least 1",
                {"commit_every": self.commit_every}
            )
        if self.title_source not in ("path", "name"):
            raise ConfigurationError(
                f"Unknown title source: {self.title_source}",
                {"title_source": self.title_source}
            )


@dataclass
class SearchConfig(_Section):
    default_limit: int = 10
    max_limit: int = 100
    default_fields: List[str] = field(default_factory=lambda: ["title", "body"])
    field_weights: Dict[str, float] = field(default_factory=lambda: {"title": 1.0, "body": 1.0})
    conjunction_by_default: bool = False
    tokenizer: str = "unicode61"
    reload_policy: str = "on_commit_with_delay"
    reload_delay_ms: int = 500


@dataclass
class SnippetConfig(_Section):
    """Preview settings: ``context_words`` from each end, glued with ``joiner``."""
    field: str = "body"
    max_tokens: int = 32
    context_words: int = 5
    joiner: str = ""


@dataclass
class ServerConfig(_Section):
    host: str = "127.0.0.1"
    port: int = 8080


@dataclass
class LoggingConfig(_Section):
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    max_file_size_mb: int = 10
    backup_count: int = 5


@dataclass
class Config:
    """
    Main configuration container holding all config sections.

    Provides singleton access via get_config() function.
    """
    paths: PathsConfig
    extraction: ExtractionConfig
    indexing: IndexingConfig
    search: SearchConfig
    snippet: SnippetConfig
    server: ServerConfig
    logging: LoggingConfig
    project_root: Path = field(default_factory=Path)

    @classmethod
    def from_file(cls, config_path: Path) -> "Config":
        """
        Load configuration from a JSON file.

        Relative paths inside the file are taken relative to the project
        root, the directory holding ``config/``.

        Raises:
            ConfigurationError: If the file is missing, not JSON, or has
                invalid values.
        """
        config_path = Path(config_path)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise ConfigurationError(
                f"Configuration file not found: {config_path}",
                {"path": str(config_path)}
            )
        except json.JSONDecodeError as e:
            raise ConfigurationError(
                f"Invalid JSON in config file: {e}",
                {"path": str(config_path)}
            )

        return cls.from_dict(data, config_path.resolve().parent.parent)

    @classmethod
    def from_dict(cls, data: dict, project_root: Path = None) -> "Config":
        """Build a Config from a raw dict, filling in defaults."""
        project_root = Path(project_root or Path.cwd())

        try:
            return cls(
                paths=PathsConfig.resolve(data.get("paths"), project_root),
                extraction=ExtractionConfig.from_dict(data.get("extraction")),
                indexing=IndexingConfig.from_dict(data.get("indexing")),
                search=SearchConfig.from_dict(data.get("search")),
                snippet=SnippetConfig.from_dict(data.get("snippet")),
                server=ServerConfig.from_dict(data.get("server")),
                logging=LoggingConfig.from_dict(data.get("logging")),
                project_root=project_root
            )
        except (TypeError, AttributeError) as e:
            raise ConfigurationError(f"Malformed configuration section: {e}")


def _absolute(value, project_root: Path) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else project_root / path


def is_glob_pattern(source: str) -> bool:
    """Check whether a source specification is a glob pattern."""
    return any(char in GLOB_CHARS for char in str(source))


_config_instance: Optional[Config] = None


def get_config(config_path: Path = None) -> Config:
    """
    Return the cached Config, loading it on first use.

    Passing ``config_path`` always loads that file and replaces the cache.
    Without it, ``config/config.json`` is searched for upward from the
    working directory.

    Raises:
        ConfigurationError: If config cannot be loaded.
    """
    global _config_instance

    if _config_instance is None or config_path is not None:
        _config_instance = Config.from_file(config_path or _find_config_file())

    return _config_instance


def _find_config_file() -> Path:
    current = Path.cwd()

    for directory in [current, *current.parents][:MAX_SEARCH_DEPTH]:
        candidate = directory / CONFIG_RELATIVE_PATH
        if candidate.exists():
            return candidate

    raise ConfigurationError(
        f"Could not find {CONFIG_RELATIVE_PATH} in {current} or its parents"
    )


def reload_config(config_path: Path = None) -> Config:
    """Drop the cached Config and load it again."""
    global _config_instance
    _config_instance = None
    return get_config(config_path)
