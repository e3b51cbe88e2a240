"""
Custom exception hierarchy for PDF Autosuggest.

Each failure mode has its own type so callers can pick a recovery per kind:
skip a file on extraction errors, retry once on lock contention, abort on
index open errors, and answer with a client error on query parse errors.
"""


class AutosuggestError(Exception):
    """Base exception for all PDF Autosuggest errors."""

    def __init__(self, message: str, details: dict = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional context.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(AutosuggestError):
    """Raised when configuration is invalid or missing."""
    pass


class ExtractionError(AutosuggestError):
    """Raised when PDF text extraction fails."""

    def __init__(self, message: str, filepath: str = None, details: dict = None):
        """
        Initialize extraction error.

        Args:
            message: Error description.
            filepath: Path to the problematic PDF file.
            details: Additional context.
        """
        super().__init__(message, details)
        self.filepath = filepath


class IndexOpenError(AutosuggestError):
    """Raised when an index cannot be created or opened (corrupt or incompatible)."""

    def __init__(self, message: str, path: str = None, details: dict = None):
        super().__init__(message, details)
        self.path = path


class LockContentionError(AutosuggestError):
    """Raised when another writer already holds the index lock."""

    def __init__(self, message: str, lock_path: str = None, details: dict = None):
        super().__init__(message, details)
        self.lock_path = lock_path


class IndexWriteError(AutosuggestError):
    """Raised when buffering or committing documents fails."""
    pass


class InvalidDocumentError(AutosuggestError):
    """Raised when a document does not fit the index schema."""
    pass


class QueryParseError(AutosuggestError):
    """Raised when a query string cannot be parsed."""

    def __init__(
        self,
        message: str,
        query: str = None,
        position: int = None,
        details: dict = None
    ):
        """
        Initialize query parse error.

        Args:
            message: Error description.
            query: The malformed query string.
            position: Character offset where parsing failed, if known.
            details: Additional context.
        """
        super().__init__(message, details)
        self.query = query
        self.position = position


class SearchError(AutosuggestError):
    """Raised when search or snippet generation fails internally."""

    def __init__(self, message: str, query: str = None, details: dict = None):
        """
        Initialize search error.

        Args:
            message: Error description.
            query: The query being executed.
            details: Additional context.
        """
        super().__init__(message, details)
        self.query = query
