"""
PDF Autosuggest Package.

Indexes local PDF collections into a SQLite FTS5 full-text index and
serves keyword autosuggestions with short context previews over HTTP.
"""

__version__ = "1.0.0"
