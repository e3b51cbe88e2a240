"""
HTTP interface for PDF Autosuggest.
"""

from .server import create_app

__all__ = ["create_app"]
