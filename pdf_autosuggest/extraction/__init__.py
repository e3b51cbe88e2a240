"""
PDF extraction module for PDF Autosuggest.

Provides file discovery (directory walk or glob pattern) and text
extraction with two backends (pypdf and pdfplumber) and automatic fallback.
"""

from .file_scanner import FileLocator
from .pypdf_backend import PyPDFBackend
from .pdfplumber_backend import PDFPlumberBackend
from .extractor import PDFExtractor

__all__ = [
    "FileLocator",
    "PyPDFBackend",
    "PDFPlumberBackend",
    "PDFExtractor"
]
