"""
Text utility functions for PDF Autosuggest.

Normalizes text extracted from PDF pages before it is indexed.
"""

import re
import unicodedata


def clean_text(text: str) -> str:
    """
    Normalize and clean extracted text.

    Removes control characters (the snippet highlighter reserves some of
    them as markers) and collapses runs of whitespace to a single space.

    Args:
        text: Raw text from PDF extraction.

    Returns:
        Cleaned text string.
    """
    if not text:
        return ""

    text = unicodedata.normalize("NFKC", text)

    text = "".join(
        char if not unicodedata.category(char).startswith("C") else " "
        for char in text
    )

    text = re.sub(r"\s+", " ", text)

    return text.strip()
