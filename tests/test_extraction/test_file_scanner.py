"""
Tests for the file locator module.

Tests PDF discovery from directories and glob patterns.
"""

import os
import pytest
from pathlib import Path

from pdf_autosuggest.extraction.file_scanner import FileLocator, split_glob


def make_locator(source, **overrides) -> FileLocator:
    options = {
        "extensions": [".pdf"],
        "max_file_size_mb": 100,
        "case_sensitive": False,
        "recursive": True
    }
    options.update(overrides)
    return FileLocator(source, **options)


class TestDirectorySource:
    """Tests for directory scanning."""

    def test_scan_finds_pdfs(self, sample_pdf_collection: Path):
        """Test that scan finds PDF files, including uppercase extensions."""
        pdf_files = list(make_locator(sample_pdf_collection).scan())

        assert len(pdf_files) == 4

    def test_scan_ignores_non_pdfs(self, sample_pdf_collection: Path):
        filenames = [f.name for f in make_locator(sample_pdf_collection).scan()]

        assert "readme.txt" not in filenames

    def test_scan_is_sorted(self, sample_pdf_collection: Path):
        """Test that enumeration order is deterministic."""
        relative = [
            f.relative_to(sample_pdf_collection).as_posix()
            for f in make_locator(sample_pdf_collection).scan()
        ]

        assert relative == [
            "root_doc.pdf",
            "folder1/doc1.pdf",
            "folder1/doc2.PDF",
            "folder2/doc3.pdf"
        ]

    def test_non_recursive_scan(self, sample_pdf_collection: Path):
        """Test that recursion can be switched off."""
        pdf_files = list(make_locator(sample_pdf_collection, recursive=False).scan())

        assert [f.name for f in pdf_files] == ["root_doc.pdf"]

    def test_scan_empty_directory(self, temp_dir: Path):
        empty_dir = temp_dir / "empty"
        empty_dir.mkdir()

        assert list(make_locator(empty_dir).scan()) == []

    def test_scan_missing_directory(self, temp_dir: Path):
        """Test that a missing source yields nothing instead of raising."""
        assert list(make_locator(temp_dir / "missing").scan()) == []

    def test_scan_skips_large_files(self, temp_dir: Path):
        (temp_dir / "small.pdf").write_bytes(b"%PDF-1.4")
        (temp_dir / "large.pdf").write_bytes(b"x" * (2 * 1024 * 1024))

        pdf_files = list(make_locator(temp_dir, max_file_size_mb=1).scan())

        assert [f.name for f in pdf_files] == ["small.pdf"]

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="symlinks unavailable")
    def test_scan_skips_broken_symlink(self, temp_dir: Path):
        """Test that broken symlinks are logged and skipped."""
        (temp_dir / "real.pdf").write_bytes(b"%PDF-1.4")
        (temp_dir / "dangling.pdf").symlink_to(temp_dir / "missing.pdf")

        pdf_files = list(make_locator(temp_dir).scan())

        assert [f.name for f in pdf_files] == ["real.pdf"]

    def test_count(self, sample_pdf_collection: Path):
        assert make_locator(sample_pdf_collection).count() == 4


class TestGlobSource:
    """Tests for glob pattern scanning."""

    def test_single_level_glob(self, sample_pdf_collection: Path):
        """Test that a plain ``*.pdf`` stays in its directory."""
        source = str(sample_pdf_collection / "*.pdf")

        pdf_files = list(make_locator(source).scan())

        assert [f.name for f in pdf_files] == ["root_doc.pdf"]

    def test_recursive_glob(self, sample_pdf_collection: Path):
        """Test that ``**`` spans any depth, including zero."""
        source = str(sample_pdf_collection / "**" / "*.pdf")

        pdf_files = list(make_locator(source).scan())

        assert len(pdf_files) == 4

    def test_glob_is_case_insensitive_by_default(self, sample_pdf_collection: Path):
        source = str(sample_pdf_collection / "folder1" / "*.pdf")

        names = [f.name for f in make_locator(source).scan()]

        assert names == ["doc1.pdf", "doc2.PDF"]

    def test_glob_case_sensitive(self, sample_pdf_collection: Path):
        source = str(sample_pdf_collection / "folder1" / "*.pdf")

        names = [f.name for f in make_locator(source, case_sensitive=True).scan()]

        assert names == ["doc1.pdf"]

    def test_glob_directory_segment(self, sample_pdf_collection: Path):
        source = str(sample_pdf_collection / "folder*" / "doc[13].pdf")

        names = [f.name for f in make_locator(source).scan()]

        assert names == ["doc1.pdf", "doc3.pdf"]

    def test_glob_selects_any_extension(self, sample_pdf_collection: Path):
        """Test that glob patterns are not filtered by extension."""
        source = str(sample_pdf_collection / "*.txt")

        names = [f.name for f in make_locator(source).scan()]

        assert names == ["readme.txt"]


class TestSplitGlob:
    """Tests for the split_glob helper."""

    def test_split_recursive_pattern(self):
        root, parts = split_glob("/data/docs/**/*.pdf")

        assert root == Path("/data/docs")
        assert parts == ["**", "*.pdf"]

    def test_split_wildcard_directory(self):
        root, parts = split_glob("/data/*/report.pdf")

        assert root == Path("/data")
        assert parts == ["*", "report.pdf"]
