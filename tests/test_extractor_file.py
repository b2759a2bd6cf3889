"""
File wrapper tests

Tests reading a document from disk and the distinct error kinds.
"""

import tempfile
from pathlib import Path

import pytest

from steerdown.lib.extractor import (
    ExtractionError,
    FileReadFailure,
    SectionNotFound,
    section_extractFromFile,
)


class TestExtractFromFile:
    """Test section_extractFromFile"""

    def test_reads_and_extracts(self):
        """A section is extracted from a UTF-8 file"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "doc.md"
            path.write_text("# Intro\ncafé\n# Next\n", encoding="utf-8")

            assert section_extractFromFile(path, "Intro") == "# Intro\ncafé"

    def test_accepts_string_path(self):
        """String paths work as well as Path objects"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "doc.md"
            path.write_text("## Steps\n1. go", encoding="utf-8")

            assert section_extractFromFile(str(path), "## Steps") == "## Steps\n1. go"

    def test_missing_file(self):
        """A missing file raises FileReadFailure, not SectionNotFound"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "absent.md"

            with pytest.raises(FileReadFailure) as excinfo:
                section_extractFromFile(path, "Intro")

            assert not isinstance(excinfo.value, SectionNotFound)
            assert excinfo.value.path == path
            assert "absent.md" in str(excinfo.value)

    def test_directory_is_read_failure(self):
        """A directory cannot be read as a document"""
        with tempfile.TemporaryDirectory() as tmpdir:
            with pytest.raises(FileReadFailure):
                section_extractFromFile(tmpdir, "Intro")

    def test_undecodable_file(self):
        """Bytes that are not valid UTF-8 raise FileReadFailure"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "binary.md"
            path.write_bytes(b"# Intro\n\xff\xfe\xfa")

            with pytest.raises(FileReadFailure):
                section_extractFromFile(path, "Intro")

    def test_missing_section(self):
        """An existing file without the section raises SectionNotFound"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "doc.md"
            path.write_text("# Other\n", encoding="utf-8")

            with pytest.raises(SectionNotFound):
                section_extractFromFile(path, "Intro")

    def test_common_base_class(self):
        """Both failures share ExtractionError"""
        assert issubclass(FileReadFailure, ExtractionError)
        assert issubclass(SectionNotFound, ExtractionError)
