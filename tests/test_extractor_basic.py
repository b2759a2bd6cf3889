"""
Basic extractor tests - headings and section boundaries

Tests title queries, level-based section ends, trailing whitespace and
missing sections, without any code blocks or tags involved.
"""

import pytest

from steerdown.lib.extractor import SectionExtractor, SectionNotFound, section_extract


DOC = "# Intro\nsome text\n## Details\ndeep content\n# Next\nother text"


class TestConcreteScenario:
    """Test the canonical intro/details/next document"""

    def test_extract_intro(self):
        """Intro includes the nested Details section and stops before Next"""
        assert section_extract(DOC, "Intro") == "# Intro\nsome text\n## Details\ndeep content"

    def test_extract_nested(self):
        """A level-2 section ends at the following level-1 heading"""
        assert section_extract(DOC, "Details") == "## Details\ndeep content"

    def test_extract_last(self):
        """The last section runs to end of document"""
        assert section_extract(DOC, "Next") == "# Next\nother text"


class TestSectionBoundaries:
    """Test where sections end"""

    def test_closing_level_boundary(self):
        """# A keeps its ## B child and stops before # C"""
        doc = "# A\nintro\n## B\nbody of b\n# C\nafter"
        result = section_extract(doc, "A")

        assert "## B" in result
        assert "body of b" in result
        assert "# C" not in result
        assert result == "# A\nintro\n## B\nbody of b"

    def test_sibling_ends_section(self):
        """A heading at the same level ends the section"""
        doc = "## One\nfirst\n### One.a\ndeeper\n## Two\nsecond"
        assert section_extract(doc, "One") == "## One\nfirst\n### One.a\ndeeper"

    def test_shallower_heading_ends_deep_section(self):
        """A level-3 section ends at a level-1 heading"""
        doc = "### Deep\ncontent\n# Top\nmore"
        assert section_extract(doc, "Deep") == "### Deep\ncontent"

    def test_deeper_headings_do_not_end_section(self):
        """Headings deeper than the match stay inside the section"""
        doc = "# A\n## B\n### C\n#### D\ntext"
        assert section_extract(doc, "A") == doc

    def test_trailing_whitespace_trimmed(self):
        """Blank lines and spaces before the next heading are dropped"""
        doc = "# A\ntext  \n\n\n# B"
        assert section_extract(doc, "A") == "# A\ntext"

    def test_heading_only_section(self):
        """A heading with no body returns just the heading line"""
        assert section_extract("# Only", "Only") == "# Only"

    def test_crlf_trailing_trimmed(self):
        """Windows line endings before the next heading are trimmed"""
        doc = "# A\r\ntext\r\n\r\n# B\r\n"
        assert section_extract(doc, "A") == "# A\r\ntext"


class TestTitleMatching:
    """Test exact title queries"""

    def test_title_is_trimmed(self):
        """Surrounding spaces in the heading line are ignored"""
        doc = "#   Spaced Title   \nbody"
        assert section_extract(doc, "Spaced Title") == "#   Spaced Title   \nbody"

    def test_match_is_case_sensitive(self):
        """Bare queries compare titles exactly"""
        with pytest.raises(SectionNotFound):
            section_extract("# Intro\ntext", "intro")

    def test_no_prefix_match(self):
        """A query must equal the whole title"""
        with pytest.raises(SectionNotFound):
            section_extract("# Introduction\ntext", "Intro")

    def test_first_match_wins(self):
        """With duplicate titles the first heading is used"""
        doc = "# Dup\nfirst\n# Dup\nsecond"
        assert section_extract(doc, "Dup") == "# Dup\nfirst"

    def test_hash_without_space_is_not_heading(self):
        """'#tag' lines are text, not headings"""
        doc = "# Real\n#hashtag\nmore"
        assert section_extract(doc, "Real") == doc
        with pytest.raises(SectionNotFound):
            section_extract(doc, "hashtag")

    def test_heading_must_start_line(self):
        """Indented or inline '#' is not a heading"""
        doc = "# Real\ntext # Inline\n  # Indented"
        with pytest.raises(SectionNotFound):
            section_extract(doc, "Inline")
        with pytest.raises(SectionNotFound):
            section_extract(doc, "Indented")

    def test_heading_syntax_query(self):
        """'## Title' matches only a level-2 heading with that title"""
        doc = "# Steps\ntop\n## Steps\nnested"
        assert section_extract(doc, "## Steps") == "## Steps\nnested"
        assert section_extract(doc, "# Steps") == doc

    def test_heading_syntax_query_wrong_level(self):
        """A heading-syntax query with the wrong level does not match"""
        with pytest.raises(SectionNotFound):
            section_extract("## Details\ntext", "### Details")


class TestNotFound:
    """Test SectionNotFound reporting"""

    def test_empty_document(self):
        """Nothing can be found in an empty document"""
        with pytest.raises(SectionNotFound):
            section_extract("", "Anything")

    def test_error_carries_query(self):
        """The exception names the query and lists real headings"""
        with pytest.raises(SectionNotFound) as excinfo:
            section_extract(DOC, "Missing")

        assert excinfo.value.query == "Missing"
        assert excinfo.value.headings == ["Intro", "Details", "Next"]
        assert "Missing" in str(excinfo.value)


class TestSectionExtractor:
    """Test the extractor class directly"""

    def test_headings_list(self):
        """All real headings are listed with levels and offsets"""
        headings = SectionExtractor(DOC).headings_list()

        assert [(h.level, h.title) for h in headings] == [(1, "Intro"), (2, "Details"), (1, "Next")]
        assert headings[0].start == 0
        assert DOC[headings[1].start:].startswith("## Details")

    def test_section_find_span(self):
        """section_find reports heading level and span"""
        match = SectionExtractor(DOC).section_find("Details")

        assert match.level == 2
        assert match.title == "Details"
        assert match.start < match.end
        assert DOC[match.end:].startswith("# Next")

    def test_reusable_for_many_queries(self):
        """One extractor answers repeated queries identically"""
        extractor = SectionExtractor(DOC)
        first = extractor.section_extract("Intro")
        extractor.section_extract("Next")
        assert extractor.section_extract("Intro") == first

    def test_source_unchanged(self):
        """Extraction never modifies the source"""
        extractor = SectionExtractor(DOC)
        extractor.section_extract("Intro")
        assert extractor.source == DOC
