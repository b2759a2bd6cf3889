"""
Scope-aware markdown section extractor

Locates a named section in a markdown document and returns its text, from
the heading line up to the next heading of the same or a shallower level.

Prompt documents embed fenced example code and pseudo-XML instruction
blocks whose bodies may contain heading syntax:

    <alias>
      <trigger>/modes {name}</trigger>
      <definition>
    ## Mode Switch: {name}
      </definition>
    </alias>

Such lines are not document structure. The extractor therefore walks the
source once, left to right, tracking one of three scopes:

1. NORMAL: headings are recognized at line start
2. CODE_BLOCK: opened by a line-leading run of 3+ backticks; closed only by
   a run at least as long as the opening one
3. XML_TAG: active while a stack of open <tag> names is non-empty; tags are
   recognized in every scope, so nested tags are tracked correctly

Queries:
    "Installation"      exact title match
    "#installation"     slug match (see lib.slug.slugify)
    "## Installation"   exact title match at exactly that level

Example:
    >>> doc = "# Intro\\nsome text\\n## Details\\ndeep content\\n# Next\\nother text"
    >>> section_extract(doc, "Intro")
    '# Intro\\nsome text\\n## Details\\ndeep content'
"""

import re
from pathlib import Path
from typing import Callable, Iterator, List, Optional, Union

from ..models.extractor import Scope, ParserState, TagMatch, HeadingMatch, SectionMatch
from .slug import slugify
from .log import LOG

_FENCE = re.compile(r"`{3,}")
_TAG = re.compile(r"<(?P<closing>/?)(?P<name>[A-Za-z][^\s/>]*)")
_HEADING_MARKS = re.compile(r"#+(?= )")
_HEADING_QUERY = re.compile(r"(?P<marks>#+) (?P<title>.*)", re.DOTALL)

_TRAILING = " \t\r\n"


class ExtractionError(Exception):
    """Base class for section extraction failures"""
    pass


class SectionNotFound(ExtractionError):
    """Raised when no heading in normal scope matches the query"""

    def __init__(self, query: str, headings: Optional[List[str]] = None):
        self.query = query
        self.headings = headings or []
        super().__init__(f"Section not found: {query}")


class FileReadFailure(ExtractionError):
    """Raised when the document to extract from cannot be read"""

    def __init__(self, path: Union[str, Path], reason: str = "file not found"):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot read {path}: {reason}")


class SectionExtractor:
    """
    Single-pass scope-tracking scanner over a markdown document

    The source is never modified. Each scan starts from a fresh ParserState,
    so one extractor can answer any number of queries.
    """

    def __init__(self, source: str):
        """
        Initialize extractor with document text

        Args:
            source: Full markdown document

        Attributes:
            source: Document being scanned
            state: ParserState of the most recent scan
        """
        self.source = source
        self.state = ParserState()

    def fence_check(self, pos: int) -> int:
        """
        Measure a code fence at pos

        Returns:
            Backtick run length (3 or more) if a fence starts at pos, else 0
        """
        match = _FENCE.match(self.source, pos)
        return len(match.group(0)) if match else 0

    def tag_check(self, pos: int) -> Optional[TagMatch]:
        """
        Parse an XML-like tag starting at pos (which must hold '<')

        Tags may span lines; the tag ends at the first '>' after its name.
        Names must start with an ASCII letter, which keeps comparisons
        such as "a < b" and HTML comments out of the tag stack.

        Returns:
            TagMatch, or None if no tag starts at pos or the '>' is missing

        Example:
            For source '<definition>' at position 0:
            TagMatch(name="definition", closing=False, self_closing=False, end=11)

            For source '<br/>' at position 0:
            TagMatch(name="br", closing=False, self_closing=True, end=4)
        """
        match = _TAG.match(self.source, pos)
        if not match:
            return None

        end = self.source.find(">", match.end())
        if end == -1:
            return None

        return TagMatch(
            name=match.group("name").lower(),
            closing=bool(match.group("closing")),
            self_closing=self.source[end - 1] == "/",
            end=end,
        )

    def heading_check(self, pos: int) -> Optional[HeadingMatch]:
        """
        Parse an ATX heading starting at pos

        A heading is one or more '#' immediately followed by a space. The
        caller decides whether pos is at line start and in NORMAL scope.

        Returns:
            HeadingMatch, or None if the line is not a heading
        """
        match = _HEADING_MARKS.match(self.source, pos)
        if not match:
            return None

        line_end = self.lineEnd_find(pos)
        title = self.source[match.end() + 1:line_end].strip()
        return HeadingMatch(level=len(match.group(0)), title=title, start=pos, line_end=line_end)

    def lineEnd_find(self, pos: int) -> int:
        """Position of the newline ending the line that contains pos (or len(source))"""
        end = self.source.find("\n", pos)
        return len(self.source) if end == -1 else end

    def headings_scan(self) -> Iterator[HeadingMatch]:
        """
        Walk the document and yield every heading found in NORMAL scope

        State transitions per position:
            - line start, not in XML: backtick fence opens/closes a code block
              (the rest of the fence line is skipped)
            - '<' in any scope: opening tag pushes, matching closing tag pops,
              self-closing tag is skipped
            - line start in NORMAL: heading line is yielded and skipped

        Unterminated fences and tags keep their scope to end of document.

        Yields:
            HeadingMatch for each real heading, in document order
        """
        source = self.source
        length = len(source)
        state = self.state = ParserState()
        pos = 0

        while pos < length:
            at_line_start = pos == 0 or source[pos - 1] == "\n"

            if at_line_start and state.scope is not Scope.XML_TAG:
                fence = self.fence_check(pos)
                if fence:
                    if state.scope is Scope.NORMAL:
                        state.fence_open(fence)
                    elif fence >= state.fence_length:
                        state.fence_close()
                    pos = self.lineEnd_find(pos) + 1
                    continue

            if source[pos] == "<":
                tag = self.tag_check(pos)
                if tag is not None:
                    if tag.self_closing:
                        pass
                    elif tag.closing:
                        state.tag_pop(tag.name)
                    else:
                        state.tag_push(tag.name)
                    pos = tag.end + 1
                    continue

            if at_line_start and state.scope is Scope.NORMAL:
                heading = self.heading_check(pos)
                if heading is not None:
                    yield heading
                    pos = heading.line_end + 1
                    continue

            pos += 1

    def headings_list(self) -> List[HeadingMatch]:
        """
        List every real heading in the document

        Returns:
            HeadingMatch objects for headings outside code blocks and tags
        """
        return list(self.headings_scan())

    def query_compile(self, query: str) -> Callable[[HeadingMatch], bool]:
        """
        Build a heading predicate for a section query

        Args:
            query: "Title", "#slug" or "## Title"

        Returns:
            Predicate returning True for the heading the query names
        """
        # "## Title" is the form build configurations pass; it pins the level
        # rather than being read as an anchor.
        heading_form = _HEADING_QUERY.fullmatch(query)
        if heading_form:
            level = len(heading_form.group("marks"))
            title = heading_form.group("title").strip()
            return lambda heading: heading.level == level and heading.title == title

        if query.startswith("#"):
            anchor = query[1:].lower()
            return lambda heading: slugify(heading.title) == anchor

        return lambda heading: heading.title == query

    def section_find(self, query: str) -> SectionMatch:
        """
        Locate the span of the section named by query

        The first matching heading wins. The section ends at the next
        heading whose level is <= the matched level; deeper headings are
        part of the section body.

        Raises:
            SectionNotFound: If no real heading matches
        """
        matches = self.query_compile(query)
        found: Optional[SectionMatch] = None

        for heading in self.headings_scan():
            if found is None:
                if matches(heading):
                    found = SectionMatch(
                        level=heading.level,
                        title=heading.title,
                        start=heading.start,
                        end=len(self.source),
                    )
                continue
            if heading.level <= found.level:
                found.end = heading.start
                break

        if found is None:
            titles = [h.title for h in self.headings_list()]
            LOG(f"No section '{query}' among {len(titles)} headings", level=3)
            raise SectionNotFound(query, titles)

        return found

    def section_extract(self, query: str) -> str:
        """
        Extract section text including its heading line

        Returns:
            Section text with trailing spaces and newlines removed

        Raises:
            SectionNotFound: If no real heading matches
        """
        match = self.section_find(query)
        return self.source[match.start:match.end].rstrip(_TRAILING)


def section_extract(text: str, query: str) -> str:
    """
    Extract a section from markdown text

    Args:
        text: Full markdown document
        query: Section title (exact), "#anchor" (slug) or "## Title"

    Returns:
        Section text from its heading to the next same-or-shallower heading

    Raises:
        SectionNotFound: If no heading outside code blocks and tags matches
    """
    return SectionExtractor(text).section_extract(query)


def section_extractFromFile(path: Union[str, Path], query: str, encoding: str = "utf-8") -> str:
    """
    Read a markdown file and extract a section from it

    Args:
        path: Markdown file path
        query: Section query (see section_extract)
        encoding: File encoding

    Returns:
        Extracted section text

    Raises:
        FileReadFailure: If the file is missing or cannot be decoded
        SectionNotFound: If the file exists but has no matching section
    """
    path = Path(path)
    LOG(f"Extracting '{query}' from {path}", level=3)

    try:
        text = path.read_text(encoding=encoding)
    except FileNotFoundError as e:
        raise FileReadFailure(path) from e
    except (OSError, UnicodeDecodeError) as e:
        raise FileReadFailure(path, str(e)) from e

    return section_extract(text, query)
