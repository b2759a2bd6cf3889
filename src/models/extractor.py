"""
Section extractor data models

Scanner state and the match records produced while walking a markdown
document in search of a section.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import List


class Scope(Enum):
    """
    Parsing context at a scan position

    Headings are only recognized in NORMAL scope.
    """
    NORMAL = "normal"
    CODE_BLOCK = "code_block"
    XML_TAG = "xml_tag"


@dataclass
class ParserState:
    """
    Mutable scanner state for one pass over a document

    Attributes:
        scope: Current parsing context
        fence_length: Backtick run length that opened the current code block
                      (0 outside a code block)
        tag_stack: Names of currently open XML-like tags, innermost last

    Example:
        After scanning "<alias><definition>":
        ParserState(scope=Scope.XML_TAG, fence_length=0,
                    tag_stack=["alias", "definition"])
    """
    scope: Scope = Scope.NORMAL
    fence_length: int = 0
    tag_stack: List[str] = field(default_factory=list)

    def fence_open(self, length: int) -> None:
        self.scope = Scope.CODE_BLOCK
        self.fence_length = length

    def fence_close(self) -> None:
        self.scope = Scope.NORMAL
        self.fence_length = 0

    def tag_push(self, name: str) -> None:
        self.tag_stack.append(name)
        self.scope = Scope.XML_TAG

    def tag_pop(self, name: str) -> bool:
        """
        Pop the innermost tag if it matches name.

        A closing tag that does not match the top of the stack is ignored.

        Returns:
            True if the stack was popped
        """
        if not self.tag_stack or self.tag_stack[-1] != name:
            return False
        self.tag_stack.pop()
        if not self.tag_stack:
            self.scope = Scope.NORMAL
        return True


@dataclass
class TagMatch:
    """
    An XML-like tag found in the source

    Attributes:
        name: Lower-cased tag name (e.g., "alias")
        closing: True for </name>
        self_closing: True for <name ... />
        end: Character position of the terminating '>'
    """
    name: str
    closing: bool
    self_closing: bool
    end: int


@dataclass
class HeadingMatch:
    """
    A heading line recognized in NORMAL scope

    Attributes:
        level: Number of leading '#' characters
        title: Heading text, trimmed
        start: Character position of the first '#'
        line_end: Character position of the terminating newline
                  (or len(source) on the last line)
    """
    level: int
    title: str
    start: int
    line_end: int


@dataclass
class SectionMatch:
    """
    Located span of a section

    Attributes:
        level: Heading level of the matched heading
        title: Title of the matched heading
        start: Character position where the heading line starts
        end: Position of the next heading at level <= `level`, or len(source)

    Invariant: start < end
    """
    level: int
    title: str
    start: int
    end: int
