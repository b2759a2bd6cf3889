"""
Models package for steerdown

Contains data structures for section extraction, file manifests and the
build pipeline.
"""

from .state import ProgramState, pipeline
from .extractor import Scope, ParserState, TagMatch, HeadingMatch, SectionMatch
from .manifest import BuildTarget, FileMapping, ExpandedMapping, MappingGroup, Manifest

__all__ = [
    "ProgramState",
    "pipeline",
    "Scope",
    "ParserState",
    "TagMatch",
    "HeadingMatch",
    "SectionMatch",
    "BuildTarget",
    "FileMapping",
    "ExpandedMapping",
    "MappingGroup",
    "Manifest",
]
