"""
steerdown - Build toolkit for steering document libraries

Scope-aware markdown section extraction and glob-based file manifests.
"""

__version__ = "1.0.0"

from .extractor import SectionExtractor, SectionNotFound, FileReadFailure, section_extract, section_extractFromFile
from .manifest import mappings_expand, glob_resolve, manifest_load, DestinationCollision, ManifestError
from .builder import Builder
from .log import LOG, state_connectToLogger

__all__ = [
    "SectionExtractor",
    "SectionNotFound",
    "FileReadFailure",
    "section_extract",
    "section_extractFromFile",
    "mappings_expand",
    "glob_resolve",
    "manifest_load",
    "DestinationCollision",
    "ManifestError",
    "Builder",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
