"""
steerdown - Build toolkit for steering document libraries

Extracts named sections from prompt documents without being fooled by
headings inside code blocks or XML-like tags, and expands declarative
file manifests into per-target build file lists.
"""

__version__ = "1.0.0"

from .lib import section_extract, mappings_expand, Builder, LOG, state_connectToLogger

__all__ = ["section_extract", "mappings_expand", "Builder", "LOG", "state_connectToLogger", "__version__"]
