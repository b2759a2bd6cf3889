"""
File manifest models

Declarative mapping rules and the concrete mappings they expand to.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional


class BuildTarget(str, Enum):
    """
    Distribution channels a build can produce

    npm:   package build
    dev:   local development build
    cli:   file lists embedded in the installer
    power: IDE "Power" bundle
    """
    NPM = "npm"
    DEV = "dev"
    CLI = "cli"
    POWER = "power"

    @classmethod
    def parse(cls, value: "str | BuildTarget") -> "BuildTarget":
        """
        Convert a string to a BuildTarget.

        Raises:
            ValueError: If value names no known target
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            known = ", ".join(t.value for t in cls)
            raise ValueError(f"Unknown build target '{value}' (expected one of: {known})")


@dataclass(frozen=True)
class FileMapping:
    """
    Declarative source -> destination rule

    Attributes:
        src: Path or glob pattern relative to the group's base directory
        dest: Destination path; may contain the {name} placeholder when src is a glob
        targets: Targets this rule applies to (None or empty means all)

    Example:
        FileMapping(src="core/protocols/*.md", dest="protocols/{name}.md")
        FileMapping(src="debug.md", dest="debug.md",
                    targets=frozenset({BuildTarget.DEV}))
    """
    src: str
    dest: str
    targets: Optional[FrozenSet[BuildTarget]] = None

    def applies(self, target: BuildTarget) -> bool:
        if not self.targets:
            return True
        return target in self.targets


@dataclass(frozen=True)
class ExpandedMapping:
    """
    Concrete mapping with globs and placeholders resolved

    Attributes:
        src: Concrete source path relative to the base directory
        dest: Concrete destination path relative to the output root
    """
    src: str
    dest: str


@dataclass
class MappingGroup:
    """
    Named set of mappings sharing a source base and an output directory

    Attributes:
        name: Group name (e.g., "steering", "power")
        base_dir: Directory that mapping sources are relative to
        output_dir: Directory (under the build output) that destinations are relative to
        mappings: Mapping rules in authoring order
    """
    name: str
    base_dir: str
    output_dir: str
    mappings: List[FileMapping] = field(default_factory=list)


@dataclass
class Manifest:
    """
    Contents of a YAML manifest file

    Attributes:
        groups: Mapping groups in file order
        substitutions: Raw substitution declarations keyed by token
                       (e.g., {"{{{VERSION}}}": {"text": "2.0.0"}})
    """
    groups: List[MappingGroup] = field(default_factory=list)
    substitutions: Dict[str, Any] = field(default_factory=dict)

    def group_get(self, name: str) -> Optional[MappingGroup]:
        for group in self.groups:
            if group.name == name:
                return group
        return None
