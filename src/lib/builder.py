"""
Builder: expanded mappings to files on disk

For each mapping group the builder expands the group's mappings for the
build target, reads every source, applies {{{TOKEN}}} substitutions and
writes the result under output_root/<group output_dir>/<dest>.
"""

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from ..models.manifest import BuildTarget, MappingGroup
from .log import LOG, WARN
from .manifest import group_expand
from .substitutions import Substitution, substitutions_apply

# Sources with these suffixes are read as text and substituted; anything
# else (icons, archives) is copied byte for byte.
TEXT_SUFFIXES = frozenset({".md", ".mdx", ".txt", ".json", ".yaml", ".yml"})


@dataclass(frozen=True)
class BuildStep:
    """One file to produce: absolute-ish source and output paths"""
    group: str
    src: Path
    dest: Path


class Builder:
    """
    Builds mapping groups for one target

    Responsibilities:
    - Expand each group's mappings for the target
    - Apply substitutions to text sources
    - Copy binary sources unchanged
    - Skip (and report) sources that do not exist or are not UTF-8
    """

    def __init__(
        self,
        groups: Sequence[MappingGroup],
        source_root: Union[str, Path],
        output_root: Union[str, Path],
        target: Union[str, BuildTarget],
        substitutions: Optional[Mapping[str, Substitution]] = None,
        strict: Optional[bool] = None,
    ) -> None:
        """
        Initialize builder

        Args:
            groups: Mapping groups to build
            source_root: Directory group base_dirs are relative to
            output_root: Directory group output_dirs are relative to
            target: Build target
            substitutions: Token -> callable(target); none applied if omitted
            strict: Fail on duplicate destinations within a group
        """
        self.groups = list(groups)
        self.source_root = Path(source_root)
        self.output_root = Path(output_root)
        self.target = BuildTarget.parse(target)
        self.substitutions = dict(substitutions or {})
        self.strict = strict

    def plan(self) -> List[BuildStep]:
        """
        Resolve every group into concrete source/output paths

        Raises:
            DestinationCollision: In strict mode
        """
        steps: List[BuildStep] = []
        for group in self.groups:
            expanded = group_expand(group, self.source_root, self.target, strict=self.strict)
            LOG(f"Group '{group.name}': {len(expanded)} mappings for {self.target.value}", level=2)
            base = self.source_root / group.base_dir
            out = self.output_root / group.output_dir
            steps.extend(BuildStep(group=group.name, src=base / m.src, dest=out / m.dest) for m in expanded)
        return steps

    def file_build(self, step: BuildStep) -> bool:
        """
        Produce one output file

        Returns:
            True if written, False if the source is missing or is a text
            file that is not valid UTF-8
        """
        if not step.src.is_file():
            WARN(f"Source file not found: {step.src}")
            return False

        if step.src.suffix.lower() in TEXT_SUFFIXES:
            try:
                content = step.src.read_text(encoding="utf-8")
            except UnicodeDecodeError as e:
                WARN(f"Source file is not valid UTF-8: {step.src} ({e.reason})")
                return False
            content = substitutions_apply(content, self.substitutions, self.target)
            step.dest.parent.mkdir(parents=True, exist_ok=True)
            step.dest.write_text(content, encoding="utf-8")
        else:
            step.dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(step.src, step.dest)

        LOG(f"Built: {step.src} -> {step.dest}", level=2)
        return True

    def build(self) -> Dict[str, Any]:
        """
        Build every group

        Returns:
            dict with build results:
                - status: bool (True once every step has run)
                - files_built: list of written output paths
                - files_skipped: list of missing or undecodable source paths
                - output_dir: output root
        """
        LOG(f"Building target {self.target.value}...", level=2)

        built: List[str] = []
        skipped: List[str] = []

        for step in self.plan():
            if self.file_build(step):
                built.append(str(step.dest))
            else:
                skipped.append(str(step.src))

        return {
            'status': True,
            'files_built': built,
            'files_skipped': skipped,
            'output_dir': str(self.output_root),
        }
