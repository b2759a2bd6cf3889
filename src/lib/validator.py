"""
Manifest and power bundle validation

Checks run against the mapping groups before a release:
    - dev and cli targets install the same steering destinations
    - every expanded source exists
    - no two mappings in a group write the same destination
    - every glob mapping resolves to at least one file

POWER.md must open with YAML front matter carrying name, displayName and
description.
"""

from collections import OrderedDict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Sequence, Union

import yaml

from ..models.manifest import BuildTarget, MappingGroup
from .log import LOG
from .manifest import destinations_findDuplicates, files_resolve, glob_is, group_expand

POWER_REQUIRED_FIELDS = ("name", "displayName", "description")


@dataclass
class ValidationResult:
    """
    Outcome of one validation check

    Attributes:
        check: Check name (e.g., "sources_exist")
        ok: True if the check passed
        message: One-line summary
        details: Offending paths or fields, empty when ok
    """
    check: str
    ok: bool
    message: str
    details: List[str] = field(default_factory=list)


def devMatchesCLI_check(groups: Sequence[MappingGroup], source_root: Union[str, Path]) -> ValidationResult:
    """Dev builds must install exactly what the CLI installer copies"""
    dev: List[str] = []
    cli: List[str] = []
    for group in groups:
        dev.extend(m.dest for m in group_expand(group, source_root, BuildTarget.DEV, strict=False))
        cli.extend(m.dest for m in group_expand(group, source_root, BuildTarget.CLI, strict=False))

    dev_only = sorted(set(dev) - set(cli))
    cli_only = sorted(set(cli) - set(dev))
    if sorted(dev) == sorted(cli):
        return ValidationResult("dev_matches_cli", True, f"Dev mode matches CLI installation ({len(dev)} files)")

    details = [f"dev only: {p}" for p in dev_only] + [f"cli only: {p}" for p in cli_only]
    return ValidationResult("dev_matches_cli", False, "Dev mode files don't match CLI installation", details)


def sourcesExist_check(groups: Sequence[MappingGroup], source_root: Union[str, Path]) -> ValidationResult:
    """Every source expanded for any target must exist on disk"""
    root = Path(source_root)
    sources: "OrderedDict[str, None]" = OrderedDict()
    for group in groups:
        for target in BuildTarget:
            for mapping in group_expand(group, root, target, strict=False):
                sources[(root / group.base_dir / mapping.src).as_posix()] = None

    missing = [src for src in sources if not Path(src).exists()]
    if missing:
        return ValidationResult("sources_exist", False, f"{len(missing)} source files not found", missing)
    return ValidationResult("sources_exist", True, f"All source files exist ({len(sources)} files)")


def noDuplicateDestinations_check(
    groups: Sequence[MappingGroup], source_root: Union[str, Path]
) -> ValidationResult:
    """No destination may be written twice within one group, for any target"""
    # "group/dest <- sources" -> targets it occurs for
    collisions: "OrderedDict[str, List[str]]" = OrderedDict()
    total = 0
    for group in groups:
        for target in BuildTarget:
            expanded = group_expand(group, source_root, target, strict=False)
            total = max(total, len(expanded))
            for dest, sources in destinations_findDuplicates(expanded).items():
                key = f"{group.name}/{dest} <- {', '.join(sources)}"
                collisions.setdefault(key, []).append(target.value)

    if collisions:
        details = [f"{key} ({', '.join(targets)})" for key, targets in collisions.items()]
        return ValidationResult("no_duplicate_destinations", False, "Duplicate destination paths detected", details)
    return ValidationResult("no_duplicate_destinations", True, f"No duplicate destinations ({total} paths)")


def globsResolve_check(groups: Sequence[MappingGroup], source_root: Union[str, Path]) -> ValidationResult:
    """Each glob mapping must match at least one file, whatever its targets"""
    root = Path(source_root)
    empty: List[str] = []
    for group in groups:
        for mapping in group.mappings:
            if not glob_is(mapping.src):
                continue
            files = files_resolve(mapping.src, root / group.base_dir)
            LOG(f"{mapping.src} -> {len(files)} files", level=2)
            if not files:
                empty.append(f"{group.name}: {mapping.src}")

    if empty:
        return ValidationResult("globs_resolve", False, "Glob patterns resolved to 0 files", empty)
    return ValidationResult("globs_resolve", True, "All glob patterns resolve")


def manifest_validate(groups: Sequence[MappingGroup], source_root: Union[str, Path]) -> List[ValidationResult]:
    """
    Run every manifest check

    Args:
        groups: Mapping groups to check
        source_root: Directory group base_dirs are relative to

    Returns:
        One ValidationResult per check, in a fixed order
    """
    return [
        devMatchesCLI_check(groups, source_root),
        sourcesExist_check(groups, source_root),
        noDuplicateDestinations_check(groups, source_root),
        globsResolve_check(groups, source_root),
    ]


def frontMatter_parse(content: str) -> Any:
    """
    Parse leading '---' delimited YAML front matter

    Returns:
        Parsed YAML, or None if content has no complete front matter block
    """
    if not content.startswith("---"):
        return None
    end = content.find("\n---", 3)
    if end == -1:
        return None
    return yaml.safe_load(content[3:end])


def powerMetadata_validate(power_dir: Union[str, Path]) -> ValidationResult:
    """
    Check a power directory's POWER.md front matter

    Example:
        ---
        name: kiro-protocols
        displayName: Kiro Protocols
        description: Reusable agent protocols
        ---
    """
    power_md = Path(power_dir) / "POWER.md"
    if not power_md.is_file():
        return ValidationResult("power_metadata", False, f"Missing POWER.md in {power_dir}")

    try:
        meta = frontMatter_parse(power_md.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        return ValidationResult("power_metadata", False, f"Invalid front matter in {power_md}", [str(e)])

    if not isinstance(meta, dict):
        return ValidationResult("power_metadata", False, f"POWER.md missing front matter in {power_dir}")

    missing = [f for f in POWER_REQUIRED_FIELDS if not meta.get(f)]
    if missing:
        return ValidationResult("power_metadata", False, f"Missing required fields in {power_md}", missing)
    return ValidationResult("power_metadata", True, f"Valid POWER.md in {power_dir}")
