"""
File manifest: declarative mappings expanded to concrete file lists

A manifest is a list of FileMapping rules. Expanding it for a build target:
1. drops rules whose `targets` exclude the target
2. resolves glob sources against a base directory
3. substitutes {name} in the destination with each match's base name
4. copies literal rules verbatim

Example:
    >>> mappings = [
    ...     FileMapping(src="core/aliases.md", dest="aliases.md"),
    ...     FileMapping(src="core/protocols/*.md", dest="protocols/{name}.md"),
    ... ]
    >>> mappings_expand(mappings, "src", BuildTarget.NPM)
    [ExpandedMapping(src='core/aliases.md', dest='aliases.md'),
     ExpandedMapping(src='core/protocols/agent-activation.md',
                     dest='protocols/agent-activation.md'), ...]
"""

import glob
from collections import OrderedDict
from pathlib import Path, PurePath, PurePosixPath
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import yaml

from ..config import appsettings
from ..models.manifest import BuildTarget, FileMapping, ExpandedMapping, MappingGroup, Manifest
from .log import LOG

_GLOB_CHARS = frozenset("*?[")

# Only placeholder recognized in a mapping dest
NAME_PLACEHOLDER = "{name}"


class ManifestError(Exception):
    """Raised when a manifest file is missing or malformed"""
    pass


class DestinationCollision(Exception):
    """Raised by strict expansion when several sources share one destination"""

    def __init__(self, dest: str, sources: List[str]):
        self.dest = dest
        self.sources = sources
        super().__init__(f"Destination '{dest}' produced by {len(sources)} sources: {', '.join(sources)}")


# Core system files and interactive interfaces. Protocols are distributed
# through the protocols power, not as steering files.
STEERING_MAPPINGS: List[FileMapping] = [
    FileMapping(src="core/aliases.md", dest="aliases.md"),
    FileMapping(src="core/agents.md", dest="agents.md"),
    FileMapping(src="kiro/steering/modes.md", dest="modes.md"),
    FileMapping(src="core/strict.md", dest="strict.md"),
]

# Power metadata plus every protocol under steering/.
POWER_MAPPINGS: List[FileMapping] = [
    FileMapping(src="POWER.md", dest="POWER.md"),
    FileMapping(src="mcp.json", dest="mcp.json"),
    FileMapping(src="icon.png", dest="icon.png"),
    FileMapping(src="steering/*.md", dest="steering/{name}.md"),
]

# Protocol sources copied into the power's steering/ directory.
PROTOCOL_SOURCE_MAPPINGS: List[FileMapping] = [
    FileMapping(src="core/protocols/*.md", dest="steering/{name}.md"),
    FileMapping(src="kiro/steering/protocols/*.md", dest="steering/{name}.md"),
]

STEERING_BASE_DIR = "src"
POWER_BASE_DIR = "powers/kiro-protocols"

MAPPING_GROUPS: List[MappingGroup] = [
    MappingGroup(name="steering", base_dir=STEERING_BASE_DIR, output_dir="steering",
                 mappings=STEERING_MAPPINGS),
    MappingGroup(name="protocols", base_dir=STEERING_BASE_DIR, output_dir=POWER_BASE_DIR,
                 mappings=PROTOCOL_SOURCE_MAPPINGS),
    MappingGroup(name="power", base_dir=POWER_BASE_DIR, output_dir="power",
                 mappings=POWER_MAPPINGS),
]


def glob_is(pattern: str) -> bool:
    """True if pattern contains a glob wildcard (*, ? or [)"""
    return any(ch in _GLOB_CHARS for ch in pattern)


def glob_resolve(pattern: str, base_dir: Union[str, Path]) -> List[str]:
    """
    Resolve a glob pattern against a base directory

    Supports '*', '?', '[...]' and recursive '**'. Wildcards do not match
    hidden (dot) files.

    Args:
        pattern: Glob pattern relative to base_dir (e.g., "core/protocols/*.md")
        base_dir: Directory to search from

    Returns:
        Sorted matching paths relative to base_dir, with '/' separators.
        Empty list if base_dir does not exist.

    Example:
        >>> glob_resolve("steering/*.md", "powers/kiro-protocols")
        ['steering/agent-activation.md', 'steering/mode-switching.md']
    """
    base = Path(base_dir)
    if not base.is_dir():
        LOG(f"Glob base '{base}' does not exist; no matches for {pattern}", level=3)
        return []

    matches = glob.glob(pattern, root_dir=base, recursive=True)
    return sorted(PurePath(m).as_posix() for m in matches)


def files_resolve(pattern: str, base_dir: Union[str, Path]) -> List[str]:
    """glob_resolve restricted to regular files (directory matches dropped)"""
    base = Path(base_dir)
    return [f for f in glob_resolve(pattern, base) if not (base / f).is_dir()]


def name_fromPath(path: str) -> str:
    """File name without its final extension ("protocols/agent.md" -> "agent")"""
    return PurePosixPath(path).stem


def destinations_findDuplicates(expanded: Iterable[ExpandedMapping]) -> Dict[str, List[str]]:
    """
    Group sources by destination, keeping only destinations used more than once

    Returns:
        Dict of duplicated dest -> list of sources writing to it
    """
    by_dest: "OrderedDict[str, List[str]]" = OrderedDict()
    for mapping in expanded:
        by_dest.setdefault(mapping.dest, []).append(mapping.src)
    return {dest: sources for dest, sources in by_dest.items() if len(sources) > 1}


def mappings_expand(
    mappings: Sequence[FileMapping],
    base_dir: Union[str, Path],
    target: Union[str, BuildTarget],
    strict: Optional[bool] = None,
) -> List[ExpandedMapping]:
    """
    Expand mapping rules into concrete source/destination pairs

    Process:
        1. Skip rules whose non-empty `targets` exclude target
        2. Glob sources: one entry per matched file, {name} in dest replaced
           by the file name without its final extension
        3. Literal sources: copied verbatim (no placeholder substitution)

    Output preserves input order; a glob's matches are contiguous and sorted.

    Args:
        mappings: Rules to expand
        base_dir: Directory that sources are relative to
        target: Build target (BuildTarget or its name)
        strict: Raise on duplicate destinations
                (default: appsettings.strict_destinations)

    Returns:
        Freshly built list of ExpandedMapping

    Raises:
        ValueError: If target is not a known build target
        DestinationCollision: In strict mode, if two entries share a dest
    """
    target = BuildTarget.parse(target)
    if strict is None:
        strict = appsettings.strict_destinations
    base = Path(base_dir)

    expanded: List[ExpandedMapping] = []

    for mapping in mappings:
        if not mapping.applies(target):
            LOG(f"Skipping {mapping.src} for target {target.value}", level=3)
            continue

        if not glob_is(mapping.src):
            expanded.append(ExpandedMapping(src=mapping.src, dest=mapping.dest))
            continue

        files = files_resolve(mapping.src, base)
        LOG(f"Resolved {mapping.src} -> {len(files)} files", level=2)

        for file in files:
            dest = mapping.dest.replace(NAME_PLACEHOLDER, name_fromPath(file))
            expanded.append(ExpandedMapping(src=file, dest=dest))

    if strict:
        duplicates = destinations_findDuplicates(expanded)
        if duplicates:
            dest, sources = next(iter(duplicates.items()))
            raise DestinationCollision(dest, sources)

    return expanded


def group_expand(
    group: MappingGroup,
    root: Union[str, Path],
    target: Union[str, BuildTarget],
    strict: Optional[bool] = None,
) -> List[ExpandedMapping]:
    """Expand a mapping group with its base directory taken relative to root"""
    return mappings_expand(group.mappings, Path(root) / group.base_dir, target, strict=strict)


def steeringFiles_getForCLI(root: Union[str, Path] = ".") -> List[str]:
    """
    Destination paths of the steering files the installer copies

    Returns:
        Relative destinations (e.g., ['aliases.md', 'agents.md', 'modes.md', 'strict.md'])
    """
    expanded = mappings_expand(STEERING_MAPPINGS, Path(root) / STEERING_BASE_DIR, BuildTarget.CLI)
    return [m.dest for m in expanded]


def powerFiles_getForCLI(root: Union[str, Path] = ".") -> List[str]:
    """
    Destination paths of the power files the installer copies

    Returns:
        Relative destinations (e.g., ['POWER.md', 'mcp.json', 'icon.png',
        'steering/agent-activation.md', ...])
    """
    expanded = mappings_expand(POWER_MAPPINGS, Path(root) / POWER_BASE_DIR, BuildTarget.CLI)
    return [m.dest for m in expanded]


def _assert_only_keys(d: Dict[str, Any], allowed: Iterable[str], *, ctx: str) -> None:
    extra = set(d.keys()) - set(allowed)
    if extra:
        raise ManifestError(f"{ctx}: unknown key(s): {', '.join(sorted(extra))}")


def mapping_fromDict(d: Any, *, ctx: str = "mapping") -> FileMapping:
    """
    Build a FileMapping from its YAML form

    Example:
        {"src": "debug.md", "dest": "debug.md", "targets": ["dev"]}

    Raises:
        ManifestError: On missing/unknown keys or unknown targets
    """
    if not isinstance(d, dict):
        raise ManifestError(f"{ctx}: expected a mapping with src and dest")
    _assert_only_keys(d, ["src", "dest", "targets"], ctx=ctx)

    src = d.get("src")
    dest = d.get("dest")
    if not isinstance(src, str) or not src:
        raise ManifestError(f"{ctx}: 'src' must be a non-empty string")
    if not isinstance(dest, str) or not dest:
        raise ManifestError(f"{ctx}: 'dest' must be a non-empty string")

    raw_targets = d.get("targets")
    if raw_targets is None:
        return FileMapping(src=src, dest=dest)
    if isinstance(raw_targets, str):
        raw_targets = [raw_targets]
    if not isinstance(raw_targets, list):
        raise ManifestError(f"{ctx}: 'targets' must be a list of build targets")

    try:
        targets = frozenset(BuildTarget.parse(t) for t in raw_targets)
    except ValueError as e:
        raise ManifestError(f"{ctx}: {e}")

    return FileMapping(src=src, dest=dest, targets=targets or None)


def group_fromDict(name: str, d: Any) -> MappingGroup:
    """Build a MappingGroup from its YAML form"""
    ctx = f"group '{name}'"
    if not isinstance(d, dict):
        raise ManifestError(f"{ctx}: expected a mapping")
    _assert_only_keys(d, ["base_dir", "output_dir", "mappings"], ctx=ctx)

    raw_mappings = d.get("mappings") or []
    if not isinstance(raw_mappings, list):
        raise ManifestError(f"{ctx}: 'mappings' must be a list")

    return MappingGroup(
        name=name,
        base_dir=str(d.get("base_dir", ".")),
        output_dir=str(d.get("output_dir", name)),
        mappings=[
            mapping_fromDict(m, ctx=f"{ctx} mapping {i}") for i, m in enumerate(raw_mappings)
        ],
    )


def manifest_fromDict(d: Any) -> Manifest:
    """
    Build a Manifest from parsed YAML

    Raises:
        ManifestError: On malformed structure
    """
    if d is None:
        return Manifest()
    if not isinstance(d, dict):
        raise ManifestError("manifest: top level must be a mapping")
    _assert_only_keys(d, ["groups", "substitutions"], ctx="manifest")

    raw_groups = d.get("groups") or {}
    if not isinstance(raw_groups, dict):
        raise ManifestError("manifest: 'groups' must map group names to definitions")

    raw_subs = d.get("substitutions") or {}
    if not isinstance(raw_subs, dict):
        raise ManifestError("manifest: 'substitutions' must map tokens to definitions")

    return Manifest(
        groups=[group_fromDict(str(name), body) for name, body in raw_groups.items()],
        substitutions={str(k): v for k, v in raw_subs.items()},
    )


def manifest_load(path: Union[str, Path]) -> Manifest:
    """
    Load a YAML manifest file

    Format:
        groups:
          steering:
            base_dir: src
            output_dir: steering
            mappings:
              - src: core/aliases.md
                dest: aliases.md
              - src: "core/protocols/*.md"
                dest: "protocols/{name}.md"
              - src: debug.md
                dest: debug.md
                targets: [dev]
        substitutions:
          "{{{MODE_COMMANDS}}}":
            text: "/modes {name}  Switch mode"
          "{{{AGENT_PROTOCOL}}}":
            section:
              file: src/core/protocols/agent-management.md
              query: "## Agent Management Steps"

    Raises:
        ManifestError: If the file is missing, unparsable or malformed
    """
    path = Path(path)
    if not path.exists():
        raise ManifestError(f"Manifest not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ManifestError(f"Failed to parse {path.name}: {e}")
    except OSError as e:
        raise ManifestError(f"Failed to load {path.name}: {e}")

    manifest = manifest_fromDict(data)
    LOG(f"Loaded manifest {path} with {len(manifest.groups)} groups", level=2)
    return manifest
