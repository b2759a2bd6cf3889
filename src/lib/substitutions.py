"""
Build-time {{{TOKEN}}} substitutions

Steering sources carry tokens such as {{{VERSION}}} or {{{PROTOCOLS_PATH}}}
that are replaced while files are built. Each token maps to a callable
receiving the build target, so values may depend on where the files are
installed:

    subs = substitutions_default(".")
    substitutions_apply("Protocols: {{{PROTOCOLS_PATH}}}", subs, BuildTarget.POWER)
    # 'Protocols: ~/.kiro/powers/installed/kiro-agents/steering/protocols'

Section substitutions inject a section of another document. They never
fail a build: extraction errors become an HTML comment in the output.
"""

import json
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Union

from ..config import appsettings
from ..models.manifest import BuildTarget
from .extractor import ExtractionError, section_extractFromFile
from .log import LOG, WARN

Substitution = Callable[[BuildTarget], str]
Substitutions = Dict[str, Substitution]


def substitutions_apply(
    content: str, substitutions: Mapping[str, Substitution], target: Union[str, BuildTarget]
) -> str:
    """
    Replace every occurrence of each token, in mapping order

    Args:
        content: Source text
        substitutions: Token -> callable(target)
        target: Build target passed to each callable

    Returns:
        Text with all known tokens replaced. Tokens absent from content are
        not evaluated.
    """
    target = BuildTarget.parse(target)
    result = content

    for token, make in substitutions.items():
        if token not in result:
            continue
        value = make(target)
        LOG(f"Substituting {token} ({len(value)} chars)", level=3)
        result = result.replace(token, value)

    return result


def sectionSubstitution_make(path: Union[str, Path], query: str) -> Substitution:
    """
    Build a substitution that injects a section of a markdown file

    The file is read each time the substitution is evaluated.

    Args:
        path: Markdown file to extract from
        query: Section query ("Title", "#anchor" or "## Title")

    Returns:
        Callable returning the section text, or the configured error
        comment if the file or section is missing

    Example:
        subs["{{{AGENT_PROTOCOL}}}"] = sectionSubstitution_make(
            "src/core/protocols/agent-management.md", "## Agent Management Steps"
        )
    """
    def substitute(target: BuildTarget) -> str:
        try:
            return section_extractFromFile(path, query)
        except ExtractionError as e:
            WARN(f"Section substitution failed: {e}")
            return appsettings.sectionError_make(e)

    return substitute


def steeringPath_get(target: Union[str, BuildTarget]) -> str:
    """
    Install location of steering documents for a target

    Returns:
        power_install_path for the power target, steering_install_path otherwise
    """
    if BuildTarget.parse(target) is BuildTarget.POWER:
        return appsettings.power_install_path
    return appsettings.steering_install_path


def version_read(root: Union[str, Path]) -> str:
    """
    Read the version field of root/package.json

    Returns:
        Version string, or appsettings.fallback_version if the file is
        missing, unparsable or has no version
    """
    package_json = Path(root) / "package.json"
    try:
        data: Any = json.loads(package_json.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return appsettings.fallback_version

    if isinstance(data, dict) and data.get("version"):
        return str(data["version"])
    return appsettings.fallback_version


def substitutions_default(root: Union[str, Path] = ".") -> Substitutions:
    """
    Substitutions every build gets

    {{{VERSION}}}             version from package.json
    {{{PROTOCOLS_PATH}}}      <install path>/protocols
    {{{KIRO_PROTOCOLS_PATH}}} <install path>/protocols
    """
    return {
        "{{{VERSION}}}": lambda target: version_read(root),
        "{{{PROTOCOLS_PATH}}}": lambda target: steeringPath_get(target) + "/protocols",
        "{{{KIRO_PROTOCOLS_PATH}}}": lambda target: steeringPath_get(target) + "/protocols",
    }


class SubstitutionConfigError(Exception):
    """Raised when a substitutions block is malformed"""
    pass


def _literal(text: str) -> Substitution:
    return lambda target: text


def substitutions_fromConfig(data: Mapping[str, Any], root: Union[str, Path] = ".") -> Substitutions:
    """
    Build substitutions from a manifest's `substitutions:` block

    Each token maps to one of:
        {"text": "..."}                          literal replacement
        {"section": {"file": ..., "query": ...}} section of a markdown file,
                                                 file relative to root
    A bare string is shorthand for {"text": ...}.

    Raises:
        SubstitutionConfigError: On an entry of neither form
    """
    subs: Substitutions = {}

    for token, entry in data.items():
        if isinstance(entry, str):
            subs[token] = _literal(entry)
            continue

        if not isinstance(entry, dict):
            raise SubstitutionConfigError(f"{token}: expected 'text' or 'section'")

        if "text" in entry:
            subs[token] = _literal(str(entry["text"]))
        elif "section" in entry:
            section = entry["section"]
            if not isinstance(section, dict) or "file" not in section or "query" not in section:
                raise SubstitutionConfigError(f"{token}: 'section' needs 'file' and 'query'")
            subs[token] = sectionSubstitution_make(Path(root) / section["file"], str(section["query"]))
        else:
            raise SubstitutionConfigError(f"{token}: expected 'text' or 'section'")

    LOG(f"Configured {len(subs)} substitutions", level=2)
    return subs
