#!/usr/bin/env python3
"""
steerdown - Build toolkit for steering document libraries

Builds a library of steering/agent prompt documents for one distribution
target. Mapping groups (built in, or read from a YAML manifest) are
expanded for the target, {{{TOKEN}}} substitutions are applied, and the
results are written under the output directory.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Usage:
    steerdown inputdir/ outputdir/ --target power

    inputdir is the project root that mapping group base_dirs are relative
    to; each group is written to outputdir/<group output_dir>/.

Examples:
    # Build the built-in groups for the npm target
    steerdown . build/

    # Build one group from a custom manifest
    steerdown . build/ --manifest steerdown.yaml --group steering

    # Validate the manifest and list destinations without writing
    steerdown . build/ --validate --listOnly -vv
"""

import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from .config import appsettings
from .lib import Builder, __version__, LOG, state_connectToLogger
from .lib.manifest import MAPPING_GROUPS, DestinationCollision, ManifestError, manifest_load
from .lib.substitutions import SubstitutionConfigError, substitutions_default, substitutions_fromConfig
from .lib.validator import manifest_validate, powerMetadata_validate
from .models import BuildTarget, ProgramState, pipeline


DISPLAY_TITLE = r"""
       _                      _
   ___| |_ ___  ___ _ __ __| | _____      ___ __
  / __| __/ _ \/ _ \ '__/ _` |/ _ \ \ /\ / / '_ \
  \__ \ ||  __/  __/ | | (_| | (_) \ V  V /| | | |
  |___/\__\___|\___|_|  \__,_|\___/ \_/\_/ |_| |_|

  Steering document build toolkit
"""

# Define CLI arguments
parser = ArgumentParser(
    description="steerdown - Build steering document libraries per distribution target",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--target",
    default=appsettings.default_target,
    type=str,
    help=f"Build target ({', '.join(t.value for t in BuildTarget)})",
)

parser.add_argument(
    "--manifest",
    default=None,
    type=str,
    help="YAML manifest (relative to inputdir). Defaults to the built-in mapping groups",
)

parser.add_argument(
    "--group",
    default=None,
    type=str,
    help="Build only the named mapping group",
)

parser.add_argument(
    "--strict",
    action="store_true",
    default=appsettings.strict_destinations,
    help="Fail when two mappings expand to the same destination",
)

parser.add_argument(
    "--listOnly",
    action="store_true",
    help="List expanded destinations without writing files",
)

parser.add_argument(
    "--validate",
    action="store_true",
    help="Validate mapping groups before building; fail on any problem",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve paths.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - target: Normalized build target name
            - manifestFile: Resolved manifest path (None for built-in groups)
            - envOK: True if environment is valid

    Exits:
        1 if the target is unknown, or inputdir or manifest is missing
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    try:
        state.target = BuildTarget.parse(state.target or appsettings.default_target).value
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Target: {state.target}", level=2)

    if not state.inputdir or not Path(state.inputdir).is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    if state.manifest:
        manifest_file = Path(state.inputdir) / state.manifest
        if not manifest_file.is_file():
            print(f"Error: Manifest not found: {manifest_file}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.manifestFile = manifest_file
        LOG(f"Manifest: {manifest_file}", level=2)

    if not state.listOnly:
        Path(state.outputdir).mkdir(parents=True, exist_ok=True)
        LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def manifest_resolve(inputstate: ProgramState) -> ProgramState:
    """
    Select the mapping groups and substitutions for this build.

    Args:
        inputstate: Program state with manifestFile resolved

    Returns:
        ProgramState with added fields:
            - mappingGroups: Groups to build
            - substitutions: Default substitutions plus manifest-declared ones

    Exits:
        1 if the manifest is malformed or the requested group does not exist
    """

    state = inputstate.copy()

    LOG("Resolving mapping groups...", level=1)

    substitutions = substitutions_default(state.inputdir)

    if state.manifestFile:
        try:
            manifest = manifest_load(state.manifestFile)
            substitutions.update(substitutions_fromConfig(manifest.substitutions, state.inputdir))
        except (ManifestError, SubstitutionConfigError) as e:
            print(f"Manifest error: {e}", file=sys.stderr)
            sys.exit(1)
        groups = manifest.groups
    else:
        groups = list(MAPPING_GROUPS)

    if state.group:
        groups = [g for g in groups if g.name == state.group]
        if not groups:
            print(f"Error: No mapping group named '{state.group}'", file=sys.stderr)
            sys.exit(1)

    state.mappingGroups = groups
    state.substitutions = substitutions
    LOG(f"Selected {len(groups)} groups: {', '.join(g.name for g in groups)}", level=2)
    return state


def manifest_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the selected mapping groups when --validate is given.

    Power targets also check the POWER.md front matter of every group that
    ships one.

    Returns:
        ProgramState with added field:
            - validationResults: List of ValidationResult (empty if skipped)

    Exits:
        1 if any check fails
    """

    state = inputstate.copy()
    state.validationResults = []

    if not state.validate:
        return state

    LOG("Validating mapping groups...", level=1)

    results = manifest_validate(state.mappingGroups or [], state.inputdir)
    if state.target == BuildTarget.POWER.value:
        for group in state.mappingGroups or []:
            if any(m.dest == "POWER.md" for m in group.mappings):
                results.append(powerMetadata_validate(Path(state.inputdir) / group.base_dir))

    for result in results:
        LOG(f"{'✓' if result.ok else '✗'} {result.message}", level=1)
        for detail in result.details:
            LOG(f"    {detail}", level=2)

    state.validationResults = results

    failed = [r for r in results if not r.ok]
    if failed:
        for result in failed:
            print(f"Validation failed: {result.message}", file=sys.stderr)
            for detail in result.details:
                print(f"  {detail}", file=sys.stderr)
        sys.exit(1)

    return state


def files_build(inputstate: ProgramState) -> ProgramState:
    """
    Expand mapping groups and write output files.

    With --listOnly the expansion is reported without touching the disk.

    Returns:
        ProgramState with added field:
            - buildResult: Dict containing:
                - status: bool
                - files_built: list of written paths (empty with --listOnly)
                - files_skipped: list of missing sources
                - files_planned: list of destination paths (--listOnly only)
                - output_dir: output root

    Exits:
        1 on destination collisions in strict mode
    """

    state = inputstate.copy()

    LOG(f"Building target {state.target}...", level=1)

    builder = Builder(
        groups=state.mappingGroups or [],
        source_root=state.inputdir,
        output_root=state.outputdir,
        target=state.target,
        substitutions=state.substitutions,
        strict=state.strict,
    )

    try:
        if state.listOnly:
            steps = builder.plan()
            state.buildResult = {
                'status': True,
                'files_built': [],
                'files_skipped': [],
                'files_planned': [str(step.dest) for step in steps],
                'output_dir': str(state.outputdir),
            }
        else:
            state.buildResult = builder.build()
    except DestinationCollision as e:
        print(f"Build error: {e}", file=sys.stderr)
        sys.exit(1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Display build results to user.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if buildResult is None
    """
    state: ProgramState = inputstate.copy()
    if not state.buildResult:
        print("Error: Build failed", file=sys.stderr)
        sys.exit(1)

    result = state.buildResult
    if state.listOnly:
        for dest in result.get('files_planned', []):
            print(dest)
        LOG(f"\n{len(result.get('files_planned', []))} files planned", level=1)
        return state

    LOG("\n✓ Build successful!", level=1)
    LOG(f"  Target: {state.target}", level=1)
    LOG(f"  Output: {result['output_dir']}", level=1)
    LOG(f"  Files built: {len(result['files_built'])}", level=1)
    if result['files_skipped']:
        LOG(f"  Missing sources skipped: {len(result['files_skipped'])}", level=1)
        for src in result['files_skipped']:
            LOG(f"    {src}", level=2)
    return state


@chris_plugin(
    parser=parser,
    title="steerdown - Steering document build toolkit",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - build a steering document library for one target.

    Orchestrates the build pipeline:
        1. env_check: Validate target and paths
        2. manifest_resolve: Select mapping groups and substitutions
        3. manifest_check: Optionally validate the groups
        4. files_build: Expand mappings and write files
        5. results_report: Display results to user

    Args:
        options: CLI arguments from argparse
            - target: str - Build target
            - manifest: Optional[str] - YAML manifest path
            - group: Optional[str] - Single group to build
            - strict: bool - Fail on duplicate destinations
            - listOnly: bool - Report only, write nothing
            - validate: bool - Validate before building
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Project root containing mapping sources
        outputdir: Directory where built files will be written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )
    if appsettings.debug_mode:
        state.verbosity = max(state.verbosity, 3)

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, manifest_resolve, manifest_check, files_build, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
