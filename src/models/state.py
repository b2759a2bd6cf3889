"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional pipeline pattern and
the pipeline() helper for composing build stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable, TYPE_CHECKING
from dataclasses import dataclass, field

if TYPE_CHECKING:
    from .manifest import MappingGroup


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the build pipeline (state bus pattern).

    This dataclass carries all program state through the functional pipeline,
    with each stage adding new fields as the build progresses.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, target, manifest, group,
          strict, listOnly, validate
        - env_check: manifestFile, envOK
        - manifest_resolve: mappingGroups, substitutions
        - manifest_check: validationResults
        - files_build: buildResult
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Project root containing mapping sources
        outputdir: Root directory for build output
        verbosity: Logging verbosity level (1-3)
        target: Build target name (npm, dev, cli, power)
        manifest: Optional YAML manifest path (relative to inputdir)
        group: Optional single mapping group to process
        strict: Fail on duplicate expanded destinations
        listOnly: Report expanded destinations without writing files
        validate: Run manifest validation before building
        envOK: Environment validation passed
        manifestFile: Resolved manifest path, if any
        mappingGroups: Mapping groups selected for this build
        substitutions: Token -> callable map applied to file contents
        validationResults: Results of manifest validation
        buildResult: Build results (status, files_built, files_skipped, ...)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    target: str = field(default="")
    manifest: Optional[str] = field(default=None)
    group: Optional[str] = field(default=None)
    strict: bool = field(default=False)
    listOnly: bool = field(default=False)
    validate: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    manifestFile: Optional[Path] = field(default=None)
    mappingGroups: Optional[List["MappingGroup"]] = field(default=None)
    substitutions: Optional[Dict[str, Callable[..., str]]] = field(default=None)
    validationResults: Optional[List[Any]] = field(default=None)
    buildResult: Optional[Dict[str, Any]] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Merges CLI options with explicitly provided directories to create
        the initial program state for the build pipeline.

        Args:
            options: Parsed CLI arguments (target, manifest, etc.)
            inputdir: Project root directory
            outputdir: Directory for build output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        import dataclasses
        valid_fields = {f.name for f in dataclasses.fields(cls)}

        # Drop argparse entries that are not pipeline state
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}

        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Args:
        initial_state: Starting ProgramState
        *stages: Variable number of stage functions to execute in order

    Returns:
        Final ProgramState after all transformations

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            manifest_resolve,
            files_build,
            results_report
        )

    This is equivalent to:
        results_report(files_build(manifest_resolve(env_check(initial_state))))
    """
    from functools import reduce
    return reduce(lambda state, stage: stage(state), stages, initial_state)
