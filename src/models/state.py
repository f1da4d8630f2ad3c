"""
Program state model and pipeline helper

Defines the ProgramState dataclass carried through the CLI pipeline and the
pipeline() helper that composes the stages.
"""

import dataclasses
from functools import reduce
from pathlib import Path
from argparse import Namespace
from typing import Any, Callable, Optional, Type, TypeVar
from dataclasses import dataclass, field


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    State bus for the rendering pipeline

    Each stage returns a copy of the state with its own fields filled in.

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, inputFile, tagsFile,
          outputSubdir, highlight
        - env_check: inputSourceFile, tagsSourceFile, renderOutputdir, envOK
        - tags_load: registry
        - source_read: sourceText
        - text_render: renderedText
        - output_write: outputFile, highlightFile
        - results_report: (no additions, terminal stage)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    inputFile: str = field(default="")
    tagsFile: Optional[str] = field(default=None)
    outputSubdir: str = field(default=".")
    highlight: bool = field(default=False)

    # Pipeline state
    envOK: bool = field(default=False)
    inputSourceFile: Path = field(default=Path("/"))
    tagsSourceFile: Optional[Path] = field(default=None)
    renderOutputdir: Path = field(default=Path("/"))
    registry: Optional[Any] = field(default=None)  # TagRegistry at runtime
    sourceText: Optional[str] = field(default=None)
    renderedText: Optional[str] = field(default=None)
    outputFile: Optional[Path] = field(default=None)
    highlightFile: Optional[Path] = field(default=None)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths

        Options that are not ProgramState fields are ignored.
        """
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in vars(options).items() if k in valid_fields}
        return cls(**{**filtered_options, "inputdir": inputdir, "outputdir": outputdir})

    def copy(self: PS) -> PS:
        """Shallow copy of this state"""
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations

    Example:
        pipeline(state, env_check, tags_load, source_read)
        # same as source_read(tags_load(env_check(state)))
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
