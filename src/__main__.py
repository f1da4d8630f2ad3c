#!/usr/bin/env python3
"""
wrapdown - configurable lightweight markup renderer

Renders a wrapdown source file (headings, emphasis and strong emphasis with
configurable markers) to output markup, HTML by default.

As with other ChRIS plugins, the program is driven by an input directory and
an output directory, and runs as a functional pipeline over a ProgramState.

Usage:
    wrapdown inputdir/ outputdir/ --inputFile notes.wd

Examples:
    # Default tags (# heading, __strong__, _emphasis_)
    wrapdown . output/ --inputFile notes.wd

    # Custom tag set, plus a highlighted view of the source
    wrapdown . output/ --inputFile notes.wd --tagsFile tags.yaml --highlight

    # Trace tokenizer decisions
    wrapdown . output/ --inputFile notes.wd -vv
"""

import sys
import traceback
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

from chris_plugin import chris_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter

from .config import appsettings
from .lib import (
    Converter,
    RegistryError,
    registry_makeDefault,
    registry_loadFromYAML,
    __version__,
    LOG,
    state_connectToLogger,
)
from .lib.lexer import WrapdownLexer
from .models import ProgramState, pipeline


parser = ArgumentParser(
    description="wrapdown - configurable lightweight markup renderer",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--inputFile", required=True, type=str, help="Input wrapdown file (relative to inputdir)"
)

parser.add_argument(
    "--tagsFile",
    default=None,
    type=str,
    help="YAML tags file (relative to inputdir). Defaults to WRAPDOWN_TAGS_FILE or the built-in tags",
)

parser.add_argument(
    "--outputSubdir",
    default=".",
    type=str,
    help="Subdirectory within outputdir for the rendered file",
)

parser.add_argument(
    "--highlight",
    action="store_true",
    help="Also write a syntax-highlighted HTML view of the source",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate environment and resolve file paths

    Returns:
        ProgramState with inputSourceFile, tagsSourceFile, renderOutputdir
        and envOK set

    Exits:
        1 if the input file or tags file does not exist
    """
    state = inputstate.copy()
    LOG("Checking environment...", level=2)

    input_file = state.inputdir / state.inputFile
    if not input_file.exists():
        print(f"Error: Input file not found: {input_file}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    state.inputSourceFile = input_file
    LOG(f"Input file: {input_file}", level=2)

    tags_file = state.tagsFile or appsettings.tags_file
    if tags_file:
        tags_path = Path(tags_file)
        if not tags_path.is_absolute():
            tags_path = state.inputdir / tags_path
        if not tags_path.exists():
            print(f"Error: Tags file not found: {tags_path}", file=sys.stderr)
            state.envOK = False
            sys.exit(1)
        state.tagsSourceFile = tags_path
        LOG(f"Tags file: {tags_path}", level=2)

    state.renderOutputdir = state.outputdir / state.outputSubdir
    state.renderOutputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.renderOutputdir}", level=2)

    state.envOK = True
    return state


def tags_load(inputstate: ProgramState) -> ProgramState:
    """
    Build the tag registry from the tags file, or the default tag set

    Exits:
        1 if the tags file is invalid
    """
    state = inputstate.copy()

    if state.tagsSourceFile is None:
        state.registry = registry_makeDefault()
        LOG("Using default tags", level=2)
        return state

    try:
        state.registry = registry_loadFromYAML(state.tagsSourceFile)
    except RegistryError as e:
        print(f"Tags error: {e}", file=sys.stderr)
        sys.exit(1)
    return state


def source_read(inputstate: ProgramState) -> ProgramState:
    """
    Read the wrapdown source file

    Exits:
        1 if the file cannot be read
    """
    state = inputstate.copy()
    LOG("Reading source file...", level=1)

    try:
        # newline="" keeps "\r\n" so line breaks survive rendering verbatim
        with open(state.inputSourceFile, "r", encoding="utf-8", newline="") as f:
            state.sourceText = f.read()
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error reading input file: {e}", file=sys.stderr)
        sys.exit(1)

    LOG(f"Read {len(state.sourceText)} characters from {state.inputSourceFile.name}", level=2)
    return state


def text_render(inputstate: ProgramState) -> ProgramState:
    """Render the source text with the loaded registry"""
    state = inputstate.copy()
    LOG("Rendering source...", level=1)

    converter = Converter(state.sourceText or "", registry=state.registry)
    state.renderedText = converter.render()
    return state


def output_write(inputstate: ProgramState) -> ProgramState:
    """
    Write the rendered text, and the highlighted source view if requested

    Exits:
        1 if writing fails
    """
    state = inputstate.copy()

    output_file = state.renderOutputdir / appsettings.outputName_make(state.inputSourceFile.name)
    try:
        with open(output_file, "w", encoding="utf-8", newline="") as f:
            f.write(state.renderedText or "")
        state.outputFile = output_file
        LOG(f"Wrote {output_file}", level=2)

        if state.highlight:
            highlight_file = state.renderOutputdir / f"{state.inputSourceFile.name}.source.html"
            formatter = HtmlFormatter(style=appsettings.pygments_style, full=True,
                                      title=state.inputSourceFile.name)
            lexer = WrapdownLexer(state.registry)
            highlight_file.write_text(
                highlight(state.sourceText or "", lexer, formatter), encoding="utf-8"
            )
            state.highlightFile = highlight_file
            LOG(f"Wrote {highlight_file}", level=2)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        if state.verbosity >= 3:
            traceback.print_exc()
        sys.exit(1)

    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """Report what was written (terminal stage)"""
    state = inputstate.copy()
    if state.outputFile is None:
        print("Error: Rendering failed", file=sys.stderr)
        sys.exit(1)

    LOG("✓ Rendering complete", level=1)
    LOG(f"  Output: {state.outputFile}", level=1)
    if state.highlightFile is not None:
        LOG(f"  Source view: {state.highlightFile}", level=1)
    return state


@chris_plugin(
    parser=parser,
    title="wrapdown - configurable lightweight markup renderer",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Render a wrapdown file from inputdir into outputdir

    Pipeline:
        env_check → tags_load → source_read → text_render → output_write
        → results_report
    """
    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    state_connectToLogger(state)

    pipeline(state, env_check, tags_load, source_read, text_render, output_write, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
