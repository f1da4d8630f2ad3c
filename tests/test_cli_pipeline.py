"""
CLI pipeline tests - run the stages of wrapdown.__main__ on temp files
"""

from argparse import Namespace

import pytest

from wrapdown.__main__ import (
    env_check,
    tags_load,
    source_read,
    text_render,
    output_write,
    results_report,
)
from wrapdown.models import ProgramState, pipeline
from wrapdown.lib.log import state_connectToLogger, verbosity_get


STAGES = (env_check, tags_load, source_read, text_render, output_write, results_report)


@pytest.fixture
def source_dir(tmp_path):
    inputdir = tmp_path / "in"
    inputdir.mkdir()
    (inputdir / "notes.wd").write_bytes(b"# Title\r\n_em_ and __strong__\r\n")
    return inputdir


def state_make(inputdir, outputdir, **kwargs):
    return ProgramState(inputdir=inputdir, outputdir=outputdir, inputFile="notes.wd",
                        verbosity=0, **kwargs)


class TestPipeline:
    """Full pipeline runs"""

    def test_render_default_tags(self, source_dir, tmp_path):
        state = pipeline(state_make(source_dir, tmp_path / "out"), *STAGES)

        assert state.envOK is True
        assert state.outputFile == tmp_path / "out" / "notes.html"
        assert state.outputFile.read_bytes() == (
            b"<h1>Title</h1>\r\n<em>em</em> and <strong>strong</strong>\r\n"
        )
        assert state.highlightFile is None

    def test_render_with_tags_file(self, source_dir, tmp_path):
        (source_dir / "tags.yaml").write_text(
            "tags:\n"
            "  - {opening: '#', template: '<h3>{text}</h3>', nesting_level: 0, line_only: true}\n"
            "  - {opening: '_', template: '<u>{text}</u>', nesting_level: 1}\n",
            encoding="utf-8",
        )
        state = state_make(source_dir, tmp_path / "out", tagsFile="tags.yaml", outputSubdir="site")
        state = pipeline(state, *STAGES)

        assert state.outputFile == tmp_path / "out" / "site" / "notes.html"
        assert state.outputFile.read_text(encoding="utf-8").startswith("<h3>Title</h3>")

    def test_highlight_written(self, source_dir, tmp_path):
        state = pipeline(state_make(source_dir, tmp_path / "out", highlight=True), *STAGES)

        assert state.highlightFile == tmp_path / "out" / "notes.wd.source.html"
        assert "<html" in state.highlightFile.read_text(encoding="utf-8")


class TestFailures:
    """Stages exit with status 1 on bad input"""

    def test_missing_input_file(self, tmp_path):
        state = ProgramState(inputdir=tmp_path, outputdir=tmp_path / "out",
                             inputFile="absent.wd", verbosity=0)
        with pytest.raises(SystemExit) as exc:
            env_check(state)
        assert exc.value.code == 1

    def test_missing_tags_file(self, source_dir, tmp_path):
        state = state_make(source_dir, tmp_path / "out", tagsFile="absent.yaml")
        with pytest.raises(SystemExit):
            env_check(state)

    def test_invalid_tags_file(self, source_dir, tmp_path):
        (source_dir / "tags.yaml").write_text("tags: 3\n", encoding="utf-8")
        state = env_check(state_make(source_dir, tmp_path / "out", tagsFile="tags.yaml"))
        with pytest.raises(SystemExit):
            tags_load(state)

    def test_report_without_output(self, tmp_path):
        with pytest.raises(SystemExit):
            results_report(ProgramState(verbosity=0))


class TestState:
    """ProgramState helpers"""

    def test_create_from_namespace_ignores_unknown_options(self, tmp_path):
        options = Namespace(inputFile="a.wd", verbosity=2, highlight=True, unknown="x")
        state = ProgramState.state_createFromNamespace(options, tmp_path, tmp_path / "out")

        assert state.inputFile == "a.wd"
        assert state.verbosity == 2
        assert state.highlight is True
        assert state.inputdir == tmp_path
        assert not hasattr(state, "unknown")

    def test_copy_is_independent(self):
        state = ProgramState(inputFile="a.wd")
        copied = state.copy()
        copied.inputFile = "b.wd"
        assert state.inputFile == "a.wd"

    def test_logger_follows_connected_state(self):
        state_connectToLogger(ProgramState(verbosity=3))
        assert verbosity_get() == 3
        state_connectToLogger(None)
        assert verbosity_get() == 0
