r"""
Tokenizer escaping tests - backslashes in front of markers

A backslash run only matters when a marker follows it: pairs collapse to
one backslash, and an odd leftover backslash makes the marker literal.
"""

import pytest

from wrapdown.lib.tokenizer import Tokenizer, EscapeMap
from wrapdown.lib.converter import render


class TestEscapedMarkers:
    """Single backslash before a marker"""

    def test_escaped_emphasis(self):
        r"""\_text\_ renders as literal _text_"""
        assert render(r"\_text\_") == "_text_"

    def test_escaped_closing_marker(self):
        r"""An escaped closing marker is content, the span stays open"""
        assert render(r"_a\_b_") == "<em>a_b</em>"

    def test_escaped_strong(self):
        r"""\__a__ : the escape covers the whole '__' marker"""
        assert render(r"\__a__") == "__a__"

    def test_escaped_strong_closing(self):
        r"""An escaped '__' is skipped as a unit, not re-read as '_'"""
        assert render(r"_a\__") == "_a__"

    def test_escaped_marker_followed_by_space(self):
        r"""Escapes apply even where the marker could not have opened"""
        assert render(r"\_ a") == "_ a"

    def test_escaped_heading(self):
        r"""\# at line start is literal, not a heading"""
        assert render(r"\# Title") == "# Title"

    def test_backslash_before_other_text_kept(self):
        r"""A backslash that escapes nothing is emitted as written"""
        assert render(r"a\b _c_") == r"a\b <em>c</em>"


class TestEscapedBackslashes:
    """Backslash runs longer than one"""

    def test_double_backslash_keeps_marker_active(self):
        r"""\\_text_ : one backslash is printed, emphasis still applies"""
        assert render(r"\\_text_") == "\\<em>text</em>"

    def test_triple_backslash_escapes_marker(self):
        r"""\\\_ : a pair collapses, the odd backslash escapes the marker"""
        assert render(r"\\\_text_") == "\\_text_"

    def test_four_backslashes(self):
        assert render(r"\\\\_a_") == "\\\\<em>a</em>"

    def test_double_backslash_without_marker_is_verbatim(self):
        r"""a\\b has no marker, so it is plain text"""
        assert render(r"a\\b") == r"a\\b"

    def test_double_backslash_before_heading_marker(self):
        r"""\\# collapses to \# and is not a heading"""
        assert render(r"\\# x") == r"\# x"


class TestEscapeAnnotation:
    """The annotation pass itself"""

    def test_single_escape(self):
        escapes = Tokenizer().escapes_annotate(r"\_a")
        assert escapes.escaped == frozenset({1})
        assert escapes.dropped == frozenset({0})

    def test_pair_before_marker(self):
        escapes = Tokenizer().escapes_annotate(r"\\_a")
        assert escapes.escaped == frozenset()
        assert escapes.dropped == frozenset({0})

    def test_run_without_marker(self):
        escapes = Tokenizer().escapes_annotate(r"\\\ a")
        assert escapes == EscapeMap()

    def test_escape_map_text(self):
        escapes = EscapeMap(escaped=frozenset({2}), dropped=frozenset({1}))
        assert escapes.text(r"a\_b", 0, 4) == "a_b"
        assert escapes.text(r"a\_b", 2, 4) == "_b"

    def test_source_line_unchanged(self):
        r"""Annotation never edits the line; offsets stay source offsets"""
        root = Tokenizer().line_parse(r"\_a_ _b_")
        span = root.children[-1]
        assert (span.start, span.end) == (5, 8)
        assert root.render() == "_a_ <em>b</em>"
