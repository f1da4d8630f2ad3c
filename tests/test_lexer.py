"""
Pygments lexer tests - highlighting follows the tokenizer's decisions
"""

import pytest
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.token import Generic, Punctuation, Text

from wrapdown.lib.lexer import WrapdownLexer, get_lexer
from wrapdown.lib.registry import TagRegistry
from wrapdown.models.tags import TagDefinition


def tokens_get(text, registry=None):
    return list(WrapdownLexer(registry).get_tokens_unprocessed(text))


class TestHighlightTokens:
    """Token streams for simple lines"""

    def test_emphasis(self):
        assert tokens_get("a _b_") == [
            (0, Text, "a "),
            (2, Punctuation, "_"),
            (3, Generic.Emph, "b"),
            (4, Punctuation, "_"),
        ]

    def test_heading(self):
        assert tokens_get("# T") == [
            (0, Punctuation, "# "),
            (2, Generic.Heading, "T"),
        ]

    def test_nested_strong_and_emphasis(self):
        tokens = tokens_get("__a _b___")
        assert (0, Punctuation, "__") in tokens
        assert (2, Generic.Strong, "a ") in tokens
        assert (5, Generic.Emph, "b") in tokens
        assert tokens[-1] == (7, Punctuation, "__")

    def test_unterminated_span_is_text(self):
        assert tokens_get("_a") == [(0, Text, "_"), (1, Text, "a")]

    def test_custom_highlight_type(self):
        registry = TagRegistry()
        registry.register(TagDefinition(
            "==", "<mark>{text}</mark>", nesting_level=1, highlight="Generic.Inserted"
        ))
        assert (2, Generic.Inserted, "x") in tokens_get("==x==", registry)


class TestCoverage:
    """Token values reproduce the source exactly"""

    @pytest.mark.parametrize("text", [
        "# Title\n_em_ and __strong__",
        "a\r\n\\_b\\_ __c _d_ e\n\n#",
        "_a__b_ ___x___ a_b 1_c",
    ])
    def test_values_cover_source(self, text):
        tokens = tokens_get(text)
        assert "".join(value for _, _, value in tokens) == text

        offset = 0
        for pos, _, value in tokens:
            assert pos == offset
            offset += len(value)

    def test_html_output(self):
        html = highlight("# Title\n__bold__", get_lexer(), HtmlFormatter())
        assert "Title" in html
        assert "bold" in html
        assert "<span" in html
