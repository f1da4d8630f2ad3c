"""
Pygments lexer for wrapdown source

Highlights source text using the same Tokenizer that renders it, so the
highlighting always agrees with the configured tag set.

Token types:
- Punctuation: markers of spans that closed
- tag.highlight (e.g. Generic.Strong): content of closed spans
- Text: literal text, including markers that did not form a span
"""

from typing import Iterator, Optional, Tuple

from pygments.lexer import Lexer
from pygments.token import Punctuation, Text, string_to_tokentype, _TokenType

from ..models.token import Token
from .registry import TagRegistry
from .tokenizer import Tokenizer, lines_split


class WrapdownLexer(Lexer):
    """
    Lexer for wrapdown markup

    Example:
        "# Title" → Punctuation("# "), Generic.Heading("Title")
        "a _b_"   → Text("a "), Punctuation("_"), Generic.Emph("b"), Punctuation("_")
    """

    name = 'Wrapdown'
    aliases = ['wrapdown', 'wd']
    filenames = ['*.wd']

    def __init__(self, registry: Optional[TagRegistry] = None, **options) -> None:
        super().__init__(**options)
        self.tokenizer = Tokenizer(registry)

    def get_tokens_unprocessed(self, text: str) -> Iterator[Tuple[int, _TokenType, str]]:
        offset = 0
        for line, separator in lines_split(text):
            root = self.tokenizer.line_parse(line)
            for pos, ttype, value in self.token_highlight(root, line, Text):
                yield offset + pos, ttype, value
            if separator:
                yield offset + len(line), Text, separator
            offset += len(line) + len(separator)

    def token_highlight(
        self, token: Token, line: str, ttype: _TokenType
    ) -> Iterator[Tuple[int, _TokenType, str]]:
        """
        Yield (offset, type, text) for the source range of ``token``

        Gaps between children (such as whitespace skipped after a line
        marker) are filled so the yielded text covers the range exactly.
        """
        if token.is_leaf and token.tag is None:
            if token.end > token.start:
                yield token.start, ttype, line[token.start:token.end]
            return

        inner = ttype
        cursor = token.start
        end = token.end
        if token.tag is not None:
            inner = string_to_tokentype(token.tag.highlight)
            if token.content_start > token.start:
                yield token.start, Punctuation, line[token.start:token.content_start]
            cursor = token.content_start
            end = token.content_end

        for child in token.children:
            if child.start > cursor:
                yield cursor, inner, line[cursor:child.start]
            yield from self.token_highlight(child, line, inner)
            cursor = child.end

        if end > cursor:
            yield cursor, inner, line[cursor:end]

        if token.tag is not None and token.end > token.content_end:
            yield token.content_end, Punctuation, line[token.content_end:token.end]


def get_lexer(registry: Optional[TagRegistry] = None) -> WrapdownLexer:
    """
    Get a WrapdownLexer for ``registry``

    Returns:
        WrapdownLexer instance ready for use with Pygments
    """
    return WrapdownLexer(registry)
