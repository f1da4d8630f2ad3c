"""
Converter: the text-level entry point of wrapdown

Splits input into lines, tokenizes and renders each line independently, and
joins the results with the original line breaks.
"""

from typing import Iterator, Optional

from .registry import TagRegistry
from .tokenizer import Tokenizer, lines_split
from .log import LOG


class Converter:
    """
    Renders wrapdown text to the configured output markup

    Example:
        >>> Converter("# Title\\n_em_ and __strong__").render()
        '<h1>Title</h1>\\n<em>em</em> and <strong>strong</strong>'
    """

    def __init__(self, text: str, registry: Optional[TagRegistry] = None) -> None:
        """
        Args:
            text: Source text, possibly multi-line
            registry: Tag definitions; defaults to registry_makeDefault()
        """
        self.text = text
        self.tokenizer = Tokenizer(registry)

    def lines_render(self) -> Iterator[str]:
        """Yield each rendered line followed by its original line break"""
        for line, separator in lines_split(self.text):
            yield self.tokenizer.line_parse(line).render() + separator

    def render(self) -> str:
        """Render the whole text"""
        LOG(f"Rendering {len(self.text)} characters with {len(self.tokenizer.registry)} tags", level=2)
        return ''.join(self.lines_render())


def render(text: str, registry: Optional[TagRegistry] = None) -> str:
    """Render ``text`` with ``registry`` (default tags when omitted)"""
    return Converter(text, registry).render()
