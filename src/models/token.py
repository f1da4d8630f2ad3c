"""
Token tree model

A line parses into a tree of Tokens. Leaves hold literal text; wrapped
tokens hold the already-rendered concatenation of their children together
with the TagDefinition that renders them.
"""

from enum import Enum
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, Optional, Tuple

from .tags import TagDefinition


class SpanOutcome(Enum):
    """
    How a token came to be

    CLOSED, CLOSED_INVALID and UNTERMINATED are the three ways an opened
    span can end. Only CLOSED spans are rendered through their tag.
    """
    LITERAL = "literal"                 # plain text leaf
    LINE = "line"                       # root token of a line
    CLOSED = "closed"                   # matched span, rendered via its tag
    CLOSED_INVALID = "closed-invalid"   # matched but ambiguous, rendered literally
    UNTERMINATED = "unterminated"       # never closed, rendered literally


@dataclass(frozen=True)
class Token:
    """
    Immutable node of a parsed line

    Attributes:
        start: Source offset where the token begins (markers included)
        end: Source offset one past the token's last character
        content: Literal text for leaves; rendered children otherwise
        tag: TagDefinition used to render the token, None for literal text
        outcome: How the token was produced (see SpanOutcome)
        children: Child tokens in source order
        excluded: Related markers not claimed by ``tag``
        content_start: Source offset where the content begins (after markers)
        content_end: Source offset where the content ends (before markers)

    Example:
        For "_em_" parsed with the default tags:
        Token(start=0, end=4, content="em", tag=<_>, outcome=CLOSED,
              content_start=1, content_end=3,
              children=(Token(start=1, end=3, content="em"),))
    """
    start: int
    end: int
    content: str
    tag: Optional[TagDefinition] = None
    outcome: SpanOutcome = SpanOutcome.LITERAL
    children: Tuple['Token', ...] = ()
    excluded: FrozenSet[str] = field(default_factory=frozenset)
    content_start: Optional[int] = None
    content_end: Optional[int] = None

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(f"Token end {self.end} precedes start {self.start}")
        if self.content_start is None:
            object.__setattr__(self, "content_start", self.start)
        if self.content_end is None:
            object.__setattr__(self, "content_end", self.end)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def render(self) -> str:
        """
        Render this token to output text

        Leaves and literal spans return their content unchanged. Wrapped
        tokens substitute their content into the tag's template.
        """
        if self.tag is None:
            return self.content
        return self.tag.render(self.content, self.excluded)

    def walk(self) -> Iterator['Token']:
        """Iterate over this token and all descendants in pre-order"""
        stack = [self]
        while stack:
            token = stack.pop()
            yield token
            stack.extend(reversed(token.children))
