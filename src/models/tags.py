"""
Tag definition model

A TagDefinition is the static configuration of one markup construct: the
marker text that opens and closes it, the output template its content is
substituted into, and the rules that govern where it may appear.
"""

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional


@dataclass(frozen=True)
class TagDefinition:
    """
    Configuration for a single markup tag

    Attributes:
        opening: Marker text that opens the span (e.g., "_", "__", "#")
        template: Output template with one text placeholder
                  (e.g., "<em>{text}</em>")
        nesting_level: Precedence integer. A tag may open inside another
                       open tag only if its level is strictly greater.
        closing: Marker text that closes the span. Defaults to ``opening``.
        line_only: Recognised only as a prefix of an entire line (headings)
        related: Markers claimed by this tag. Literal occurrences of them in
                 the rendered content are encoded rather than emitted raw.
        highlight: Pygments token type name for syntax highlighting.
                   Defaults to Generic.Heading for line-only tags and
                   Generic otherwise.

    Example:
        >>> em = TagDefinition("_", "<em>{text}</em>", nesting_level=2)
        >>> em.render("word")
        '<em>word</em>'
    """
    opening: str
    template: str
    nesting_level: int
    closing: Optional[str] = None
    line_only: bool = False
    related: FrozenSet[str] = field(default_factory=frozenset)
    highlight: Optional[str] = None

    def __post_init__(self) -> None:
        if self.closing is None:
            object.__setattr__(self, "closing", self.opening)
        object.__setattr__(self, "related", frozenset(self.related))
        if self.highlight is None:
            object.__setattr__(
                self, "highlight", "Generic.Heading" if self.line_only else "Generic"
            )

    @property
    def markers(self) -> FrozenSet[str]:
        """Opening and closing marker strings of this tag"""
        return frozenset({self.opening, self.closing})

    @property
    def symmetric(self) -> bool:
        return self.opening == self.closing

    def render(self, text: str, excluded: Iterable[str] = frozenset()) -> str:
        """
        Substitute rendered content into the output template

        Claimed (related) markers found literally in ``text`` are encoded
        first. Occurrences that belong to an excluded marker are left
        untouched.

        Args:
            text: Already-rendered content of the span
            excluded: Markers claimed by other tags

        Returns:
            The template with its placeholder replaced by ``text``
        """
        from ..config import appsettings

        if self.related:
            text = markers_encode(
                text, self.related, excluded, appsettings.marker_escape_format
            )
        return self.template.replace(appsettings.text_placeholder, text)


def markers_encode(
    text: str, claimed: Iterable[str], excluded: Iterable[str], escape_format: str
) -> str:
    """
    Encode literal occurrences of claimed markers, character by character

    Scans left to right. At each position an excluded marker (longest first)
    is copied verbatim; otherwise a claimed marker (longest first) is
    replaced by ``escape_format`` applied to each of its characters.

    Example:
        >>> markers_encode("a_b __c", {"_"}, {"__"}, "&#{code};")
        'a&#95;b __c'
    """
    claimed_sorted = sorted({m for m in claimed if m}, key=len, reverse=True)
    excluded_sorted = sorted({m for m in excluded if m} - set(claimed), key=len, reverse=True)

    result = []
    pos = 0
    while pos < len(text):
        hit = next((m for m in excluded_sorted if text.startswith(m, pos)), None)
        if hit:
            result.append(hit)
            pos += len(hit)
            continue

        hit = next((m for m in claimed_sorted if text.startswith(m, pos)), None)
        if hit:
            result.extend(escape_format.format(code=ord(ch)) for ch in hit)
            pos += len(hit)
            continue

        result.append(text[pos])
        pos += 1

    return ''.join(result)
