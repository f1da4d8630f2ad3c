"""
Tokenizer for wrapdown inline markup

Turns one line of text into a tree of Tokens using the tag definitions of a
TagRegistry.

Each line is processed in two passes:
1. Annotation: locate backslash escapes in front of recognised markers
   (EscapeMap). The source line is never edited.
2. Scanning: walk the line once with an explicit stack of open spans
   (_SpanFrame), closing the innermost span or opening a nested one at each
   recognised marker.

Malformed markup never raises. Unterminated or ambiguous spans render as
the literal text they were written with.

Example:
    >>> tokenizer = Tokenizer()
    >>> tokenizer.line_parse("__a _b_ c__").render()
    '<strong>a <em>b</em> c</strong>'
"""

import re
from enum import Enum
from dataclasses import dataclass, field
from typing import FrozenSet, Iterator, List, Optional, Tuple

from ..models.tags import TagDefinition
from ..models.token import Token, SpanOutcome
from .registry import TagRegistry, registry_makeDefault
from .log import LOG


LINE_BREAK = re.compile(r'(\r\n|\n|\r)')
NON_SPACE = re.compile(r'\S*')
DIGIT = re.compile(r'\d')


def lines_split(text: str) -> List[Tuple[str, str]]:
    r"""
    Split text into (line, separator) pairs

    The separator is the exact line break that followed the line ("\n",
    "\r\n" or "\r"), or "" for the last line.

    Example:
        >>> lines_split("a\r\nb")
        [('a', '\r\n'), ('b', '')]
    """
    parts = LINE_BREAK.split(text)
    lines = parts[0::2]
    separators = parts[1::2] + ['']
    return list(zip(lines, separators))


@dataclass(frozen=True)
class EscapeMap:
    """
    Escape annotations for one line

    Attributes:
        escaped: Offsets of markers made literal by a preceding backslash
        dropped: Offsets of backslashes consumed by escaping
    """
    escaped: FrozenSet[int] = frozenset()
    dropped: FrozenSet[int] = frozenset()

    def text(self, line: str, start: int, end: int) -> str:
        """Source slice [start, end) with consumed backslashes removed"""
        if not self.dropped:
            return line[start:end]
        return ''.join(
            ch for pos, ch in enumerate(line[start:end], start) if pos not in self.dropped
        )


@dataclass
class _SpanFrame:
    """An open span on the scan stack"""
    tag: Optional[TagDefinition]
    start: int
    content_start: int
    pending: int
    children: List[Token] = field(default_factory=list)
    ambiguous: bool = False


class _Closing(Enum):
    ACCEPT = "accept"
    REJECT = "reject"
    AMBIGUOUS = "ambiguous"


class Tokenizer:
    """
    Marker-driven tokenizer

    The registry is frozen on construction and only read afterwards, so a
    Tokenizer holds no state between lines.
    """

    def __init__(self, registry: Optional[TagRegistry] = None) -> None:
        """
        Args:
            registry: Tag definitions to recognise. Defaults to the
                      "#" / "__" / "_" set from registry_makeDefault().
        """
        if registry is None:
            registry = registry_makeDefault()
        self.registry = registry.freeze()
        self.inline: List[TagDefinition] = registry.inline_list()
        self.related: FrozenSet[str] = registry.relatedMarkers_union()

    def lines_parse(self, text: str) -> Iterator[Token]:
        """Parse every line of ``text``, yielding one root Token per line"""
        for line, _ in lines_split(text):
            yield self.line_parse(line)

    def line_parse(self, line: str) -> Token:
        """
        Parse a single line (without its line break) into a Token tree

        Args:
            line: Line text

        Returns:
            Root token with outcome LINE. Its tag is the line-only tag the
            line starts with, if any.
        """
        escapes = self.escapes_annotate(line)

        line_tag = self.registry.lineTag_match(line)
        content_start = 0
        if line_tag is not None:
            content_start = len(line_tag.opening)
            while content_start < len(line) and line[content_start].isspace():
                content_start += 1
            LOG(f"Line tag '{line_tag.opening}' matched", level=3)

        root = _SpanFrame(tag=None, start=0, content_start=content_start, pending=content_start)
        stack = [root]

        pos = content_start
        while pos < len(line):
            pos = self.position_step(line, pos, stack, escapes)

        while len(stack) > 1:
            frame = stack.pop()
            LOG(f"Unterminated '{frame.tag.opening}' at {frame.start}", level=3)
            self.literal_flush(frame, line, len(line), escapes)
            token = self.span_finish(frame, line, len(line), len(line), SpanOutcome.UNTERMINATED)
            stack[-1].children.append(token)
            stack[-1].pending = len(line)

        self.literal_flush(root, line, len(line), escapes)
        return Token(
            start=0,
            end=len(line),
            content=''.join(child.render() for child in root.children),
            tag=line_tag,
            outcome=SpanOutcome.LINE,
            children=tuple(root.children),
            excluded=self.excluded_for(line_tag),
            content_start=content_start,
            content_end=len(line),
        )

    def escapes_annotate(self, line: str) -> EscapeMap:
        r"""
        Find backslash escapes that apply to markers

        A run of backslashes only matters when a recognised marker follows
        it directly. Each pair in the run collapses to one backslash; an odd
        leftover backslash escapes the marker and is dropped. Runs not
        followed by a marker are left alone.

        Example:
            For "\\_a_" the first backslash is dropped, the second is kept
            and the "_" at offset 2 still opens a span.
        """
        escaped = set()
        dropped = set()

        pos = 0
        while pos < len(line):
            if line[pos] != '\\':
                pos += 1
                continue

            run_start = pos
            while pos < len(line) and line[pos] == '\\':
                pos += 1

            if not self.marker_isRecognised(line, pos, at_line_start=(run_start == 0)):
                continue

            run = pos - run_start
            for offset in range(0, run - 1, 2):
                dropped.add(run_start + offset)
            if run % 2:
                dropped.add(pos - 1)
                escaped.add(pos)

        return EscapeMap(escaped=frozenset(escaped), dropped=frozenset(dropped))

    def marker_isRecognised(self, line: str, pos: int, at_line_start: bool = False) -> bool:
        """Check for an inline marker at ``pos``, or a line marker if the run began the line"""
        if pos >= len(line):
            return False
        if self.registry.marker_isAt(line, pos):
            return True
        if at_line_start:
            return any(line.startswith(tag.opening, pos) for tag in self.registry.line_list())
        return False

    def marker_lengthAt(self, line: str, pos: int) -> int:
        """Length of the longest inline marker starting at ``pos`` (at least 1)"""
        length = 1
        for tag in self.inline:
            for marker in (tag.opening, tag.closing):
                if line.startswith(marker, pos):
                    length = max(length, len(marker))
        return length

    def position_step(
        self, line: str, pos: int, stack: List[_SpanFrame], escapes: EscapeMap
    ) -> int:
        """
        Process the text at ``pos`` and return the next scan position

        Tries to close the innermost open span first, then to open a nested
        span. Anything else is literal text. The returned position is always
        greater than ``pos``.
        """
        frame = stack[-1]
        tag = frame.tag
        skip = 1

        if tag is not None and line.startswith(tag.closing, pos):
            if pos in escapes.escaped:
                return pos + self.marker_lengthAt(line, pos)

            verdict = self.closing_check(line, frame, pos)
            if verdict is _Closing.ACCEPT:
                end = pos + len(tag.closing)
                self.literal_flush(frame, line, pos, escapes)
                outcome = SpanOutcome.CLOSED_INVALID if frame.ambiguous else SpanOutcome.CLOSED
                LOG(f"Closed '{tag.opening}' span {frame.start}..{end} ({outcome.value})", level=3)
                token = self.span_finish(frame, line, end, pos, outcome)
                stack.pop()
                stack[-1].children.append(token)
                stack[-1].pending = end
                return end

            if verdict is _Closing.AMBIGUOUS:
                LOG(f"Ambiguous markers at {pos}, '{tag.opening}' span renders literally", level=3)
                frame.ambiguous = True
            skip = len(tag.closing)

        candidate = self.registry.inlineTag_match(line, pos)
        if candidate is None:
            return pos + skip

        opening_end = pos + len(candidate.opening)
        if pos in escapes.escaped:
            return max(pos + self.marker_lengthAt(line, pos), pos + skip)

        if self.opening_check(line, frame, candidate, pos):
            self.literal_flush(frame, line, pos, escapes)
            stack.append(_SpanFrame(
                tag=candidate, start=pos, content_start=opening_end, pending=opening_end
            ))
            return opening_end

        return max(opening_end, pos + skip)

    def closing_check(self, line: str, frame: _SpanFrame, pos: int) -> _Closing:
        """
        Decide whether the closing marker at ``pos`` closes ``frame``

        Rejected when the span would be empty, when the marker follows
        whitespace, or when an in-word boundary encloses whitespace or
        digits. With an in-word boundary, a digit anywhere in the
        surrounding word also rejects, so "a_b_1" stays literal. Reported as ambiguous when a different marker also starts
        here and is not itself followed by another marker.
        """
        tag = frame.tag
        assert tag is not None

        if pos == frame.content_start:
            return _Closing.REJECT
        if line[pos - 1].isspace():
            return _Closing.REJECT

        closing_end = pos + len(tag.closing)
        opening_in_word = self.boundary_isInWord(line, frame.start - 1, frame.content_start)
        closing_in_word = self.boundary_isInWord(line, pos - 1, closing_end)
        if opening_in_word or closing_in_word:
            content = line[frame.content_start:pos]
            if any(ch.isspace() or ch.isdigit() for ch in content):
                return _Closing.REJECT
            word_start, word_end = self.word_bounds(line, frame.start, closing_end)
            if (DIGIT.search(line, word_start, frame.start)
                    or DIGIT.search(line, closing_end, word_end)):
                return _Closing.REJECT

        for other in self.inline:
            if other is tag or tag.closing.startswith(other.opening):
                continue
            if not line.startswith(other.opening, pos):
                continue
            if not self.registry.marker_isAt(line, pos + len(other.opening)):
                return _Closing.AMBIGUOUS

        return _Closing.ACCEPT

    def opening_check(
        self, line: str, frame: _SpanFrame, candidate: TagDefinition, pos: int
    ) -> bool:
        """
        Decide whether ``candidate`` may open a span at ``pos``

        The candidate must have a strictly greater nesting level than the
        enclosing span, and must not be followed by whitespace.
        """
        parent = frame.tag
        if parent is not None:
            if candidate is parent or candidate.nesting_level <= parent.nesting_level:
                return False

        after = pos + len(candidate.opening)
        if after < len(line) and line[after].isspace():
            return False

        return True

    @staticmethod
    def boundary_isInWord(line: str, before: int, after: int) -> bool:
        """Both characters just outside a marker are non-space, non-backslash"""
        for pos in (before, after):
            if pos < 0 or pos >= len(line):
                return False
            if line[pos].isspace() or line[pos] == '\\':
                return False
        return True

    @staticmethod
    def word_bounds(line: str, start: int, end: int) -> Tuple[int, int]:
        """Widen [start, end) to the nearest whitespace or line edge on each side"""
        start -= NON_SPACE.match(line[:start][::-1]).end()
        end = NON_SPACE.match(line, end).end()
        return start, end

    def literal_flush(self, frame: _SpanFrame, line: str, upto: int, escapes: EscapeMap) -> None:
        """Append pending literal text up to ``upto`` as a leaf child of ``frame``"""
        if frame.pending < upto:
            frame.children.append(Token(
                start=frame.pending,
                end=upto,
                content=escapes.text(line, frame.pending, upto),
            ))
        frame.pending = upto

    def span_finish(
        self, frame: _SpanFrame, line: str, end: int, content_end: int, outcome: SpanOutcome
    ) -> Token:
        """
        Build the immutable token for a span that has ended

        CLOSED spans keep their tag. Literal outcomes gain leaf children for
        their marker text and render as the source reads.
        """
        children = list(frame.children)

        if outcome is SpanOutcome.CLOSED:
            tag = frame.tag
        else:
            tag = None
            children.insert(0, Token(
                start=frame.start,
                end=frame.content_start,
                content=line[frame.start:frame.content_start],
            ))
            if content_end < end:
                children.append(Token(
                    start=content_end,
                    end=end,
                    content=line[content_end:end],
                ))

        return Token(
            start=frame.start,
            end=end,
            content=''.join(child.render() for child in children),
            tag=tag,
            outcome=outcome,
            children=tuple(children),
            excluded=self.excluded_for(tag),
            content_start=frame.content_start,
            content_end=content_end,
        )

    def excluded_for(self, tag: Optional[TagDefinition]) -> FrozenSet[str]:
        """Related markers not claimed by ``tag``"""
        if tag is None:
            return frozenset()
        return self.related - tag.related
