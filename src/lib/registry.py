"""
Tag registry for wrapdown

Maps marker strings to TagDefinitions and partitions them into line-only
tags (recognised as a line prefix) and inline tags (matched anywhere).

The registry follows a build-then-freeze lifecycle: definitions are
registered once at startup, then the registry is frozen and only read.
Tag sets can also be loaded from a YAML tags file:

    tags:
      - opening: "#"
        template: "<h1>{text}</h1>"
        nesting_level: 0
        line_only: true
      - opening: "_"
        template: "<em>{text}</em>"
        nesting_level: 2
"""

import yaml
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional, Union

from ..models.tags import TagDefinition
from .log import LOG


class RegistryError(Exception):
    """Base class for tag configuration errors"""
    pass


class InvalidTagError(RegistryError):
    """Raised when a tag definition is malformed"""
    pass


class DuplicateTagError(RegistryError):
    """Raised when a marker string or nesting level is already taken"""
    pass


class RegistryFrozenError(RegistryError):
    """Raised when registering into a frozen registry"""
    pass


class TagsFileError(RegistryError):
    """Raised when a YAML tags file cannot be loaded"""
    pass


class TagRegistry:
    """
    Registry of tag definitions

    Enforces one definition per marker string (opening or closing) and one
    definition per nesting level.
    """

    def __init__(self) -> None:
        self.tags: List[TagDefinition] = []
        self.by_marker: Dict[str, TagDefinition] = {}
        self.frozen: bool = False
        # inline tags keyed by the first character of their opening marker,
        # longest marker first
        self.inline_index: Dict[str, List[TagDefinition]] = {}

    def register(self, tag: TagDefinition) -> None:
        """
        Register a tag definition

        The registry is left unmodified when registration fails.

        Raises:
            RegistryFrozenError: If the registry has been frozen
            InvalidTagError: If a marker is empty or contains whitespace,
                             or the template lacks the text placeholder
            DuplicateTagError: If a marker or the nesting level is taken
        """
        from ..config import appsettings

        if self.frozen:
            raise RegistryFrozenError(
                f"Cannot register '{tag.opening}': registry is frozen"
            )

        for marker in tag.markers | tag.related:
            if not marker or any(ch.isspace() for ch in marker):
                raise InvalidTagError(f"Invalid marker {marker!r} in tag '{tag.opening}'")

        if appsettings.text_placeholder not in tag.template:
            raise InvalidTagError(
                f"Template for '{tag.opening}' lacks placeholder "
                f"'{appsettings.text_placeholder}': {tag.template!r}"
            )

        for marker in tag.markers:
            if marker in self.by_marker:
                raise DuplicateTagError(
                    f"Marker '{marker}' already registered by tag "
                    f"'{self.by_marker[marker].opening}'"
                )

        for existing in self.tags:
            if existing.nesting_level == tag.nesting_level:
                raise DuplicateTagError(
                    f"Nesting level {tag.nesting_level} already used by tag "
                    f"'{existing.opening}'"
                )

        self.tags.append(tag)
        for marker in tag.markers:
            self.by_marker[marker] = tag
        if not tag.line_only:
            bucket = self.inline_index.setdefault(tag.opening[0], [])
            bucket.append(tag)
            bucket.sort(key=lambda t: len(t.opening), reverse=True)
        LOG(f"Registered tag '{tag.opening}' (level {tag.nesting_level})", level=3)

    def freeze(self) -> 'TagRegistry':
        """Stop accepting registrations; returns self for chaining"""
        self.frozen = True
        return self

    def lookup(self, marker: str, line_only: bool) -> Optional[TagDefinition]:
        """Get the tag using ``marker`` if its line-only flag matches"""
        tag = self.by_marker.get(marker)
        if tag is None or tag.line_only != line_only:
            return None
        return tag

    def inline_list(self) -> List[TagDefinition]:
        """Inline (non line-only) tags, longest opening marker first"""
        inline = [tag for tag in self.tags if not tag.line_only]
        return sorted(inline, key=lambda tag: len(tag.opening), reverse=True)

    def line_list(self) -> List[TagDefinition]:
        """Line-only tags, longest opening marker first"""
        line = [tag for tag in self.tags if tag.line_only]
        return sorted(line, key=lambda tag: len(tag.opening), reverse=True)

    def relatedMarkers_union(self) -> FrozenSet[str]:
        """Union of every tag's related markers"""
        related: FrozenSet[str] = frozenset()
        for tag in self.tags:
            related |= tag.related
        return related

    def lineTag_match(self, line: str) -> Optional[TagDefinition]:
        """
        Find the line-only tag whose opening marker prefixes ``line``

        The longest matching marker wins, so "##" is never shadowed by "#".
        """
        for tag in self.line_list():
            if line.startswith(tag.opening):
                return tag
        return None

    def inlineTag_match(self, line: str, pos: int) -> Optional[TagDefinition]:
        """Find the inline tag with the longest opening marker at ``pos``"""
        if pos >= len(line):
            return None
        for tag in self.inline_index.get(line[pos], ()):
            if line.startswith(tag.opening, pos):
                return tag
        return None

    def marker_isAt(self, line: str, pos: int) -> bool:
        """Check whether any inline opening or closing marker starts at ``pos``"""
        for tag in self.tags:
            if tag.line_only:
                continue
            if line.startswith(tag.opening, pos) or line.startswith(tag.closing, pos):
                return True
        return False

    def __len__(self) -> int:
        return len(self.tags)

    def __repr__(self) -> str:
        markers = ', '.join(tag.opening for tag in self.tags)
        return f"TagRegistry([{markers}], frozen={self.frozen})"


def registry_makeDefault() -> TagRegistry:
    """
    Build the default tag set

    Returns:
        Registry with a "#" heading, "__" strong and "_" emphasis. Strong is
        the outer level, so emphasis may nest inside it but not vice versa.
    """
    registry = TagRegistry()
    registry.register(TagDefinition(
        opening='#',
        template='<h1>{text}</h1>',
        nesting_level=0,
        line_only=True,
        highlight='Generic.Heading',
    ))
    registry.register(TagDefinition(
        opening='__',
        template='<strong>{text}</strong>',
        nesting_level=1,
        highlight='Generic.Strong',
    ))
    registry.register(TagDefinition(
        opening='_',
        template='<em>{text}</em>',
        nesting_level=2,
        highlight='Generic.Emph',
    ))
    return registry


def tag_fromMapping(entry: Dict[str, Any]) -> TagDefinition:
    """
    Build a TagDefinition from one entry of a tags file

    Raises:
        TagsFileError: If required keys are missing or have the wrong type
    """
    if not isinstance(entry, dict):
        raise TagsFileError(f"Tag entry must be a mapping, got {type(entry).__name__}")

    missing = [key for key in ('opening', 'template', 'nesting_level') if key not in entry]
    if missing:
        raise TagsFileError(f"Tag entry {entry!r} missing keys: {', '.join(missing)}")

    related = entry.get('related') or []
    if isinstance(related, str):
        related = [related]

    try:
        kwargs: Dict[str, Any] = {
            'opening': str(entry['opening']),
            'template': str(entry['template']),
            'nesting_level': int(entry['nesting_level']),
            'closing': str(entry['closing']) if entry.get('closing') is not None else None,
            'line_only': bool(entry.get('line_only', False)),
            'related': frozenset(str(marker) for marker in related),
        }
    except (TypeError, ValueError) as e:
        raise TagsFileError(f"Malformed tag entry {entry!r}: {e}")

    if entry.get('highlight') is not None:
        kwargs['highlight'] = str(entry['highlight'])

    return TagDefinition(**kwargs)


def registry_loadFromYAML(path: Union[str, Path]) -> TagRegistry:
    """
    Load a tag registry from a YAML tags file

    Args:
        path: Path to a YAML file with a top-level ``tags`` list

    Returns:
        Registry holding the file's tags, in file order

    Raises:
        TagsFileError: If the file cannot be read or parsed
        RegistryError: If a tag is rejected by the registry
    """
    tags_path = Path(path)

    try:
        with open(tags_path, 'r', encoding='utf-8') as f:
            config: Any = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise TagsFileError(f"Failed to parse {tags_path.name}: {e}")
    except OSError as e:
        raise TagsFileError(f"Failed to load {tags_path}: {e}")

    if not isinstance(config, dict) or not isinstance(config.get('tags'), list):
        raise TagsFileError(f"{tags_path.name} must contain a top-level 'tags' list")

    registry = TagRegistry()
    for entry in config['tags']:
        registry.register(tag_fromMapping(entry))

    LOG(f"Loaded {len(registry)} tags from {tags_path}", level=2)
    return registry
