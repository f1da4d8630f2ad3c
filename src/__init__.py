"""
wrapdown - configurable lightweight markup renderer

Renders headings, emphasis and strong emphasis written with user-configurable
markers into output markup, driven by a registry of tag definitions.
"""

__version__ = "1.0.0"

from .lib import (
    Converter,
    Tokenizer,
    TagRegistry,
    registry_makeDefault,
    registry_loadFromYAML,
    render,
    LOG,
    state_connectToLogger,
)
from .models import TagDefinition, Token, SpanOutcome

__all__ = [
    "Converter",
    "Tokenizer",
    "TagRegistry",
    "TagDefinition",
    "Token",
    "SpanOutcome",
    "registry_makeDefault",
    "registry_loadFromYAML",
    "render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
