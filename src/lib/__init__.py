"""
wrapdown - configurable lightweight markup renderer

Converts emphasis, strong and heading markup into output markup (HTML by
default) using a registry of tag definitions instead of a fixed grammar.
"""

__version__ = "1.0.0"

from .registry import (
    TagRegistry,
    RegistryError,
    InvalidTagError,
    DuplicateTagError,
    RegistryFrozenError,
    TagsFileError,
    registry_makeDefault,
    registry_loadFromYAML,
)
from .tokenizer import Tokenizer, lines_split
from .converter import Converter, render
from .log import LOG, state_connectToLogger

__all__ = [
    "TagRegistry",
    "RegistryError",
    "InvalidTagError",
    "DuplicateTagError",
    "RegistryFrozenError",
    "TagsFileError",
    "registry_makeDefault",
    "registry_loadFromYAML",
    "Tokenizer",
    "lines_split",
    "Converter",
    "render",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
