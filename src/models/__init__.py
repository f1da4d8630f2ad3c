"""
Models package for wrapdown

Contains the tag definition, token tree and pipeline state data structures.
"""

from .state import ProgramState, pipeline
from .tags import TagDefinition, markers_encode
from .token import Token, SpanOutcome

__all__ = [
    "ProgramState",
    "pipeline",
    "TagDefinition",
    "markers_encode",
    "Token",
    "SpanOutcome",
]
