"""
Logging for wrapdown, built on Loguru.

Messages are gated by the verbosity of the ProgramState connected to the
current context, so library code can log without being handed the state.
Outside a connected context (e.g. when wrapdown is used as a library) LOG()
is silent.

Usage:
    from wrapdown.lib.log import LOG, state_connectToLogger

    state_connectToLogger(state)          # once, at the start of a pipeline
    LOG("Rendering 12 lines", level=2)    # shown at -v and above
    LOG("Closed '_' span 3..9", level=3)  # tokenizer traces, -vv and above
"""

from loguru import logger
from typing import Any, Optional
from contextvars import ContextVar
import sys

_program_state: ContextVar[Optional[Any]] = ContextVar('wrapdown_state', default=None)

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<cyan>{module: <10}</cyan>:"
    "<cyan>{function: <18}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make ``state.verbosity`` govern LOG() calls in the current context

    Args:
        state: Object with an integer ``verbosity`` attribute, usually a
               ProgramState
    """
    _program_state.set(state)


def verbosity_get() -> int:
    """Verbosity of the connected state, 0 when none is connected"""
    state = _program_state.get()
    return getattr(state, 'verbosity', 0) if state is not None else 0


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log ``message`` if the connected verbosity is at least ``level``

    Args:
        message: Text to log
        level: 1 = normal, 2 = verbose, 3 = tokenizer trace
        **kwargs: Passed through to loguru
    """
    if verbosity_get() >= level:
        logger.opt(depth=1).debug(message, **kwargs)
