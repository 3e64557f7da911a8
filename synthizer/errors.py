from __future__ import annotations

from typing import Optional, Sequence

from synthizer.types.call_frame import CallFrame
from synthizer.types.source_pos import SourcePos


def _rebuild(cls, args, state):
    err = cls.__new__(cls)
    Exception.__init__(err, *args)
    err.__dict__.update(state)
    return err


class SynthError(Exception):
    """ Base class for all synthizer errors"""

    def __init__(self, message: str, pos: Optional[SourcePos] = None):
        super().__init__(message)
        self.message = message
        self.pos = pos

    def __str__(self) -> str:
        if self.pos is not None:
            return f"{self.pos}: {self.message}"
        return self.message

    # Subclasses take different constructor arguments, so pickle the state
    # directly; errors must survive the trip back from worker processes.
    def __reduce__(self):
        return _rebuild, (type(self), self.args, dict(self.__dict__))


class SynthLexError(SynthError):
    """ Raised when the lexer meets a character it cannot tokenize"""

    def __init__(self, pos: SourcePos, char: str):
        super().__init__(f"unexpected character {char!r}", pos)
        self.char = char


class SynthParseError(SynthError):
    """ Raised when the token stream does not match the grammar"""

    def __init__(self, pos: SourcePos, expected: str, found: str):
        super().__init__(f"expected {expected}, found {found}", pos)
        self.expected = expected
        self.found = found


class SynthLoadError(SynthError):
    """ Raised when a parsed program cannot be turned into a runnable script"""


class SynthRuntimeError(SynthError):
    """ Raised when evaluation fails; carries the call trace at the failure"""

    def __init__(
        self,
        message: str,
        pos: Optional[SourcePos] = None,
        trace: Sequence[CallFrame] = (),
    ):
        super().__init__(message, pos)
        self.trace: tuple[CallFrame, ...] = tuple(trace)
        self.sample_index: Optional[int] = None

    def __str__(self) -> str:
        text = super().__str__()
        if self.sample_index is not None:
            text = f"{text} (while rendering sample {self.sample_index})"
        if self.trace:
            lines = [text, "call trace (most recent call last):"]
            lines.extend(f"  {frame}" for frame in self.trace)
            text = "\n".join(lines)
        return text


class SynthNameError(SynthRuntimeError):
    """ Raised when an identifier or function name is not defined"""


class SynthArityError(SynthRuntimeError):
    """ Raised when call arguments cannot be bound to the callee's parameters"""


class SynthTypeError(SynthRuntimeError):
    """ Raised when an operation is applied to the wrong kind of value"""


class SynthIndexError(SynthRuntimeError):
    """ Raised when a list index is out of range"""


class SynthRecursionError(SynthRuntimeError):
    """ Raised when the call depth limit is exceeded"""


class RenderCancelled(SynthError):
    """ Raised when a render is cancelled between samples"""
