# synthizer: a small functional language for additive/procedural audio
# synthesis. A script is a set of constants and functions of numeric
# parameters plus an entry point `main(time)` returning the amplitude at
# `time`.
#
# Pipeline: reader (lexer, parser) -> program (load, frozen globals)
#           -> render (sample loop) -> evaluation (tree-walking evaluator).
#
# Runtime values are a closed variant, see synthizer.types.value:
# - float:     numbers (IEEE754 doubles)
# - ListValue: immutable arrays built from array literals

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

from synthizer.errors import (  # noqa: E402
    SynthError,
    SynthLexError,
    SynthParseError,
    SynthLoadError,
    SynthRuntimeError,
    SynthNameError,
    SynthArityError,
    SynthTypeError,
    SynthIndexError,
    SynthRecursionError,
    RenderCancelled,
)
from synthizer.reader.parser import parse_program  # noqa: E402
from synthizer.program import load, Script  # noqa: E402
from synthizer.render.renderer import render, stream  # noqa: E402
from synthizer.interpreter import Interpreter  # noqa: E402

__all__ = [
    "SynthError",
    "SynthLexError",
    "SynthParseError",
    "SynthLoadError",
    "SynthRuntimeError",
    "SynthNameError",
    "SynthArityError",
    "SynthTypeError",
    "SynthIndexError",
    "SynthRecursionError",
    "RenderCancelled",
    "parse_program",
    "load",
    "Script",
    "render",
    "stream",
    "Interpreter",
]
