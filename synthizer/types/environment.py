"""Runtime environment for synthizer.

Scoping has exactly two levels:

- GlobalEnvironment: constants and callables (user functions and builtins)
  for the whole script. Built once by the loader and read-only afterwards,
  so it can be shared by every evaluator, thread and sample.
- Frame: the parameter bindings of a single call. Its parent is always the
  global environment; a function body never sees another function's
  parameters.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Optional, Union

from synthizer.errors import SynthNameError
from synthizer.reader.ast import FunctionDef
from synthizer.types.function_def import Builtin
from synthizer.types.source_pos import SourcePos
from synthizer.types.value import Value

Invocable = Union[FunctionDef, Builtin]


class GlobalEnvironment:
    """Read-only mapping of names to constant values and callables."""

    __slots__ = ("constants", "functions")

    def __init__(
        self,
        constants: Mapping[str, Value] | None = None,
        functions: Mapping[str, Invocable] | None = None,
    ):
        self.constants: Mapping[str, Value] = MappingProxyType(dict(constants or {}))
        self.functions: Mapping[str, Invocable] = MappingProxyType(dict(functions or {}))

    @classmethod
    def _over(cls, constants: dict[str, Value], functions: dict[str, Invocable]) -> GlobalEnvironment:
        """View over dicts owned by the caller; only the loader uses this while it fills constants."""
        env = cls.__new__(cls)
        env.constants = MappingProxyType(constants)
        env.functions = MappingProxyType(functions)
        return env

    def lookup(self, name: str, pos: Optional[SourcePos] = None) -> Value:
        """Look up a constant; raises SynthNameError if not found."""
        try:
            return self.constants[name]
        except KeyError:
            pass
        if name in self.functions:
            raise SynthNameError(f"'{name}' is a function, not a value; call it as {name}(...)", pos)
        raise SynthNameError(f"undefined identifier '{name}'", pos)

    def function(self, name: str, pos: Optional[SourcePos] = None) -> Invocable:
        """Look up a callable by name; raises SynthNameError if not found."""
        try:
            return self.functions[name]
        except KeyError:
            pass
        if name in self.constants:
            raise SynthNameError(f"'{name}' is a constant, not a function", pos)
        raise SynthNameError(f"undefined function '{name}'", pos)

    def __contains__(self, name: str) -> bool:
        return name in self.constants or name in self.functions

    # mappingproxy cannot be pickled; process-pool rendering ships the globals
    def __reduce__(self):
        return GlobalEnvironment, (dict(self.constants), dict(self.functions))

    def __repr__(self) -> str:
        return f"<GlobalEnvironment constants={len(self.constants)} functions={len(self.functions)}>"


class Frame:
    """Parameter bindings for one call, backed by the global environment."""

    __slots__ = ("values", "globals")

    def __init__(self, values: Mapping[str, Value], globals_: GlobalEnvironment):
        self.values = values
        self.globals = globals_

    def lookup(self, name: str, pos: Optional[SourcePos] = None) -> Value:
        value = self.values.get(name)
        if value is not None:
            return value
        return self.globals.lookup(name, pos)

    def __repr__(self) -> str:
        names = ", ".join(self.values)
        return f"<Frame {{{names}}} -> globals>"
