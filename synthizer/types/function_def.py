"""Builtin function representation for synthizer.

User functions are plain reader.ast.FunctionDef nodes. Builtins mirror
their shape (a name and a tuple of Parameter) so that argument binding,
named arguments and the bracketed call form work the same for both.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

from synthizer.errors import SynthTypeError
from synthizer.reader.ast import Parameter
from synthizer.types.value import ListValue, Value

# name -> Builtin, filled by synthizer.builtin.math_builtin at import time
BUILTIN_REGISTRY: dict[str, "Builtin"] = {}


class Builtin:
    """A function implemented in Python and callable from scripts."""

    __slots__ = ("name", "params", "fn", "accepts_lists")

    def __init__(
        self,
        name: str,
        params: tuple[Parameter, ...],
        fn: Callable[..., Value],
        accepts_lists: bool = False,
    ):
        self.name = name
        self.params = params
        self.fn = fn
        self.accepts_lists = accepts_lists

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)

    def invoke(self, bindings: Mapping[str, Value]) -> Value:
        """Call the implementation with the bound arguments in parameter order."""
        if not self.accepts_lists:
            for name, value in bindings.items():
                if isinstance(value, ListValue):
                    raise SynthTypeError(f"{self.name}() expects a number for '{name}', got a list")
        return self.fn(*bindings.values())

    # Implementations are often closures; ship builtins by name instead.
    def __reduce__(self):
        return lookup_builtin, (self.name,)

    def __repr__(self) -> str:
        return f"<builtin {self.name}({', '.join(self.param_names)})>"


def lookup_builtin(name: str) -> Optional[Builtin]:
    # make sure the registry is populated in fresh worker processes
    import synthizer.builtin.math_builtin  # noqa: F401

    return BUILTIN_REGISTRY.get(name)
