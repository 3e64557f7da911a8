"""Runtime values for synthizer.

A Value is exactly one of:
  - float:     a number (IEEE754 double)
  - ListValue: an immutable ordered sequence of Values

Anything else reaching the evaluator is a bug. Arithmetic only accepts
floats; lists can be built, passed around and inspected with the list
builtins.
"""

from __future__ import annotations

from typing import Iterable, Iterator, Union


class ListValue:
    """Immutable array value produced by an array literal."""

    __slots__ = ("items",)

    def __init__(self, items: Iterable[Value] = ()):
        self.items: tuple[Value, ...] = tuple(items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[Value]:
        return iter(self.items)

    def __getitem__(self, index: int) -> Value:
        return self.items[index]

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ListValue) and self.items == other.items

    def __hash__(self) -> int:
        return hash(self.items)

    def __repr__(self) -> str:
        return format_value(self)


Value = Union[float, ListValue]


def is_number(value: Value) -> bool:
    return isinstance(value, float)


def kind_name(value: Value) -> str:
    return "list" if isinstance(value, ListValue) else "number"


def to_value(obj: object) -> Value:
    """Convert a host (Python/numpy) object into a script Value."""
    if isinstance(obj, ListValue):
        return obj
    if isinstance(obj, (list, tuple)):
        return ListValue(to_value(x) for x in obj)
    if isinstance(obj, (int, float)) or hasattr(obj, "__float__"):
        return float(obj)
    raise TypeError(f"cannot convert {type(obj).__name__} to a synthizer value")


def format_value(value: Value) -> str:
    """Compact script-style rendering: 440 rather than 440.0, lists as [a, b]."""
    if isinstance(value, ListValue):
        return "[" + ", ".join(format_value(v) for v in value.items) + "]"
    if value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(value)
