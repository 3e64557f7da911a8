"""Syntax tree for synthizer scripts.

All nodes are frozen dataclasses, built once by the parser and shared
read-only by every evaluation afterwards (including across threads).
Source positions and the call-syntax flag are excluded from equality so
that structurally identical trees compare equal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Union

from synthizer.types.source_pos import SourcePos


@dataclass(frozen=True)
class NumberLiteral:
    value: float
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class Identifier:
    name: str
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class UnaryOp:
    op: str  # "-" or "!"
    operand: Expression
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: Expression
    right: Expression
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class Conditional:
    """`then if cond else otherwise`; only the selected branch is evaluated."""

    cond: Expression
    then: Expression
    otherwise: Expression
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class Argument:
    """A call argument; `name` is None for positional arguments."""

    name: Optional[str]
    value: Expression
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class Call:
    callee: str
    args: tuple[Argument, ...]
    pos: SourcePos = field(default=SourcePos(), compare=False)
    # f[...] rather than f(...); evaluation ignores it
    bracketed: bool = field(default=False, compare=False)


@dataclass(frozen=True)
class ArrayLiteral:
    elements: tuple[Expression, ...]
    pos: SourcePos = field(default=SourcePos(), compare=False)


Expression = Union[NumberLiteral, Identifier, UnaryOp, BinaryOp, Conditional, Call, ArrayLiteral]


@dataclass(frozen=True)
class Parameter:
    name: str
    default: Optional[Expression] = None
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class Binding:
    """Top-level constant: `name = value;`"""

    name: str
    value: Expression
    pos: SourcePos = field(default=SourcePos(), compare=False)


@dataclass(frozen=True)
class FunctionDef:
    """Top-level function; its value is the sum of its body statements."""

    name: str
    params: tuple[Parameter, ...]
    body: tuple[Expression, ...]
    pos: SourcePos = field(default=SourcePos(), compare=False)

    @property
    def param_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.params)


Declaration = Union[Binding, FunctionDef]


@dataclass(frozen=True)
class Program:
    declarations: tuple[Declaration, ...] = ()

    @property
    def functions(self) -> tuple[FunctionDef, ...]:
        return tuple(d for d in self.declarations if isinstance(d, FunctionDef))

    @property
    def bindings(self) -> tuple[Binding, ...]:
        return tuple(d for d in self.declarations if isinstance(d, Binding))
