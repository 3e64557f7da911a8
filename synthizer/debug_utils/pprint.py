from __future__ import annotations

from typing import Optional, Sequence

from synthizer.errors import SynthError, SynthRuntimeError
from synthizer.reader.ast import (
    ArrayLiteral,
    BinaryOp,
    Binding,
    Call,
    Conditional,
    Expression,
    FunctionDef,
    Identifier,
    NumberLiteral,
    Program,
    UnaryOp,
)
from synthizer.reader.parser import BINARY_OPERATORS
from synthizer.types.call_frame import CallFrame
from synthizer.types.value import format_value

# ----------------- ANSI colors -----------------
RESET = "\033[0m"
COLOR_ERROR = "\033[91m"
COLOR_CARET = "\033[93m"

# ----------------- Binding strength -----------------
# Mirrors the parser: conditional < binary operators < unary < power < atoms.
_CONDITIONAL = 0
_UNARY = 7
_POWER = 8
_ATOM = 9


def _strength(expr: Expression) -> int:
    if isinstance(expr, Conditional):
        return _CONDITIONAL
    if isinstance(expr, BinaryOp):
        return _POWER if expr.op == "^" else BINARY_OPERATORS[expr.op]
    if isinstance(expr, UnaryOp):
        return _UNARY
    return _ATOM


def _wrap(expr: Expression, minimum: int) -> str:
    text = unparse(expr)
    return f"({text})" if _strength(expr) < minimum else text


# ----------------- Unparser -----------------
def unparse(expr: Expression) -> str:
    """Script source for an expression, parenthesized only where needed."""
    if isinstance(expr, NumberLiteral):
        return format_value(expr.value)
    if isinstance(expr, Identifier):
        return expr.name
    if isinstance(expr, UnaryOp):
        return f"{expr.op}{_wrap(expr.operand, _UNARY)}"
    if isinstance(expr, BinaryOp):
        if expr.op == "^":
            return f"{_wrap(expr.left, _ATOM)} ^ {_wrap(expr.right, _UNARY)}"
        strength = BINARY_OPERATORS[expr.op]
        # left-associative: an equal-strength right operand needs parentheses
        return f"{_wrap(expr.left, strength)} {expr.op} {_wrap(expr.right, strength + 1)}"
    if isinstance(expr, Conditional):
        then = _wrap(expr.then, _CONDITIONAL + 1)
        cond = _wrap(expr.cond, _CONDITIONAL + 1)
        return f"{then} if {cond} else {unparse(expr.otherwise)}"
    if isinstance(expr, Call):
        args = ", ".join(
            unparse(a.value) if a.name is None else f"{a.name} = {unparse(a.value)}" for a in expr.args
        )
        opener, closer = ("[", "]") if expr.bracketed else ("(", ")")
        return f"{expr.callee}{opener}{args}{closer}"
    if isinstance(expr, ArrayLiteral):
        return "[" + ", ".join(unparse(e) for e in expr.elements) + "]"
    raise TypeError(f"not an expression: {expr!r}")


def unparse_program(program: Program, indent: str = "    ") -> str:
    lines: list[str] = []
    for decl in program.declarations:
        if isinstance(decl, Binding):
            lines.append(f"{decl.name} = {unparse(decl.value)};")
        elif isinstance(decl, FunctionDef):
            params = ", ".join(
                p.name if p.default is None else f"{p.name} = {unparse(p.default)}" for p in decl.params
            )
            head = f"{decl.name} {params}" if params else decl.name
            lines.append(f"{head} {{")
            lines.extend(f"{indent}{unparse(s)};" for s in decl.body)
            lines.append("}")
    return "\n".join(lines) + ("\n" if lines else "")


# ----------------- Diagnostics -----------------
def format_trace(trace: Sequence[CallFrame]) -> str:
    """One line per frame, outermost call first."""
    return "\n".join(f"{depth:>3}  {frame}" for depth, frame in enumerate(trace))


def source_excerpt(source: str, line: int, column: int, color: bool = False) -> str:
    lines = source.splitlines()
    if not 1 <= line <= len(lines):
        return ""
    text = lines[line - 1].expandtabs(1)
    caret = " " * (column - 1) + "^"
    if color:
        caret = f"{COLOR_CARET}{caret}{RESET}"
    gutter = f"{line:>4} | "
    return f"{gutter}{text}\n{' ' * len(gutter)}{caret}"


def format_error(err: SynthError, source: Optional[str] = None, color: bool = False) -> str:
    """Human-readable report: message, source line with a caret, call trace."""
    where = f"{err.pos}: " if err.pos is not None else ""
    kind = type(err).__name__
    head = f"{kind}: {where}{err.message}"
    if color:
        head = f"{COLOR_ERROR}{head}{RESET}"
    parts = [head]
    if isinstance(err, SynthRuntimeError) and err.sample_index is not None:
        parts.append(f"while rendering sample {err.sample_index}")
    if source is not None and err.pos is not None:
        excerpt = source_excerpt(source, err.pos.line, err.pos.column, color)
        if excerpt:
            parts.append(excerpt)
    if isinstance(err, SynthRuntimeError) and err.trace:
        parts.append("call trace (most recent call last):")
        parts.append(format_trace(err.trace))
    return "\n".join(parts)
