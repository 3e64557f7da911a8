"""Operator semantics for synthizer expressions.

Numbers are IEEE754 doubles all the way through: division or modulo by
zero, overflow and domain errors produce inf/NaN instead of raising.
Python floats raise in those cases (ZeroDivisionError, ValueError,
OverflowError), so the slow path defers to numpy float64 arithmetic with
floating-point warnings silenced.

Comparisons and logic return 1.0 for true and 0.0 for false; any non-zero
number (NaN included) is truthy. Lists support == and != only.
`a ~= b` holds when |a - b| < 0.0001; `a ^^ b` is logical exclusive or.
"""

from __future__ import annotations

import math
from typing import Callable

import numpy as np

from synthizer.errors import SynthTypeError
from synthizer.types.value import Value, kind_name

TRUE = 1.0
FALSE = 0.0

# absolute tolerance of ~=
APPROX_TOLERANCE = 0.0001


def _numbers(op: str, a: Value, b: Value) -> None:
    if type(a) is not float or type(b) is not float:
        raise SynthTypeError(f"unsupported operands for '{op}': {kind_name(a)} and {kind_name(b)}")


def truthy(value: Value) -> bool:
    if type(value) is float:
        return value != 0.0
    raise SynthTypeError("a list cannot be used as a condition")


# -------------------------------
# Arithmetic
# -------------------------------
def add(a: Value, b: Value) -> float:
    _numbers("+", a, b)
    return a + b


def sub(a: Value, b: Value) -> float:
    _numbers("-", a, b)
    return a - b


def mul(a: Value, b: Value) -> float:
    _numbers("*", a, b)
    return a * b


def div(a: Value, b: Value) -> float:
    _numbers("/", a, b)
    if b != 0.0:
        return a / b
    with np.errstate(all="ignore"):
        return float(np.float64(a) / np.float64(b))


def remainder(a: Value, b: Value) -> float:
    """Floating-point remainder with the sign of the dividend (C fmod)."""
    _numbers("%", a, b)
    if b != 0.0 and not math.isinf(a):
        return math.fmod(a, b)
    with np.errstate(all="ignore"):
        return float(np.fmod(np.float64(a), np.float64(b)))


def power(a: Value, b: Value) -> float:
    _numbers("^", a, b)
    try:
        return math.pow(a, b)
    except (ValueError, OverflowError):
        with np.errstate(all="ignore"):
            return float(np.power(np.float64(a), np.float64(b)))


def negate(a: Value) -> float:
    if type(a) is not float:
        raise SynthTypeError(f"unsupported operand for unary '-': {kind_name(a)}")
    return -a


def logical_not(a: Value) -> float:
    return FALSE if truthy(a) else TRUE


# -------------------------------
# Comparison
# -------------------------------
def lt(a: Value, b: Value) -> float:
    _numbers("<", a, b)
    return TRUE if a < b else FALSE


def gt(a: Value, b: Value) -> float:
    _numbers(">", a, b)
    return TRUE if a > b else FALSE


def lte(a: Value, b: Value) -> float:
    _numbers("<=", a, b)
    return TRUE if a <= b else FALSE


def gte(a: Value, b: Value) -> float:
    _numbers(">=", a, b)
    return TRUE if a >= b else FALSE


def equals(a: Value, b: Value) -> float:
    # structural for lists; a list never equals a number
    return TRUE if a == b else FALSE


def not_equals(a: Value, b: Value) -> float:
    return FALSE if equals(a, b) == TRUE else TRUE


def approx_equals(a: Value, b: Value) -> float:
    _numbers("~=", a, b)
    return TRUE if abs(a - b) < APPROX_TOLERANCE else FALSE


def logical_xor(a: Value, b: Value) -> float:
    return TRUE if truthy(a) != truthy(b) else FALSE


# && and || short-circuit, so the evaluator handles them itself
BINARY_OPERATORS: dict[str, Callable[[Value, Value], float]] = {
    "+": add,
    "-": sub,
    "*": mul,
    "/": div,
    "%": remainder,
    "^": power,
    "<": lt,
    ">": gt,
    "<=": lte,
    ">=": gte,
    "==": equals,
    "!=": not_equals,
    "~=": approx_equals,
    "^^": logical_xor,
}

UNARY_OPERATORS: dict[str, Callable[[Value], float]] = {
    "-": negate,
    "!": logical_not,
}
