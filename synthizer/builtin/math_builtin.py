"""Built-in functions and constants for synthizer scripts.

Math builtins follow IEEE754 like the operators do: domain errors give NaN,
overflow gives inf, nothing raises. The `math` module is the fast path; when
it refuses an argument (ValueError/OverflowError) we fall back to the numpy
ufunc with floating-point warnings silenced.

List helpers (len, at, sum) are the only builtins that accept lists.
"""
from __future__ import annotations

import math
from typing import Callable, MutableMapping

import numpy as np

from synthizer.errors import SynthIndexError, SynthTypeError
from synthizer.evaluation.operators import power, remainder
from synthizer.reader.ast import NumberLiteral, Parameter
from synthizer.types.function_def import BUILTIN_REGISTRY, Builtin
from synthizer.types.value import ListValue, Value, kind_name

CONSTANTS: dict[str, float] = {
    "pi": math.pi,
    "tau": math.tau,
    "e": math.e,
}


def _ieee(math_fn: Callable[[float], float], ufunc: np.ufunc) -> Callable[[float], float]:
    def fn(x: float) -> float:
        try:
            return math_fn(x)
        except (ValueError, OverflowError):
            with np.errstate(all="ignore"):
                return float(ufunc(np.float64(x)))

    return fn


def _rounding(ufunc: np.ufunc) -> Callable[[float], float]:
    # numpy keeps the result a float for inf/NaN where math.floor would raise
    def fn(x: float) -> float:
        return float(ufunc(np.float64(x)))

    return fn


def fract(x: float) -> float:
    return x - math.floor(x) if math.isfinite(x) else math.nan


def sign(x: float) -> float:
    if x > 0.0:
        return 1.0
    if x < 0.0:
        return -1.0
    return x  # 0.0, -0.0 and NaN map to themselves


def minimum(a: float, b: float) -> float:
    # NaN in either argument gives NaN, regardless of order
    return float(np.minimum(a, b))


def maximum(a: float, b: float) -> float:
    return float(np.maximum(a, b))


def clamp(x: float, lo: float, hi: float) -> float:
    return maximum(lo, minimum(x, hi))


def lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


# -------------------------------
# List helpers
# -------------------------------
def _expect_list(fn_name: str, value: Value) -> ListValue:
    if not isinstance(value, ListValue):
        raise SynthTypeError(f"{fn_name}() expects a list, got a {kind_name(value)}")
    return value


def list_len(items: Value) -> float:
    return float(len(_expect_list("len", items)))


def list_at(items: Value, index: Value) -> Value:
    """Element at a truncated index; negative indices count from the end."""
    lst = _expect_list("at", items)
    if isinstance(index, ListValue):
        raise SynthTypeError("at() expects a number for 'index', got a list")
    if not math.isfinite(index):
        raise SynthIndexError(f"list index {index} is not a finite number")
    i = int(index)
    n = len(lst)
    if i < -n or i >= n:
        raise SynthIndexError(f"list index {i} out of range for a list of length {n}")
    return lst[i]


def list_sum(items: Value) -> float:
    total = 0.0
    for item in _expect_list("sum", items):
        if isinstance(item, ListValue):
            raise SynthTypeError("sum() expects a list of numbers, got a nested list")
        total += item
    return total


def _params(*names: str, **defaults: float) -> tuple[Parameter, ...]:
    return tuple(
        Parameter(n, NumberLiteral(defaults[n]) if n in defaults else None)
        for n in names
    )


_X = _params("x")

BUILTINS: tuple[Builtin, ...] = (
    Builtin("sin", _X, _ieee(math.sin, np.sin)),
    Builtin("cos", _X, _ieee(math.cos, np.cos)),
    Builtin("tan", _X, _ieee(math.tan, np.tan)),
    Builtin("asin", _X, _ieee(math.asin, np.arcsin)),
    Builtin("acos", _X, _ieee(math.acos, np.arccos)),
    Builtin("atan", _X, math.atan),
    Builtin("sinh", _X, _ieee(math.sinh, np.sinh)),
    Builtin("cosh", _X, _ieee(math.cosh, np.cosh)),
    Builtin("tanh", _X, math.tanh),
    Builtin("exp", _X, _ieee(math.exp, np.exp)),
    Builtin("ln", _X, _ieee(math.log, np.log)),
    Builtin("log10", _X, _ieee(math.log10, np.log10)),
    Builtin("log2", _X, _ieee(math.log2, np.log2)),
    Builtin("sqrt", _X, _ieee(math.sqrt, np.sqrt)),
    Builtin("abs", _X, math.fabs),
    Builtin("floor", _X, _rounding(np.floor)),
    Builtin("ceil", _X, _rounding(np.ceil)),
    Builtin("round", _X, _rounding(np.rint)),  # half to even
    Builtin("trunc", _X, _rounding(np.trunc)),
    Builtin("fract", _X, fract),
    Builtin("sign", _X, sign),
    Builtin("atan2", _params("y", "x"), math.atan2),
    Builtin("pow", _params("base", "exponent"), power),
    Builtin("min", _params("a", "b"), minimum),
    Builtin("max", _params("a", "b"), maximum),
    Builtin("mod", _params("a", "b"), remainder),
    Builtin("hypot", _params("x", "y"), math.hypot),
    Builtin("clamp", _params("x", "lo", "hi", lo=-1.0, hi=1.0), clamp),
    Builtin("lerp", _params("a", "b", "t"), lerp),
    Builtin("len", _params("list"), list_len, accepts_lists=True),
    Builtin("at", _params("list", "index"), list_at, accepts_lists=True),
    Builtin("sum", _params("list"), list_sum, accepts_lists=True),
)

BUILTIN_REGISTRY.update((b.name, b) for b in BUILTINS)


def register(functions: MutableMapping[str, Builtin], constants: MutableMapping[str, Value]) -> None:
    """Register all builtin functions and constants into the given tables."""
    functions.update(BUILTIN_REGISTRY)
    constants.update(CONSTANTS)
