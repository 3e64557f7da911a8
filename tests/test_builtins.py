import math
import pickle

import pytest

from synthizer.builtin.math_builtin import BUILTINS, CONSTANTS, register
from synthizer.errors import SynthIndexError, SynthTypeError
from synthizer.types.function_def import BUILTIN_REGISTRY, lookup_builtin
from synthizer.types.value import ListValue


@pytest.fixture
def itp(library):
    return library("")


@pytest.mark.parametrize(
    "code,expected",
    [
        ("sin(0)", 0.0),
        ("cos(0)", 1.0),
        ("tan(0)", 0.0),
        ("atan2(1, 1)", math.pi / 4),
        ("atan2[x = 1, y = 0]", 0.0),
        ("exp(0)", 1.0),
        ("ln(e)", 1.0),
        ("log10(1000)", 3.0),
        ("log2(8)", 3.0),
        ("sqrt(16)", 4.0),
        ("abs(-2.5)", 2.5),
        ("floor(-1.5)", -2.0),
        ("ceil(1.2)", 2.0),
        ("round(2.5)", 2.0),
        ("round(3.5)", 4.0),
        ("trunc(-1.7)", -1.0),
        ("fract(1.25)", 0.25),
        ("fract(-0.25)", 0.75),
        ("sign(-3)", -1.0),
        ("sign(0)", 0.0),
        ("pow(2, 10)", 1024.0),
        ("pow[exponent = 2, base = 3]", 9.0),
        ("min(1, 2)", 1.0),
        ("max(1, 2)", 2.0),
        ("mod(-7, 3)", -1.0),
        ("hypot(3, 4)", 5.0),
        ("clamp(5)", 1.0),
        ("clamp(-5)", -1.0),
        ("clamp(0.5, 0, 0.25)", 0.25),
        ("clamp[x = 0.5, hi = 2]", 0.5),
        ("lerp(0, 10, 0.25)", 2.5),
        ("tau", 2 * math.pi),
        ("pi", math.pi),
        ("e", math.e),
    ],
)
def test_builtin_values(itp, code, expected):
    assert itp.eval(code) == expected


@pytest.mark.parametrize("code", ["sqrt(-1)", "ln(-1)", "asin(2)", "acos(-2)", "sin(1 / 0)", "min(0 / 0, 1)", "max(1, 0 / 0)"])
def test_domain_errors_are_nan(itp, code):
    assert math.isnan(itp.eval(code))


@pytest.mark.parametrize(
    "code,expected",
    [
        ("ln(0)", -math.inf),
        ("exp(1000)", math.inf),
        ("floor(1 / 0)", math.inf),
        ("sinh(1000)", math.inf),
        ("cosh(-1000)", math.inf),
        ("pow(0, -1)", math.inf),
        ("tanh(1 / 0)", 1.0),
    ],
)
def test_overflow_is_infinite(itp, code, expected):
    assert itp.eval(code) == expected


@pytest.mark.parametrize(
    "code,expected",
    [
        ("len([])", 0.0),
        ("len([1, [2, 3]])", 2.0),
        ("at([10, 20, 30], 0)", 10.0),
        ("at([10, 20, 30], 2.9)", 30.0),
        ("at([10, 20, 30], -1)", 30.0),
        ("at([10, 20, 30], -3)", 10.0),
        ("at([[1, 2]], 0)", ListValue([1.0, 2.0])),
        ("at[index = 1, list = [4, 5]]", 5.0),
        ("sum([1, 2, 3.5])", 6.5),
        ("sum([])", 0.0),
    ],
)
def test_list_builtins(itp, code, expected):
    assert itp.eval(code) == expected


@pytest.mark.parametrize("code", ["at([1, 2], 2)", "at([1, 2], -3)", "at([], 0)", "at([1], 1 / 0)", "at([1], 0 / 0)"])
def test_at_out_of_range(itp, code):
    with pytest.raises(SynthIndexError):
        itp.eval(code)


@pytest.mark.parametrize(
    "code,fragment",
    [
        ("sqrt([4])", "sqrt() expects a number for 'x', got a list"),
        ("at(1, 0)", "at() expects a list, got a number"),
        ("at([1], [0])", "at() expects a number for 'index'"),
        ("min([1], 2)", "min() expects a number for 'a'"),
    ],
)
def test_builtin_type_errors(itp, code, fragment):
    with pytest.raises(SynthTypeError) as info:
        itp.eval(code)
    assert fragment in str(info.value)


def test_registry_and_register():
    functions, constants = {}, {}
    register(functions, constants)
    assert set(functions) == {b.name for b in BUILTINS}
    assert constants == CONSTANTS
    assert lookup_builtin("sin") is BUILTIN_REGISTRY["sin"]
    assert lookup_builtin("no_such_builtin") is None


def test_builtins_pickle_by_name():
    sin = BUILTIN_REGISTRY["sin"]
    assert pickle.loads(pickle.dumps(sin)) is sin
    assert sin.param_names == ("x",)
    assert repr(BUILTIN_REGISTRY["clamp"]) == "<builtin clamp(x, lo, hi)>"
