import pickle

import numpy as np
import pytest

from synthizer.errors import SynthNameError
from synthizer.types.environment import Frame, GlobalEnvironment
from synthizer.types.function_def import BUILTIN_REGISTRY
from synthizer.types.value import ListValue, format_value, is_number, kind_name, to_value


@pytest.mark.parametrize(
    "obj,expected",
    [
        (3, 3.0),
        (2.5, 2.5),
        (True, 1.0),
        (np.float32(0.5), 0.5),
        ([1, [2, 3]], ListValue([1.0, ListValue([2.0, 3.0])])),
        ((), ListValue()),
    ],
)
def test_to_value(obj, expected):
    assert to_value(obj) == expected


def test_to_value_rejects_other_objects():
    with pytest.raises(TypeError):
        to_value("440")


@pytest.mark.parametrize(
    "value,text",
    [
        (440.0, "440"),
        (-0.5, "-0.5"),
        (1e20, "1e+20"),
        (ListValue([1.0, ListValue([2.5])]), "[1, [2.5]]"),
        (ListValue(), "[]"),
    ],
)
def test_format_value(value, text):
    assert format_value(value) == text


def test_value_kinds():
    assert is_number(1.0)
    assert not is_number(ListValue([1.0]))
    assert kind_name(1.0) == "number"
    assert kind_name(ListValue()) == "list"
    assert len(ListValue([1.0, 2.0])) == 2
    assert list(ListValue([1.0, 2.0])) == [1.0, 2.0]
    assert hash(ListValue([1.0])) == hash(ListValue([1.0]))


def test_frame_lookup_falls_back_to_globals():
    env = GlobalEnvironment({"k": 1.0}, {"sin": BUILTIN_REGISTRY["sin"]})
    frame = Frame({"k": 2.0, "x": 3.0}, env)
    assert frame.lookup("k") == 2.0
    assert frame.lookup("x") == 3.0
    assert Frame({}, env).lookup("k") == 1.0
    with pytest.raises(SynthNameError, match="undefined identifier 'y'"):
        frame.lookup("y")
    with pytest.raises(SynthNameError, match="'sin' is a function"):
        frame.lookup("sin")


def test_global_environment_copies_its_input():
    constants = {"k": 1.0}
    env = GlobalEnvironment(constants)
    constants["k"] = 2.0
    assert env.lookup("k") == 1.0
    assert "k" in env
    assert "nope" not in env
    assert repr(env) == "<GlobalEnvironment constants=1 functions=0>"


def test_global_environment_pickles():
    env = GlobalEnvironment({"k": ListValue([1.0])}, {"sin": BUILTIN_REGISTRY["sin"]})
    copy = pickle.loads(pickle.dumps(env))
    assert copy.lookup("k") == ListValue([1.0])
    assert copy.function("sin") is BUILTIN_REGISTRY["sin"]
