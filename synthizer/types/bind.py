from __future__ import annotations

from typing import Callable, Optional, Sequence, Union

from synthizer.errors import SynthArityError
from synthizer.reader.ast import Expression, FunctionDef
from synthizer.types.environment import Frame, GlobalEnvironment
from synthizer.types.function_def import Builtin
from synthizer.types.source_pos import SourcePos
from synthizer.types.value import Value

NamedArg = tuple[str, Value, Optional[SourcePos]]


def bind_arguments(
    callee: Union[FunctionDef, Builtin],
    positional: Sequence[Value],
    named: Sequence[NamedArg],
    globals_: GlobalEnvironment,
    evaluate_fn: Callable[[Expression, Frame], Value],
    pos: Optional[SourcePos] = None,
) -> dict[str, Value]:
    """
    Single source of truth for call binding in synthizer.

    Order:
    1) positional arguments fill parameters left to right
    2) named arguments fill their parameter wherever it sits
    3) still-unbound parameters take their default, evaluated via evaluate_fn
       in a frame holding the parameters bound so far (plus globals)

    Too many positional arguments, an unknown name, binding the same
    parameter twice, or a parameter with neither argument nor default raise
    SynthArityError. Returns the bindings in parameter order.
    """
    params = callee.params
    name = callee.name

    if len(positional) > len(params):
        raise SynthArityError(
            f"{name}() takes {len(params)} argument(s) but {len(positional)} positional were given",
            pos,
        )

    bound: dict[str, Value] = {}
    for param, value in zip(params, positional):
        bound[param.name] = value

    param_names = {p.name for p in params}
    for arg_name, value, arg_pos in named:
        if arg_name not in param_names:
            raise SynthArityError(f"{name}() has no parameter named '{arg_name}'", arg_pos or pos)
        if arg_name in bound:
            raise SynthArityError(f"{name}() got multiple values for parameter '{arg_name}'", arg_pos or pos)
        bound[arg_name] = value

    missing = [p.name for p in params if p.name not in bound and p.default is None]
    if missing:
        raise SynthArityError(
            f"{name}() missing {len(missing)} required argument(s): {', '.join(repr(m) for m in missing)}",
            pos,
        )

    if len(bound) < len(params):
        frame = Frame(bound, globals_)
        for param in params:
            if param.name not in bound:
                bound[param.name] = evaluate_fn(param.default, frame)

    return {p.name: bound[p.name] for p in params}
