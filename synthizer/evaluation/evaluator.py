"""Core evaluator for synthizer.

A recursive tree-walker over reader.ast nodes. Each Evaluator owns an
explicit call stack of CallFrame snapshots; its length is the call depth,
checked against max_depth on every call so runaway recursion surfaces as
SynthRecursionError instead of exhausting the host stack. The same stack is
attached to runtime errors as their trace.

Evaluators are cheap and not thread-safe: use one per thread/worker. The
GlobalEnvironment they read is immutable and can be shared freely.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence, Union

from synthizer.config import get_max_call_depth
from synthizer.errors import SynthRecursionError, SynthRuntimeError, SynthTypeError
from synthizer.evaluation.operators import BINARY_OPERATORS, UNARY_OPERATORS, TRUE, FALSE, add, truthy
from synthizer.reader.ast import (
    ArrayLiteral,
    BinaryOp,
    Call,
    Conditional,
    Expression,
    FunctionDef,
    Identifier,
    NumberLiteral,
    UnaryOp,
)
from synthizer.types.bind import NamedArg, bind_arguments
from synthizer.types.call_frame import CallFrame
from synthizer.types.environment import Frame, GlobalEnvironment
from synthizer.types.function_def import Builtin
from synthizer.types.source_pos import SourcePos
from synthizer.types.value import ListValue, Value, to_value

logger = logging.getLogger(__name__)

# Host frames used per script-level call along the deepest path
# (_eval -> handler -> _call -> body statement -> ...), with headroom for
# nested expressions inside bodies.
_HOST_FRAMES_PER_CALL = 24
_HOST_FRAME_MARGIN = 1000

Env = Union[Frame, GlobalEnvironment]


def ensure_host_recursion_limit(max_depth: int) -> None:
    """Raise the interpreter recursion limit so max_depth script calls fit."""
    needed = max_depth * _HOST_FRAMES_PER_CALL + _HOST_FRAME_MARGIN
    if sys.getrecursionlimit() < needed:
        logger.debug("raising host recursion limit to %d for call depth %d", needed, max_depth)
        sys.setrecursionlimit(needed)


class Evaluator:
    __slots__ = ("globals", "max_depth", "stack", "_dispatch")

    def __init__(self, globals_: GlobalEnvironment, max_depth: Optional[int] = None):
        self.globals = globals_
        self.max_depth = get_max_call_depth(max_depth)
        self.stack: list[CallFrame] = []
        self._dispatch = {
            NumberLiteral: self._eval_number,
            Identifier: self._eval_identifier,
            BinaryOp: self._eval_binary,
            UnaryOp: self._eval_unary,
            Conditional: self._eval_conditional,
            Call: self._eval_call,
            ArrayLiteral: self._eval_array,
        }

    @property
    def depth(self) -> int:
        return len(self.stack)

    # ------------------------
    # Entry points
    # ------------------------
    def evaluate(self, expr: Expression, env: Optional[Env] = None) -> Value:
        """Evaluate an expression in `env` (the global environment by default)."""
        try:
            return self._eval(expr, env if env is not None else self.globals)
        except RecursionError:
            raise SynthRecursionError(
                "expression nested too deeply to evaluate", getattr(expr, "pos", None), tuple(self.stack)
            ) from None

    def call_function(
        self,
        callee: Union[FunctionDef, Builtin],
        positional: Sequence[Value] = (),
        named: Sequence[NamedArg] = (),
    ) -> Value:
        """Call a resolved function; arguments are converted with to_value."""
        positional = [to_value(v) for v in positional]
        named = [(name, to_value(v), pos) for name, v, pos in named]
        try:
            return self._call(callee, positional, named, None)
        except RecursionError:
            raise SynthRecursionError(
                f"expression nested too deeply while calling {callee.name}()", None, tuple(self.stack)
            ) from None

    def call(self, name: str, *args: object, **kwargs: object) -> Value:
        """Call a script function by name with host (Python) argument values."""
        callee = self.globals.function(name)
        return self.call_function(callee, args, [(k, v, None) for k, v in kwargs.items()])

    # ------------------------
    # Node handlers
    # ------------------------
    def _eval(self, expr: Expression, env: Env) -> Value:
        return self._dispatch[type(expr)](expr, env)

    def _eval_number(self, expr: NumberLiteral, env: Env) -> Value:
        return expr.value

    def _eval_identifier(self, expr: Identifier, env: Env) -> Value:
        return env.lookup(expr.name, expr.pos)

    def _eval_binary(self, expr: BinaryOp, env: Env) -> Value:
        op = expr.op
        left = self._eval(expr.left, env)
        try:
            # && and || only evaluate the right side when needed
            if op == "&&":
                if not truthy(left):
                    return FALSE
                return TRUE if truthy(self._eval(expr.right, env)) else FALSE
            if op == "||":
                if truthy(left):
                    return TRUE
                return TRUE if truthy(self._eval(expr.right, env)) else FALSE
            return BINARY_OPERATORS[op](left, self._eval(expr.right, env))
        except SynthTypeError as err:
            if err.pos is None:
                err.pos = expr.pos
            raise

    def _eval_unary(self, expr: UnaryOp, env: Env) -> Value:
        operand = self._eval(expr.operand, env)
        try:
            return UNARY_OPERATORS[expr.op](operand)
        except SynthTypeError as err:
            if err.pos is None:
                err.pos = expr.pos
            raise

    def _eval_conditional(self, expr: Conditional, env: Env) -> Value:
        cond = self._eval(expr.cond, env)
        try:
            selected = truthy(cond)
        except SynthTypeError as err:
            err.pos = expr.cond.pos
            raise
        # the branch not taken is never evaluated
        return self._eval(expr.then if selected else expr.otherwise, env)

    def _eval_array(self, expr: ArrayLiteral, env: Env) -> Value:
        return ListValue([self._eval(e, env) for e in expr.elements])

    def _eval_call(self, expr: Call, env: Env) -> Value:
        callee = self.globals.function(expr.callee, expr.pos)
        positional: list[Value] = []
        named: list[NamedArg] = []
        for arg in expr.args:
            value = self._eval(arg.value, env)
            if arg.name is None:
                positional.append(value)
            else:
                named.append((arg.name, value, arg.pos))
        return self._call(callee, positional, named, expr.pos)

    # ------------------------
    # Application
    # ------------------------
    def _call(
        self,
        callee: Union[FunctionDef, Builtin],
        positional: Sequence[Value],
        named: Sequence[NamedArg],
        pos: Optional[SourcePos],
    ) -> Value:
        if len(self.stack) >= self.max_depth:
            raise SynthRecursionError(
                f"recursion limit exceeded: call depth {self.max_depth} reached calling {callee.name}()",
                pos,
                tuple(self.stack),
            )
        # the frame is on the stack while defaults are evaluated, so calls
        # made from a default count towards the depth
        self.stack.append(CallFrame(callee.name, {}, pos))
        try:
            bindings = bind_arguments(callee, positional, named, self.globals, self._eval, pos)
            self.stack[-1] = CallFrame(callee.name, bindings, pos)
            if isinstance(callee, Builtin):
                return callee.invoke(bindings)
            frame = Frame(bindings, self.globals)
            # the value of a body is the sum of its statements, left to right
            body = callee.body
            result = self._eval(body[0], frame)
            for statement in body[1:]:
                value = self._eval(statement, frame)
                try:
                    result = add(result, value)
                except SynthTypeError as err:
                    err.message = f"cannot sum the statements of {callee.name}(): {err.message}"
                    err.pos = statement.pos
                    raise
            return result
        except SynthRuntimeError as err:
            # innermost failure records the stack; outer frames leave it alone
            if not err.trace:
                err.trace = tuple(self.stack)
            if err.pos is None:
                err.pos = pos
            raise
        finally:
            self.stack.pop()


def evaluate(expr: Expression, env: Env, max_depth: Optional[int] = None) -> Value:
    """Evaluate `expr` with a fresh Evaluator over env's global environment."""
    globals_ = env.globals if isinstance(env, Frame) else env
    return Evaluator(globals_, max_depth).evaluate(expr, env)
