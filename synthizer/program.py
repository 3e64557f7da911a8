"""Loading: turn a parsed Program into a runnable Script.

load() validates the top-level declarations, registers builtins, evaluates
every constant exactly once and freezes the result into a GlobalEnvironment.

Declaration order does not matter. Constants are evaluated in dependency
order: a constant depends on the constants its expression names and on the
constants reachable through the user functions it calls (their bodies and
parameter defaults, parameters excluded). A cycle in that graph is a load
error rather than a runtime surprise.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Union

from synthizer.builtin.math_builtin import register
from synthizer.config import get_max_call_depth
from synthizer.errors import SynthLoadError
from synthizer.evaluation.evaluator import Evaluator, ensure_host_recursion_limit
from synthizer.reader.parser import parse_program
from synthizer.reader.ast import (
    ArrayLiteral,
    BinaryOp,
    Binding,
    Call,
    Conditional,
    Declaration,
    Expression,
    FunctionDef,
    Identifier,
    NumberLiteral,
    Program,
    UnaryOp,
)
from synthizer.types.environment import GlobalEnvironment, Invocable
from synthizer.types.value import Value

logger = logging.getLogger(__name__)

MAIN = "main"


@dataclass(frozen=True)
class Script:
    """A loaded program: frozen globals plus the resolved entry point."""

    program: Program
    globals: GlobalEnvironment
    main: Optional[FunctionDef]
    max_depth: int

    def evaluator(self) -> Evaluator:
        """A fresh evaluator over this script; use one per thread or worker."""
        return Evaluator(self.globals, self.max_depth)

    def require_main(self) -> FunctionDef:
        if self.main is None:
            raise SynthLoadError(f"script has no '{MAIN}' function")
        return self.main


def load(program: Program, *, max_depth: Optional[int] = None, require_main: bool = True) -> Script:
    """
    Validate `program` and build its Script.

    Raises SynthLoadError on duplicate top-level names, a missing or
    malformed `main` (when require_main is set) and cyclic constants.
    Runtime errors raised while evaluating a constant propagate unchanged.
    """
    depth = get_max_call_depth(max_depth)
    ensure_host_recursion_limit(depth)
    declarations = _unique_declarations(program)
    main = _resolve_main(declarations, require_main)

    functions: dict[str, Invocable] = {}
    constants: dict[str, Value] = {}
    register(functions, constants)

    shadowed = sorted(n for n in declarations if n in functions or n in constants)
    if shadowed:
        logger.debug("user definitions shadow builtins: %s", ", ".join(shadowed))
    for name in shadowed:
        functions.pop(name, None)
        constants.pop(name, None)

    user_functions = {d.name: d for d in declarations.values() if isinstance(d, FunctionDef)}
    user_constants = {d.name: d for d in declarations.values() if isinstance(d, Binding)}
    functions.update(user_functions)

    # the loader's evaluator sees constants as they are filled in
    evaluator = Evaluator(GlobalEnvironment._over(constants, functions), depth)
    for name in _constant_order(user_constants, user_functions):
        constants[name] = evaluator.evaluate(user_constants[name].value)

    globals_ = GlobalEnvironment(constants, functions)
    logger.debug(
        "loaded script: %d function(s), %d constant(s), max call depth %d",
        len(user_functions),
        len(user_constants),
        depth,
    )
    return Script(program, globals_, main, depth)


def _unique_declarations(program: Program) -> dict[str, Declaration]:
    seen: dict[str, Declaration] = {}
    for decl in program.declarations:
        first = seen.get(decl.name)
        if first is not None:
            raise SynthLoadError(
                f"duplicate definition of '{decl.name}' (first defined at {first.pos})",
                decl.pos,
            )
        seen[decl.name] = decl
    return seen


def _resolve_main(declarations: dict[str, Declaration], required: bool) -> Optional[FunctionDef]:
    main = declarations.get(MAIN)
    if main is None:
        if required:
            raise SynthLoadError(f"script has no '{MAIN}' function; define {MAIN} time {{ ... }}")
        return None
    if not isinstance(main, FunctionDef):
        raise SynthLoadError(f"'{MAIN}' must be a function of one parameter (time), not a constant", main.pos)
    if len(main.params) != 1:
        raise SynthLoadError(
            f"'{MAIN}' must take exactly one parameter (time), found {len(main.params)}",
            main.pos,
        )
    return main


# -------------------------------
# Constant dependencies
# -------------------------------
def _walk(expr: Expression) -> Iterator[Expression]:
    stack = [expr]
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, BinaryOp):
            stack.extend((node.left, node.right))
        elif isinstance(node, UnaryOp):
            stack.append(node.operand)
        elif isinstance(node, Conditional):
            stack.extend((node.cond, node.then, node.otherwise))
        elif isinstance(node, Call):
            stack.extend(a.value for a in node.args)
        elif isinstance(node, ArrayLiteral):
            stack.extend(node.elements)
        elif not isinstance(node, (NumberLiteral, Identifier)):
            raise TypeError(f"unknown expression node: {type(node).__name__}")


def _references(exprs: list[Expression], hidden: frozenset[str] = frozenset()) -> tuple[set[str], set[str]]:
    """(identifier names, called function names) in exprs, ignoring `hidden` identifiers."""
    names: set[str] = set()
    calls: set[str] = set()
    for expr in exprs:
        for node in _walk(expr):
            if isinstance(node, Identifier) and node.name not in hidden:
                names.add(node.name)
            elif isinstance(node, Call):
                calls.add(node.callee)
    return names, calls


def _constant_order(constants: dict[str, Binding], functions: dict[str, FunctionDef]) -> list[str]:
    # direct references of each user function, parameters excluded
    fn_refs: dict[str, tuple[set[str], set[str]]] = {}
    for fn in functions.values():
        exprs = list(fn.body) + [p.default for p in fn.params if p.default is not None]
        fn_refs[fn.name] = _references(exprs, frozenset(fn.param_names))

    reachable_cache: dict[str, frozenset[str]] = {}

    def reachable_constants(fn_name: str) -> frozenset[str]:
        # constants reachable from a function through any chain of calls
        cached = reachable_cache.get(fn_name)
        if cached is not None:
            return cached
        found: set[str] = set()
        visited = {fn_name}
        pending = [fn_name]
        while pending:
            names, calls = fn_refs[pending.pop()]
            found.update(n for n in names if n in constants)
            for callee in calls:
                if callee in functions and callee not in visited:
                    visited.add(callee)
                    pending.append(callee)
        result = frozenset(found)
        reachable_cache[fn_name] = result
        return result

    deps: dict[str, set[str]] = {}
    for name, binding in constants.items():
        names, calls = _references([binding.value])
        edges = {n for n in names if n in constants}
        for callee in calls:
            if callee in functions:
                edges |= reachable_constants(callee)
        deps[name] = edges

    order: list[str] = []
    done: set[str] = set()
    path: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in path:
            cycle = path[path.index(name):] + [name]
            raise SynthLoadError(
                f"cyclic constant definition: {' -> '.join(cycle)}",
                constants[name].pos,
            )
        path.append(name)
        for dep in sorted(deps[name]):
            visit(dep)
        path.pop()
        done.add(name)
        order.append(name)

    # declaration order first, so independent constants keep their source order
    for name in constants:
        visit(name)
    return order


def load_source(source: Union[str, Program], **options) -> Script:
    """Parse (if needed) and load script source."""
    program = parse_program(source) if isinstance(source, str) else source
    return load(program, **options)
