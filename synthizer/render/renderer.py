"""Sample rendering: evaluate `main(time)` across the sample index domain.

Sample i of a render at rate r is main(i / r). The output holds
floor(r * duration) samples as a numpy float64 array.

Backends
- serial:  one evaluator, samples in order (default)
- thread:  ThreadPoolExecutor over contiguous index chunks
- process: ProcessPoolExecutor over the same chunks; the Script is pickled
           to each worker

Each chunk gets its own Evaluator and writes only its own slice, so the
parallel backends produce exactly the serial output. Results are collected
in index order, which also makes the reported failure the lowest failing
sample index.

Cancellation is cooperative: `cancel` is anything with is_set() (for
example threading.Event), checked before each sample in the serial and
thread backends and before each chunk in the process backend.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import Executor, Future, ProcessPoolExecutor, ThreadPoolExecutor
from typing import Iterator, Optional, Protocol, Union

import numpy as np

from synthizer.config import get_chunk_size, get_render_backend, get_render_workers
from synthizer.errors import RenderCancelled, SynthRuntimeError, SynthTypeError
from synthizer.evaluation.evaluator import ensure_host_recursion_limit
from synthizer.program import Script, load_source
from synthizer.reader.ast import FunctionDef, Program
from synthizer.types.value import ListValue

logger = logging.getLogger(__name__)

ScriptLike = Union[Script, Program, str]


class CancelToken(Protocol):
    def is_set(self) -> bool: ...


class _EitherSet:
    """Set when any of the wrapped events is set."""

    __slots__ = ("events",)

    def __init__(self, *events: Optional[CancelToken]):
        self.events = tuple(e for e in events if e is not None)

    def is_set(self) -> bool:
        return any(e.is_set() for e in self.events)


def as_script(program: ScriptLike) -> Script:
    if isinstance(program, Script):
        return program
    return load_source(program)


def check_sample_rate(sample_rate: float) -> None:
    if not (math.isfinite(sample_rate) and sample_rate > 0):
        raise ValueError(f"sample_rate must be a positive number, got {sample_rate!r}")


def sample_count(sample_rate: float, duration: float) -> int:
    """Number of samples in a render; raises ValueError for a bad rate or duration."""
    check_sample_rate(sample_rate)
    if not (math.isfinite(duration) and duration >= 0):
        raise ValueError(f"duration must be a non-negative number, got {duration!r}")
    return math.floor(sample_rate * duration)


def render_range(
    script: Script,
    sample_rate: float,
    start: int,
    stop: int,
    cancel: Optional[CancelToken] = None,
) -> np.ndarray:
    """Render samples [start, stop) with a fresh evaluator."""
    main = script.require_main()
    # process workers start with the default host limit
    ensure_host_recursion_limit(script.max_depth)
    evaluator = script.evaluator()
    rate = float(sample_rate)
    out = np.empty(stop - start, dtype=np.float64)
    for i in range(start, stop):
        if cancel is not None and cancel.is_set():
            raise RenderCancelled(f"render cancelled at sample {i}")
        try:
            value = evaluator.call_function(main, (i / rate,))
            if isinstance(value, ListValue):
                raise SynthTypeError(f"{main.name}() must return a number, got a list", main.pos)
        except SynthRuntimeError as err:
            err.sample_index = i
            raise
        out[i - start] = value
    return out


def _chunks(n: int, chunk_size: int) -> list[tuple[int, int]]:
    return [(start, min(start + chunk_size, n)) for start in range(0, n, chunk_size)]


def _render_pooled(
    pool: Executor,
    script: Script,
    sample_rate: float,
    out: np.ndarray,
    chunk_size: int,
    cancel: Optional[CancelToken],
    in_process: bool,
) -> None:
    # stops chunks still running in threads once the render has failed
    abort = threading.Event()
    token = None if in_process else _EitherSet(cancel, abort)
    futures: list[tuple[int, Future]] = [
        (start, pool.submit(render_range, script, sample_rate, start, stop, token))
        for start, stop in _chunks(len(out), chunk_size)
    ]
    try:
        for start, future in futures:
            if in_process and cancel is not None and cancel.is_set():
                raise RenderCancelled(f"render cancelled at sample {start}")
            chunk = future.result()
            out[start:start + len(chunk)] = chunk
    except BaseException:
        abort.set()
        for _, future in futures:
            future.cancel()
        raise


def render(
    program: ScriptLike,
    sample_rate: float,
    duration: float,
    *,
    backend: Optional[str] = None,
    workers: Optional[int] = None,
    chunk_size: Optional[int] = None,
    cancel: Optional[CancelToken] = None,
) -> np.ndarray:
    """
    Render `duration` seconds of `program` at `sample_rate` into a float64 array.

    `program` may be script source, a parsed Program or a loaded Script.
    Raises SynthLoadError for a missing or malformed main, ValueError for a
    bad rate or duration, RenderCancelled when `cancel` is set, and the
    first SynthRuntimeError (with its sample_index) otherwise.
    """
    n = sample_count(sample_rate, duration)
    script = as_script(program)
    script.require_main()
    backend = get_render_backend(backend)
    out = np.empty(n, dtype=np.float64)
    if n == 0:
        return out

    started = time.perf_counter()
    logger.debug("render start: %d samples at %s Hz, backend=%s", n, sample_rate, backend)
    try:
        if backend == "serial":
            out[:] = render_range(script, sample_rate, 0, n, cancel)
        else:
            size = get_chunk_size(chunk_size)
            max_workers = get_render_workers(workers)
            in_process = backend == "process"
            pool_cls = ProcessPoolExecutor if in_process else ThreadPoolExecutor
            with pool_cls(max_workers=max_workers) as pool:
                _render_pooled(pool, script, sample_rate, out, size, cancel, in_process)
    except SynthRuntimeError as err:
        logger.error("render failed at sample %s: %s", err.sample_index, err.message)
        raise
    logger.debug("render finished: %d samples in %.3fs (backend=%s)", n, time.perf_counter() - started, backend)
    return out


def stream(program: ScriptLike, sample_rate: float, duration: Optional[float] = None) -> Iterator[float]:
    """
    Lazily yield samples in order; with duration=None the stream never ends.

    Arguments and the script are checked up front; runtime errors surface
    from the iteration that reaches the failing sample.
    """
    check_sample_rate(sample_rate)
    n = None if duration is None else sample_count(sample_rate, duration)
    script = as_script(program)
    main = script.require_main()
    return _stream(script, main, sample_rate, n)


def _stream(script: Script, main: FunctionDef, sample_rate: float, n: Optional[int]) -> Iterator[float]:
    evaluator = script.evaluator()
    rate = float(sample_rate)
    i = 0
    while n is None or i < n:
        try:
            value = evaluator.call_function(main, (i / rate,))
            if isinstance(value, ListValue):
                raise SynthTypeError(f"{main.name}() must return a number, got a list", main.pos)
        except SynthRuntimeError as err:
            err.sample_index = i
            raise
        yield value
        i += 1
