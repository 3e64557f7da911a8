from timeit import timeit

from synthizer.interpreter import Interpreter
from synthizer.program import load
from synthizer.reader.parser import parse_expression, parse_program
from synthizer.render.renderer import render
from synthizer.types.environment import Frame, GlobalEnvironment


def time_expression(code: str, rounds: int) -> float:
    """Time the evaluator alone: parse once, then evaluate the same AST."""
    itp = Interpreter(SAW_CODE)
    evaluator = itp.script.evaluator()
    expr = parse_expression(code)
    # Warmup
    evaluator.evaluate(expr)
    # Timed
    return timeit(lambda: evaluator.evaluate(expr), number=rounds)


def time_render(code: str, backend: str, sample_rate: int, duration: float) -> float:
    """Time a full render of an already loaded script on one backend."""
    script = load(parse_program(code))
    render(script, sample_rate, min(duration, 0.01), backend=backend)
    return timeit(lambda: render(script, sample_rate, duration, backend=backend), number=1)


# Frame lookup falling through to globals (no evaluation involved)

def bench_frame_lookup(n_constants: int = 1000, n_lookups: int = 100000) -> float:
    constants = {f"c{i}": float(i) for i in range(n_constants)}
    frame = Frame({"time": 0.5}, GlobalEnvironment(constants))
    # Warmup
    for _ in range(1000):
        frame.lookup("c999")
    # Timed
    return timeit(lambda: frame.lookup("c999"), number=n_lookups)


SAW_CODE = r"""
saw freq, amp, time, n = 50 {
    sin(freq * n * time * pi * 2) * amp / n / pi;
    saw(freq, amp, time, n - 1) if n > 1 else 0;
}

fastsaw freq, amp, time {
    (freq * time % 1) * amp;
}

main time {
    saw(220, 0.5, time, n = 16);
}
"""

CHORD_CODE = r"""
base = 220;

voice ratio, time, amp = 0.2 {
    sin(base * ratio * time * tau) * amp;
}

main time {
    voice(1, time);
    voice(1.25, time);
    voice(1.5, time);
    voice[ratio = 2, time = time, amp = 0.1];
}
"""


def _print_backends(name: str, code: str, sample_rate: int, duration: float) -> None:
    print(f"Benchmark: {name}  [{int(sample_rate * duration)} samples]")
    for backend in ("serial", "thread", "process"):
        print(f"  {backend:>8}: {time_render(code, backend, sample_rate, duration):.6f}s")


if __name__ == "__main__":
    print("Benchmark: frame lookup falling through to globals")
    print(f"  time: {bench_frame_lookup():.6f}s")

    print("Benchmark: single expressions")
    print(f"  saw n=16:      {time_expression('saw(440, 1, 0.25, 16)', rounds=2000):.6f}s")
    print(f"  fastsaw:       {time_expression('fastsaw(440, 1, 0.25)', rounds=20000):.6f}s")

    _print_backends("additive saw", SAW_CODE, sample_rate=8000, duration=1.0)
    _print_backends("chord", CHORD_CODE, sample_rate=8000, duration=1.0)
