from __future__ import annotations

from typing import Iterator, Optional

import numpy as np

from synthizer.program import Script, load
from synthizer.reader.parser import parse_expression, parse_program
from synthizer.render.renderer import render, stream
from synthizer.types.value import Value


class Interpreter:
    """
    A loaded synthizer script.
    Parses and loads once, then renders, streams or evaluates against the
    same frozen globals as often as needed.
    """
    def __init__(self, source: str, *, max_depth: Optional[int] = None, require_main: bool = True):
        self.source = source
        self.program = parse_program(source)
        self.script: Script = load(self.program, max_depth=max_depth, require_main=require_main)

    @property
    def globals(self):
        return self.script.globals

    def render(self, sample_rate: float, duration: float, **options) -> np.ndarray:
        """Render `duration` seconds; options are passed to synthizer.render."""
        return render(self.script, sample_rate, duration, **options)

    def stream(self, sample_rate: float, duration: Optional[float] = None) -> Iterator[float]:
        return stream(self.script, sample_rate, duration)

    def sample_at(self, time: float) -> Value:
        """main(time), for a single instant."""
        main = self.script.require_main()
        return self.script.evaluator().call_function(main, (float(time),))

    def call(self, name: str, *args: object, **kwargs: object) -> Value:
        """Call a script function or builtin with Python arguments."""
        return self.script.evaluator().call(name, *args, **kwargs)

    def constant(self, name: str) -> Value:
        return self.script.globals.lookup(name)

    def eval(self, code: str) -> Value:
        """Evaluate one expression against the script's globals."""
        return self.script.evaluator().evaluate(parse_expression(code))


#  Example use-age:
if __name__ == "__main__":
    demo = """
        // additive sawtooth, n partials
        saw freq, amp, time, n = 50 {
            sin(freq * n * time * pi * 2) * amp / n / pi;
            saw(freq, amp, time, n - 1) if n > 1 else 0;
        }

        // same shape, computed directly
        fastsaw freq, amp, time {
            (freq * time % 1) * amp;
        }

        main time {
            saw(220, 0.4, time, n = 20) + fastsaw [time = time, freq = 110, amp = 0.1];
        }
    """
    interp = Interpreter(demo)
    print(interp.eval("saw(440, 1, 0.001, 1)"))
    samples = interp.render(8000, 0.01)
    print(len(samples), samples[:8])
