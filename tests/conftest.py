import pytest

from synthizer.interpreter import Interpreter

# Renderer tests take the `render_backend` fixture and run once per backend:
# 1) serial, one evaluator in the calling thread ["serial"]
# 2) ThreadPoolExecutor over index chunks ["thread"]
# 3) ProcessPoolExecutor over index chunks, Script pickled to workers ["process"]
# Small chunks and more than one worker make sure the parallel paths really
# split the work.

RENDER_OPTIONS = {
    "serial": {},
    "thread": {"workers": 3, "chunk_size": 4},
    "process": {"workers": 2, "chunk_size": 16},
}


@pytest.fixture(params=["serial", "thread", "process"])
def render_backend(request):
    return request.param


@pytest.fixture
def render_options(render_backend):
    return {"backend": render_backend, **RENDER_OPTIONS[render_backend]}


@pytest.fixture(autouse=True)
def _clean_synthizer_env(monkeypatch):
    # tests must not pick up settings from the developer's shell
    for var in (
        "SYNTHIZER_MAX_CALL_DEPTH",
        "SYNTHIZER_RENDER_BACKEND",
        "SYNTHIZER_RENDER_WORKERS",
        "SYNTHIZER_CHUNK_SIZE",
    ):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def library():
    """Interpreter over a script of helper functions (no main)."""
    def make(source: str, **options) -> Interpreter:
        return Interpreter(source, require_main=False, **options)
    return make
