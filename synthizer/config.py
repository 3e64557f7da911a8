from __future__ import annotations
import os
from typing import Optional


# Defaults
_DEFAULT_MAX_CALL_DEPTH = 512
_DEFAULT_RENDER_BACKEND = 'serial'
_DEFAULT_CHUNK_SIZE = 4096

RENDER_BACKENDS = ('serial', 'thread', 'process')


def int_from_env(var: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(var)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{var} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{var} must be >= {minimum}, got {value}")
    return value


def get_max_call_depth(override: Optional[int] = None) -> int:
    if override is not None:
        if override < 1:
            raise ValueError(f"max_depth must be >= 1, got {override}")
        return override
    return int_from_env('SYNTHIZER_MAX_CALL_DEPTH', _DEFAULT_MAX_CALL_DEPTH)


def get_render_backend(override: Optional[str] = None) -> str:
    backend = override or os.environ.get('SYNTHIZER_RENDER_BACKEND', '').strip() or _DEFAULT_RENDER_BACKEND
    if backend not in RENDER_BACKENDS:
        raise ValueError(f"render backend must be one of {RENDER_BACKENDS}, got {backend!r}")
    return backend


def get_render_workers(override: Optional[int] = None) -> int:
    if override is not None:
        if override < 1:
            raise ValueError(f"workers must be >= 1, got {override}")
        return override
    return int_from_env('SYNTHIZER_RENDER_WORKERS', os.cpu_count() or 1)


def get_chunk_size(override: Optional[int] = None) -> int:
    if override is not None:
        if override < 1:
            raise ValueError(f"chunk_size must be >= 1, got {override}")
        return override
    return int_from_env('SYNTHIZER_CHUNK_SIZE', _DEFAULT_CHUNK_SIZE)
