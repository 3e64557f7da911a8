from __future__ import annotations

from typing import Mapping, NamedTuple, Optional

from synthizer.types.source_pos import SourcePos
from synthizer.types.value import Value, format_value


class CallFrame(NamedTuple):
    """Snapshot of one active call, used in runtime error traces."""

    name: str
    bindings: Mapping[str, Value]
    pos: Optional[SourcePos] = None

    def __str__(self) -> str:
        args = ", ".join(f"{k}={format_value(v)}" for k, v in self.bindings.items())
        where = f" at {self.pos}" if self.pos is not None else ""
        return f"{self.name}({args}){where}"
