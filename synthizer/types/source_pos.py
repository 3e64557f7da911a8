from __future__ import annotations

from typing import NamedTuple


class SourcePos(NamedTuple):
    """1-based line/column of a token or node in the script source."""

    line: int = 1
    column: int = 1

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"
