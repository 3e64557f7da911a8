"""
  Lexer for synthizer scripts

- Eager: returns a list of Token, always terminated by a single "eof" token
- Whitespace and // comments are dropped
- Token kinds:

    - ident   -> identifier text
    - keyword -> "if" / "else"
    - number  -> text plus float value
    - op      -> + - * / % ^ < > <= >= == != ~= && || ^^ !
    - symbol  -> = ( ) { } [ ] , ;
    - eof     -> end of input
"""

from __future__ import annotations

import re
from typing import NamedTuple, Optional

from synthizer.errors import SynthLexError
from synthizer.types.source_pos import SourcePos


TOKEN_RE = re.compile(
    r"(?P<newline>\r\n|\r|\n)"
    r"|(?P<space>[ \t\f\v]+)"
    r"|(?P<comment>//[^\r\n]*)"  # single-line comment
    r"|(?P<bad_exponent>(?:[0-9]+\.?[0-9]*|\.[0-9]+)[eE][+-]?(?![0-9]))"  # 1e, 2.5e+
    r"|(?P<number>(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"
    r"|(?P<ident>[A-Za-z_][A-Za-z0-9_]*)"
    r"|(?P<op>\^\^|<=|>=|==|!=|~=|&&|\|\||[-+*/%^<>!])"
    r"|(?P<symbol>[=(){}\[\],;])"
)

KEYWORDS = frozenset({"if", "else"})


class Token(NamedTuple):
    kind: str
    text: str
    pos: SourcePos
    value: Optional[float] = None

    def describe(self) -> str:
        """Human-readable form used in parse error messages."""
        if self.kind == "eof":
            return "end of input"
        return f"{self.text!r}"


def tokenize(source: str) -> list[Token]:
    """Convert script text to tokens; raises SynthLexError on a bad character."""
    tokens: list[Token] = []
    pos = 0
    n = len(source)
    line = 1
    line_start = 0

    while pos < n:
        m = TOKEN_RE.match(source, pos)
        col = pos - line_start + 1
        if m is None:
            raise SynthLexError(SourcePos(line, col), source[pos])
        kind = m.lastgroup
        text = m.group(kind)
        if kind == "newline":
            line += 1
            line_start = m.end()
        elif kind == "bad_exponent":
            # point at whatever follows the dangling exponent marker
            end = m.end()
            raise SynthLexError(SourcePos(line, col + len(text)), source[end] if end < n else "<eof>")
        elif kind == "number":
            tokens.append(Token("number", text, SourcePos(line, col), float(text)))
        elif kind == "ident":
            tokens.append(Token("keyword" if text in KEYWORDS else "ident", text, SourcePos(line, col)))
        elif kind in ("op", "symbol"):
            tokens.append(Token(kind, text, SourcePos(line, col)))
        pos = m.end()

    tokens.append(Token("eof", "", SourcePos(line, pos - line_start + 1)))
    return tokens
