"""
  Parser for synthizer scripts

- Recursive descent over the token list produced by the lexer
- Binary operators use precedence climbing; the conditional form
  `a if c else b` sits below every binary operator and is right-associative
- Total: either a complete Program or a SynthParseError, never a partial AST

    program     := (binding | funcdef)*
    binding     := IDENT '=' expr ';'
    funcdef     := IDENT [param (',' param)*] '{' (expr ';')+ '}'
    param       := IDENT ('=' expr)?
    call        := IDENT '(' args? ')' | IDENT '[' args? ']'
    arg         := IDENT '=' expr | expr
"""

from __future__ import annotations

from typing import Optional

from synthizer.errors import SynthParseError
from synthizer.reader.ast import (
    Argument,
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
    Parameter,
    Program,
    UnaryOp,
)
from synthizer.reader.lexer import Token, tokenize

# Binding power of left-associative binary operators; higher binds tighter.
# `^` (right-associative) and the unary operators are handled separately.
BINARY_OPERATORS: dict[str, int] = {
    "||": 1,
    "^^": 1,
    "&&": 2,
    "==": 3,
    "!=": 3,
    "~=": 3,
    "<": 4,
    ">": 4,
    "<=": 4,
    ">=": 4,
    "+": 5,
    "-": 5,
    "*": 6,
    "/": 6,
    "%": 6,
}

UNARY_OPERATORS = frozenset({"-", "!"})

CALL_CLOSERS = {"(": ")", "[": "]"}


class Parser:
    def __init__(self, tokens: list[Token]):
        if not tokens or tokens[-1].kind != "eof":
            raise ValueError("token list must end with an eof token")
        self.tokens = tokens
        self.cursor = 0

    # ------------------------
    # Token helpers
    # ------------------------
    def peek(self, offset: int = 0) -> Token:
        index = min(self.cursor + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def advance(self) -> Token:
        token = self.tokens[self.cursor]
        if token.kind != "eof":
            self.cursor += 1
        return token

    def check(self, kind: str, text: Optional[str] = None, offset: int = 0) -> bool:
        token = self.peek(offset)
        return token.kind == kind and (text is None or token.text == text)

    def match(self, kind: str, text: Optional[str] = None) -> bool:
        if self.check(kind, text):
            self.advance()
            return True
        return False

    def expect(self, kind: str, text: Optional[str] = None, expected: Optional[str] = None) -> Token:
        if not self.check(kind, text):
            raise self.error(expected or (repr(text) if text else kind))
        return self.advance()

    def error(self, expected: str, found: Optional[str] = None) -> SynthParseError:
        token = self.peek()
        return SynthParseError(token.pos, expected, found or token.describe())

    # ------------------------
    # Declarations
    # ------------------------
    def parse_program(self) -> Program:
        declarations: list[Declaration] = []
        while not self.check("eof"):
            declarations.append(self.parse_declaration())
        return Program(tuple(declarations))

    def parse_declaration(self) -> Declaration:
        name_tok = self.expect("ident", expected="a constant or function name")
        if self.match("symbol", "="):
            value = self.parse_expr()
            self.expect("symbol", ";")
            return Binding(name_tok.text, value, name_tok.pos)
        params = self.parse_params()
        body = self.parse_body()
        return FunctionDef(name_tok.text, params, body, name_tok.pos)

    def parse_params(self) -> tuple[Parameter, ...]:
        params: list[Parameter] = []
        if self.check("symbol", "{"):
            return ()
        while True:
            tok = self.expect("ident", expected="a parameter name or '{'")
            if any(p.name == tok.text for p in params):
                raise SynthParseError(tok.pos, "a unique parameter name", f"duplicate parameter {tok.text!r}")
            default = self.parse_expr() if self.match("symbol", "=") else None
            params.append(Parameter(tok.text, default, tok.pos))
            if not self.match("symbol", ","):
                break
        return tuple(params)

    def parse_body(self) -> tuple[Expression, ...]:
        self.expect("symbol", "{", expected="'{' to open the function body")
        statements: list[Expression] = []
        while True:
            statements.append(self.parse_expr())
            self.expect("symbol", ";")
            if self.match("symbol", "}"):
                return tuple(statements)

    # ------------------------
    # Expressions
    # ------------------------
    def parse_expr(self) -> Expression:
        then = self.parse_binary(0)
        if self.check("keyword", "if"):
            pos = self.advance().pos
            cond = self.parse_binary(0)
            self.expect("keyword", "else", expected="'else'")
            otherwise = self.parse_expr()
            return Conditional(cond, then, otherwise, pos)
        return then

    def parse_binary(self, min_precedence: int) -> Expression:
        left = self.parse_unary()
        while True:
            token = self.peek()
            precedence = BINARY_OPERATORS.get(token.text) if token.kind == "op" else None
            if precedence is None or precedence < min_precedence:
                return left
            self.advance()
            right = self.parse_binary(precedence + 1)
            left = BinaryOp(token.text, left, right, token.pos)

    def parse_unary(self) -> Expression:
        token = self.peek()
        if token.kind == "op" and token.text in UNARY_OPERATORS:
            self.advance()
            return UnaryOp(token.text, self.parse_unary(), token.pos)
        return self.parse_power()

    def parse_power(self) -> Expression:
        base = self.parse_primary()
        if self.check("op", "^"):
            token = self.advance()
            # right-associative, and allows 2^-1
            exponent = self.parse_unary()
            return BinaryOp("^", base, exponent, token.pos)
        return base

    def parse_primary(self) -> Expression:
        token = self.peek()
        if token.kind == "number":
            self.advance()
            return NumberLiteral(token.value, token.pos)
        if token.kind == "ident":
            self.advance()
            if self.peek().kind == "symbol" and self.peek().text in CALL_CLOSERS:
                return self.parse_call(token)
            return Identifier(token.text, token.pos)
        if self.match("symbol", "("):
            inner = self.parse_expr()
            self.expect("symbol", ")")
            return inner
        if self.check("symbol", "["):
            return self.parse_array()
        raise self.error("an expression")

    def parse_call(self, name_tok: Token) -> Call:
        opener = self.advance().text
        closer = CALL_CLOSERS[opener]
        args: list[Argument] = []
        if not self.match("symbol", closer):
            while True:
                args.append(self.parse_arg())
                if self.match("symbol", closer):
                    break
                self.expect("symbol", ",", expected=f"',' or {closer!r}")
        return Call(name_tok.text, tuple(args), name_tok.pos, bracketed=opener == "[")

    def parse_arg(self) -> Argument:
        token = self.peek()
        if token.kind == "ident" and self.check("symbol", "=", offset=1):
            self.advance()
            self.advance()
            return Argument(token.text, self.parse_expr(), token.pos)
        return Argument(None, self.parse_expr(), token.pos)

    def parse_array(self) -> ArrayLiteral:
        pos = self.advance().pos
        elements: list[Expression] = []
        if not self.match("symbol", "]"):
            while True:
                if self.check("ident") and self.check("symbol", "=", offset=1):
                    name = self.peek().text
                    raise self.error("an array element", f"named argument {name!r} outside a call")
                elements.append(self.parse_expr())
                if self.match("symbol", "]"):
                    break
                self.expect("symbol", ",", expected="',' or ']'")
        return ArrayLiteral(tuple(elements), pos)


def parse(tokens: list[Token]) -> Program:
    parser = Parser(tokens)
    try:
        return parser.parse_program()
    except RecursionError:
        raise SynthParseError(parser.peek().pos, "less deeply nested code", "nesting too deep to parse") from None


def parse_program(text: str) -> Program:
    """Lex and parse script source into a Program."""
    return parse(tokenize(text))


def parse_expression(text: str) -> Expression:
    """Parse a single expression, optionally terminated by ';'."""
    parser = Parser(tokenize(text))
    try:
        expr = parser.parse_expr()
    except RecursionError:
        raise SynthParseError(parser.peek().pos, "less deeply nested code", "nesting too deep to parse") from None
    parser.match("symbol", ";")
    parser.expect("eof", expected="end of input")
    return expr
