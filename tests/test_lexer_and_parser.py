import pytest
from hypothesis import given, strategies as st

from synthizer.errors import SynthLexError, SynthParseError
from synthizer.reader.ast import (
    ArrayLiteral,
    Argument,
    BinaryOp,
    Binding,
    Call,
    Conditional,
    FunctionDef,
    Identifier,
    NumberLiteral,
    Parameter,
    UnaryOp,
)
from synthizer.reader.lexer import tokenize
from synthizer.reader.parser import parse_expression, parse_program
from synthizer.types.source_pos import SourcePos


def _kinds(source):
    return [(t.kind, t.text) for t in tokenize(source)]


def N(value):
    return NumberLiteral(float(value))


def I(name):
    return Identifier(name)


# -------------------------------
# Lexer
# -------------------------------
@pytest.mark.parametrize(
    "source,expected",
    [
        ("a + 1.5", [("ident", "a"), ("op", "+"), ("number", "1.5"), ("eof", "")]),
        ("f[x=1]", [("ident", "f"), ("symbol", "["), ("ident", "x"), ("symbol", "="),
                    ("number", "1"), ("symbol", "]"), ("eof", "")]),
        ("a<=b&&!c", [("ident", "a"), ("op", "<="), ("ident", "b"), ("op", "&&"),
                      ("op", "!"), ("ident", "c"), ("eof", "")]),
        ("a == b != c || d", [("ident", "a"), ("op", "=="), ("ident", "b"), ("op", "!="),
                              ("ident", "c"), ("op", "||"), ("ident", "d"), ("eof", "")]),
        ("x // comment ; {\ny", [("ident", "x"), ("ident", "y"), ("eof", "")]),
        ("if else iffy _else2", [("keyword", "if"), ("keyword", "else"), ("ident", "iffy"),
                                 ("ident", "_else2"), ("eof", "")]),
        ("main t {\r\n t; }", [("ident", "main"), ("ident", "t"), ("symbol", "{"), ("ident", "t"),
                               ("symbol", ";"), ("symbol", "}"), ("eof", "")]),
        ("2^-1 % 3", [("number", "2"), ("op", "^"), ("op", "-"), ("number", "1"),
                      ("op", "%"), ("number", "3"), ("eof", "")]),
        ("a~=b^^c^d", [("ident", "a"), ("op", "~="), ("ident", "b"), ("op", "^^"),
                       ("ident", "c"), ("op", "^"), ("ident", "d"), ("eof", "")]),
        ("", [("eof", "")]),
    ],
)
def test_lexer_basic(source, expected):
    assert _kinds(source) == expected


@pytest.mark.parametrize(
    "source,value",
    [
        ("12", 12.0),
        ("12.5", 12.5),
        ("12.", 12.0),
        (".5", 0.5),
        ("1e-3", 0.001),
        ("2E+4", 20000.0),
        ("0.25e2", 25.0),
    ],
)
def test_lexer_numbers(source, value):
    token = tokenize(source)[0]
    assert token.kind == "number"
    assert token.value == value


def test_lexer_positions():
    tokens = tokenize("a\n  b + c")
    assert tokens[0].pos == SourcePos(1, 1)
    assert tokens[1].pos == SourcePos(2, 3)
    assert tokens[2].pos == SourcePos(2, 5)
    assert tokens[3].pos == SourcePos(2, 7)
    assert tokens[-1].kind == "eof"
    assert tokens[-1].pos == SourcePos(2, 8)


@pytest.mark.parametrize(
    "source,pos,char",
    [
        ("a $ b", SourcePos(1, 3), "$"),
        ("a & b", SourcePos(1, 3), "&"),
        ("a | b", SourcePos(1, 3), "|"),
        ("a ~ b", SourcePos(1, 3), "~"),
        ("x\n  \"s\"", SourcePos(2, 3), '"'),
        ("1ex", SourcePos(1, 3), "x"),
        ("1e+", SourcePos(1, 4), "<eof>"),
    ],
)
def test_lexer_errors(source, pos, char):
    with pytest.raises(SynthLexError) as info:
        tokenize(source)
    assert info.value.pos == pos
    assert info.value.char == char


# -------------------------------
# Expressions
# -------------------------------
@pytest.mark.parametrize(
    "source,expected",
    [
        ("1 + 2 * 3", BinaryOp("+", N(1), BinaryOp("*", N(2), N(3)))),
        ("(1 + 2) * 3", BinaryOp("*", BinaryOp("+", N(1), N(2)), N(3))),
        ("1 - 2 - 3", BinaryOp("-", BinaryOp("-", N(1), N(2)), N(3))),
        ("2 ^ 3 ^ 2", BinaryOp("^", N(2), BinaryOp("^", N(3), N(2)))),
        ("-2 ^ 2", UnaryOp("-", BinaryOp("^", N(2), N(2)))),
        ("2 ^ -1", BinaryOp("^", N(2), UnaryOp("-", N(1)))),
        ("a % b * c", BinaryOp("*", BinaryOp("%", I("a"), I("b")), I("c"))),
        ("a || b && c", BinaryOp("||", I("a"), BinaryOp("&&", I("b"), I("c")))),
        ("a < b == c", BinaryOp("==", BinaryOp("<", I("a"), I("b")), I("c"))),
        ("a ^^ b && c", BinaryOp("^^", I("a"), BinaryOp("&&", I("b"), I("c")))),
        ("a ^^ b || c", BinaryOp("||", BinaryOp("^^", I("a"), I("b")), I("c"))),
        ("a ~= b + 1 == c", BinaryOp("==", BinaryOp("~=", I("a"), BinaryOp("+", I("b"), N(1))), I("c"))),
        ("!a + b", BinaryOp("+", UnaryOp("!", I("a")), I("b"))),
        ("a + b if c > 1 else d",
         Conditional(BinaryOp(">", I("c"), N(1)), BinaryOp("+", I("a"), I("b")), I("d"))),
        ("a if b else c if d else e",
         Conditional(I("b"), I("a"), Conditional(I("d"), I("c"), I("e")))),
        ("[1, x, [2]]", ArrayLiteral((N(1), I("x"), ArrayLiteral((N(2),))))),
        ("[]", ArrayLiteral(())),
        ("f()", Call("f", ())),
        ("f(1, b = x + 1)", Call("f", (Argument(None, N(1)), Argument("b", BinaryOp("+", I("x"), N(1)))))),
    ],
)
def test_parse_expression(source, expected):
    assert parse_expression(source) == expected


def test_call_forms_share_one_node():
    paren = parse_expression("f(5, b = 2)")
    bracket = parse_expression("f[5, b = 2]")
    assert paren == bracket
    assert not paren.bracketed
    assert bracket.bracketed


def test_node_positions():
    expr = parse_expression("1 +\n  foo(x)")
    assert expr.pos == SourcePos(1, 3)
    assert expr.right.pos == SourcePos(2, 3)
    assert expr.right.args[0].pos == SourcePos(2, 7)


# -------------------------------
# Programs
# -------------------------------
def test_parse_program_declarations():
    program = parse_program(
        """
        // constants and functions in any order
        x = 1;
        f a, b = 2 { a + b; a; }
        g { 1; }
        main t { f(t); }
        """
    )
    assert [d.name for d in program.declarations] == ["x", "f", "g", "main"]
    assert program.bindings == (Binding("x", N(1)),)
    f = program.declarations[1]
    assert isinstance(f, FunctionDef)
    assert f.params == (Parameter("a"), Parameter("b", N(2)))
    assert f.body == (BinaryOp("+", I("a"), I("b")), I("a"))
    assert program.declarations[2].params == ()
    assert [fn.name for fn in program.functions] == ["f", "g", "main"]


def test_parse_empty_program():
    assert parse_program("  // nothing here\n").declarations == ()


@pytest.mark.parametrize(
    "source,pos,fragment",
    [
        ("f a { a }", SourcePos(1, 9), "expected ';', found '}'"),
        ("f a { }", SourcePos(1, 7), "expected an expression"),
        ("main t { 1;", SourcePos(1, 12), "found end of input"),
        ("f a, a { a; }", SourcePos(1, 6), "duplicate parameter 'a'"),
        ("main t { [a = 1]; }", SourcePos(1, 11), "named argument 'a'"),
        ("main t { f(1,); }", SourcePos(1, 14), "expected an expression"),
        ("x = 1", SourcePos(1, 6), "expected ';'"),
        ("f a { a; };", SourcePos(1, 11), "expected a constant or function name"),
        ("main t { 1 if t; }", SourcePos(1, 16), "expected 'else'"),
        ("1 = 2;", SourcePos(1, 1), "expected a constant or function name"),
    ],
)
def test_parse_errors(source, pos, fragment):
    with pytest.raises(SynthParseError) as info:
        parse_program(source)
    assert info.value.pos == pos
    assert fragment in str(info.value)


def test_parse_expression_rejects_trailing_tokens():
    with pytest.raises(SynthParseError):
        parse_expression("1 2")


# -------------------------------
# Hypothesis tests
# -------------------------------
finite_floats = st.floats(min_value=0, max_value=1e12, allow_nan=False, allow_infinity=False).map(abs)
names = st.from_regex(r"[A-Za-z_][A-Za-z0-9_]{0,8}", fullmatch=True)


@given(finite_floats)
def test_lexer_number_roundtrip(x):
    token = tokenize(repr(x))[0]
    assert token.kind == "number"
    assert token.value == x


@given(names)
def test_lexer_identifiers(name):
    tokens = tokenize(name)
    assert len(tokens) == 2
    assert tokens[0].text == name
    assert tokens[0].kind == ("keyword" if name in ("if", "else") else "ident")


@given(st.text(max_size=40))
def test_lexer_total(text):
    # either tokens ending in eof or a lex error, never anything else
    try:
        tokens = tokenize(text)
    except SynthLexError:
        return
    assert tokens[-1].kind == "eof"
