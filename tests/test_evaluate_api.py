"""Tests for the public entry point, literals and error reporting."""

import pytest

from conftest import binop, const, ident, make_scope, num, s

from tether.model.expressions import (
    ArrayExpr,
    BinOpExpr,
    IdentExpr,
    MapExpr,
    NumberExpr,
    Position,
)
from tether.vm import (
    EvalConfig,
    EvalError,
    LiteralParseError,
    Scope,
    Sequence,
    UndefinedIdentifierError,
    evaluate,
)


class TestEvaluate:
    def test_default_scope(self):
        assert evaluate(binop(num(40), "+", num(2))) == 42

    def test_given_scope(self):
        scope = make_scope(x=41)
        assert evaluate(binop(ident("x"), "+", num(1)), scope) == 42

    def test_explicit_config(self):
        assert evaluate(num(1), config=EvalConfig(max_depth=1)) == 1

    def test_tree_from_json(self):
        expr = BinOpExpr.model_validate({
            "lhs": {"kind": "number", "lit": "2"},
            "operator": "*",
            "rhs": {"kind": "ident", "name": "x"},
        })
        assert evaluate(expr, make_scope(x=21)) == 42


# ---------------------------------------------------------------------------
# Literals
# ---------------------------------------------------------------------------

class TestLiterals:
    @pytest.mark.parametrize("lit, expected", [
        ("10", 10),
        ("0x1A", 26),
        ("3.14", 3.14),
        ("1e3", 1000.0),
    ])
    def test_numbers(self, lit, expected):
        value = evaluate(NumberExpr(lit=lit))
        assert value == expected
        assert type(value) is type(expected)

    def test_bad_number(self):
        with pytest.raises(LiteralParseError):
            evaluate(num("0xG"))

    def test_string(self):
        assert evaluate(s("text")) == "text"

    def test_consts(self):
        assert evaluate(const("true")) is True
        assert evaluate(const("false")) is False
        assert evaluate(const("nil")) is None

    def test_ident(self):
        assert evaluate(ident("v"), make_scope(v="bound")) == "bound"

    def test_undefined_ident(self):
        with pytest.raises(UndefinedIdentifierError):
            evaluate(ident("v"))


class TestComposites:
    def test_array(self):
        value = evaluate(ArrayExpr(exprs=[num(1), s("a"), const("nil")]))
        assert isinstance(value, Sequence)
        assert list(value) == [1, "a", None]

    def test_empty_array(self):
        assert len(evaluate(ArrayExpr())) == 0

    def test_array_aborts_on_error(self):
        scope = Scope()
        expr = ArrayExpr(exprs=[num(1), ident("missing"), num(3)])
        with pytest.raises(UndefinedIdentifierError):
            evaluate(expr, scope)

    def test_each_literal_evaluation_is_fresh(self):
        expr = ArrayExpr(exprs=[num(1)])
        assert evaluate(expr) is not evaluate(expr)

    def test_map(self):
        value = evaluate(MapExpr(entries={"a": num(1), "b": s("x")}))
        assert value == {"a": 1, "b": "x"}


# ---------------------------------------------------------------------------
# Error reporting
# ---------------------------------------------------------------------------

class TestErrors:
    def test_innermost_node_recorded(self):
        inner = IdentExpr(name="missing", pos=Position(line=3, column=7))
        outer = binop(num(1), "+", inner)
        with pytest.raises(EvalError) as info:
            evaluate(outer)
        assert info.value.node is inner
        assert info.value.pos == Position(line=3, column=7)

    def test_message_includes_position(self):
        inner = IdentExpr(name="missing", pos=Position(line=3, column=7))
        with pytest.raises(EvalError, match=r"^3:7: undefined symbol 'missing'$"):
            evaluate(inner)

    def test_no_position(self):
        with pytest.raises(EvalError) as info:
            evaluate(ident("missing"))
        assert info.value.pos is None
        assert str(info.value) == "undefined symbol 'missing'"
