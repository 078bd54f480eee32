"""Shared test helpers for the tether test suite."""

from tether.model.expressions import (
    AssocExpr,
    BinOpExpr,
    CallExpr,
    ConstExpr,
    IdentExpr,
    ItemExpr,
    LetExpr,
    MemberExpr,
    NumberExpr,
    StringExpr,
)
from tether.model.types import NamedTypeRef
from tether.vm import EvalConfig, Evaluator, Scope


def num(lit) -> NumberExpr:
    """Numeric literal; accepts text or a Python number."""
    return NumberExpr(lit=str(lit))


def s(text: str) -> StringExpr:
    return StringExpr(lit=text)


def const(value: str) -> ConstExpr:
    return ConstExpr(value=value)


def ident(name: str) -> IdentExpr:
    return IdentExpr(name=name)


def binop(lhs, op: str, rhs=None) -> BinOpExpr:
    return BinOpExpr(lhs=lhs, operator=op, rhs=rhs)


def member(expr, name: str) -> MemberExpr:
    return MemberExpr(expr=expr, name=name)


def item(value, index) -> ItemExpr:
    return ItemExpr(value=value, index=index)


def let(lhs, rhs) -> LetExpr:
    return LetExpr(lhs=lhs, rhs=rhs)


def assoc(lhs, op: str, rhs=None) -> AssocExpr:
    return AssocExpr(lhs=lhs, operator=op, rhs=rhs)


def call(name: str, *args, **kwargs) -> CallExpr:
    return CallExpr(name=name, args=list(args), **kwargs)


def tref(name: str) -> NamedTypeRef:
    """Shorthand for NamedTypeRef(name=name)."""
    return NamedTypeRef(name=name)


def make_scope(**values) -> Scope:
    """Root scope with *values* defined."""
    scope = Scope()
    for name, value in values.items():
        scope.define(name, value)
    return scope


def run(expr, scope: Scope | None = None, **config):
    """Evaluate *expr* with a fresh evaluator; returns the value."""
    if scope is None:
        scope = Scope()
    return Evaluator(EvalConfig(**config)).eval(expr, scope)
