"""Tests for function literals, calls and host callables."""

import logging
import threading

import pytest

from conftest import binop, call, ident, let, make_scope, member, num, run, s

from tether.model.expressions import AnonCallExpr, ArrayExpr, FuncExpr, TernaryOpExpr
from tether.vm import (
    INT_TYPE,
    ArgumentCountError,
    EvalConfig,
    Evaluator,
    Function,
    HostCallError,
    InvalidOperationError,
    NotCallableError,
    Record,
    Scope,
    Sequence,
    StructType,
    UndefinedIdentifierError,
)


def add_func(name="add"):
    return FuncExpr(name=name, params=["a", "b"], body=binop(ident("a"), "+", ident("b")))


# ---------------------------------------------------------------------------
# Function literals
# ---------------------------------------------------------------------------

class TestFuncLiteral:
    def test_named_is_defined(self):
        scope = Scope()
        func = run(add_func(), scope)
        assert isinstance(func, Function)
        assert scope.get("add") is func

    def test_anonymous_not_defined(self):
        scope = Scope()
        run(FuncExpr(params=[], body=num(1)), scope)
        assert "add" not in scope

    def test_callable_from_host(self):
        func = run(add_func())
        assert func(2, 3) == 5

    def test_closure_captures_scope(self):
        scope = make_scope(k=10)
        func = run(FuncExpr(params=["x"], body=binop(ident("x"), "*", ident("k"))), scope)
        scope.set_value("k", 3)
        assert func(2) == 6

    def test_params_do_not_leak(self):
        scope = Scope()
        run(add_func(), scope)
        run(call("add", num(1), num(2)), scope)
        assert "a" not in scope


# ---------------------------------------------------------------------------
# Calls
# ---------------------------------------------------------------------------

class TestCall:
    def test_named_call(self):
        scope = Scope()
        run(add_func(), scope)
        assert run(call("add", num(1), num(2)), scope) == 3

    def test_undefined(self):
        with pytest.raises(UndefinedIdentifierError):
            run(call("nope"))

    def test_arity(self):
        scope = Scope()
        run(add_func(), scope)
        with pytest.raises(ArgumentCountError, match="wants 2 arguments but received 1"):
            run(call("add", num(1)), scope)

    def test_variadic(self):
        scope = Scope()
        run(FuncExpr(name="rest", params=["first", "others"], var_arg=True,
                     body=ident("others")), scope)
        value = run(call("rest", num(1), num(2), num(3)), scope)
        assert isinstance(value, Sequence)
        assert list(value) == [2, 3]

    def test_variadic_empty(self):
        scope = Scope()
        run(FuncExpr(name="rest", params=["others"], var_arg=True, body=ident("others")), scope)
        assert list(run(call("rest"), scope)) == []

    def test_spread_argument(self):
        scope = Scope()
        run(add_func(), scope)
        expr = call("add", ArrayExpr(exprs=[num(4), num(5)]), var_arg=True)
        assert run(expr, scope) == 9

    def test_spread_non_sequence(self):
        scope = make_scope(f=lambda *a: a)
        with pytest.raises(InvalidOperationError, match="cannot spread"):
            run(call("f", num(1), var_arg=True), scope)

    def test_anon_call(self):
        expr = AnonCallExpr(expr=FuncExpr(params=["x"], body=binop(ident("x"), "*", num(2))),
                            args=[num(21)])
        assert run(expr) == 42

    def test_recursion(self):
        # fact(n) = n <= 1 ? 1 : n * fact(n - 1)
        body = TernaryOpExpr(
            condition=binop(ident("n"), "<=", num(1)),
            lhs=num(1),
            rhs=binop(ident("n"), "*", call("fact", binop(ident("n"), "-", num(1)))),
        )
        scope = Scope()
        run(FuncExpr(name="fact", params=["n"], body=body), scope)
        assert run(call("fact", num(10)), scope) == 3628800

    def test_arguments_copied(self):
        t = StructType("T", [("X", INT_TYPE)])
        rec = Record(t, {"X": 1})
        scope = make_scope(r=rec)
        run(FuncExpr(name="bump", params=["p"], body=let(member(ident("p"), "X"), num(5))), scope)
        run(call("bump", ident("r")), scope)
        assert rec.fields["X"] == 1


# ---------------------------------------------------------------------------
# Host callables
# ---------------------------------------------------------------------------

class TestHostCall:
    def test_builtin(self):
        scope = make_scope(length=len)
        assert run(call("length", s("abcd")), scope) == 4

    def test_tuple_result_becomes_sequence(self):
        scope = make_scope(pair=lambda: (1, "a"))
        value = run(call("pair"), scope)
        assert isinstance(value, Sequence)
        assert list(value) == [1, "a"]

    def test_exception_wrapped(self):
        def boom():
            raise RuntimeError("bad")

        scope = make_scope(boom=boom)
        with pytest.raises(HostCallError, match="boom: bad") as info:
            run(call("boom"), scope)
        assert isinstance(info.value.__cause__, RuntimeError)

    def test_not_callable(self):
        scope = make_scope(x=3)
        with pytest.raises(NotCallableError, match="int64"):
            run(call("x"), scope)

    def test_method_call(self):
        t = StructType("T", [("N", INT_TYPE)])

        @t.method
        def Add(rec, k):
            return rec.fields["N"] + k

        scope = make_scope(r=Record(t, {"N": 2}))
        expr = AnonCallExpr(expr=member(ident("r"), "Add"), args=[num(3)])
        assert run(expr, scope) == 5


# ---------------------------------------------------------------------------
# go
# ---------------------------------------------------------------------------

class TestGo:
    def test_runs_on_thread(self):
        done = threading.Event()
        seen = []

        def work(x):
            seen.append((x, threading.current_thread().name))
            done.set()

        scope = make_scope(work=work)
        assert run(call("work", num(1), go=True), scope) is None
        assert done.wait(2)
        assert seen[0][0] == 1
        assert seen[0][1].startswith("go-")

    def test_failure_logged(self, caplog):
        done = threading.Event()

        def fail():
            done.set()
            raise RuntimeError("thread failure")

        scope = make_scope(fail=fail)
        with caplog.at_level(logging.ERROR, logger="tether.vm._calls"):
            run(call("fail", go=True), scope)
            assert done.wait(2)
            for t in threading.enumerate():
                if t.name.startswith("go-fail"):
                    t.join(timeout=2)
        assert "go call to fail failed" in caplog.text

    def test_script_function(self):
        scope = Scope()
        run(FuncExpr(name="f", params=["v"], body=let(ident("out"), ident("v"))), scope)
        scope.define("out", None)
        Evaluator(EvalConfig()).eval(call("f", num(7), go=True), scope)
        for t in threading.enumerate():
            if t.name.startswith("go-"):
                t.join(timeout=2)
        assert scope.get("out") == 7
