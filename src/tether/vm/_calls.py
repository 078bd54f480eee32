"""Function literals and calls.

Script functions close over the scope they were created in and evaluate
their expression body in a fresh child of it.  Host callables are invoked
directly; their exceptions are chained into ``HostCallError``.
"""

from __future__ import annotations

import logging
import threading

from tether.model.expressions import AnonCallExpr, CallExpr, FuncExpr

from ._errors import ArgumentCountError, EvalError, HostCallError, InvalidOperationError, NotCallableError
from ._host import copy_value
from ._sequence import Sequence
from ._types import Kind
from ._values import is_sequence, kind_of

logger = logging.getLogger(__name__)


class Function:
    """A script closure.  Calling it from Python evaluates its body."""

    __slots__ = ("name", "params", "var_arg", "body", "closure", "evaluator")

    def __init__(self, node: FuncExpr, closure, evaluator) -> None:
        self.name = node.name or "<anonymous>"
        self.params = list(node.params)
        self.var_arg = node.var_arg
        self.body = node.body
        self.closure = closure
        self.evaluator = evaluator

    def __call__(self, *args):
        return call_function(self, list(args))

    def __repr__(self) -> str:
        return f"<func {self.name}({', '.join(self.params)})>"


def make_function(evaluator, node: FuncExpr, scope) -> Function:
    func = Function(node, scope, evaluator)
    if node.name:
        scope.define(node.name, func)
    return func


def call_function(func: Function, args: list[object]) -> object:
    n = len(func.params)
    if func.var_arg:
        if len(args) < n - 1:
            raise ArgumentCountError(
                f"function {func.name} wants at least {n - 1} arguments "
                f"but received {len(args)}"
            )
        args = args[:n - 1] + [Sequence(args[n - 1:])]
    elif len(args) != n:
        raise ArgumentCountError(
            f"function {func.name} wants {n} arguments but received {len(args)}"
        )

    scope = func.closure.new_child()
    for param, arg in zip(func.params, args):
        scope.define(param, copy_value(arg))
    return func.evaluator.eval_body(func.body, scope)


def _callable_name(callee: object) -> str:
    return getattr(callee, "__name__", None) or getattr(callee, "name", None) or repr(callee)


def call_value(callee: object, args: list[object]) -> object:
    """Invoke a script function or host callable with evaluated arguments."""
    if isinstance(callee, Function):
        return call_function(callee, args)
    if kind_of(callee) != Kind.FUNC:
        raise NotCallableError(f"cannot call value of type {kind_of(callee).value}")
    try:
        result = callee(*args)
    except EvalError:
        raise
    except Exception as exc:
        raise HostCallError(f"{_callable_name(callee)}: {exc}") from exc
    # Multiple results come back as one sequence.
    if isinstance(result, tuple):
        return Sequence(list(result))
    return result


def _eval_args(evaluator, node: CallExpr | AnonCallExpr, scope) -> list[object]:
    args = [evaluator.eval(arg, scope) for arg in node.args]
    if node.var_arg and args:
        spread = args.pop()
        if not is_sequence(spread):
            raise InvalidOperationError(
                f"cannot spread value of type {kind_of(spread).value} as arguments"
            )
        args.extend(spread)
    return args


def _go(callee: object, args: list[object]) -> None:
    """Run a call on a daemon thread; its result is discarded."""
    def run():
        try:
            call_value(callee, args)
        except Exception:
            logger.exception("go call to %s failed", _callable_name(callee))

    threading.Thread(target=run, name=f"go-{_callable_name(callee)}", daemon=True).start()


def _dispatch(evaluator, callee: object, node: CallExpr | AnonCallExpr, scope) -> object:
    args = _eval_args(evaluator, node, scope)
    if node.go:
        _go(callee, args)
        return None
    return call_value(callee, args)


def eval_call(evaluator, node: CallExpr, scope) -> object:
    return _dispatch(evaluator, scope.get(node.name), node, scope)


def eval_anon_call(evaluator, node: AnonCallExpr, scope) -> object:
    return _dispatch(evaluator, evaluator.eval(node.expr, scope), node, scope)
