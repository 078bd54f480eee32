"""Evaluator: tree-walking interpreter for expression trees.

The ``Evaluator`` computes the value of one expression node against a
scope, recursing into children left to right, depth first.  Records,
sequences and maps come from the host or from literals; scalars are plain
Python values.
"""

from __future__ import annotations

import logging
import sys
import threading
from collections.abc import Callable

from tether.model.expressions import (
    AddrExpr,
    AnonCallExpr,
    ArrayExpr,
    AssocExpr,
    BinOpExpr,
    CallExpr,
    ChanExpr,
    ConstExpr,
    DerefExpr,
    Expression,
    FuncExpr,
    IdentExpr,
    ItemExpr,
    LetExpr,
    LetsExpr,
    MakeChanExpr,
    MakeExpr,
    MakeTypeExpr,
    MapExpr,
    MemberExpr,
    NewExpr,
    NumberExpr,
    ParenExpr,
    SliceExpr,
    StringExpr,
    TernaryOpExpr,
    UnaryExpr,
)

from ._calls import eval_anon_call, eval_call, make_function
from ._channel import Channel, ChannelClosed
from ._config import EvalConfig
from ._errors import (
    ChannelConstructionError,
    ChannelOperationError,
    ConstructionError,
    DereferenceError,
    EvalError,
    InvalidChannelOperationError,
    InvalidOperationError,
    NilTypeError,
    RecursionDepthError,
    UndefinedIdentifierError,
)
from ._host import Box, Pointer, VarPointer, copy_value
from ._operators import apply_binop, apply_unary, logical_result
from ._resolve import (
    OMITTED,
    address_of_member,
    check_sliceable,
    get_index,
    get_member,
    get_slice,
    set_index,
    set_member,
)
from ._sequence import Sequence
from ._types import (
    ANY_TYPE,
    make_sequence,
    new_channel,
    resolve_full_type,
    resolve_type,
    slice_of,
    zero_value,
)
from ._values import convert_to, parse_number, to_bool, to_int, to_string, type_of

logger = logging.getLogger(__name__)

# Right operand of compound assignments written without one (``x.n++``).
_ONE = NumberExpr(lit="1")

_CONSTANTS = {"true": True, "false": False, "nil": None}

# Faults raised by allocation that the debug setting lets escape raw.
_CONSTRUCTION_FAULTS = (ValueError, TypeError, OverflowError, MemoryError)

# Python frames per nesting level and per script call, used to size the
# interpreter recursion limit so the configured limits are reached first.
_FRAMES_PER_LEVEL = 2
_FRAMES_PER_CALL = 8
_FRAME_MARGIN = 1000


class Evaluator:
    """Evaluates expression trees against scopes.

    Parameters
    ----------
    config : EvalConfig, optional
        Settings; read from the environment when omitted.
    """

    def __init__(self, config: EvalConfig | None = None) -> None:
        self.config = config if config is not None else EvalConfig.from_env()
        self._local = threading.local()
        _reserve_stack(self.config)

    # -----------------------------------------------------------------------
    # Public API
    # -----------------------------------------------------------------------

    def eval(self, expr: Expression, scope) -> object:
        """Evaluate *expr* in *scope*.

        Errors carry the innermost node that failed.
        """
        depth = getattr(self._local, "depth", 0)
        if depth >= self.config.max_depth:
            raise RecursionDepthError(
                f"expression nesting exceeds {self.config.max_depth} levels", expr,
            )
        handler = self._EXPR_DISPATCH.get(expr.kind)
        if handler is None:
            raise InvalidOperationError(f"unknown expression kind: {expr.kind}", expr)

        self._local.depth = depth + 1
        try:
            return handler(self, expr, scope)
        except EvalError as err:
            if err.node is None:
                err.node = expr
            raise
        finally:
            self._local.depth = depth

    def eval_body(self, body: Expression, scope) -> object:
        """Evaluate a script function body as one nested call.

        The body starts at nesting depth zero; the call itself counts
        against ``max_call_depth``.
        """
        calls = getattr(self._local, "calls", 0)
        if calls >= self.config.max_call_depth:
            raise RecursionDepthError(
                f"call depth exceeds {self.config.max_call_depth} calls", body,
            )
        depth = getattr(self._local, "depth", 0)
        self._local.calls = calls + 1
        self._local.depth = 0
        try:
            return self.eval(body, scope)
        finally:
            self._local.calls = calls
            self._local.depth = depth

    # -----------------------------------------------------------------------
    # Literals and names
    # -----------------------------------------------------------------------

    def _eval_number(self, expr: NumberExpr, scope) -> object:
        return parse_number(expr.lit)

    def _eval_string(self, expr: StringExpr, scope) -> object:
        return expr.lit

    def _eval_const(self, expr: ConstExpr, scope) -> object:
        return _CONSTANTS[expr.value]

    def _eval_ident(self, expr: IdentExpr, scope) -> object:
        return scope.get(expr.name)

    def _eval_array(self, expr: ArrayExpr, scope) -> object:
        values = [copy_value(self.eval(e, scope)) for e in expr.exprs]
        return Sequence(values, ANY_TYPE)

    def _eval_map(self, expr: MapExpr, scope) -> object:
        return {
            key: copy_value(self.eval(value, scope))
            for key, value in expr.entries.items()
        }

    # -----------------------------------------------------------------------
    # Pointers
    # -----------------------------------------------------------------------

    def _pointer_target(self, target: Expression, scope) -> object:
        """Value named by the operand of ``*``, before dereferencing."""
        if isinstance(target, IdentExpr):
            return scope.get(target.name)
        if isinstance(target, MemberExpr):
            return get_member(self.eval(target.expr, scope), target.name)
        raise InvalidOperationError("invalid operation for the value")

    def _eval_deref(self, expr: DerefExpr, scope) -> object:
        value = self._pointer_target(expr.expr, scope)
        if not isinstance(value, Pointer):
            raise DereferenceError("cannot dereference non-pointer value")
        return value.load()

    def _eval_addr(self, expr: AddrExpr, scope) -> object:
        target = expr.expr
        if isinstance(target, IdentExpr):
            owner = scope.owner_of(target.name)
            if owner is None:
                raise UndefinedIdentifierError(target.name)
            return VarPointer(owner, target.name)
        if isinstance(target, MemberExpr):
            return address_of_member(self.eval(target.expr, scope), target.name)
        raise InvalidOperationError("invalid operation for the value")

    # -----------------------------------------------------------------------
    # Operators
    # -----------------------------------------------------------------------

    def _eval_unary(self, expr: UnaryExpr, scope) -> object:
        return apply_unary(expr.operator, self.eval(expr.expr, scope))

    def _eval_paren(self, expr: ParenExpr, scope) -> object:
        return self.eval(expr.sub_expr, scope)

    def _eval_binop(self, expr: BinOpExpr, scope) -> object:
        lhs = self.eval(expr.lhs, scope)
        rhs_expr = expr.rhs
        if expr.operator in ("&&", "||"):
            decided, result = logical_result(expr.operator, lhs)
            if decided:
                return result
            return self.eval(rhs_expr, scope) if rhs_expr is not None else None
        rhs = self.eval(rhs_expr, scope) if rhs_expr is not None else None
        return apply_binop(expr.operator, lhs, rhs)

    def _eval_ternary(self, expr: TernaryOpExpr, scope) -> object:
        if to_bool(self.eval(expr.condition, scope)):
            return self.eval(expr.lhs, scope)
        return self.eval(expr.rhs, scope)

    # -----------------------------------------------------------------------
    # Access
    # -----------------------------------------------------------------------

    def _eval_member(self, expr: MemberExpr, scope) -> object:
        return get_member(self.eval(expr.expr, scope), expr.name)

    def _eval_item(self, expr: ItemExpr, scope) -> object:
        value = self.eval(expr.value, scope)
        index = self.eval(expr.index, scope)
        return get_index(value, index)

    def _eval_slice(self, expr: SliceExpr, scope) -> object:
        value = self.eval(expr.value, scope)
        check_sliceable(value)
        begin = self.eval(expr.begin, scope) if expr.begin is not None else OMITTED
        end = self.eval(expr.end, scope) if expr.end is not None else OMITTED
        return get_slice(value, begin, end)

    # -----------------------------------------------------------------------
    # Assignment
    # -----------------------------------------------------------------------

    def _assign(self, target: Expression, value: object, scope) -> None:
        """Write *value* through an assignment target."""
        if isinstance(target, IdentExpr):
            scope.set_value(target.name, copy_value(value))
        elif isinstance(target, MemberExpr):
            set_member(self.eval(target.expr, scope), target.name, value)
        elif isinstance(target, ItemExpr):
            container = self.eval(target.value, scope)
            index = self.eval(target.index, scope)
            set_index(container, index, value)
        elif isinstance(target, DerefExpr):
            pointer = self._pointer_target(target.expr, scope)
            if not isinstance(pointer, Pointer):
                raise DereferenceError("cannot dereference non-pointer value")
            pointer.store(copy_value(value))
        elif isinstance(target, ParenExpr):
            self._assign(target.sub_expr, value, scope)
        else:
            raise InvalidOperationError(f"cannot assign to {target.kind} expression")

    def _eval_assoc(self, expr: AssocExpr, scope) -> object:
        if expr.operator in ("++", "--") and isinstance(expr.lhs, IdentExpr):
            return self._step(expr.lhs.name, expr.operator == "++", scope)

        rhs_expr = expr.rhs if expr.rhs is not None else _ONE
        lhs = self.eval(expr.lhs, scope)
        rhs = self.eval(rhs_expr, scope)
        value = apply_binop(expr.operator[:1], lhs, rhs)
        self._assign(expr.lhs, value, scope)
        return value

    @staticmethod
    def _step(name: str, increment: bool, scope) -> object:
        value = scope.get(name)
        delta = 1 if increment else -1
        if isinstance(value, bool):
            # false -> 1 / -1, true -> 2 / 0
            value = int(value) + delta
        elif isinstance(value, float):
            value = value + delta
        else:
            value = apply_binop("+", to_int(value), delta)
        scope.set_value(name, value)
        return value

    def _eval_let(self, expr: LetExpr, scope) -> object:
        value = self.eval(expr.rhs, scope)
        self._assign(expr.lhs, value, scope)
        return value

    def _eval_lets(self, expr: LetsExpr, scope) -> object:
        values = [self.eval(rhs, scope) for rhs in expr.rhss]
        for target, value in zip(expr.lhss, values):
            self._assign(target, value, scope)
        return values[-1] if values else None

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    def _construct(self, error: type[EvalError], func: Callable, *args) -> object:
        """Run an allocation, converting its faults unless debugging."""
        if self.config.debug:
            return func(*args)
        try:
            return func(*args)
        except _CONSTRUCTION_FAULTS as exc:
            logger.debug("construction fault in %s: %r", func.__name__, exc)
            raise error(f"{func.__name__}: {exc}") from exc

    def _eval_new(self, expr: NewExpr, scope) -> object:
        desc = resolve_full_type(expr.type, scope)
        if desc is None:
            raise NilTypeError("type cannot be nil for new")
        return Box(self._construct(ConstructionError, zero_value, desc))

    def _eval_make(self, expr: MakeExpr, scope) -> object:
        desc, dimensions = resolve_type(expr.type, scope)
        if desc is None:
            raise NilTypeError("type cannot be nil for make")

        dimensions += expr.dimensions
        for _ in range(1, dimensions):
            desc = slice_of(desc)
        if dimensions < 1:
            return self._construct(ConstructionError, zero_value, desc)

        length = to_int(self.eval(expr.len_expr, scope)) if expr.len_expr is not None else 0
        if expr.cap_expr is not None:
            capacity = to_int(self.eval(expr.cap_expr, scope))
        else:
            capacity = length
        return self._construct(ConstructionError, make_sequence, desc, length, capacity)

    def _eval_make_type(self, expr: MakeTypeExpr, scope) -> object:
        name = to_string(self.eval(expr.name, scope))
        owner, leaf = scope.resolve_dotted_scope(name)
        value = self.eval(expr.type, owner)
        desc = type_of(value)
        owner.define_type(leaf, desc)
        logger.debug("defined type %s as %s", name, desc)
        return desc

    def _eval_make_chan(self, expr: MakeChanExpr, scope) -> object:
        desc = resolve_full_type(expr.type, scope)
        if desc is None:
            raise NilTypeError("type cannot be nil for make chan")
        size = to_int(self.eval(expr.size_expr, scope)) if expr.size_expr is not None else 0
        channel = self._construct(ChannelConstructionError, new_channel, desc, size)
        logger.debug("made %r", channel)
        return channel

    # -----------------------------------------------------------------------
    # Channels
    # -----------------------------------------------------------------------

    def _eval_chan(self, expr: ChanExpr, scope) -> object:
        rhs = self.eval(expr.rhs, scope)

        if expr.lhs is None:
            if isinstance(rhs, Channel):
                value, ok = rhs.recv()
                if not ok:
                    return self._construct(ChannelOperationError, zero_value, rhs.elem)
                return value
            raise InvalidChannelOperationError("invalid operation for chan")

        lhs = self.eval(expr.lhs, scope)
        if isinstance(lhs, Channel):
            value = convert_to(rhs, lhs.elem)
            try:
                lhs.send(value)
            except ChannelClosed as exc:
                raise ChannelOperationError(str(exc)) from exc
            return None
        if isinstance(rhs, Channel):
            value, ok = rhs.recv()
            if not ok:
                raise ChannelOperationError("failed to send to channel")
            self._assign(expr.lhs, value, scope)
            return value

        raise InvalidChannelOperationError("invalid operation for chan")

    # -----------------------------------------------------------------------
    # Functions
    # -----------------------------------------------------------------------

    def _eval_func(self, expr: FuncExpr, scope) -> object:
        return make_function(self, expr, scope)

    def _eval_anon_call(self, expr: AnonCallExpr, scope) -> object:
        return eval_anon_call(self, expr, scope)

    def _eval_call(self, expr: CallExpr, scope) -> object:
        return eval_call(self, expr, scope)

    # Expression dispatch table
    _EXPR_DISPATCH: dict[str, Callable[[Evaluator, Expression, object], object]] = {
        "number": _eval_number,
        "string": _eval_string,
        "const": _eval_const,
        "ident": _eval_ident,
        "array": _eval_array,
        "map": _eval_map,
        "deref": _eval_deref,
        "addr": _eval_addr,
        "unary": _eval_unary,
        "paren": _eval_paren,
        "member": _eval_member,
        "item": _eval_item,
        "slice": _eval_slice,
        "binop": _eval_binop,
        "ternary": _eval_ternary,
        "assoc": _eval_assoc,
        "let": _eval_let,
        "lets": _eval_lets,
        "new": _eval_new,
        "make": _eval_make,
        "make_type": _eval_make_type,
        "make_chan": _eval_make_chan,
        "chan": _eval_chan,
        "func": _eval_func,
        "anon_call": _eval_anon_call,
        "call": _eval_call,
    }


def _reserve_stack(config: EvalConfig) -> None:
    """Raise the interpreter recursion limit to fit *config*'s limits."""
    per_call = config.max_depth * _FRAMES_PER_LEVEL + _FRAMES_PER_CALL
    needed = (config.max_call_depth + 1) * per_call + _FRAME_MARGIN
    if sys.getrecursionlimit() < needed:
        logger.debug("raising recursion limit to %d", needed)
        sys.setrecursionlimit(needed)
