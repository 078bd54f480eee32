"""tether VM: evaluation of script expression trees over host values.

Entry point::

    from tether.vm import Scope, evaluate
    from tether.model.expressions import BinOpExpr, IdentExpr, NumberExpr

    scope = Scope()
    scope.define("x", 41)
    assert evaluate(BinOpExpr(lhs=IdentExpr(name="x"), operator="+",
                              rhs=NumberExpr(lit="1")), scope) == 42
"""

from __future__ import annotations

from tether.model.expressions import Expression

from ._calls import Function, call_value, make_function
from ._channel import Channel
from ._config import DEBUG_ENV, MAX_CALL_DEPTH_ENV, MAX_DEPTH_ENV, EvalConfig
from ._errors import (
    ArgumentCountError,
    ChannelConstructionError,
    ChannelOperationError,
    ConstructionError,
    DereferenceError,
    DivisionByZeroError,
    EvalError,
    HostCallError,
    IndexOutOfRangeError,
    InvalidChannelOperationError,
    InvalidIndexTypeError,
    InvalidOperationError,
    InvalidSliceRangeError,
    InvalidTypeConversionError,
    LiteralParseError,
    NilTypeError,
    NoSuchFieldError,
    NotCallableError,
    RecursionDepthError,
    UndefinedIdentifierError,
    UndefinedTypeError,
    UnknownOperatorError,
    UnsupportedKindError,
)
from ._evaluator import Evaluator
from ._host import BoundMethod, Box, FieldPointer, Pointer, Record, VarPointer
from ._scope import Scope
from ._sequence import Sequence
from ._types import (
    ANY_TYPE,
    BOOL_TYPE,
    FLOAT_TYPE,
    INT_TYPE,
    STRING_TYPE,
    Kind,
    StructType,
    TypeDesc,
    resolve_full_type,
    resolve_type,
    zero_value,
)
from ._values import kind_of, to_bool, to_string, type_of


def evaluate(
    expr: Expression,
    scope: Scope | None = None,
    *,
    config: EvalConfig | None = None,
) -> object:
    """Evaluate one expression tree.

    Parameters
    ----------
    expr
        Root node of the tree.
    scope
        Scope to evaluate in; a fresh root scope when omitted.
    config
        Evaluator settings; read from the environment when omitted.

    Returns
    -------
    object
        The resulting runtime value.
    """
    if scope is None:
        scope = Scope()
    return Evaluator(config).eval(expr, scope)


__all__ = [
    "ANY_TYPE",
    "ArgumentCountError",
    "BOOL_TYPE",
    "BoundMethod",
    "Box",
    "Channel",
    "ChannelConstructionError",
    "ChannelOperationError",
    "ConstructionError",
    "DEBUG_ENV",
    "DereferenceError",
    "DivisionByZeroError",
    "EvalConfig",
    "EvalError",
    "Evaluator",
    "FLOAT_TYPE",
    "FieldPointer",
    "Function",
    "HostCallError",
    "INT_TYPE",
    "IndexOutOfRangeError",
    "InvalidChannelOperationError",
    "InvalidIndexTypeError",
    "InvalidOperationError",
    "InvalidSliceRangeError",
    "InvalidTypeConversionError",
    "Kind",
    "LiteralParseError",
    "MAX_CALL_DEPTH_ENV",
    "MAX_DEPTH_ENV",
    "NilTypeError",
    "NoSuchFieldError",
    "NotCallableError",
    "Pointer",
    "Record",
    "RecursionDepthError",
    "STRING_TYPE",
    "Scope",
    "Sequence",
    "StructType",
    "TypeDesc",
    "UndefinedIdentifierError",
    "UndefinedTypeError",
    "UnknownOperatorError",
    "UnsupportedKindError",
    "VarPointer",
    "call_value",
    "evaluate",
    "kind_of",
    "make_function",
    "resolve_full_type",
    "resolve_type",
    "to_bool",
    "to_string",
    "type_of",
    "zero_value",
]
