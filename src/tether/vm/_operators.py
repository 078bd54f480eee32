"""Unary and binary operator semantics.

Arithmetic follows fixed promotion rules: float if either operand is a
float, otherwise int64 with wrap-around.  ``&&`` and ``||`` short-circuit
and are handled by the evaluator; everything here receives both operands
already evaluated.
"""

from __future__ import annotations

import math

from ._errors import DivisionByZeroError, UnknownOperatorError
from ._sequence import Sequence, as_sequence
from ._values import (
    convert_to,
    equal,
    float_to_int64,
    int64,
    is_sequence,
    to_bool,
    to_float,
    to_int,
    to_string,
)

_UINT64_MASK = (1 << 64) - 1


def _either_float(lhs: object, rhs: object) -> bool:
    return isinstance(lhs, float) or isinstance(rhs, float)


def _pow(base: float, exp: float) -> float:
    try:
        return math.pow(base, exp)
    except OverflowError:
        if base < 0 and exp.is_integer() and int(exp) % 2:
            return -math.inf
        return math.inf
    except ValueError:
        # 0 to a negative power, or a negative base to a fractional one
        return math.inf if base == 0.0 else math.nan


def _divide(lhs: float, rhs: float) -> float:
    if rhs == 0.0:
        if lhs == 0.0 or math.isnan(lhs):
            return math.nan
        return math.copysign(math.inf, lhs) * math.copysign(1.0, rhs)
    return lhs / rhs


def _remainder(lhs: int, rhs: int) -> int:
    if rhs == 0:
        raise DivisionByZeroError("integer divide by zero")
    # Truncated toward zero: the result takes the dividend's sign.
    r = abs(lhs) % abs(rhs)
    return int64(r if lhs >= 0 else -r)


def _shift(lhs: int, count: int, left: bool) -> int:
    count &= _UINT64_MASK
    if left:
        return 0 if count >= 64 else int64(lhs << count)
    if count >= 64:
        return -1 if lhs < 0 else 0
    return lhs >> count


def _append(seq: object, rhs: object) -> Sequence:
    seq = as_sequence(seq)
    if is_sequence(rhs):
        values = [convert_to(v, seq.elem) for v in rhs]
    else:
        values = [convert_to(rhs, seq.elem)]
    return seq.append(values)


# ---------------------------------------------------------------------------
# Binary
# ---------------------------------------------------------------------------

def apply_binop(op: str, lhs: object, rhs: object) -> object:
    """Apply a non-short-circuit binary operator."""
    if op == "+":
        if is_sequence(lhs):
            return _append(lhs, rhs)
        if isinstance(lhs, str) or isinstance(rhs, str):
            return to_string(lhs) + to_string(rhs)
        if _either_float(lhs, rhs):
            return to_float(lhs) + to_float(rhs)
        return int64(to_int(lhs) + to_int(rhs))
    if op == "-":
        if _either_float(lhs, rhs):
            return to_float(lhs) - to_float(rhs)
        return int64(to_int(lhs) - to_int(rhs))
    if op == "*":
        if isinstance(lhs, str) and isinstance(rhs, int) and not isinstance(rhs, bool):
            return lhs * max(rhs, 0)
        if _either_float(lhs, rhs):
            return to_float(lhs) * to_float(rhs)
        return int64(to_int(lhs) * to_int(rhs))
    if op == "/":
        return _divide(to_float(lhs), to_float(rhs))
    if op == "%":
        return _remainder(to_int(lhs), to_int(rhs))
    if op == "**":
        if _either_float(lhs, rhs):
            return _pow(to_float(lhs), to_float(rhs))
        return float_to_int64(_pow(to_float(lhs), to_float(rhs)))

    # Comparison
    if op == "==":
        return equal(lhs, rhs)
    if op == "!=":
        return not equal(lhs, rhs)
    if op == ">":
        return to_float(lhs) > to_float(rhs)
    if op == ">=":
        return to_float(lhs) >= to_float(rhs)
    if op == "<":
        return to_float(lhs) < to_float(rhs)
    if op == "<=":
        return to_float(lhs) <= to_float(rhs)

    # Bitwise / shift
    if op == "&":
        return to_int(lhs) & to_int(rhs)
    if op == "|":
        return to_int(lhs) | to_int(rhs)
    if op == "<<":
        return _shift(to_int(lhs), to_int(rhs), left=True)
    if op == ">>":
        return _shift(to_int(lhs), to_int(rhs), left=False)

    raise UnknownOperatorError(f"unknown operator '{op}'")


def logical_result(op: str, lhs: object) -> tuple[bool, object]:
    """Decide ``&&`` / ``||`` from the left operand alone, if possible.

    Returns ``(True, result)`` when the right operand is not needed, else
    ``(False, None)``; the caller then yields the right operand unchanged.
    """
    if op == "&&":
        return (False, None) if to_bool(lhs) else (True, lhs)
    if op == "||":
        return (True, lhs) if to_bool(lhs) else (False, None)
    raise UnknownOperatorError(f"unknown operator '{op}'")


# ---------------------------------------------------------------------------
# Unary
# ---------------------------------------------------------------------------

def apply_unary(op: str, value: object) -> object:
    if op == "-":
        if isinstance(value, int) and not isinstance(value, bool):
            return int64(-value)
        if isinstance(value, float):
            return -value
        return -to_float(value)
    if op == "^":
        return ~to_int(value)
    if op == "!":
        return not to_bool(value)
    raise UnknownOperatorError(f"unknown operator '{op}'")
