"""Value system for the VM.

Provides kind classification, literal parsing, coercion and equality: the
foundation for all runtime value handling.
"""

from __future__ import annotations

import math
import re

from ._channel import Channel
from ._errors import InvalidTypeConversionError, LiteralParseError, NilTypeError
from ._host import Pointer, Record, adapter_for, copy_value, object_adapter
from ._scope import Scope
from ._sequence import Sequence
from ._types import (
    ANY_TYPE,
    BOOL_TYPE,
    FLOAT_TYPE,
    FUNC_TYPE,
    INT_TYPE,
    STRING_TYPE,
    ChanType,
    HostType,
    Kind,
    MapType,
    PointerType,
    SliceType,
    StructType,
    TypeDesc,
)

_INT64_MIN = -(1 << 63)
_UINT64 = 1 << 64

_DECIMAL_LIT = re.compile(r"[0-9]+")
_HEX_LIT = re.compile(r"0x[0-9a-fA-F]+")
_FLOAT_LIT = re.compile(r"(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?")


def int64(value: int) -> int:
    """Wrap a Python int to the signed 64-bit range."""
    value &= _UINT64 - 1
    if value >= 1 << 63:
        value -= _UINT64
    return value


def float_to_int64(value: float) -> int:
    """Truncate toward zero; non-finite values map to the minimum int64."""
    if not math.isfinite(value):
        return _INT64_MIN
    return int64(int(value))


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

def kind_of(value: object) -> Kind:
    """Classify a runtime value."""
    if value is None:
        return Kind.NIL
    if isinstance(value, bool):
        return Kind.BOOL
    if isinstance(value, int):
        return Kind.INT
    if isinstance(value, float):
        return Kind.FLOAT
    if isinstance(value, str):
        return Kind.STRING
    if isinstance(value, (Sequence, list)):
        return Kind.SLICE
    if isinstance(value, dict):
        return Kind.MAP
    if isinstance(value, Pointer):
        return Kind.PTR
    if isinstance(value, Channel):
        return Kind.CHAN
    if isinstance(value, Scope):
        return Kind.SCOPE
    if isinstance(value, TypeDesc):
        return Kind.TYPE
    if adapter_for(value) is not None:
        return Kind.STRUCT
    if callable(value):
        return Kind.FUNC
    if object_adapter(value) is not None:
        return Kind.STRUCT
    return Kind.ANY


def is_sequence(value: object) -> bool:
    return isinstance(value, (Sequence, list))


def is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


# ---------------------------------------------------------------------------
# Literal parsing
# ---------------------------------------------------------------------------

def parse_number(lit: str) -> int | float:
    """Parse numeric literal text.

    - text containing ``.`` or ``e`` -> float
    - ``0x`` prefix -> base-16 int
    - anything else -> base-10 int

    Only plain digits are accepted: no sign, whitespace or ``_`` separators.
    Integers must fit in 64 signed bits and floats must be finite.
    """
    if "." in lit or "e" in lit:
        if not _FLOAT_LIT.fullmatch(lit):
            raise LiteralParseError(f"invalid float literal: {lit!r}")
        value = float(lit)
        if math.isinf(value):
            raise LiteralParseError(f"float literal out of range: {lit!r}")
        return value
    if lit.startswith("0x"):
        if not _HEX_LIT.fullmatch(lit):
            raise LiteralParseError(f"invalid integer literal: {lit!r}")
        value = int(lit[2:], 16)
    else:
        if not _DECIMAL_LIT.fullmatch(lit):
            raise LiteralParseError(f"invalid integer literal: {lit!r}")
        value = int(lit, 10)
    if not _INT64_MIN <= value < 1 << 63:
        raise LiteralParseError(f"integer literal out of range: {lit!r}")
    return value


# ---------------------------------------------------------------------------
# Coercion
# ---------------------------------------------------------------------------

def try_to_float(value: object) -> float:
    """Float coercion; raises ValueError when *value* has no numeric reading."""
    if isinstance(value, bool):
        return 1.0 if value else 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise ValueError(f"cannot convert {kind_of(value).value} to float64")


def try_to_int(value: object) -> int:
    """Int coercion; raises ValueError when *value* has no numeric reading."""
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, int):
        return int64(value)
    if isinstance(value, float):
        return float_to_int64(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int64(int(text, 10))
        except ValueError:
            return float_to_int64(float(text))
    raise ValueError(f"cannot convert {kind_of(value).value} to int64")


def to_float(value: object) -> float:
    try:
        return try_to_float(value)
    except ValueError:
        return 0.0


def to_int(value: object) -> int:
    try:
        return try_to_int(value)
    except ValueError:
        return 0


def to_bool(value: object) -> bool:
    """Truthiness: false only for false, numeric zero, ``""`` and nil."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value != ""
    return True


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    return repr(value)


def to_string(value: object) -> str:
    if isinstance(value, str):
        return value
    if value is None:
        return "nil"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, int):
        return str(value)
    if is_sequence(value):
        return "[" + " ".join(to_string(v) for v in value) + "]"
    if isinstance(value, dict):
        body = " ".join(f"{to_string(k)}:{to_string(v)}" for k, v in value.items())
        return f"map[{body}]"
    return str(value)


# ---------------------------------------------------------------------------
# Equality
# ---------------------------------------------------------------------------

def equal(lhs: object, rhs: object) -> bool:
    """Deep, symmetric equality over every kind.

    Numbers compare by value across int and float; sequences, maps and
    records compare element-wise; everything else compares by ``==``.
    """
    if lhs is None or rhs is None:
        return lhs is None and rhs is None
    if is_number(lhs) and is_number(rhs):
        return lhs == rhs
    if isinstance(lhs, bool) or isinstance(rhs, bool):
        return isinstance(lhs, bool) and isinstance(rhs, bool) and lhs == rhs
    if is_sequence(lhs) and is_sequence(rhs):
        return len(lhs) == len(rhs) and all(equal(a, b) for a, b in zip(lhs, rhs))
    if isinstance(lhs, dict) and isinstance(rhs, dict):
        if lhs.keys() != rhs.keys():
            return False
        return all(equal(v, rhs[k]) for k, v in lhs.items())
    if isinstance(lhs, Record) and isinstance(rhs, Record):
        if lhs.struct_type is not rhs.struct_type:
            return False
        return all(equal(v, rhs.fields[k]) for k, v in lhs.fields.items())
    return bool(lhs == rhs)


# ---------------------------------------------------------------------------
# Type conversion
# ---------------------------------------------------------------------------

_NILABLE = frozenset({Kind.SLICE, Kind.MAP, Kind.PTR, Kind.CHAN, Kind.FUNC, Kind.ANY})


def convert_to(value: object, desc: TypeDesc | None) -> object:
    """Convert *value* for storage in a slot of type *desc*.

    Raises InvalidTypeConversionError when no conversion exists.
    """
    if desc is None or desc.kind == Kind.ANY:
        return copy_value(value)
    kind = kind_of(value)
    target = desc.kind
    if kind == Kind.NIL:
        if target in _NILABLE:
            return None
    elif target == Kind.INT:
        if kind == Kind.INT:
            return value
        if kind == Kind.FLOAT:
            return float_to_int64(value)
    elif target == Kind.FLOAT:
        if kind in (Kind.INT, Kind.FLOAT):
            return float(value)
    elif target in (Kind.BOOL, Kind.STRING, Kind.SLICE, Kind.MAP, Kind.PTR, Kind.CHAN, Kind.TYPE):
        if kind == target:
            return value
    elif target == Kind.FUNC:
        if kind == Kind.FUNC:
            return value
    elif isinstance(desc, StructType):
        if isinstance(value, Record) and value.struct_type is desc:
            return copy_value(value)
    elif isinstance(desc, HostType):
        if isinstance(value, desc.cls):
            return copy_value(value)
    raise InvalidTypeConversionError(
        f"invalid type conversion: cannot use {kind.value} as {desc}"
    )


def type_of(value: object) -> TypeDesc:
    """Runtime type descriptor of a value."""
    if value is None:
        raise NilTypeError("type of nil is undefined")
    if isinstance(value, TypeDesc):
        return value
    kind = kind_of(value)
    if kind == Kind.BOOL:
        return BOOL_TYPE
    if kind == Kind.INT:
        return INT_TYPE
    if kind == Kind.FLOAT:
        return FLOAT_TYPE
    if kind == Kind.STRING:
        return STRING_TYPE
    if kind == Kind.FUNC:
        return FUNC_TYPE
    if isinstance(value, Sequence):
        return SliceType(value.elem or ANY_TYPE)
    if isinstance(value, list):
        return SliceType(ANY_TYPE)
    if kind == Kind.MAP:
        return MapType(ANY_TYPE, ANY_TYPE)
    if isinstance(value, Channel):
        return ChanType(value.elem or ANY_TYPE)
    if kind == Kind.PTR:
        target = value.load()
        return PointerType(ANY_TYPE if target is None else type_of(target))
    if isinstance(value, Record):
        return value.struct_type
    if kind == Kind.STRUCT:
        return HostType(type(value))
    return ANY_TYPE
