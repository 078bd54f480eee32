"""Member, index and slice resolution.

One algorithm serves reads, writes and address-of for ``v.name``:

1. a scope handle (or a sequence whose first element is one) resolves the
   name in that scope;
2. a method exposed by ``v``, or by the record ``v`` points to, is bound
   and returned, so methods win over fields;
3. a record, after one pointer indirection, yields the field;
4. a map yields the entry, nil when absent;
5. anything else does not support member operations.
"""

from __future__ import annotations

from ._errors import (
    IndexOutOfRangeError,
    InvalidIndexTypeError,
    InvalidOperationError,
    InvalidSliceRangeError,
    UndefinedIdentifierError,
    UnsupportedKindError,
)
from ._host import Box, FieldPointer, Pointer, VarPointer, copy_value, get_field, set_field, struct_adapter
from ._scope import Scope
from ._sequence import as_sequence
from ._types import Kind
from ._values import convert_to, is_sequence, kind_of, try_to_int

OMITTED = object()


def _unsupported(value: object, operation: str) -> UnsupportedKindError:
    return UnsupportedKindError(
        f"type {kind_of(value).value} does not support {operation} operation"
    )


def scope_handle(value: object) -> Scope | None:
    """The scope a value stands for, if it is a module or embeds one."""
    if isinstance(value, Scope):
        return value
    if is_sequence(value) and len(value) >= 1 and isinstance(value[0], Scope):
        return value[0]
    return None


def _deref_once(value: object) -> object:
    if isinstance(value, Pointer):
        return value.load()
    return value


def find_method(value: object, name: str):
    """Bound method *name* of a record or a pointer to one, else None."""
    target = _deref_once(value)
    if kind_of(target) != Kind.STRUCT:
        return None
    return struct_adapter(target).find_method(target, name)


# ---------------------------------------------------------------------------
# Member access
# ---------------------------------------------------------------------------

def _scope_lookup(handle: Scope, name: str) -> object:
    try:
        return handle.get(name)
    except UndefinedIdentifierError:
        raise InvalidOperationError(f"invalid operation '{name}'") from None


def get_member(value: object, name: str) -> object:
    handle = scope_handle(value)
    if handle is not None:
        return _scope_lookup(handle, name)

    method = find_method(value, name)
    if method is not None:
        return method

    target = _deref_once(value)
    kind = kind_of(target)
    if kind == Kind.STRUCT:
        return get_field(target, name)
    if kind == Kind.MAP:
        return target.get(name)
    raise _unsupported(target, "member")


def set_member(value: object, name: str, new: object) -> None:
    handle = scope_handle(value)
    if handle is not None:
        handle.set_value(name, copy_value(new))
        return

    target = _deref_once(value)
    kind = kind_of(target)
    if kind == Kind.STRUCT:
        set_field(target, name, new)
    elif kind == Kind.MAP:
        target[name] = copy_value(new)
    else:
        raise _unsupported(target, "member")


def address_of_member(value: object, name: str) -> Pointer:
    """Address of ``value.name``.

    Scope members and record fields are addressable; map entries and bound
    methods are not, so their address is that of a fresh copy and writes
    through it do not reach the original.
    """
    handle = scope_handle(value)
    if handle is not None:
        _scope_lookup(handle, name)
        return VarPointer(handle.owner_of(name), name)

    method = find_method(value, name)
    if method is not None:
        return Box(method)

    target = _deref_once(value)
    kind = kind_of(target)
    if kind == Kind.STRUCT:
        get_field(target, name)
        return FieldPointer(target, name)
    if kind == Kind.MAP:
        return Box(copy_value(target.get(name)))
    raise _unsupported(target, "member")


# ---------------------------------------------------------------------------
# Index and slice access
# ---------------------------------------------------------------------------

def _as_index(raw: object) -> int:
    try:
        return try_to_int(raw)
    except ValueError:
        raise InvalidIndexTypeError("index must be a number") from None


def _map_key_check(key: object) -> None:
    try:
        hash(key)
    except TypeError:
        raise InvalidIndexTypeError(
            f"invalid map key of type {kind_of(key).value}"
        ) from None


def get_index(value: object, index: object) -> object:
    kind = kind_of(value)
    if kind in (Kind.STRING, Kind.SLICE):
        i = _as_index(index)
        if i < 0 or i >= len(value):
            raise IndexOutOfRangeError("index out of range")
        return value[i]
    if kind == Kind.MAP:
        _map_key_check(index)
        return value.get(index)
    raise _unsupported(value, "index")


def set_index(value: object, index: object, new: object) -> None:
    kind = kind_of(value)
    if kind == Kind.SLICE:
        seq = as_sequence(value)
        i = _as_index(index)
        if i < 0 or i >= len(seq):
            raise IndexOutOfRangeError("index out of range")
        seq[i] = convert_to(new, seq.elem)
    elif kind == Kind.MAP:
        _map_key_check(index)
        value[index] = copy_value(new)
    elif kind == Kind.STRING:
        raise InvalidOperationError("strings are immutable")
    else:
        raise _unsupported(value, "index")


def _slice_bound(raw: object, default: int, length: int) -> int:
    if raw is OMITTED:
        return default
    i = _as_index(raw)
    if i < 0 or i > length:
        raise IndexOutOfRangeError("index out of range")
    return i


def check_sliceable(value: object) -> Kind:
    kind = kind_of(value)
    if kind not in (Kind.STRING, Kind.SLICE):
        raise _unsupported(value, "slice")
    return kind


def get_slice(value: object, begin: object = OMITTED, end: object = OMITTED) -> object:
    """``value[begin:end]``; pass ``OMITTED`` for a missing bound.

    Sequences give a view sharing storage with *value*.
    """
    kind = check_sliceable(value)
    length = len(value)
    b = _slice_bound(begin, 0, length)
    e = _slice_bound(end, length, length)
    if b > e:
        raise InvalidSliceRangeError("invalid slice index")
    if kind == Kind.STRING:
        return value[b:e]
    return as_sequence(value).view(b, e)
