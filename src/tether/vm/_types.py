"""Runtime kinds, type descriptors and type resolution.

Type syntax from ``tether.model.types`` is resolved against a scope's type
registry into descriptors.  Descriptors are what ``new``/``make`` allocate
from and what typed sequences and channels convert their elements to.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar

from tether.model.types import (
    ChanTypeRef,
    MapTypeRef,
    NamedTypeRef,
    PointerTypeRef,
    SliceTypeRef,
    StructTypeRef,
    TypeRef,
)

from ._channel import Channel
from ._host import Record
from ._sequence import Sequence


class Kind(str, Enum):
    """The closed set of runtime value kinds."""

    NIL = "nil"
    BOOL = "bool"
    INT = "int64"
    FLOAT = "float64"
    STRING = "string"
    SLICE = "slice"
    MAP = "map"
    STRUCT = "struct"
    PTR = "ptr"
    CHAN = "chan"
    FUNC = "func"
    TYPE = "type"
    SCOPE = "scope"
    ANY = "interface"


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

class TypeDesc:
    """Base class of runtime type descriptors."""

    kind: Kind


@dataclass(frozen=True)
class BasicType(TypeDesc):
    kind: Kind
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class SliceType(TypeDesc):
    elem: TypeDesc
    kind: ClassVar[Kind] = Kind.SLICE

    def __str__(self) -> str:
        return f"[]{self.elem}"


@dataclass(frozen=True)
class MapType(TypeDesc):
    key: TypeDesc
    value: TypeDesc
    kind: ClassVar[Kind] = Kind.MAP

    def __str__(self) -> str:
        return f"map[{self.key}]{self.value}"


@dataclass(frozen=True)
class ChanType(TypeDesc):
    elem: TypeDesc
    kind: ClassVar[Kind] = Kind.CHAN

    def __str__(self) -> str:
        return f"chan {self.elem}"


@dataclass(frozen=True)
class PointerType(TypeDesc):
    elem: TypeDesc
    kind: ClassVar[Kind] = Kind.PTR

    def __str__(self) -> str:
        return f"*{self.elem}"


@dataclass(frozen=True)
class HostType(TypeDesc):
    """A host Python class registered as a type; allocated by calling it."""

    cls: type
    kind: ClassVar[Kind] = Kind.STRUCT

    def __str__(self) -> str:
        return self.cls.__name__


class StructType(TypeDesc):
    """Struct type defined at runtime.

    Two struct types are the same only if they are the same object.
    Methods receive the record as their first argument::

        point = StructType("Point", [("X", INT_TYPE), ("Y", INT_TYPE)])

        @point.method
        def Norm(rec):
            return rec.fields["X"] ** 2 + rec.fields["Y"] ** 2
    """

    kind = Kind.STRUCT

    def __init__(
        self,
        name: str = "",
        fields: list[tuple[str, TypeDesc]] | None = None,
        methods: dict | None = None,
    ) -> None:
        self.name = name
        self.fields = list(fields or [])
        self.methods = dict(methods or {})

    def method(self, func=None, *, name: str | None = None):
        """Register *func* as a method.  Usable as ``@t.method`` or ``@t.method(name=...)``."""
        def register(f):
            self.methods[name or f.__name__] = f
            return f

        if func is not None:
            return register(func)
        return register

    def __str__(self) -> str:
        if self.name:
            return self.name
        inner = "; ".join(f"{n} {t}" for n, t in self.fields)
        return f"struct {{ {inner} }}"

    def __repr__(self) -> str:
        return f"StructType({str(self)!r})"


BOOL_TYPE = BasicType(Kind.BOOL, "bool")
INT_TYPE = BasicType(Kind.INT, "int64")
FLOAT_TYPE = BasicType(Kind.FLOAT, "float64")
STRING_TYPE = BasicType(Kind.STRING, "string")
FUNC_TYPE = BasicType(Kind.FUNC, "func")
ANY_TYPE = BasicType(Kind.ANY, "interface")

BUILTIN_TYPES: dict[str, TypeDesc] = {
    "bool": BOOL_TYPE,
    "int": INT_TYPE,
    "int64": INT_TYPE,
    "int32": INT_TYPE,
    "byte": INT_TYPE,
    "rune": INT_TYPE,
    "float64": FLOAT_TYPE,
    "float32": FLOAT_TYPE,
    "string": STRING_TYPE,
    "func": FUNC_TYPE,
    "interface": ANY_TYPE,
    "any": ANY_TYPE,
}

_PYTHON_TYPES: dict[type, TypeDesc] = {
    bool: BOOL_TYPE,
    int: INT_TYPE,
    float: FLOAT_TYPE,
    str: STRING_TYPE,
    object: ANY_TYPE,
}


def desc_from_python(tp: type) -> TypeDesc:
    """Descriptor for a host Python class."""
    if tp in _PYTHON_TYPES:
        return _PYTHON_TYPES[tp]
    return HostType(tp)


def slice_of(elem: TypeDesc) -> SliceType:
    return SliceType(elem)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------

def resolve_type(type_ref: TypeRef, scope) -> tuple[TypeDesc | None, int]:
    """Resolve type syntax to ``(base type, slice dimensions)``.

    Leading ``[]`` levels are peeled off and counted instead of resolved,
    so ``[][]int`` gives ``(int, 2)`` and ``map[string]int`` gives
    ``(map[string]int, 0)``.
    """
    if isinstance(type_ref, SliceTypeRef):
        base, dims = resolve_type(type_ref.element, scope)
        return base, dims + type_ref.dimensions
    return resolve_full_type(type_ref, scope), 0


def resolve_full_type(type_ref: TypeRef, scope) -> TypeDesc | None:
    """Resolve type syntax to one complete descriptor."""
    if isinstance(type_ref, NamedTypeRef):
        return scope.lookup_type(type_ref.name)
    if isinstance(type_ref, SliceTypeRef):
        desc = resolve_full_type(type_ref.element, scope)
        for _ in range(type_ref.dimensions):
            desc = SliceType(desc)
        return desc
    if isinstance(type_ref, MapTypeRef):
        return MapType(
            resolve_full_type(type_ref.key, scope),
            resolve_full_type(type_ref.value, scope),
        )
    if isinstance(type_ref, ChanTypeRef):
        return ChanType(resolve_full_type(type_ref.element, scope))
    if isinstance(type_ref, PointerTypeRef):
        return PointerType(resolve_full_type(type_ref.element, scope))
    if isinstance(type_ref, StructTypeRef):
        return StructType(fields=[
            (f.name, resolve_full_type(f.data_type, scope)) for f in type_ref.fields
        ])
    raise TypeError(f"unsupported type syntax: {type(type_ref).__name__}")


# ---------------------------------------------------------------------------
# Zero values
# ---------------------------------------------------------------------------

def zero_value(desc: TypeDesc | None) -> object:
    """Return a fresh, usable zero value for *desc*.

    Sequences and maps come back empty rather than nil, channels come back
    unbuffered, and structs have every field zeroed.
    """
    if desc is None:
        return None
    kind = desc.kind
    if kind == Kind.BOOL:
        return False
    if kind == Kind.INT:
        return 0
    if kind == Kind.FLOAT:
        return 0.0
    if kind == Kind.STRING:
        return ""
    if kind == Kind.SLICE:
        return Sequence([], desc.elem)
    if kind == Kind.MAP:
        return {}
    if kind == Kind.CHAN:
        return new_channel(desc.elem, 0)
    if isinstance(desc, StructType):
        return Record(desc, {name: zero_value(t) for name, t in desc.fields})
    if isinstance(desc, HostType):
        return desc.cls()
    # Pointers, functions, interfaces
    return None


def new_channel(elem: TypeDesc | None, capacity: int) -> Channel:
    return Channel(elem, capacity)


def make_sequence(elem: TypeDesc | None, length: int, capacity: int) -> Sequence:
    """Sequence of *length* zero elements backed by *capacity* slots."""
    if length < 0:
        raise ValueError(f"negative length {length}")
    if capacity < length:
        raise ValueError(f"capacity {capacity} less than length {length}")
    return Sequence([zero_value(elem) for _ in range(capacity)], elem, stop=length)
