"""Host object model: records, pointers and bound methods.

Struct-like host values come in three shapes, each served by an adapter
exposing the same capabilities (``has_field``, ``get_field``,
``set_field``, ``find_method``, ``copy``):

- ``Record``: an instance of a struct type defined at runtime;
- dataclass instances;
- any other host object with a ``__dict__``.

Records and dataclass instances are values: they are copied whenever they
are stored.  Other host objects are handles and are stored as-is.
"""

from __future__ import annotations

import copy
import dataclasses
import inspect

from ._errors import InvalidOperationError, NoSuchFieldError


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

class Record:
    """Instance of a runtime struct type.

    Parameters
    ----------
    struct_type : StructType
        The defining type; supplies the method table.
    fields : dict
        Field name -> value, in declaration order.
    """

    __slots__ = ("struct_type", "fields")

    def __init__(self, struct_type, fields: dict[str, object]) -> None:
        self.struct_type = struct_type
        self.fields = fields

    def __repr__(self) -> str:
        body = ", ".join(f"{k}: {v!r}" for k, v in self.fields.items())
        return f"{self.struct_type}{{{body}}}"


class BoundMethod:
    """A function with its receiver already attached."""

    __slots__ = ("receiver", "func", "name")

    def __init__(self, receiver: object, func, name: str) -> None:
        self.receiver = receiver
        self.func = func
        self.name = name

    def __call__(self, *args):
        return self.func(self.receiver, *args)

    def __repr__(self) -> str:
        return f"<bound method {self.name} of {self.receiver!r}>"


# ---------------------------------------------------------------------------
# Pointers
# ---------------------------------------------------------------------------

class Pointer:
    """A location that can be loaded from and stored to."""

    __slots__ = ()

    def load(self) -> object:
        raise NotImplementedError

    def store(self, value: object) -> None:
        raise NotImplementedError


class Box(Pointer):
    """Pointer to a fresh, unnamed cell (``new(T)``, or ``&`` of a temporary)."""

    __slots__ = ("value",)

    def __init__(self, value: object = None) -> None:
        self.value = value

    def load(self) -> object:
        return self.value

    def store(self, value: object) -> None:
        self.value = value

    def __repr__(self) -> str:
        return f"&{self.value!r}"


class VarPointer(Pointer):
    """Pointer to a named variable in the scope that defines it."""

    __slots__ = ("scope", "name")

    def __init__(self, scope, name: str) -> None:
        self.scope = scope
        self.name = name

    def load(self) -> object:
        return self.scope.get(self.name)

    def store(self, value: object) -> None:
        self.scope.set_value(self.name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VarPointer):
            return NotImplemented
        return self.scope is other.scope and self.name == other.name

    def __hash__(self) -> int:
        return hash((id(self.scope), self.name))

    def __repr__(self) -> str:
        return f"&{self.name}"


class FieldPointer(Pointer):
    """Pointer to a field of a live record."""

    __slots__ = ("record", "name")

    def __init__(self, record: object, name: str) -> None:
        self.record = record
        self.name = name

    def load(self) -> object:
        return get_field(self.record, self.name)

    def store(self, value: object) -> None:
        set_field(self.record, self.name, value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldPointer):
            return NotImplemented
        return self.record is other.record and self.name == other.name

    def __hash__(self) -> int:
        return hash((id(self.record), self.name))

    def __repr__(self) -> str:
        return f"&.{self.name}"


# ---------------------------------------------------------------------------
# Capability adapters
# ---------------------------------------------------------------------------

def _public(name: str) -> bool:
    return not name.startswith("_")


def _host_method(obj: object, name: str):
    """Bound host method *name* of *obj*, or None."""
    if not _public(name):
        return None
    attr = inspect.getattr_static(type(obj), name, None)
    if attr is None:
        return None
    if isinstance(attr, (staticmethod, classmethod)) or inspect.isroutine(attr):
        return getattr(obj, name)
    return None


class _RecordAdapter:
    @staticmethod
    def has_field(obj: Record, name: str) -> bool:
        return name in obj.fields

    @staticmethod
    def get_field(obj: Record, name: str) -> object:
        return obj.fields[name]

    @staticmethod
    def set_field(obj: Record, name: str, value: object) -> None:
        obj.fields[name] = value

    @staticmethod
    def find_method(obj: Record, name: str):
        func = obj.struct_type.methods.get(name)
        if func is None:
            return None
        return BoundMethod(obj, func, name)

    @staticmethod
    def copy(obj: Record) -> Record:
        return Record(
            obj.struct_type, {k: copy_value(v) for k, v in obj.fields.items()},
        )


class _DataclassAdapter:
    @staticmethod
    def has_field(obj: object, name: str) -> bool:
        return any(f.name == name for f in dataclasses.fields(obj))

    @staticmethod
    def get_field(obj: object, name: str) -> object:
        return getattr(obj, name)

    @staticmethod
    def set_field(obj: object, name: str, value: object) -> None:
        try:
            setattr(obj, name, value)
        except dataclasses.FrozenInstanceError as exc:
            raise InvalidOperationError(
                f"cannot assign to field '{name}' of frozen {type(obj).__name__}"
            ) from exc

    @staticmethod
    def find_method(obj: object, name: str):
        return _host_method(obj, name)

    @staticmethod
    def copy(obj: object) -> object:
        dup = copy.copy(obj)
        for f in dataclasses.fields(obj):
            value = getattr(obj, f.name)
            if adapter_for(value) is not None:
                object.__setattr__(dup, f.name, copy_value(value))
        return dup


class _ObjectAdapter:
    @staticmethod
    def has_field(obj: object, name: str) -> bool:
        if not _public(name):
            return False
        if name in vars(obj):
            return True
        return isinstance(inspect.getattr_static(type(obj), name, None), property)

    @staticmethod
    def get_field(obj: object, name: str) -> object:
        return getattr(obj, name)

    @staticmethod
    def set_field(obj: object, name: str, value: object) -> None:
        try:
            setattr(obj, name, value)
        except AttributeError as exc:
            raise InvalidOperationError(
                f"cannot assign to field '{name}' of {type(obj).__name__}"
            ) from exc

    @staticmethod
    def find_method(obj: object, name: str):
        return _host_method(obj, name)

    @staticmethod
    def copy(obj: object) -> object:
        return obj


_RECORD = _RecordAdapter()
_DATACLASS = _DataclassAdapter()
_OBJECT = _ObjectAdapter()


def adapter_for(value: object):
    """Capability adapter for a struct-like value, or None."""
    if isinstance(value, Record):
        return _RECORD
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return _DATACLASS
    return None


def object_adapter(value: object):
    """Adapter for an arbitrary host object with attributes."""
    if hasattr(value, "__dict__"):
        return _OBJECT
    return None


def struct_adapter(value: object):
    return adapter_for(value) or object_adapter(value)


# ---------------------------------------------------------------------------
# Capability helpers
# ---------------------------------------------------------------------------

def get_field(obj: object, name: str) -> object:
    adapter = struct_adapter(obj)
    if adapter is None or not adapter.has_field(obj, name):
        raise NoSuchFieldError(f"no member named '{name}' for struct")
    return adapter.get_field(obj, name)


def set_field(obj: object, name: str, value: object) -> None:
    adapter = struct_adapter(obj)
    if adapter is None or not adapter.has_field(obj, name):
        raise NoSuchFieldError(f"no member named '{name}' for struct")
    adapter.set_field(obj, name, copy_value(value))


def copy_value(value: object) -> object:
    """Copy struct values; every other value is shared."""
    adapter = adapter_for(value)
    if adapter is None:
        return value
    return adapter.copy(value)
