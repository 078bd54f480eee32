"""Scopes: nested variable bindings plus a type registry.

Lookups search from the innermost scope outwards.  Writes land in the
nearest scope that already defines the name, or in the scope written to
when no scope does.  Scopes are not synchronized; concurrent writers must
bring their own locking.
"""

from __future__ import annotations

from ._errors import InvalidOperationError, UndefinedIdentifierError, UndefinedTypeError
from ._types import BUILTIN_TYPES, TypeDesc, desc_from_python


class Scope:
    """One level of the scope chain.

    Parameters
    ----------
    parent : Scope, optional
        Enclosing scope; ``None`` for a root scope.
    name : str
        Module name, for diagnostics.
    """

    def __init__(self, parent: Scope | None = None, name: str = "") -> None:
        self.parent = parent
        self.name = name
        self._values: dict[str, object] = {}
        self._types: dict[str, TypeDesc | None] = {}

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    def new_child(self) -> Scope:
        return Scope(self)

    def new_module(self, name: str) -> Scope:
        """Create a child scope and bind it as *name* in this scope."""
        module = Scope(self, name)
        self.define(name, module)
        return module

    # -----------------------------------------------------------------------
    # Values
    # -----------------------------------------------------------------------

    def owner_of(self, name: str) -> Scope | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope._values:
                return scope
            scope = scope.parent
        return None

    def get(self, name: str) -> object:
        owner = self.owner_of(name)
        if owner is None:
            raise UndefinedIdentifierError(name)
        return owner._values[name]

    def define(self, name: str, value: object) -> None:
        """Bind *name* in this scope, shadowing any outer binding."""
        self._values[name] = value

    def set_value(self, name: str, value: object) -> None:
        owner = self.owner_of(name) or self
        owner._values[name] = value

    def __contains__(self, name: str) -> bool:
        return self.owner_of(name) is not None

    # -----------------------------------------------------------------------
    # Types
    # -----------------------------------------------------------------------

    def define_type(self, name: str, data_type: TypeDesc | type | None) -> None:
        """Register a type under *name*; host classes are wrapped automatically."""
        if isinstance(data_type, type):
            data_type = desc_from_python(data_type)
        self._types[name] = data_type

    def get_type(self, name: str) -> TypeDesc | None:
        scope: Scope | None = self
        while scope is not None:
            if name in scope._types:
                return scope._types[name]
            scope = scope.parent
        if name in BUILTIN_TYPES:
            return BUILTIN_TYPES[name]
        raise UndefinedTypeError(name)

    def lookup_type(self, name: str) -> TypeDesc | None:
        """Resolve a possibly dotted type name (``pkg.Point``)."""
        scope, leaf = self.resolve_dotted_scope(name)
        return scope.get_type(leaf)

    # -----------------------------------------------------------------------
    # Dotted paths
    # -----------------------------------------------------------------------

    def resolve_dotted_scope(self, path: str) -> tuple[Scope, str]:
        """Split ``a.b.leaf`` into the scope reached through modules ``a.b`` and ``leaf``."""
        *modules, leaf = path.split(".")
        scope = self
        for part in modules:
            value = scope.get(part)
            if not isinstance(value, Scope):
                raise InvalidOperationError(f"'{part}' is not a module")
            scope = value
        if not leaf:
            raise InvalidOperationError(f"invalid name '{path}'")
        return scope, leaf

    def __repr__(self) -> str:
        label = f" {self.name}" if self.name else ""
        return f"<Scope{label} {sorted(self._values)}>"
