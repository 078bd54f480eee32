"""Type syntax nodes.

These describe a type the way a script spells it (``[]int``,
``map[string]Point``, ``chan float64``).  They carry no runtime meaning of
their own: the VM resolves them against a scope's type registry into
runtime type descriptors.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _TypeNode(BaseModel):
    model_config = ConfigDict(frozen=True)


class NamedTypeRef(_TypeNode):
    """Reference to a registered type by name, optionally dotted (``pkg.Point``)."""

    kind: Literal["named"] = "named"
    name: str


class SliceTypeRef(_TypeNode):
    """``[]element``; *dimensions* > 1 stands for ``[][]element`` and so on."""

    kind: Literal["slice"] = "slice"
    element: TypeRef
    dimensions: int = 1

    @model_validator(mode="after")
    def _dimensions_check(self):
        if self.dimensions < 1:
            raise ValueError(f"dimensions ({self.dimensions}) must be >= 1")
        return self


class MapTypeRef(_TypeNode):
    kind: Literal["map"] = "map"
    key: TypeRef
    value: TypeRef


class ChanTypeRef(_TypeNode):
    kind: Literal["chan"] = "chan"
    element: TypeRef


class PointerTypeRef(_TypeNode):
    kind: Literal["pointer"] = "pointer"
    element: TypeRef


class StructField(_TypeNode):
    name: str
    data_type: TypeRef


class StructTypeRef(_TypeNode):
    """Anonymous struct type: ``struct { X int; Y int }``."""

    kind: Literal["struct"] = "struct"
    fields: list[StructField] = []


TypeRef = Annotated[
    Union[
        NamedTypeRef,
        SliceTypeRef,
        MapTypeRef,
        ChanTypeRef,
        PointerTypeRef,
        StructTypeRef,
    ],
    Field(discriminator="kind"),
]


SliceTypeRef.model_rebuild()
MapTypeRef.model_rebuild()
ChanTypeRef.model_rebuild()
PointerTypeRef.model_rebuild()
StructField.model_rebuild()
StructTypeRef.model_rebuild()
