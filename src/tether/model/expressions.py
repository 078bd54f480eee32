"""Expression AST nodes.

Trees are produced once by a parser and evaluated many times, so every node
is frozen.  Operators are kept as their source text: an operator the VM
does not know is a runtime error, not a validation error.
"""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from .types import TypeRef


class Position(BaseModel):
    """1-based source position of a node."""

    model_config = ConfigDict(frozen=True)

    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.line}:{self.column}"


class _Node(BaseModel):
    model_config = ConfigDict(frozen=True)

    pos: Position | None = None


# ---------------------------------------------------------------------------
# Literals and names
# ---------------------------------------------------------------------------

class NumberExpr(_Node):
    """Numeric literal text: ``10``, ``0x1A``, ``3.14``, ``1e3``."""

    kind: Literal["number"] = "number"
    lit: str


class StringExpr(_Node):
    """String literal, already unescaped by the parser."""

    kind: Literal["string"] = "string"
    lit: str


class ConstExpr(_Node):
    kind: Literal["const"] = "const"
    value: Literal["true", "false", "nil"]


class IdentExpr(_Node):
    kind: Literal["ident"] = "ident"
    name: str


class ArrayExpr(_Node):
    kind: Literal["array"] = "array"
    exprs: list[Expression] = []


class MapExpr(_Node):
    kind: Literal["map"] = "map"
    entries: dict[str, Expression] = {}


# ---------------------------------------------------------------------------
# Pointers, operators, access
# ---------------------------------------------------------------------------

class DerefExpr(_Node):
    """``*expr``"""

    kind: Literal["deref"] = "deref"
    expr: Expression


class AddrExpr(_Node):
    """``&expr``"""

    kind: Literal["addr"] = "addr"
    expr: Expression


class UnaryExpr(_Node):
    kind: Literal["unary"] = "unary"
    operator: str
    expr: Expression


class ParenExpr(_Node):
    kind: Literal["paren"] = "paren"
    sub_expr: Expression


class MemberExpr(_Node):
    """``expr.name``"""

    kind: Literal["member"] = "member"
    expr: Expression
    name: str


class ItemExpr(_Node):
    """``value[index]``"""

    kind: Literal["item"] = "item"
    value: Expression
    index: Expression


class SliceExpr(_Node):
    """``value[begin:end]``; either bound may be omitted."""

    kind: Literal["slice"] = "slice"
    value: Expression
    begin: Expression | None = None
    end: Expression | None = None


class BinOpExpr(_Node):
    kind: Literal["binop"] = "binop"
    lhs: Expression
    operator: str
    rhs: Expression | None = None


class TernaryOpExpr(_Node):
    """``condition ? lhs : rhs``"""

    kind: Literal["ternary"] = "ternary"
    condition: Expression
    lhs: Expression
    rhs: Expression


# ---------------------------------------------------------------------------
# Assignment
# ---------------------------------------------------------------------------

class AssocExpr(_Node):
    """``x++``, ``x--`` and compound assignment ``x += rhs``.

    *rhs* is absent for the increment-like forms some parsers emit
    as compound assignments; it then counts as the literal ``1``.
    """

    kind: Literal["assoc"] = "assoc"
    lhs: Expression
    operator: str
    rhs: Expression | None = None


class LetExpr(_Node):
    """``lhs = rhs``"""

    kind: Literal["let"] = "let"
    lhs: Expression
    rhs: Expression


class LetsExpr(_Node):
    """``a, b = x, y``"""

    kind: Literal["lets"] = "lets"
    lhss: list[Expression]
    rhss: list[Expression]


# ---------------------------------------------------------------------------
# Construction and channels
# ---------------------------------------------------------------------------

class NewExpr(_Node):
    kind: Literal["new"] = "new"
    type: TypeRef


class MakeExpr(_Node):
    """``make(type, len, cap)``.

    *dimensions* counts extra ``[]`` levels written outside the type
    syntax itself.
    """

    kind: Literal["make"] = "make"
    type: TypeRef
    dimensions: int = 0
    len_expr: Expression | None = None
    cap_expr: Expression | None = None


class MakeTypeExpr(_Node):
    """``make(type name, expr)``: register *name* as an alias for a type."""

    kind: Literal["make_type"] = "make_type"
    name: Expression
    type: Expression


class MakeChanExpr(_Node):
    kind: Literal["make_chan"] = "make_chan"
    type: TypeRef
    size_expr: Expression | None = None


class ChanExpr(_Node):
    """``<- rhs``, ``lhs <- rhs``."""

    kind: Literal["chan"] = "chan"
    lhs: Expression | None = None
    rhs: Expression


# ---------------------------------------------------------------------------
# Functions and calls
# ---------------------------------------------------------------------------

class FuncExpr(_Node):
    """Function literal.  A named literal is also bound in the enclosing scope."""

    kind: Literal["func"] = "func"
    name: str | None = None
    params: list[str] = []
    var_arg: bool = False
    body: Expression


class AnonCallExpr(_Node):
    """Call of a computed callee: ``(expr)(args)``."""

    kind: Literal["anon_call"] = "anon_call"
    expr: Expression
    args: list[Expression] = []
    var_arg: bool = False
    go: bool = False


class CallExpr(_Node):
    """Call by name: ``name(args)``; *var_arg* spreads the last argument."""

    kind: Literal["call"] = "call"
    name: str
    args: list[Expression] = []
    var_arg: bool = False
    go: bool = False


Expression = Annotated[
    Union[
        NumberExpr,
        StringExpr,
        ConstExpr,
        IdentExpr,
        ArrayExpr,
        MapExpr,
        DerefExpr,
        AddrExpr,
        UnaryExpr,
        ParenExpr,
        MemberExpr,
        ItemExpr,
        SliceExpr,
        BinOpExpr,
        TernaryOpExpr,
        AssocExpr,
        LetExpr,
        LetsExpr,
        NewExpr,
        MakeExpr,
        MakeTypeExpr,
        MakeChanExpr,
        ChanExpr,
        FuncExpr,
        AnonCallExpr,
        CallExpr,
    ],
    Field(discriminator="kind"),
]

# Rebuild models with recursive Expression references.
ArrayExpr.model_rebuild()
MapExpr.model_rebuild()
DerefExpr.model_rebuild()
AddrExpr.model_rebuild()
UnaryExpr.model_rebuild()
ParenExpr.model_rebuild()
MemberExpr.model_rebuild()
ItemExpr.model_rebuild()
SliceExpr.model_rebuild()
BinOpExpr.model_rebuild()
TernaryOpExpr.model_rebuild()
AssocExpr.model_rebuild()
LetExpr.model_rebuild()
LetsExpr.model_rebuild()
MakeExpr.model_rebuild()
MakeTypeExpr.model_rebuild()
MakeChanExpr.model_rebuild()
ChanExpr.model_rebuild()
FuncExpr.model_rebuild()
AnonCallExpr.model_rebuild()
CallExpr.model_rebuild()
