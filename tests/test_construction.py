"""Tests for new, make, make type and make chan."""

from dataclasses import dataclass

import pytest

from conftest import binop, const, ident, let, make_scope, member, num, run, s, tref

from tether.model.expressions import (
    DerefExpr,
    MakeChanExpr,
    MakeExpr,
    MakeTypeExpr,
    NewExpr,
)
from tether.model.types import (
    ChanTypeRef,
    MapTypeRef,
    PointerTypeRef,
    SliceTypeRef,
    StructField,
    StructTypeRef,
)
from tether.vm import (
    FLOAT_TYPE,
    INT_TYPE,
    STRING_TYPE,
    Box,
    Channel,
    ChannelConstructionError,
    ConstructionError,
    InvalidOperationError,
    NilTypeError,
    Record,
    Scope,
    Sequence,
    StructType,
    UndefinedTypeError,
)
from tether.vm._types import SliceType


@dataclass
class Valve:
    open: bool = False


class NeedsArgs:
    def __init__(self, required):
        self.required = required


# ---------------------------------------------------------------------------
# new
# ---------------------------------------------------------------------------

class TestNew:
    @pytest.mark.parametrize("name, zero", [
        ("int", 0),
        ("float64", 0.0),
        ("string", ""),
        ("bool", False),
    ])
    def test_zero_scalars(self, name, zero):
        ptr = run(NewExpr(type=tref(name)))
        assert isinstance(ptr, Box)
        assert ptr.load() == zero

    @pytest.mark.parametrize("type_name, lit", [
        ("int", num(42)),
        ("float64", num("2.5")),
        ("string", s("hi")),
        ("bool", const("true")),
    ])
    def test_store_and_load(self, type_name, lit):
        scope = Scope()
        run(let(ident("p"), NewExpr(type=tref(type_name))), scope)
        run(let(DerefExpr(expr=ident("p")), lit), scope)
        assert run(binop(DerefExpr(expr=ident("p")), "==", lit), scope) is True

    def test_pointer_type_zero_is_nil(self):
        ptr = run(NewExpr(type=PointerTypeRef(element=tref("int"))))
        assert ptr.load() is None

    def test_struct(self):
        scope = Scope()
        point = StructType("Point", [("X", INT_TYPE), ("Y", FLOAT_TYPE)])
        scope.define_type("Point", point)
        ptr = run(NewExpr(type=tref("Point")), scope)
        rec = ptr.load()
        assert isinstance(rec, Record)
        assert rec.fields == {"X": 0, "Y": 0.0}

    def test_anonymous_struct(self):
        ref = StructTypeRef(fields=[StructField(name="A", data_type=tref("string"))])
        assert run(NewExpr(type=ref)).load().fields == {"A": ""}

    def test_host_class(self):
        scope = Scope()
        scope.define_type("Valve", Valve)
        assert run(NewExpr(type=tref("Valve")), scope).load() == Valve()

    def test_field_through_new_pointer(self):
        scope = Scope()
        scope.define_type("Valve", Valve)
        run(let(ident("v"), NewExpr(type=tref("Valve"))), scope)
        run(let(member(ident("v"), "open"), const("true")), scope)
        assert scope.get("v").load().open is True

    def test_nil_type(self):
        scope = Scope()
        scope.define_type("Nothing", None)
        with pytest.raises(NilTypeError, match="type cannot be nil for new"):
            run(NewExpr(type=tref("Nothing")), scope)

    def test_undefined_type(self):
        with pytest.raises(UndefinedTypeError):
            run(NewExpr(type=tref("Nope")))

    def test_dotted_type(self):
        root = Scope()
        mod = root.new_module("geo")
        mod.define_type("Angle", FLOAT_TYPE)
        assert run(NewExpr(type=tref("geo.Angle")), root).load() == 0.0

    def test_host_class_fault(self):
        scope = Scope()
        scope.define_type("NeedsArgs", NeedsArgs)
        with pytest.raises(ConstructionError):
            run(NewExpr(type=tref("NeedsArgs")), scope)


# ---------------------------------------------------------------------------
# make
# ---------------------------------------------------------------------------

class TestMake:
    def test_sequence_length(self):
        value = run(MakeExpr(type=SliceTypeRef(element=tref("int")), len_expr=num(3)))
        assert isinstance(value, Sequence)
        assert list(value) == [0, 0, 0]
        assert value.cap == 3

    def test_sequence_capacity(self):
        value = run(MakeExpr(
            type=SliceTypeRef(element=tref("string")), len_expr=num(1), cap_expr=num(4),
        ))
        assert list(value) == [""]
        assert value.cap == 4

    def test_default_length(self):
        value = run(MakeExpr(type=SliceTypeRef(element=tref("int"))))
        assert len(value) == 0

    def test_extra_dimensions(self):
        value = run(MakeExpr(type=tref("int"), dimensions=2, len_expr=num(2)))
        assert len(value) == 2
        assert value.elem == SliceType(INT_TYPE)
        assert isinstance(value[0], Sequence)
        assert len(value[0]) == 0

    def test_nested_slice_syntax(self):
        value = run(MakeExpr(
            type=SliceTypeRef(element=tref("float64"), dimensions=2), len_expr=num(1),
        ))
        assert value.elem == SliceType(FLOAT_TYPE)

    def test_scalar_zero(self):
        assert run(MakeExpr(type=tref("int"))) == 0

    def test_map_is_usable(self):
        value = run(MakeExpr(type=MapTypeRef(key=tref("string"), value=tref("int"))))
        assert value == {}

    def test_chan_type(self):
        value = run(MakeExpr(type=ChanTypeRef(element=tref("int"))))
        assert isinstance(value, Channel)

    def test_typed_elements(self):
        value = run(MakeExpr(type=SliceTypeRef(element=tref("string")), len_expr=num(1)))
        assert value.elem is STRING_TYPE

    def test_negative_length(self):
        with pytest.raises(ConstructionError):
            run(MakeExpr(type=SliceTypeRef(element=tref("int")), len_expr=num(-1)))

    def test_capacity_below_length(self):
        with pytest.raises(ConstructionError):
            run(MakeExpr(
                type=SliceTypeRef(element=tref("int")), len_expr=num(3), cap_expr=num(1),
            ))

    def test_debug_lets_fault_escape(self):
        with pytest.raises(ValueError):
            run(
                MakeExpr(type=SliceTypeRef(element=tref("int")), len_expr=num(-1)),
                debug=True,
            )


# ---------------------------------------------------------------------------
# make type
# ---------------------------------------------------------------------------

class TestMakeType:
    def test_alias_of_type_value(self):
        scope = make_scope(int_t=INT_TYPE)
        result = run(MakeTypeExpr(name=s("Count"), type=ident("int_t")), scope)
        assert result is INT_TYPE
        assert scope.get_type("Count") is INT_TYPE

    def test_alias_of_value_type(self):
        scope = Scope()
        run(MakeTypeExpr(name=s("Label"), type=s("example")), scope)
        assert scope.get_type("Label") is STRING_TYPE

    def test_alias_usable_by_new(self):
        scope = Scope()
        run(MakeTypeExpr(name=s("Ratio"), type=num("1.5")), scope)
        assert run(NewExpr(type=tref("Ratio")), scope).load() == 0.0

    def test_dotted_name(self):
        root = Scope()
        mod = root.new_module("units")
        run(MakeTypeExpr(name=s("units.Meters"), type=num("1.0")), root)
        assert mod.get_type("Meters") is FLOAT_TYPE

    def test_type_evaluated_in_target_scope(self):
        root = Scope()
        mod = root.new_module("units")
        mod.define("sample", "text")
        run(MakeTypeExpr(name=s("units.Name"), type=ident("sample")), root)
        assert mod.get_type("Name") is STRING_TYPE

    def test_dotted_through_non_module(self):
        scope = make_scope(x=1)
        with pytest.raises(InvalidOperationError, match="not a module"):
            run(MakeTypeExpr(name=s("x.T"), type=num(1)), scope)

    def test_nil_value(self):
        with pytest.raises(NilTypeError):
            run(MakeTypeExpr(name=s("T"), type=const("nil")))


# ---------------------------------------------------------------------------
# make chan
# ---------------------------------------------------------------------------

class TestMakeChan:
    def test_unbuffered(self):
        ch = run(MakeChanExpr(type=tref("int")))
        assert isinstance(ch, Channel)
        assert ch.capacity == 0
        assert ch.elem is INT_TYPE

    def test_buffered(self):
        ch = run(MakeChanExpr(type=tref("string"), size_expr=num(3)))
        assert ch.capacity == 3

    def test_negative_size(self):
        with pytest.raises(ChannelConstructionError):
            run(MakeChanExpr(type=tref("int"), size_expr=num(-1)))

    def test_negative_size_debug(self):
        with pytest.raises(ValueError, match="negative buffer size"):
            run(MakeChanExpr(type=tref("int"), size_expr=num(-1)), debug=True)

    def test_nil_type(self):
        scope = Scope()
        scope.define_type("Nothing", None)
        with pytest.raises(NilTypeError):
            run(MakeChanExpr(type=tref("Nothing")), scope)
