"""
Tests for type constants and type strings.

These tests verify:
- LLVM-syntax type strings parse to the equivalent llvmlite types
- Malformed strings and non-types are rejected
- Signature splitting with VARARGS
"""

import pytest
from llvmlite import ir

from irscript import ArgumentError
from irscript.backend.types import (
    CHAR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    VARARGS,
    VOID,
    float_rank,
    parse_type,
    split_signature,
    type_name,
    validate_type,
)


class TestParseType:
    """Tests for parse_type."""

    @pytest.mark.parametrize("text,expected", [
        ("i1", ir.IntType(1)),
        ("i8", CHAR),
        ("i32", INT),
        ("i64", LONG),
        ("float", FLOAT),
        ("double", DOUBLE),
        ("void", VOID),
    ])
    def test_scalars(self, text, expected):
        assert parse_type(text) == expected

    def test_pointer(self):
        t = parse_type("i8*")
        assert isinstance(t, ir.PointerType)
        assert t.pointee == CHAR

    def test_pointer_to_pointer(self):
        t = parse_type("i32**")
        assert t.pointee.pointee == INT

    def test_array(self):
        t = parse_type("[4 x i32]")
        assert isinstance(t, ir.ArrayType)
        assert t.count == 4
        assert t.element == INT

    def test_vector(self):
        t = parse_type("<4 x float>")
        assert isinstance(t, ir.VectorType)
        assert t.count == 4
        assert t.element == FLOAT

    def test_struct(self):
        t = parse_type("{i32, double}")
        assert isinstance(t, ir.LiteralStructType)
        assert list(t.elements) == [INT, DOUBLE]

    def test_empty_struct(self):
        t = parse_type("{}")
        assert isinstance(t, ir.LiteralStructType)
        assert list(t.elements) == []

    def test_nested(self):
        t = parse_type("[2 x {i8, [3 x i64]}]")
        assert t.count == 2
        assert t.element.elements[1].count == 3
        assert t.element.elements[1].element == LONG

    def test_whitespace_is_ignored(self):
        assert parse_type("  [ 2 x i32 ] ") == ir.ArrayType(INT, 2)

    @pytest.mark.parametrize("text", ["", "i0", "int", "[x i32]", "i32 x", "{i32,}", "<4 x>"])
    def test_malformed(self, text):
        with pytest.raises(ArgumentError) as exc:
            parse_type(text)
        assert exc.value.code == "CE0208"


class TestValidateType:
    """Tests for validate_type."""

    def test_type_passes_through(self):
        assert validate_type(INT) is INT

    def test_string_is_parsed(self):
        assert validate_type("i64") == LONG

    def test_non_type_rejected(self):
        with pytest.raises(ArgumentError) as exc:
            validate_type(42, "alloca")
        assert exc.value.code == "CE0207"
        assert "alloca" in str(exc.value)


class TestSignature:
    """Tests for split_signature."""

    def test_plain(self):
        assert split_signature([INT, "double"]) == ([INT, DOUBLE], False)

    def test_varargs(self):
        types, varargs = split_signature(["i8*", VARARGS])
        assert varargs
        assert len(types) == 1
        assert types[0].pointee == CHAR

    def test_empty(self):
        assert split_signature(()) == ([], False)
        assert split_signature(None) == ([], False)


def test_float_rank_orders_precision():
    assert float_rank(ir.HalfType()) < float_rank(FLOAT) < float_rank(DOUBLE)


def test_type_name_describes_values():
    assert type_name(INT) == "i32"
    assert type_name(ir.Constant(INT, 1)) == "i32"
    assert type_name(None) == "None"
    assert type_name("text") == "str"
