"""Type constants and type validation for generated IR.

This module names the llvmlite types used throughout the builder and turns
LLVM-syntax type strings ("i32", "i8*", "[4 x i32]", "{i32, double}",
"<4 x float>") into llvmlite types, so signatures can be written either way.
"""
from __future__ import annotations
from functools import lru_cache
from typing import Any

from lark import Lark, Transformer, LarkError
from llvmlite import ir

from irscript.internals.errors import raise_error


# === Named types ===

VOID = ir.VoidType()
BOOL = ir.IntType(1)
CHAR = ir.IntType(8)
SHORT = ir.IntType(16)
INT = ir.IntType(32)      # Default type for host integers
LONG = ir.IntType(64)
FLOAT = ir.FloatType()
DOUBLE = ir.DoubleType()  # Default type for host floats
CHARPTR = CHAR.as_pointer()
VOIDPTR = CHAR.as_pointer()

FLOAT_TYPES = (ir.HalfType, ir.FloatType, ir.DoubleType)

# Rank used to tell float truncation from extension.
_FLOAT_RANK = {ir.HalfType: 0, ir.FloatType: 1, ir.DoubleType: 2}


class _VarArgs:
    """Marker ending an argument type list of a variadic function."""

    def __repr__(self) -> str:
        return "VARARGS"


VARARGS = _VarArgs()


def is_int(t: ir.Type) -> bool:
    return isinstance(t, ir.IntType)


def is_float(t: ir.Type) -> bool:
    return isinstance(t, FLOAT_TYPES)


def is_pointer(t: ir.Type) -> bool:
    return isinstance(t, ir.PointerType)


def float_rank(t: ir.Type) -> int:
    return _FLOAT_RANK[type(t)]


# === Type strings ===

_TYPE_GRAMMAR = r"""
?start: type

?type: type "*"                         -> pointer
     | "void"                           -> void
     | INT_TYPE                         -> integer
     | FLOAT_KIND                       -> floating
     | "[" SIZE "x" type "]"            -> array
     | "<" SIZE "x" type ">"            -> vector
     | "{" "}"                          -> empty_struct
     | "{" type ("," type)* "}"         -> struct

INT_TYPE: /i[1-9][0-9]*/
FLOAT_KIND: "half" | "float" | "double"
SIZE: /[0-9]+/

%import common.WS
%ignore WS
"""


class _TypeBuilder(Transformer):
    """Builds llvmlite types bottom-up from the parse tree."""

    def pointer(self, children):
        return children[0].as_pointer()

    def void(self, _):
        return VOID

    def integer(self, children):
        return ir.IntType(int(children[0][1:]))

    def floating(self, children):
        kind = str(children[0])
        if kind == "half":
            return ir.HalfType()
        return FLOAT if kind == "float" else DOUBLE

    def array(self, children):
        size, element = children
        return ir.ArrayType(element, int(size))

    def vector(self, children):
        size, element = children
        return ir.VectorType(element, int(size))

    def empty_struct(self, _):
        return ir.LiteralStructType([])

    def struct(self, children):
        return ir.LiteralStructType(list(children))


@lru_cache(maxsize=1)
def _type_parser() -> Lark:
    return Lark(_TYPE_GRAMMAR, parser="lalr", lexer="contextual")


@lru_cache(maxsize=256)
def parse_type(text: str) -> ir.Type:
    """Parse an LLVM-syntax type string into an llvmlite type.

    Args:
        text: Type in LLVM assembly syntax, e.g. ``"i32"`` or ``"[4 x i8]*"``.

    Returns:
        The equivalent llvmlite type.

    Raises:
        ArgumentError CE0208: If the string is not a valid type.
    """
    try:
        tree = _type_parser().parse(text)
    except LarkError:
        raise_error("CE0208", text=text)
    return _TypeBuilder().transform(tree)


def validate_type(type_: Any, op: str = "type") -> ir.Type:
    """Accept an llvmlite type or a type string, or raise CE0207."""
    if isinstance(type_, ir.Type):
        return type_
    if isinstance(type_, str):
        return parse_type(type_)
    raise_error("CE0207", op=op, actual=type_name(type_))


def split_signature(arg_types) -> tuple[list[ir.Type], bool]:
    """Split an argument type list into concrete types and a varargs flag.

    ``VARARGS`` may only appear as the last entry.
    """
    types = list(arg_types or ())
    varargs = bool(types) and types[-1] is VARARGS
    if varargs:
        types = types[:-1]
    return [validate_type(t, "function signature") for t in types], varargs


def type_name(obj: Any) -> str:
    """Describe a type or value for diagnostics ("i32", "i8*", "str")."""
    if isinstance(obj, ir.Type):
        return str(obj)
    if isinstance(obj, ir.Value):
        return str(obj.type)
    if obj is None:
        return "None"
    return type(obj).__name__
