"""LLVM IR constant value creation utilities.

This module provides precomputed LLVM constants and factory functions
shared by the coercion layer and the generator.
"""

from llvmlite import ir

from irscript.backend.types import BOOL, INT, LONG


# === Precomputed Integer Constants ===

# Boolean (i1) constants
FALSE_I1 = ir.Constant(BOOL, 0)
TRUE_I1 = ir.Constant(BOOL, 1)

ONE_I32 = ir.Constant(INT, 1)


# === Factory Functions ===

def make_bool_const(value: bool) -> ir.Constant:
    """Create an i1 boolean constant."""
    return TRUE_I1 if value else FALSE_I1


def make_int_const(int_type: ir.IntType, value: int) -> ir.Constant:
    """Create an integer constant of the given type, wrapped to its width.

    Values outside the type's range are truncated to the low ``width`` bits
    and expressed as a signed (two's complement) number, the way LLVM prints
    them. i1 keeps 0/1.
    """
    width = int_type.width
    value &= (1 << width) - 1
    if width > 1 and value >= 1 << (width - 1):
        value -= 1 << width
    return ir.Constant(int_type, value)


def make_null(ptr_type: ir.PointerType) -> ir.Constant:
    """Create the null pointer of a pointer type."""
    return ir.Constant(ptr_type, None)


def size_of(type_: ir.Type) -> ir.Constant:
    """Target-independent ``sizeof`` as an i64 constant expression.

    Uses the classic ``ptrtoint(gep(null, 1))`` idiom, so no target data
    layout is needed while building.
    """
    null = ir.Constant(type_.as_pointer(), None)
    return null.gep([ONE_I32]).ptrtoint(LONG)


def is_static_zero(value) -> bool:
    """Whether a host value or IR constant is known to be zero."""
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, ir.Constant) and isinstance(value.constant, (int, float)):
        return value.constant == 0
    return False
