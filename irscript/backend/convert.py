"""Conversion of host values into typed IR values.

Every operand that reaches the IR builder goes through :func:`convert`, which
turns Python literals (ints, floats, bools, None, strings, lists) into llvmlite
constants of the requested type, and passes existing IR values through
untouched.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Optional

from llvmlite import ir

from irscript.backend.constants import make_bool_const, make_int_const, make_null
from irscript.backend.types import DOUBLE, INT, is_float, is_int, is_pointer, type_name, validate_type
from irscript.internals.errors import raise_error

if TYPE_CHECKING:
    from irscript.library import Library


def convert(value: Any, type_: Any = None, strings: Optional['Library'] = None) -> ir.Value:
    """Convert a host value into a typed IR value.

    Rules are tried in order; the first one that applies wins:

    1. IR values (and ``Function`` objects) are returned unchanged.
    2. ``True``/``False`` with no type or an integer type become i1 1/0.
    3. ``0`` with a pointer type becomes that type's null pointer.
    4. Numbers become constants of the integer or float type requested, or
       i32 / double when no type is given.
    5. ``None`` with a pointer type becomes that type's null pointer.
    6. Lists and tuples with no type or an array type become constant arrays.
    7. Strings with no type or a pointer type become pooled string globals,
       bit-cast when the pointer type differs.

    Args:
        value: The host value or IR value.
        type_: Optional expected type (llvmlite type or type string).
        strings: Library whose string pool interns string literals.

    Returns:
        The typed IR value.

    Raises:
        TypeMismatch CE0101: If no rule applies.
        ArgumentError CE0209: If a string is converted without a pool.
    """
    if type_ is not None:
        type_ = validate_type(type_, "convert")

    if isinstance(value, ir.Value):
        return value
    ir_value = getattr(value, "ir", None)
    if isinstance(ir_value, ir.Function):
        return ir_value

    # bool is an int subclass, so it has to be matched before numbers
    if isinstance(value, bool):
        if type_ is None or is_int(type_):
            return make_bool_const(value)
    elif isinstance(value, (int, float)):
        if type_ is not None and is_pointer(type_):
            if value == 0:
                return make_null(type_)
        elif type_ is None:
            if isinstance(value, float):
                return ir.Constant(DOUBLE, value)
            return make_int_const(INT, value)
        elif is_int(type_):
            return make_int_const(type_, int(value))
        elif is_float(type_):
            return ir.Constant(type_, float(value))
    elif value is None:
        if type_ is not None and is_pointer(type_):
            return make_null(type_)
    elif isinstance(value, (list, tuple)):
        if type_ is None or isinstance(type_, ir.ArrayType):
            return _convert_array(value, type_, strings)
    elif isinstance(value, str):
        if type_ is None or is_pointer(type_):
            return _convert_string(value, type_, strings)

    expected = type_name(type_) if type_ is not None else "an IR value, a number, a list, a string, True/False/None"
    raise_error("CE0101", expected=expected, actual=type_name(value))


def _convert_array(values, array_type: Optional[ir.ArrayType], strings) -> ir.Constant:
    if array_type is not None:
        element_type = array_type.element
    elif values:
        element_type = convert(values[0], None, strings).type
    else:
        raise_error("CE0210")
    elements = [convert(v, element_type, strings) for v in values]
    return ir.Constant(ir.ArrayType(element_type, len(elements)), elements)


def _convert_string(text: str, ptr_type: Optional[ir.PointerType], strings) -> ir.Value:
    if strings is None:
        raise_error("CE0209", text=text)
    global_var = strings.string(text)
    if ptr_type is not None and global_var.type != ptr_type:
        return global_var.bitcast(ptr_type)
    return global_var
