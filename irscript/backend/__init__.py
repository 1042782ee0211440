"""Backend helpers shared by functions, generators and libraries.

Organized by concern:

- types: named IR types, type strings, signature splitting
- constants: precomputed constants and constant factories
- convert: host value to IR value coercion
- strings: per-library string constant pool
- libc: C library declarations (malloc/free)
"""

from .convert import convert
from .types import (
    BOOL,
    CHAR,
    CHARPTR,
    DOUBLE,
    FLOAT,
    INT,
    LONG,
    SHORT,
    VARARGS,
    VOID,
    VOIDPTR,
    parse_type,
    validate_type,
)

__all__ = [
    'convert',
    'parse_type',
    'validate_type',
    'VOID',
    'BOOL',
    'CHAR',
    'SHORT',
    'INT',
    'LONG',
    'FLOAT',
    'DOUBLE',
    'CHARPTR',
    'VOIDPTR',
    'VARARGS',
]
