# internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NoReturn

from irscript.internals.report import Reporter


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


class Category(str, Enum):
    GENERAL   = "general"
    TYPE      = "type"
    ARGUMENT  = "argument"
    ARITH     = "arithmetic"
    NAME      = "name"
    LIBRARY   = "library"


class IRScriptError(Exception):
    """Base class for construction-time errors raised while building IR."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.text = message


class TypeMismatch(IRScriptError, TypeError):
    """A value cannot be coerced to, or used as, the required type."""


class ArgumentError(IRScriptError, ValueError):
    """Wrong arity, missing value, unresolved import or malformed configuration."""


class DivisionByZero(IRScriptError, ZeroDivisionError):
    """Division or remainder by a statically known zero."""


class MethodNotFound(IRScriptError, AttributeError):
    """No macro, function or global with the requested name."""


_EXCEPTIONS: Dict[Category, type] = {
    Category.GENERAL:  ArgumentError,
    Category.TYPE:     TypeMismatch,
    Category.ARGUMENT: ArgumentError,
    Category.ARITH:    DivisionByZero,
    Category.NAME:     MethodNotFound,
    Category.LIBRARY:  ArgumentError,
}


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    severity: Severity
    text: str
    category: Category = Category.GENERAL
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)

def emit(r: Reporter, em: ErrorMessage, **kwargs) -> None:
    """Record a warning on a reporter; error codes are raised instead."""
    r.warn(em.code, _fmt(em.code, **kwargs))

def raise_error(code: str, **kwargs) -> NoReturn:
    """Raise the exception registered for an error code.

    The exception class follows the code's category (see ``_EXCEPTIONS``).

    Args:
        code: Error code (e.g., "CE0101")
        **kwargs: Format parameters for the error message

    Raises:
        IRScriptError: Always, as the subclass matching the code's category.
    """
    msg = _get(code)
    text = _fmt(code, **kwargs)
    raise _EXCEPTIONS[msg.category](code, text)


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Coercion and operand types (CE01xx)
_add(ErrorMessage("CE0101", Severity.ERROR,
    "value should be of {expected}, {actual} given",
    Category.TYPE, "No conversion rule turns the host value into the expected IR type."))

_add(ErrorMessage("CE0102", Severity.ERROR,
    "value passed to {op} is not numeric, {actual} given",
    Category.TYPE, "Arithmetic and numeric casts need integer or floating-point operands."))

_add(ErrorMessage("CE0103", Severity.ERROR,
    "{op} needs a pointer, {actual} given",
    Category.TYPE, "load, store, gep and free operate on pointer values only."))

_add(ErrorMessage("CE0104", Severity.ERROR,
    "value passed to {op} is not an integer, {actual} given",
    Category.TYPE, "Shifts and itof need integer operands."))

_add(ErrorMessage("CE0105", Severity.ERROR,
    "value passed to {op} is not a float, {actual} given",
    Category.TYPE, "ftoi needs a floating-point operand."))

_add(ErrorMessage("CE0106", Severity.ERROR,
    "cannot cast {src} to {dst}",
    Category.TYPE, "cast only resizes integers, floats, or pointers within their own kind."))

_add(ErrorMessage("CE0107", Severity.ERROR,
    "value passed to {op} is not an IR value, {actual} given",
    Category.TYPE, "Null checks need an existing IR value."))

_add(ErrorMessage("CE0108", Severity.ERROR,
    "{op} needs a vector or aggregate, {actual} given",
    Category.TYPE, "insert/extract operate on vectors, arrays and structs."))

# Arguments (CE02xx)
_add(ErrorMessage("CE0201", Severity.ERROR,
    "wrong number of arguments passed to macro '{name}' ({got} for {expected})",
    Category.ARGUMENT, "Macros are inlined with an exact positional arity."))

_add(ErrorMessage("CE0202", Severity.ERROR,
    "wrong number of arguments passed to function '{name}' ({got} for {expected})",
    Category.ARGUMENT, "Calls must match the declared parameter count (or exceed it for varargs)."))

_add(ErrorMessage("CE0203", Severity.ERROR,
    "value must be passed to non-void function {kind}",
    Category.ARGUMENT, "sret and pret of a non-void function need the returned value."))

_add(ErrorMessage("CE0204", Severity.ERROR,
    "a body, a compare callback, or an increment callback must be passed to lp",
    Category.ARGUMENT, "A loop needs at least one part to build."))

_add(ErrorMessage("CE0205", Severity.ERROR,
    "callable passed to call must be an IR value, a Function, or a symbol name, {actual} given",
    Category.ARGUMENT))

_add(ErrorMessage("CE0206", Severity.ERROR,
    "unrecognized operation '{op}' passed to opr",
    Category.ARGUMENT))

_add(ErrorMessage("CE0207", Severity.ERROR,
    "type passed to {op} must be an IR type or a type string, {actual} given",
    Category.ARGUMENT))

_add(ErrorMessage("CE0208", Severity.ERROR,
    "malformed type string {text!r}",
    Category.ARGUMENT, "Type strings use LLVM syntax: i32, double, i8*, [4 x i32], {i32, i8*}, <4 x float>."))

_add(ErrorMessage("CE0209", Severity.ERROR,
    "string value {text!r} needs a library string pool",
    Category.ARGUMENT, "Strings are interned as globals and can only be converted with a pool."))

_add(ErrorMessage("CE0210", Severity.ERROR,
    "cannot infer the element type of an empty array literal",
    Category.ARGUMENT))

_add(ErrorMessage("CE0211", Severity.ERROR,
    "{op} used outside of a loop",
    Category.ARGUMENT, "brk and cont only exist on generators created by lp."))

_add(ErrorMessage("CE0212", Severity.ERROR,
    "a then callback must be passed to cond",
    Category.ARGUMENT))

# Arithmetic (CE03xx)
_add(ErrorMessage("CE0301", Severity.ERROR,
    "{op} by a constant zero",
    Category.ARITH, "Division and remainder by a statically known zero are rejected before emission."))

# Symbols (CE04xx)
_add(ErrorMessage("CE0401", Severity.ERROR,
    "function, macro, or global '{name}' does not exist in library '{library}'",
    Category.NAME))

# Libraries (CE05xx)
_add(ErrorMessage("CE0501", Severity.ERROR,
    "no library named '{name}' to import",
    Category.LIBRARY, "Import by name looks the library up in the importer's registry."))

_add(ErrorMessage("CE0502", Severity.ERROR,
    "cannot import {actual}, expected a Library or a library name",
    Category.LIBRARY))

_add(ErrorMessage("CE0503", Severity.ERROR,
    "{kind} '{name}' is already declared in library '{library}'",
    Category.LIBRARY, "Names are unique per symbol kind within one library."))

_add(ErrorMessage("CE0504", Severity.ERROR,
    "library '{library}' has no symbol named '{name}'",
    Category.LIBRARY))

_add(ErrorMessage("CE0505", Severity.ERROR,
    "a library named '{name}' is already registered",
    Category.LIBRARY))

_add(ErrorMessage("CE0506", Severity.ERROR,
    "a library cannot import itself ('{name}')",
    Category.LIBRARY))

_add(ErrorMessage("CE0507", Severity.ERROR,
    "module of library '{name}' failed verification: {reason}",
    Category.LIBRARY))

# Warnings (CW0xxx)
_add(ErrorMessage("CW0001", Severity.WARNING,
    "invalid visibility {value!r}, keeping '{fallback}'",
    Category.LIBRARY))

_add(ErrorMessage("CW0002", Severity.WARNING,
    "invalid prefix policy {value!r}, using '{fallback}'",
    Category.LIBRARY))

_add(ErrorMessage("CW0003", Severity.WARNING,
    "invalid library name {value!r}, using '{fallback}'",
    Category.LIBRARY))

_add(ErrorMessage("CW0004", Severity.WARNING,
    "external declaration '{name}' cannot be made private",
    Category.LIBRARY))

_add(ErrorMessage("CW0101", Severity.WARNING,
    "{kind} '{name}' imported from '{source}' collides with an existing symbol, keeping the existing one",
    Category.LIBRARY))

_add(ErrorMessage("CW0102", Severity.WARNING,
    "{kind} '{name}' imported from '{source}' as '{alias}'",
    Category.LIBRARY))
