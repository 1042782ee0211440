"""irscript - structured control flow and namespaces for building LLVM IR."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("irscript")
    __dev__ = False
except PackageNotFoundError:
    # Development mode - read from pyproject.toml
    import tomllib
    from pathlib import Path
    try:
        pyproject = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject, "rb") as f:
            __version__ = tomllib.load(f).get("project", {}).get("version", "unknown")
    except Exception:
        __version__ = "unknown"
    __dev__ = True

from irscript.backend.convert import convert
from irscript.backend.types import VARARGS, parse_type
from irscript.function import Function
from irscript.generator import Generator
from irscript.internals.errors import (
    ArgumentError,
    DivisionByZero,
    IRScriptError,
    MethodNotFound,
    TypeMismatch,
)
from irscript.library import Library
from irscript.macro import Macro
from irscript.program import Program
from irscript.registry import LibraryRegistry
from irscript.symbols import Resolution, SymbolInfo, SymbolTable, SymbolType
from irscript.visibility import Prefix, Visibility

__all__ = [
    'convert',
    'parse_type',
    'VARARGS',
    'Function',
    'Generator',
    'Library',
    'LibraryRegistry',
    'Macro',
    'Program',
    'Resolution',
    'SymbolInfo',
    'SymbolTable',
    'SymbolType',
    'Prefix',
    'Visibility',
    'IRScriptError',
    'TypeMismatch',
    'ArgumentError',
    'DivisionByZero',
    'MethodNotFound',
]
