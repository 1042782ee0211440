"""Symbol descriptions for library resolution and program assembly.

A library answers two kinds of questions about names:

- ``Library.resolve(name)`` for a Generator call-site: is the name a macro,
  a function or a global (in that order), or nothing at all?
- ``Library.symbol_table()`` for program assembly: which functions and globals
  does the library export, under which IR names and linkage?
"""
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, NamedTuple


class SymbolType(Enum):
    """Kind of symbol a name resolves to."""
    MACRO = "macro"
    FUNCTION = "function"
    GLOBAL_VARIABLE = "global"
    NOT_FOUND = "not_found"


class Resolution(NamedTuple):
    """Result of resolving a name against a library."""
    kind: SymbolType
    target: Any = None

    @property
    def found(self) -> bool:
        return self.kind is not SymbolType.NOT_FOUND


NOT_FOUND = Resolution(SymbolType.NOT_FOUND)


@dataclass
class SymbolInfo:
    """Metadata about a single exported symbol."""
    name: str             # Name inside the library
    ir_name: str          # Symbol name in the emitted module
    symbol_type: SymbolType
    is_declaration: bool  # True for external declarations (no body/initializer)
    linkage: str          # "external" or "private"
    library_name: str     # Which library declared it
    ir_type: str          # Function signature or global value type, as IR text

    def is_definition(self) -> bool:
        """Check if this is a definition (has body) vs declaration."""
        return not self.is_declaration

    def is_external_linkage(self) -> bool:
        """Check if this symbol has external linkage (exported)."""
        return self.linkage == "external"


class SymbolTable:
    """Exported symbols of one library."""

    def __init__(self, library_name: str):
        self.library_name = library_name
        self.symbols: dict[str, SymbolInfo] = {}  # ir_name -> SymbolInfo

    def add_symbol(self, symbol: SymbolInfo) -> None:
        self.symbols[symbol.ir_name] = symbol

    def get_symbol(self, ir_name: str) -> SymbolInfo | None:
        return self.symbols.get(ir_name)

    def has_definition(self, ir_name: str) -> bool:
        """Check if this table has a definition (not declaration) for a symbol."""
        symbol = self.symbols.get(ir_name)
        return symbol is not None and symbol.is_definition()

    def get_definitions(self) -> list[SymbolInfo]:
        return [s for s in self.symbols.values() if s.is_definition()]

    def get_declarations(self) -> list[SymbolInfo]:
        return [s for s in self.symbols.values() if s.is_declaration]

    def __repr__(self) -> str:
        defs = len(self.get_definitions())
        decls = len(self.get_declarations())
        return f"SymbolTable({self.library_name}, {defs} defs, {decls} decls)"
