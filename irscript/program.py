"""Programs: a set of libraries built together.

A Program owns the registry its libraries import each other through, and
assembles what they export: the merged public symbol table, the IR text of
each module, and LLVM verification of every module.
"""
from __future__ import annotations
from typing import Any

import llvmlite.binding as llvm

from irscript.internals.errors import raise_error
from irscript.library import Library
from irscript.registry import LibraryRegistry
from irscript.symbols import SymbolInfo


class Program:
    """Creates, registers and assembles libraries."""

    def __init__(self, name: str = "program"):
        self.name = name
        self.registry = LibraryRegistry()

    def __repr__(self) -> str:
        return f"Program({self.name!r}, libraries={self.registry.names()})"

    def library(self, name: str = "", **kwargs: Any) -> Library:
        """Create a library registered with this program."""
        return Library(name, registry=self.registry, **kwargs)

    @property
    def libraries(self) -> list[Library]:
        return list(self.registry)

    def symbols(self) -> dict[str, SymbolInfo]:
        """Merge the public symbol tables of all libraries, keyed by IR name.

        A definition replaces declarations of the same symbol from other
        libraries; otherwise the first library to export a name wins.
        """
        merged: dict[str, SymbolInfo] = {}
        for library in self.registry:
            for ir_name, symbol in library.symbol_table().symbols.items():
                current = merged.get(ir_name)
                if current is None or (current.is_declaration and symbol.is_definition()):
                    merged[ir_name] = symbol
        return merged

    def emit(self) -> dict[str, str]:
        """IR text of every library's module, keyed by library name."""
        return {library.name: str(library.module) for library in self.registry}

    def verify(self) -> None:
        """Parse and verify every module with LLVM.

        Raises:
            ArgumentError CE0507: If a module does not parse or verify.
        """
        for library in self.registry:
            try:
                llmod = llvm.parse_assembly(str(library.module))
                llmod.verify()
            except RuntimeError as e:
                raise_error("CE0507", name=library.name, reason=str(e).strip())
