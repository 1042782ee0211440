"""String constant management and deduplication.

This module manages string literals in a library's LLVM module, ensuring
each unique string is only defined once.

All string constant creation goes through the library's pool so that two
conversions of the same text yield the very same global.
"""
from __future__ import annotations
from typing import Dict, Iterator

from llvmlite import ir

from irscript.backend.types import CHAR


class StringPool:
    """Manages string constants with content-based deduplication.

    Uses a Dict[str, GlobalVariable] cache for O(1) lookup of existing strings.
    Globals are private, constant, unnamed_addr, null-terminated ``[N x i8]``
    arrays, named ``<prefix>.str.<index>`` in creation order.
    """

    def __init__(self, module: ir.Module, prefix: str):
        """Initialize the string pool.

        Args:
            module: The module the string globals are emitted into.
            prefix: Name prefix for the globals (the library name).
        """
        self.module = module
        self.prefix = prefix
        # Content-based cache: string content -> global variable
        self._cache: Dict[str, ir.GlobalVariable] = {}

    def _make_global_name(self) -> str:
        base = f"{self.prefix}.str.{len(self._cache)}"
        name = base
        suffix = 0
        # A user global may already use the name
        while name in self.module.globals:
            suffix += 1
            name = f"{base}.{suffix}"
        return name

    def get_or_create(self, value: str) -> ir.GlobalVariable:
        """Get existing or create new string constant.

        Args:
            value: String literal value.

        Returns:
            Global variable containing the null-terminated string data.
        """
        existing = self._cache.get(value)
        if existing is not None:
            return existing

        # Encode string data
        string_data = bytearray(value.encode('utf-8'))
        string_data.append(0)

        const_type = ir.ArrayType(CHAR, len(string_data))
        const_value = ir.Constant(const_type, string_data)

        global_var = ir.GlobalVariable(self.module, const_type, name=self._make_global_name())
        global_var.initializer = const_value
        global_var.global_constant = True
        global_var.linkage = 'private'
        global_var.unnamed_addr = True

        self._cache[value] = global_var
        return global_var

    def as_dict(self) -> Dict[str, ir.GlobalVariable]:
        return dict(self._cache)

    def __contains__(self, value: object) -> bool:
        return value in self._cache

    def __iter__(self) -> Iterator[str]:
        return iter(self._cache)

    def __len__(self) -> int:
        return len(self._cache)
