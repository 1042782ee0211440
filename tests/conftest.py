"""
Pytest configuration and fixtures for irscript tests.

Provides reusable fixtures for:
- A fresh library registry and library per test
- Declaring functions to build into
- Inspecting the resulting block graph
"""

import itertools

import pytest
from llvmlite import ir

from irscript import Library, LibraryRegistry
from irscript.backend.types import VOID


@pytest.fixture
def registry():
    """Registry the test libraries register with."""
    return LibraryRegistry()


@pytest.fixture
def library(registry):
    """A public, smart-prefixed library named "testlib"."""
    return Library("testlib", registry=registry, echo=False)


@pytest.fixture
def make_function(library):
    """
    Fixture that returns a function declaring a function in ``library``.

    Usage:
        fn = make_function([INT], INT)
        gen = fn.generator()
    """
    counter = itertools.count()

    def _make(arg_types=(), return_type=VOID, body=None, name=None):
        return library.function(name or f"fn{next(counter)}", arg_types, return_type, body)

    return _make


def _successors(block):
    if not block.is_terminated:
        return []
    return [op for op in block.terminator.operands if isinstance(op, ir.Block)]


@pytest.fixture
def successors():
    """Function returning the blocks a block's terminator branches to."""
    return _successors


@pytest.fixture
def predecessors():
    """Function returning the blocks of a function branching into a block."""
    def _predecessors(function, block):
        return [b for b in function.blocks if block in _successors(b)]
    return _predecessors


@pytest.fixture
def opnames():
    """Function returning the opcode names of a block's instructions."""
    def _opnames(block):
        return [instr.opname for instr in block.instructions]
    return _opnames
