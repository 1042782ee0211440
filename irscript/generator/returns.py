"""
Return emission for generators.

Two styles are supported:

- shared return: ``ret``, ``cret`` and ``pret`` store the value in the
  function's return slot and branch to its single return block;
- direct return: ``sret`` emits ``ret`` in place.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Optional

from llvmlite import ir

from irscript.backend.types import BOOL
from irscript.internals.errors import raise_error

if TYPE_CHECKING:
    from irscript.generator.core import Generator


def _store_result(gen: 'Generator', value: Any) -> None:
    function = gen.function
    if value is None or function.is_void:
        return
    gen.builder.store(gen.convert(value, function.return_type), function.return_slot)


def emit_ret(gen: 'Generator', value: Any = None) -> None:
    """Return through the shared return block.

    A void function returns in place. Otherwise ``value`` (if given) is stored
    in the return slot before branching, so an arm may also return whatever an
    earlier ``cret`` stored.
    """
    function = gen.function
    if function.is_void:
        gen.builder.ret_void()
    else:
        return_block = function.setup_return()
        _store_result(gen, value)
        gen.builder.branch(return_block)
    gen.finish()


def emit_cret(gen: 'Generator', condition: Any, value: Any = None, continuation: Optional[ir.Block] = None) -> None:
    """Conditionally return through the shared return block.

    ``value`` is stored in the return slot before the branch. When the
    condition is false control moves to ``continuation``; without one a new
    block is appended and ``gen`` continues there.
    """
    function = gen.function
    return_block = function.setup_return()
    cond_value = gen.convert(condition, BOOL)
    _store_result(gen, value)
    target = continuation if continuation is not None else function.append_block("block")
    gen.builder.cbranch(cond_value, return_block, target)
    if continuation is not None:
        gen.finish()
    else:
        gen.position_at_end(target)


def emit_sret(gen: 'Generator', value: Any = None) -> None:
    """Return in place with ``ret``.

    Raises:
        ArgumentError CE0203: If a non-void function gets no value.
    """
    function = gen.function
    if function.is_void:
        gen.builder.ret_void()
    else:
        if value is None:
            raise_error("CE0203", kind="sret")
        gen.builder.ret(gen.convert(value, function.return_type))
    gen.finish()


def emit_pret(gen: 'Generator', value: Any = None) -> None:
    """Store the return value without leaving.

    The value is picked up by a later ``ret`` with no value. Void functions
    ignore the call.

    Raises:
        ArgumentError CE0203: If a non-void function gets no value.
    """
    function = gen.function
    if function.is_void:
        return
    if value is None:
        raise_error("CE0203", kind="pret")
    function.setup_return()
    _store_result(gen, value)
