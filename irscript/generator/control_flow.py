"""
Structured control flow emission for generators.

This module builds the block structure behind ``Generator.cond`` and
``Generator.lp``. User callbacks receive fresh generators positioned in the
new blocks; whatever they leave unterminated is branched to the join point.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Any, Callable, Optional

from llvmlite import ir

from irscript.backend.types import BOOL
from irscript.internals.errors import raise_error
from irscript.macro import positional_arity

if TYPE_CHECKING:
    from irscript.generator.core import Generator


def emit_cond(
    gen: 'Generator',
    condition: Any,
    then_body: Optional[Callable[['Generator'], Any]],
    else_body: Optional[Callable[['Generator'], Any]] = None,
    exit_block: Optional[ir.Block] = None,
) -> None:
    """Emit an if/else diamond.

    The then-arm is built first. If it leaves an empty, unterminated block and
    no exit block was supplied, that block becomes the join point; otherwise a
    new "exit" block is created and the arm branches to it. The else-arm, if
    any, also branches to the join point. The calling block ends with the
    conditional branch.

    Afterwards ``gen`` continues at the join point, or is finished when the
    caller supplied ``exit_block`` (the caller owns what follows).

    Args:
        gen: Generator positioned in the block holding the branch.
        condition: Branch condition, coerced to i1.
        then_body: Callback receiving the then-arm generator.
        else_body: Optional callback receiving the else-arm generator.
        exit_block: Optional join block supplied by the caller.

    Raises:
        ArgumentError CE0212: If ``then_body`` is missing.
    """
    if then_body is None:
        raise_error("CE0212")
    function = gen.function
    exit_provided = exit_block is not None
    cond_value = gen.convert(condition, BOOL)

    arm = gen.child(function.append_block("then"))
    then_body(arm)
    if not exit_provided and not arm.finished and not arm.basic_block.instructions:
        exit_block = arm.basic_block
    else:
        if exit_block is None:
            exit_block = function.append_block("exit")
        arm.br(exit_block)
    arm.finish()
    then_block = arm.start_block

    if else_body is not None:
        arm = gen.child(function.append_block("else"))
        else_body(arm)
        arm.br(exit_block)
        arm.finish()
        else_block = arm.start_block
    else:
        else_block = exit_block

    if not exit_provided:
        function.move_after(exit_block, arm.basic_block)

    gen.builder.cbranch(cond_value, then_block, else_block)
    if exit_provided:
        gen.finish()
    else:
        gen.position_at_end(exit_block)


def _loop_values(variables: Any) -> list:
    if variables is None:
        return []
    if isinstance(variables, (list, tuple)):
        return list(variables)
    return [variables]


def _arguments(callback: Callable, values: list) -> list:
    """Trim loop values to what a callback accepts after its generator."""
    arity = positional_arity(callback)
    if arity is None:
        return values
    return values[:max(arity - 1, 0)]


def _loop_part(gen: 'Generator', block: ir.Block, continue_block: ir.Block, exit_block: ir.Block) -> 'Generator':
    part = gen.child(block)
    part.loop_block = continue_block
    part.loop_exit = exit_block
    return part


def emit_loop(
    gen: 'Generator',
    variables: Any = None,
    compare: Optional[Callable[..., Any]] = None,
    increment: Optional[Callable[..., Any]] = None,
    exit_block: Optional[ir.Block] = None,
    body: Optional[Callable[..., Any]] = None,
) -> Any:
    """Emit a loop built from up to three callbacks.

    Each loop variable gets a stack slot initialized in the current block.
    Blocks are laid out as:

    - header: runs ``compare`` (if given), else ``body``, else ``increment``.
      The current block is reused when it is empty and not the entry block;
      otherwise a "loop" block is appended and branched to.
    - "body": only when both ``body`` and ``compare`` are given.
    - "increment": only when ``increment`` is given alongside another part;
      it always branches back to the header.
    - "break": the exit, unless ``exit_block`` is supplied. It is moved to
      the end of the function, after any blocks the callbacks created.

    ``compare`` returns the continue condition: true goes to the body (or the
    increment, or the header), false to the exit. The body falls through to
    the increment, or back to the header. Without ``compare`` nothing branches
    to the exit except an explicit ``brk``.

    ``compare`` and ``body`` receive the loaded variable values, ``increment``
    receives their slots, each trimmed to the callback's positional arity.
    Every part generator has ``loop_block``/``loop_exit`` set, so ``cont`` and
    ``brk`` work inside them.

    Returns:
        The single variable slot, or the list of slots.

    Raises:
        ArgumentError CE0204: If no callback is given.
    """
    if body is None and compare is None and increment is None:
        raise_error("CE0204")
    function = gen.function
    exit_provided = exit_block is not None

    slots = []
    for value in _loop_values(variables):
        value = gen.convert(value)
        slot = gen.builder.alloca(value.type)
        gen.builder.store(value, slot)
        slots.append(slot)

    current = gen.basic_block
    if not current.instructions and current is not function.entry_block:
        header = current
    else:
        header = function.append_block("loop")
        gen.builder.branch(header)

    if body is not None and compare is not None:
        body_block = function.append_block("body")
    elif body is not None:
        body_block = header
    else:
        body_block = None

    if increment is not None and (body is not None or compare is not None):
        increment_block = function.append_block("increment")
    elif increment is not None:
        increment_block = header
    else:
        increment_block = None

    continue_block = increment_block if increment_block is not None else header
    if exit_block is None:
        exit_block = function.append_block("break")

    if body is not None:
        part = _loop_part(gen, body_block, continue_block, exit_block)
        body(part, *[part.load(slot) for slot in _arguments(body, slots)])
        part.br(continue_block)
        part.finish()

    if compare is not None:
        part = _loop_part(gen, header, continue_block, exit_block)
        result = compare(part, *[part.load(slot) for slot in _arguments(compare, slots)])
        if not part.finished:
            part._cbranch(part.convert(result, BOOL), body_block if body_block is not None else continue_block, exit_block)
        part.finish()

    if increment is not None:
        part = _loop_part(gen, increment_block, continue_block, exit_block)
        increment(part, *_arguments(increment, slots))
        part.br(header)
        part.finish()

    if not exit_provided:
        function.move_after(exit_block, function.blocks[-1])
        gen.position_at_end(exit_block)
    else:
        gen.finish()

    if len(slots) == 1:
        return slots[0]
    return slots
