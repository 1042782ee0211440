"""
Tests for cond.

These tests verify:
- The diamond shape with and without an else arm
- Reuse of an empty then block as the join point
- Caller-supplied exit blocks
- Arms that return, and nested conditionals
"""

import pytest
from llvmlite.ir.instructions import Branch, ConditionalBranch, Ret, Terminator

from irscript import ArgumentError
from irscript.backend.types import INT, VOID


@pytest.fixture
def fn(make_function):
    return make_function([INT], VOID)


class TestCond:
    """Tests for Generator.cond."""

    def test_then_only(self, fn, successors):
        gen = fn.generator()
        flag = gen.opr("sgt", gen.args[0], 0)
        gen.cond(flag, lambda g: g.add(g.args[0], 1))
        entry, then, exit_ = fn.blocks
        assert isinstance(entry.terminator, ConditionalBranch)
        assert successors(entry) == [then, exit_]
        assert isinstance(then.terminator, Branch)
        assert successors(then) == [exit_]
        assert gen.basic_block is exit_
        assert not gen.finished

    def test_empty_then_becomes_exit(self, fn, successors):
        gen = fn.generator()
        gen.cond(True, lambda g: None)
        entry, then = fn.blocks
        assert successors(entry) == [then, then]
        assert gen.basic_block is then
        assert not then.is_terminated

    def test_then_and_else(self, fn, successors):
        gen = fn.generator()
        gen.cond(True, lambda g: g.add(1, 2), lambda g: g.sub(1, 2))
        entry, then, else_, exit_ = fn.blocks
        assert else_.name.startswith("else")
        assert successors(entry) == [then, else_]
        assert successors(then) == [exit_]
        assert successors(else_) == [exit_]
        assert gen.basic_block is exit_

    def test_empty_then_with_else(self, fn, successors):
        gen = fn.generator()
        gen.cond(False, lambda g: None, lambda g: g.add(1, 2))
        entry = fn.blocks[0]
        then, else_ = successors(entry)
        assert then.name.startswith("then")
        assert fn.blocks == [entry, else_, then]
        assert successors(else_) == [then]
        assert gen.basic_block is then

    def test_exit_placed_after_last_arm(self, fn):
        gen = fn.generator()
        gen.cond(True, lambda g: g.add(1, 2), lambda g: g.cond(True, lambda h: h.add(3, 4)))
        blocks = fn.blocks
        assert blocks[-1] is gen.basic_block

    def test_supplied_exit(self, fn, successors):
        gen = fn.generator()
        done = gen.block("done")
        gen.cond(True, lambda g: g.add(1, 2), exit_block=done.basic_block)
        entry = fn.blocks[0]
        then = successors(entry)[0]
        assert successors(entry) == [then, done.basic_block]
        assert successors(then) == [done.basic_block]
        assert gen.finished
        assert gen.basic_block is entry

    def test_supplied_exit_with_empty_then(self, fn, successors):
        gen = fn.generator()
        done = gen.block("done")
        gen.cond(True, lambda g: None, exit_block=done.basic_block)
        then = successors(fn.blocks[0])[0]
        assert then is not done.basic_block
        assert successors(then) == [done.basic_block]

    def test_returning_arm_does_not_branch_to_exit(self, fn, successors):
        gen = fn.generator()
        gen.cond(True, lambda g: g.ret(), lambda g: g.add(1, 2))
        entry, then, else_, exit_ = fn.blocks
        assert isinstance(then.terminator, Ret)
        assert successors(then) == []
        assert successors(else_) == [exit_]

    def test_condition_is_coerced_to_i1(self, fn):
        gen = fn.generator()
        gen.cond(1, lambda g: None)
        condition = fn.blocks[0].terminator.operands[0]
        assert condition.type.width == 1

    def test_missing_then(self, fn):
        gen = fn.generator()
        with pytest.raises(ArgumentError) as exc:
            gen.cond(True)
        assert exc.value.code == "CE0212"

    def test_arm_generators_are_finished(self, fn):
        arms = []
        gen = fn.generator()
        gen.cond(True, arms.append, arms.append)
        assert len(arms) == 2
        assert all(arm.finished for arm in arms)


class TestWellFormed:
    """Every block ends with exactly one terminator."""

    def test_nested_conditionals(self, make_function):
        def outer_then(g):
            g.cond(g.opr("slt", g.args[0], 10),
                   lambda h: h.call("puts", "small"),
                   lambda h: h.call("puts", "medium"))

        def build(g):
            g.library.extern("puts", ["i8*"], INT)
            g.cond(g.opr("slt", g.args[0], 100), outer_then, lambda g2: g2.ret(-1))
            g.ret(g.args[0])

        fn = make_function([INT], INT, build)
        for block in fn.blocks:
            assert block.is_terminated, block.name
            terminators = [i for i in block.instructions if isinstance(i, Terminator)]
            assert len(terminators) == 1, block.name
        assert len([b for b in fn.blocks if b.name.startswith("return")]) == 1
