"""
Tests for Program.

These tests verify:
- Libraries created through a program share its registry
- emit returns one IR text per library
- symbols merges the public tables, definitions winning over declarations
- verify accepts built programs and rejects unterminated blocks
"""

import pytest

from irscript import ArgumentError, Library, Program, SymbolType
from irscript.backend.types import CHARPTR, INT


@pytest.fixture
def program():
    return Program("prog")


class TestLibraries:
    """Tests for Program.library and Program.libraries."""

    def test_library_is_registered(self, program):
        lib = program.library("first", echo=False)
        assert isinstance(lib, Library)
        assert lib.registry is program.registry
        assert program.libraries == [lib]

    def test_keyword_arguments_pass_through(self, program):
        lib = program.library("raw", prefix="none", visibility="private", echo=False)
        assert lib.function("main", [], INT).ir_name == "main"
        assert not lib.functions()

    def test_duplicate_name(self, program):
        program.library("dup", echo=False)
        with pytest.raises(ArgumentError) as exc:
            program.library("dup", echo=False)
        assert exc.value.code == "CE0505"

    def test_import_through_program(self, program):
        base = program.library("base", echo=False)
        base.function("helper", [INT], INT, lambda g: g.ret(g.args[0]))
        user = program.library("user", echo=False)
        user.import_("base")
        assert user.functions()["helper"].ir_name == "base_helper"

    def test_repr_lists_libraries(self, program):
        program.library("a", echo=False)
        assert "a" in repr(program)


class TestEmit:
    """Tests for Program.emit."""

    def test_one_entry_per_library(self, program):
        a = program.library("a", echo=False)
        a.function("f", [], INT, lambda g: g.ret(1))
        program.library("b", echo=False)
        emitted = program.emit()
        assert list(emitted) == ["a", "b"]
        assert "a_f" in emitted["a"]
        assert emitted["a"] == str(a.module)

    def test_empty_program(self, program):
        assert program.emit() == {}
        assert program.symbols() == {}


class TestSymbols:
    """Tests for Program.symbols."""

    def test_definition_kept_over_later_declaration(self, program):
        base = program.library("base", echo=False)
        defined = base.function("helper", [], INT, lambda g: g.ret(2))
        user = program.library("user", echo=False)
        user.extern("base_helper", [], INT)

        symbols = program.symbols()
        assert symbols["base_helper"].library_name == "base"
        assert symbols["base_helper"].is_definition()
        assert symbols["base_helper"].ir_type == str(defined.function_type)

    def test_definition_replaces_earlier_declaration(self, program):
        user = program.library("user", echo=False)
        user.extern("base_helper", [], INT)
        base = program.library("base", echo=False)
        base.function("helper", [], INT, lambda g: g.ret(2))
        assert program.symbols()["base_helper"].library_name == "base"

    def test_shared_externs_keep_first(self, program):
        program.library("a", echo=False).extern("puts", [CHARPTR], INT)
        program.library("b", echo=False).extern("puts", [CHARPTR], INT)
        puts = program.symbols()["puts"]
        assert puts.library_name == "a"
        assert puts.is_declaration

    def test_private_symbols_excluded(self, program):
        lib = program.library("lib", echo=False)
        lib.global_("counter", 0)
        lib.private()
        lib.function("hidden")
        symbols = program.symbols()
        assert set(symbols) == {"lib_counter"}
        assert symbols["lib_counter"].symbol_type is SymbolType.GLOBAL_VARIABLE


class TestVerify:
    """Tests for Program.verify on built programs."""

    def test_nested_loop_and_conditionals(self, program):
        lib = program.library("flow", echo=False)

        def count_even(g):
            total = g.alloca(INT)
            g.store(0, total)

            def body(b, i):
                b.cond(b.opr("eq", b.rem(i, 2), 0),
                       lambda t: t.inc(total),
                       lambda e: e.cond(e.opr("sgt", i, 7), lambda x: x.brk()))

            g.lp(0,
                 lambda c, i: c.opr("slt", i, g.args[0]),
                 lambda n, p: n.inc(p),
                 body=body)
            g.ret(g.load(total))

        lib.function("count_even", [INT], INT, count_even)
        program.verify()

    def test_while_and_infinite_loops(self, program):
        lib = program.library("loops", echo=False)

        def spin(g):
            g.lp(g.args[0], lambda c, n: c.opr("sgt", n, 0), body=lambda b: b.cont())
            g.lp(body=lambda b: b.cond(True, lambda t: t.brk(), lambda e: e.cont()))
            g.ret()

        lib.function("spin", [INT], "void", spin)
        program.verify()

    def test_returns(self, program):
        lib = program.library("rets", echo=False)

        def sign(g):
            g.cret(g.opr("slt", g.args[0], 0), -1)
            g.cret(g.opr("eq", g.args[0], 0), 0)
            g.ret(1)

        def clamp(g):
            g.pret(g.args[0])
            g.cond(g.opr("sgt", g.args[0], 100), lambda t: t.pret(100))
            g.ret()

        def pick(g):
            g.cond(g.args[0], lambda t: t.sret(1.5), lambda e: e.ret(2.5))
            g.ret(0.0)

        lib.function("sign", [INT], INT, sign)
        lib.function("clamp", [INT], INT, clamp)
        lib.function("pick", ["i1"], "double", pick)
        lib.function("noop", [], "void", lambda g: g.sret())
        program.verify()

    def test_imports_heap_and_macros(self, program):
        io = program.library("io", echo=False)
        io.extern("puts", [CHARPTR], INT)
        io.macro("say", lambda g, text: g.call("puts", text))
        io.function("greet", [], "void", lambda g: (g.call("say", "hello"), g.ret()))

        app = program.library("app", prefix="none", echo=False)
        app.import_("io")

        def main(g):
            g.call("greet")
            g.call("say", "bye")
            g.free(g.malloc(INT, 4))
            g.ret(0)

        app.function("main", [], INT, main)
        program.verify()

    def test_unterminated_block_fails(self, program):
        good = program.library("good", echo=False)
        good.function("f", [], "void", lambda g: g.ret())
        broken = program.library("broken", echo=False)
        broken.function("g", [INT], INT, lambda g: g.add(g.args[0], 1))
        with pytest.raises(ArgumentError) as exc:
            program.verify()
        assert exc.value.code == "CE0507"
        assert "broken" in str(exc.value)
