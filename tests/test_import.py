"""
Tests for Library.import_.

These tests verify:
- Only the public surface is merged
- Naming under the source's smart/none/all prefix policies
- Collisions keep the existing symbol and warn
- Imported functions and globals are declarations in the importer's module
- Import by registry name and its error cases
"""

import pytest
from llvmlite.ir.instructions import CallInstr

from irscript import ArgumentError, Library, Program
from irscript.backend.types import CHARPTR, INT, VARARGS


@pytest.fixture
def importee(registry):
    """Library with public function/macro/global, a private function and strings."""
    def build(lib):
        lib.extern("printf", [CHARPTR, VARARGS], INT)
        lib.global_("ret_int", 1)
        lib.macro("gret", lambda g: g.sret(g.load(g.global_("ret_int"))))
        lib.function("testing", [], INT, lambda g: (g.call("printf", "Testing"), g.call("gret")))
        lib.private()
        lib.function("uncallable", [], INT, lambda g: (g.call("printf", "Uncallable"), g.call("gret")))

    return Library("importee", registry=registry, body=build, echo=False)


@pytest.fixture
def importer(registry):
    return Library("importer", registry=registry, echo=False)


class TestSmartPrefix:
    """The default policy prefixes only on collision."""

    def test_public_surface_is_merged(self, importer, importee):
        importer.import_(importee)
        assert "testing" in importer.functions()
        assert "printf" in importer.functions()
        assert "ret_int" in importer.globals()
        assert "gret" in importer.macros()
        assert "Testing" in importer.strings()
        assert "Uncallable" in importer.strings()

    def test_private_functions_are_absent(self, importer, importee):
        importer.import_(importee)
        assert "uncallable" not in importer.functions(include_private=True)
        assert "importee_uncallable" not in importer.functions(include_private=True)

    def test_collision_is_prefixed(self, importer, importee):
        importer.extern("printf", [CHARPTR, VARARGS], INT)
        importer.function("testing", [], INT, lambda g: g.ret(0))
        importer.import_(importee)
        assert "importee_testing" in importer.functions()
        assert "importee_printf" in importer.functions()
        assert importer.functions()["testing"].ir_name == "importer_testing"
        assert importer.reporter.codes() == ["CW0102", "CW0102"]

    def test_collision_across_kinds_is_prefixed(self, registry, importer):
        source = Library("src", registry=registry, echo=False)
        source.macro("helper", lambda g: g.add(40, 2))
        own = importer.function("helper", [], INT, lambda g: g.ret(1))
        importer.import_(source)
        assert "helper" not in importer.macros()
        assert "src_helper" in importer.macros()
        assert importer.reporter.codes() == ["CW0102"]

        fn = importer.function("main", [], INT, lambda g: g.ret(g.call("helper")))
        call = [i for i in fn.entry_block.instructions if isinstance(i, CallInstr)][0]
        assert call.callee is own.ir

    def test_collision_with_private_symbol(self, registry, importer):
        source = Library("src", registry=registry, echo=False)
        source.global_("count", 1)
        importer.private()
        importer.function("count")
        importer.import_(source)
        assert "src_count" in importer.globals()
        assert "count" not in importer.globals(include_private=True)

    def test_prefixed_name_also_taken(self, importer, importee):
        importer.function("testing")
        importer.function("importee_testing")
        importer.import_(importee)
        assert "CW0101" in importer.reporter.codes()


class TestOtherPolicies:
    """none and all."""

    def test_all_always_prefixes(self, registry, importer):
        source = Library("src", prefix="all", registry=registry, echo=False)
        source.function("f", [], INT, lambda g: g.ret(1))
        source.global_("v", 2)
        importer.import_(source)
        assert "src_f" in importer.functions()
        assert "f" not in importer.functions()
        assert "src_v" in importer.globals()
        assert not importer.reporter.items

    def test_none_collision_keeps_existing(self, registry, importer):
        source = Library("src", prefix="none", registry=registry, echo=False)
        source.global_("testglobal", 1)
        mine = importer.global_("testglobal", 1)
        importer.import_("src")
        assert importer.globals()["testglobal"] is mine
        assert importer.reporter.codes() == ["CW0101"]

    def test_none_collision_across_kinds(self, registry, importer):
        source = Library("src", prefix="none", registry=registry, echo=False)
        source.function("size", [], INT, lambda g: g.ret(0))
        own = importer.macro("size", lambda g: 4)
        importer.import_(source)
        assert "size" not in importer.functions()
        assert importer.macros()["size"] is own
        assert importer.reporter.codes() == ["CW0101"]

    def test_same_source_kinds_do_not_collide_with_each_other(self, registry, importer):
        source = Library("src", registry=registry, echo=False)
        source.function("shared", [], INT, lambda g: g.ret(0))
        source.macro("shared", lambda g: 4)
        importer.import_(source)
        assert "shared" in importer.functions()
        assert "shared" in importer.macros()
        assert not importer.reporter.items

    def test_collision_warning_is_echoed(self, registry, capsys):
        source = Library("src", prefix="none", registry=registry, echo=False)
        source.global_("g", 1)
        importer = Library("dst", registry=registry)
        importer.global_("g", 2)
        importer.import_(source)
        assert "CW0101" in capsys.readouterr().err


class TestDeclarations:
    """Imported symbols live in the importer's module as declarations."""

    def test_function_declared(self, importer, importee):
        importer.import_(importee)
        imported = importer.functions()["testing"]
        assert imported.is_declaration
        assert imported.ir.module is importer.module
        assert imported.ir_name == "importee_testing"
        assert not imported.ir.blocks

    def test_global_declared(self, importer, importee):
        importer.import_(importee)
        imported = importer.globals()["ret_int"]
        assert imported.name == "importee_ret_int"
        assert imported.initializer is None
        assert imported in importer.module.global_values

    def test_call_imported_function(self, importer, importee):
        importer.import_(importee)
        fn = importer.function("main", [], INT, lambda g: g.ret(g.call("testing")))
        call = [i for i in fn.entry_block.instructions if isinstance(i, CallInstr)][0]
        assert call.callee is importer.functions()["testing"].ir

    def test_imported_macro_expands_in_importer(self, importer, importee):
        importer.import_(importee)
        fn = importer.function("main", [], INT, lambda g: g.call("gret"))
        assert fn.entry_block.terminator.opname == "ret"

    def test_shared_extern_reuses_declaration(self, importer, importee):
        printf = importer.extern("printf", [CHARPTR, VARARGS], INT)
        importer.import_(importee)
        assert importer.functions()["importee_printf"].ir is printf.ir

    def test_strings_merge_by_content(self, importer, importee):
        mine = importer.string("Testing")
        importer.import_(importee)
        assert importer.strings()["Testing"] is mine
        assert len(importer.strings()) == 2


class TestSources:
    """Resolving what to import."""

    def test_by_name(self, importer, importee):
        importer.import_("importee")
        assert "testing" in importer.functions()

    def test_unknown_name(self, importer):
        with pytest.raises(ArgumentError) as exc:
            importer.import_("nonexistent")
        assert exc.value.code == "CE0501"

    def test_name_without_registry(self):
        lib = Library("alone", echo=False)
        with pytest.raises(ArgumentError):
            lib.import_("anything")

    def test_not_a_library(self, importer):
        with pytest.raises(ArgumentError) as exc:
            importer.import_(Program())
        assert exc.value.code == "CE0502"

    def test_self_import(self, importer):
        with pytest.raises(ArgumentError) as exc:
            importer.import_(importer)
        assert exc.value.code == "CE0506"

    def test_empty_library(self, registry, importer):
        empty = Library("empty", registry=registry, echo=False)
        importer.import_(empty)
        assert not importer.functions()
        assert not importer.macros()
        assert not importer.globals()
        assert not importer.strings()
        assert not importer.reporter.items
