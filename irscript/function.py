"""Functions declared in a library.

A :class:`Function` wraps an ``ir.Function`` with the information the
generator needs: parameter and return types, visibility, the entry block and
the shared return block.

Functions with a body get their entry block at construction. A non-void
function may also get one return block, created the first time a generator
returns through it: the block loads the return slot (an ``alloca`` at the
start of the entry block) and returns it, so every ``ret``/``cret``/``pret``
in any arm funnels into the same exit.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Optional

from llvmlite import ir

from irscript.backend.types import VOID
from irscript.visibility import Visibility

if TYPE_CHECKING:
    from irscript.generator import Generator
    from irscript.library import Library


class Function:
    """A named, typed callable owned by a library."""

    def __init__(
        self,
        library: 'Library',
        name: str,
        fn_type: ir.FunctionType,
        ir_name: str,
        visibility: Visibility = Visibility.PUBLIC,
        declaration: bool = False,
    ):
        """Create the function in the library's module.

        Args:
            library: Owning library.
            name: Name of the function inside the library.
            fn_type: The function's IR type.
            ir_name: Symbol name in the module. An existing function with this
                name is reused (imports and repeated externs).
            visibility: Public functions get external linkage, private ones
                private linkage.
            declaration: If True, no entry block is created (external
                declaration).
        """
        self.library = library
        self.name = name
        module = library.module
        existing = module.globals.get(ir_name)
        if isinstance(existing, ir.Function):
            self.ir = existing
        else:
            self.ir = ir.Function(module, fn_type, name=ir_name)
        self.entry_block: Optional[ir.Block] = None if declaration else self.ir.append_basic_block("entry")
        self.return_block: Optional[ir.Block] = None
        self.return_slot: Optional[ir.AllocaInstr] = None
        self.visibility = Visibility.PUBLIC
        self.relink(visibility)

    def __repr__(self) -> str:
        return f"Function({self.name!r}, {self.ir.function_type}, {self.linkage})"

    @property
    def ir_name(self) -> str:
        return self.ir.name

    @property
    def function_type(self) -> ir.FunctionType:
        return self.ir.function_type

    @property
    def arg_types(self) -> list[ir.Type]:
        return list(self.function_type.args)

    @property
    def return_type(self) -> ir.Type:
        return self.function_type.return_type

    @property
    def varargs(self) -> bool:
        return self.function_type.var_arg

    @property
    def args(self) -> list[ir.Argument]:
        return list(self.ir.args)

    @property
    def is_void(self) -> bool:
        return self.return_type == VOID

    @property
    def is_declaration(self) -> bool:
        return self.entry_block is None

    @property
    def linkage(self) -> str:
        return self.visibility.linkage

    @property
    def blocks(self) -> list[ir.Block]:
        return self.ir.blocks

    def relink(self, visibility: Visibility) -> bool:
        """Change the function's visibility.

        External declarations cannot be private; for them the call is refused.

        Returns:
            True if the visibility was applied.
        """
        if visibility is Visibility.PRIVATE and self.is_declaration:
            return False
        self.visibility = visibility
        self.ir.linkage = "private" if visibility is Visibility.PRIVATE else ""
        return True

    def append_block(self, name: str) -> ir.Block:
        return self.ir.append_basic_block(name)

    def move_after(self, block: ir.Block, anchor: ir.Block) -> None:
        """Reorder ``block`` to directly follow ``anchor`` in the function."""
        if block is anchor:
            return
        blocks = self.ir.blocks
        blocks.remove(block)
        blocks.insert(blocks.index(anchor) + 1, block)

    def setup_return(self) -> ir.Block:
        """Create the return block (and slot, if non-void) on first use.

        Returns:
            The function's single return block.
        """
        if self.return_block is not None:
            return self.return_block

        if not self.is_void:
            entry_builder = ir.IRBuilder(self.entry_block)
            entry_builder.position_at_start(self.entry_block)
            self.return_slot = entry_builder.alloca(self.return_type, name="retval")

        self.return_block = self.append_block("return")
        builder = ir.IRBuilder(self.return_block)
        if self.is_void:
            builder.ret_void()
        else:
            builder.ret(builder.load(self.return_slot))
        return self.return_block

    def generator(self) -> 'Generator':
        """Create a Generator positioned at the end of the entry block."""
        from irscript.generator import Generator
        return Generator(self.library, self)
