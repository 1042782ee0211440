"""
C Library Function Declarations

Declarations for the libc functions the generator calls on its own
(heap allocation). Each declaration is created once per module.

Design: Single Responsibility - only C function declarations, no logic.
"""

import llvmlite.ir as ir

from irscript.backend.types import LONG, VOID, VOIDPTR


# ==============================================================================
# Memory Management
# ==============================================================================

def declare_malloc(module: ir.Module) -> ir.Function:
    """Declare malloc: void* malloc(size_t size)"""
    if "malloc" in module.globals:
        return module.globals["malloc"]

    fn_ty = ir.FunctionType(VOIDPTR, [LONG])  # size_t is i64 on 64-bit systems
    return ir.Function(module, fn_ty, name="malloc")


def declare_free(module: ir.Module) -> ir.Function:
    """Declare free: void free(void* ptr)"""
    if "free" in module.globals:
        return module.globals["free"]

    fn_ty = ir.FunctionType(VOID, [VOIDPTR])
    return ir.Function(module, fn_ty, name="free")
