"""The Generator: an instruction builder bound to one basic block.

A Generator emits into the block it is positioned at. Structured helpers
(``cond``, ``lp``, ``block``) create further blocks and hand fresh generators
to user callbacks; ``ret``, ``br`` and their relatives terminate the block and
mark the generator finished, after which every emitting method is a no-op
returning None.

Operands are coerced with :func:`irscript.backend.convert.convert`, so callbacks
can mix IR values with Python numbers, strings, lists, True/False and None.
"""
from __future__ import annotations
import functools
from typing import TYPE_CHECKING, Any, Callable, Optional

from llvmlite import ir

from irscript.backend.constants import is_static_zero, make_int_const, size_of
from irscript.backend.convert import convert
from irscript.backend.libc import declare_free, declare_malloc
from irscript.backend.types import (
    INT,
    LONG,
    VOIDPTR,
    float_rank,
    is_float,
    is_int,
    is_pointer,
    type_name,
    validate_type,
)
from irscript.function import Function
from irscript.generator import control_flow, returns
from irscript.internals.errors import raise_error
from irscript.symbols import SymbolType

if TYPE_CHECKING:
    from irscript.library import Library


# op -> (signed, unsigned, float) builder method names
_ARITH = {
    "add": ("add", "add", "fadd"),
    "sub": ("sub", "sub", "fsub"),
    "mul": ("mul", "mul", "fmul"),
    "div": ("sdiv", "udiv", "fdiv"),
    "rem": ("srem", "urem", "frem"),
}

_BITWISE = {"and": "and_", "or": "or_", "xor": "xor"}

# op -> (signed, llvmlite comparison operator)
_ICMP = {
    "eq": (False, "=="),
    "ne": (False, "!="),
    "ugt": (False, ">"),
    "uge": (False, ">="),
    "ult": (False, "<"),
    "ule": (False, "<="),
    "sgt": (True, ">"),
    "sge": (True, ">="),
    "slt": (True, "<"),
    "sle": (True, "<="),
}

# op -> (ordered, llvmlite comparison operator)
_FCMP = {
    "ord": (True, "ord"),
    "uno": (False, "uno"),
    "oeq": (True, "=="),
    "ogt": (True, ">"),
    "oge": (True, ">="),
    "olt": (True, "<"),
    "ole": (True, "<="),
    "one": (True, "!="),
    "ueq": (False, "=="),
    "une": (False, "!="),
}


def unless_finished(method):
    """Turn an emitting method into a no-op once the generator is finished."""
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        if self._finished:
            return None
        return method(self, *args, **kwargs)
    return wrapper


class Generator:
    """Emits instructions into one basic block of a library function.

    Attributes:
        library: Library used for name resolution and string interning.
        function: The function being built.
        basic_block: Block instructions are currently appended to.
        start_block: Block the generator was created on.
        loop_block: Continue target inside an ``lp`` part, else None.
        loop_exit: Break target inside an ``lp`` part, else None.
    """

    def __init__(self, library: 'Library', function: Function, block: Optional[ir.Block] = None):
        self.library = library
        self.function = function
        self.basic_block = block if block is not None else function.entry_block
        self.start_block = self.basic_block
        self.loop_block: Optional[ir.Block] = None
        self.loop_exit: Optional[ir.Block] = None
        self._builder = ir.IRBuilder(self.basic_block)
        self._finished = False

    def __repr__(self) -> str:
        state = "finished" if self._finished else "open"
        return f"Generator({self.function.name!r}, block={self.basic_block.name!r}, {state})"

    # --- State ---------------------------------------------------------------

    @property
    def builder(self) -> ir.IRBuilder:
        """IR builder positioned at the end of the current block.

        Return slots are inserted at the start of the entry block by other
        builders, so the position is refreshed on every access.
        """
        self._builder.position_at_end(self.basic_block)
        return self._builder

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def args(self) -> list[ir.Argument]:
        """The function's parameters."""
        return self.function.args

    @property
    def return_block(self) -> ir.Block:
        """The function's shared return block, created on first use."""
        return self.function.setup_return()

    def finish(self) -> None:
        """Mark the generator finished; later emitting calls do nothing."""
        self._finished = True

    def position_at_end(self, block: ir.Block) -> None:
        self.basic_block = block

    def child(self, block: ir.Block) -> 'Generator':
        """A fresh generator for the same function, positioned at ``block``.

        Loop targets are inherited so ``brk``/``cont`` work in nested arms.
        """
        generator = self.__class__(self.library, self.function, block)
        generator.loop_block = self.loop_block
        generator.loop_exit = self.loop_exit
        return generator

    def convert(self, value: Any, type_: Any = None) -> ir.Value:
        return convert(value, type_, self.library)

    # --- Calls and symbols ---------------------------------------------------

    @unless_finished
    def call(self, callable_: Any, *args: Any) -> Any:
        """Call a function, function pointer or macro.

        A string is resolved against the library (private symbols included):
        macros are expanded inline, functions are called, and a global name
        yields the global itself.

        Args:
            callable_: Symbol name, :class:`Function` or IR function value.
            *args: Arguments, coerced to the parameter types.

        Returns:
            The call instruction, or the macro's result.

        Raises:
            MethodNotFound CE0401: If a name resolves to nothing.
            ArgumentError CE0201/CE0202: On arity mismatch.
            ArgumentError CE0205: If ``callable_`` cannot be called.
            TypeMismatch CE0101: If an argument does not fit its parameter.
        """
        if isinstance(callable_, str):
            resolution = self.library.resolve(callable_, include_private=True)
            match resolution.kind:
                case SymbolType.MACRO:
                    return resolution.target.expand(self, *args)
                case SymbolType.FUNCTION:
                    return self._call_function(resolution.target, args)
                case SymbolType.GLOBAL_VARIABLE:
                    return resolution.target
                case _:
                    raise_error("CE0401", name=callable_, library=self.library.name)
        if isinstance(callable_, Function):
            return self._call_function(callable_, args)
        if isinstance(callable_, ir.Value):
            return self.builder.call(callable_, [self.convert(a) for a in args])
        raise_error("CE0205", actual=type_name(callable_))

    def _call_function(self, function: Function, args: tuple) -> ir.CallInstr:
        params = function.arg_types
        if len(args) < len(params) or (len(args) > len(params) and not function.varargs):
            raise_error("CE0202", name=function.name, got=len(args), expected=len(params))
        values = [self._argument(arg, param) for arg, param in zip(args, params)]
        values += [self.convert(arg) for arg in args[len(params):]]
        return self.builder.call(self.library.callee(function), values)

    def _argument(self, arg: Any, param: ir.Type) -> ir.Value:
        """Coerce a call argument to its parameter type.

        Host booleans widen to integer parameters as 0/1.

        Raises:
            TypeMismatch CE0101: If the value does not have the parameter type.
        """
        if isinstance(arg, bool) and is_int(param):
            return make_int_const(param, int(arg))
        value = self.convert(arg, param)
        if value.type != param:
            raise_error("CE0101", expected=type_name(param), actual=type_name(value))
        return value

    def global_(self, name: str) -> Optional[ir.GlobalVariable]:
        """Look up a global of the library (private ones included)."""
        return self.library.globals(include_private=True).get(name)

    # --- Arithmetic ----------------------------------------------------------

    def _operands(self, lhs: Any, rhs: Any) -> tuple[ir.Value, ir.Value]:
        """Coerce a pair of operands, letting an IR operand type the literal one."""
        if not isinstance(lhs, ir.Value) and isinstance(rhs, ir.Value):
            return self.convert(lhs, rhs.type), rhs
        left = self.convert(lhs)
        return left, self.convert(rhs, left.type)

    @unless_finished
    def _arith(self, op: str, lhs: Any, rhs: Any, signed: bool = True) -> ir.Instruction:
        left, right = self._operands(lhs, rhs)
        signed_name, unsigned_name, float_name = _ARITH[op]
        if is_int(left.type):
            name = signed_name if signed else unsigned_name
        elif is_float(left.type):
            name = float_name
        else:
            raise_error("CE0102", op=op, actual=type_name(left))
        return getattr(self.builder, name)(left, right)

    def add(self, lhs: Any, rhs: Any) -> ir.Instruction:
        return self._arith("add", lhs, rhs)

    def sub(self, lhs: Any, rhs: Any) -> ir.Instruction:
        return self._arith("sub", lhs, rhs)

    def mul(self, lhs: Any, rhs: Any) -> ir.Instruction:
        return self._arith("mul", lhs, rhs)

    def div(self, dividend: Any, divisor: Any, signed: bool = True) -> ir.Instruction:
        """Divide; integers use sdiv/udiv by ``signed``, floats fdiv.

        Raises:
            DivisionByZero CE0301: If ``divisor`` is a constant zero.
        """
        if is_static_zero(divisor):
            raise_error("CE0301", op="div")
        return self._arith("div", dividend, divisor, signed)

    def rem(self, dividend: Any, divisor: Any, signed: bool = True) -> ir.Instruction:
        """Remainder; integers use srem/urem by ``signed``, floats frem.

        Raises:
            DivisionByZero CE0301: If ``divisor`` is a constant zero.
        """
        if is_static_zero(divisor):
            raise_error("CE0301", op="rem")
        return self._arith("rem", dividend, divisor, signed)

    @unless_finished
    def neg(self, num: Any) -> ir.Instruction:
        value = self.convert(num)
        if is_int(value.type):
            return self.builder.neg(value)
        if is_float(value.type):
            return self.builder.fsub(ir.Constant(value.type, 0.0), value)
        raise_error("CE0102", op="neg", actual=type_name(value))

    @unless_finished
    def inc(self, ptr: Any, amount: Any = 1) -> ir.StoreInstr:
        """Add ``amount`` to the value behind ``ptr`` in place."""
        pointer = self._pointer(ptr, "inc")
        return self.store(self.add(self.builder.load(pointer), amount), pointer)

    @unless_finished
    def dec(self, ptr: Any, amount: Any = 1) -> ir.StoreInstr:
        """Subtract ``amount`` from the value behind ``ptr`` in place."""
        pointer = self._pointer(ptr, "dec")
        return self.store(self.sub(self.builder.load(pointer), amount), pointer)

    @unless_finished
    def _shift(self, op: str, num: Any, bits: Any) -> ir.Instruction:
        value = self.convert(num)
        if not is_int(value.type):
            raise_error("CE0104", op=op, actual=type_name(value))
        return getattr(self.builder, op)(value, self.convert(bits, value.type))

    def shl(self, num: Any, bits: Any) -> ir.Instruction:
        return self._shift("shl", num, bits)

    def ashr(self, num: Any, bits: Any) -> ir.Instruction:
        return self._shift("ashr", num, bits)

    def lshr(self, num: Any, bits: Any) -> ir.Instruction:
        return self._shift("lshr", num, bits)

    @unless_finished
    def invert(self, num: Any) -> ir.Instruction:
        """Bitwise not."""
        return self.builder.not_(self.convert(num))

    # --- Casts ---------------------------------------------------------------

    @unless_finished
    def bitcast(self, value: Any, type_: Any) -> ir.Instruction:
        return self.builder.bitcast(self.convert(value), validate_type(type_, "bitcast"))

    @unless_finished
    def _numeric_cast(self, op: str, int_method: str, float_method: str, num: Any, type_: Any) -> ir.Instruction:
        value = self.convert(num)
        target = validate_type(type_, op)
        if is_int(value.type):
            return getattr(self.builder, int_method)(value, target)
        if is_float(value.type):
            return getattr(self.builder, float_method)(value, target)
        raise_error("CE0102", op=op, actual=type_name(value))

    def trunc(self, num: Any, type_: Any) -> ir.Instruction:
        """Narrow an integer (trunc) or float (fptrunc)."""
        return self._numeric_cast("trunc", "trunc", "fptrunc", num, type_)

    def sext(self, num: Any, type_: Any) -> ir.Instruction:
        """Widen an integer with sign extension, or a float."""
        return self._numeric_cast("sext", "sext", "fpext", num, type_)

    def zext(self, num: Any, type_: Any) -> ir.Instruction:
        """Widen an integer with zero extension, or a float."""
        return self._numeric_cast("zext", "zext", "fpext", num, type_)

    @unless_finished
    def ftoi(self, num: Any, type_: Any, signed: bool = True) -> ir.Instruction:
        value = self.convert(num)
        if not is_float(value.type):
            raise_error("CE0105", op="ftoi", actual=type_name(value))
        target = validate_type(type_, "ftoi")
        if signed:
            return self.builder.fptosi(value, target)
        return self.builder.fptoui(value, target)

    @unless_finished
    def itof(self, num: Any, type_: Any, signed: bool = True) -> ir.Instruction:
        value = self.convert(num)
        if not is_int(value.type):
            raise_error("CE0104", op="itof", actual=type_name(value))
        target = validate_type(type_, "itof")
        if signed:
            return self.builder.sitofp(value, target)
        return self.builder.uitofp(value, target)

    @unless_finished
    def cast(self, value: Any, type_: Any) -> ir.Value:
        """Resize a value within its kind.

        Integers are truncated or sign-extended by width, floats truncated or
        extended by precision, and pointers bit-cast. A value that already has
        the target type is returned as is.

        Raises:
            TypeMismatch CE0106: For casts across kinds (e.g. int to float).
        """
        source = self.convert(value)
        target = validate_type(type_, "cast")
        src_type = source.type
        if src_type == target:
            return source
        if is_int(src_type) and is_int(target):
            if target.width < src_type.width:
                return self.builder.trunc(source, target)
            return self.builder.sext(source, target)
        if is_float(src_type) and is_float(target):
            if float_rank(target) < float_rank(src_type):
                return self.builder.fptrunc(source, target)
            return self.builder.fpext(source, target)
        if is_pointer(src_type) and is_pointer(target):
            return self.builder.bitcast(source, target)
        raise_error("CE0106", src=type_name(src_type), dst=type_name(target))

    # --- Memory --------------------------------------------------------------

    def _pointer(self, value: Any, op: str) -> ir.Value:
        pointer = self.convert(value)
        if not is_pointer(pointer.type):
            raise_error("CE0103", op=op, actual=type_name(pointer))
        return pointer

    @unless_finished
    def alloca(self, type_: Any, size: Any = None) -> ir.AllocaInstr:
        """Stack-allocate a value of ``type_``, or an array of ``size`` of them."""
        target = validate_type(type_, "alloca")
        if size is None:
            return self.builder.alloca(target)
        return self.builder.alloca(target, size=self.convert(size))

    @unless_finished
    def malloc(self, type_: Any, size: Any = None) -> ir.Instruction:
        """Heap-allocate a value of ``type_`` (or ``size`` of them) with libc malloc.

        Returns:
            The allocation, bit-cast to ``type_*``.
        """
        target = validate_type(type_, "malloc")
        nbytes = size_of(target)
        if size is not None:
            count = self.cast(size, LONG) if isinstance(size, ir.Value) else self.convert(size, LONG)
            nbytes = self.builder.mul(nbytes, count)
        raw = self.builder.call(declare_malloc(self.library.module), [nbytes])
        return self.builder.bitcast(raw, target.as_pointer())

    @unless_finished
    def free(self, ptr: Any) -> ir.CallInstr:
        pointer = self._pointer(ptr, "free")
        if pointer.type != VOIDPTR:
            pointer = self.builder.bitcast(pointer, VOIDPTR)
        return self.builder.call(declare_free(self.library.module), [pointer])

    @unless_finished
    def load(self, ptr: Any) -> ir.LoadInstr:
        return self.builder.load(self._pointer(ptr, "load"))

    @unless_finished
    def store(self, value: Any, ptr: Any) -> ir.StoreInstr:
        """Store ``value``, coerced to the pointee type, through ``ptr``."""
        pointer = self._pointer(ptr, "store")
        return self.builder.store(self.convert(value, pointer.type.pointee), pointer)

    @unless_finished
    def gep(self, ptr: Any, *indices: Any) -> ir.Instruction:
        """Address computation; literal indices become i32 constants."""
        pointer = self._pointer(ptr, "gep")
        flat = []
        for index in indices:
            if isinstance(index, (list, tuple)):
                flat.extend(index)
            else:
                flat.append(index)
        return self.builder.gep(pointer, [self.convert(i, INT) for i in flat])

    @unless_finished
    def gev(self, ptr: Any, *indices: Any) -> ir.LoadInstr:
        """Load the element at ``gep(ptr, *indices)``."""
        return self.load(self.gep(ptr, *indices))

    @unless_finished
    def sep(self, ptr: Any, *indices_and_value: Any) -> ir.StoreInstr:
        """Store the last argument at ``gep(ptr, *other_arguments)``."""
        *indices, value = indices_and_value
        return self.store(value, self.gep(ptr, *indices))

    @staticmethod
    def _static_index(index: Any) -> int:
        if isinstance(index, ir.Constant):
            return int(index.constant)
        return int(index)

    @unless_finished
    def insert(self, collection: Any, element: Any, index: Any) -> ir.Instruction:
        """Insert into a vector (insertelement) or an aggregate (insertvalue)."""
        aggregate = self.convert(collection)
        agg_type = aggregate.type
        if isinstance(agg_type, ir.VectorType):
            return self.builder.insert_element(
                aggregate, self.convert(element, agg_type.element), self.convert(index, INT))
        if isinstance(agg_type, ir.ArrayType):
            return self.builder.insert_value(
                aggregate, self.convert(element, agg_type.element), self._static_index(index))
        if isinstance(agg_type, (ir.LiteralStructType, ir.IdentifiedStructType)):
            position = self._static_index(index)
            return self.builder.insert_value(
                aggregate, self.convert(element, agg_type.elements[position]), position)
        raise_error("CE0108", op="insert", actual=type_name(aggregate))

    @unless_finished
    def extract(self, collection: Any, index: Any) -> ir.Instruction:
        """Extract from a vector (extractelement) or an aggregate (extractvalue)."""
        aggregate = self.convert(collection)
        agg_type = aggregate.type
        if isinstance(agg_type, ir.VectorType):
            return self.builder.extract_element(aggregate, self.convert(index, INT))
        if isinstance(agg_type, (ir.ArrayType, ir.LiteralStructType, ir.IdentifiedStructType)):
            return self.builder.extract_value(aggregate, self._static_index(index))
        raise_error("CE0108", op="extract", actual=type_name(aggregate))

    # --- Comparisons ---------------------------------------------------------

    @unless_finished
    def is_null(self, value: Any) -> ir.Instruction:
        if not isinstance(value, ir.Value):
            raise_error("CE0107", op="is_null", actual=type_name(value))
        return self.builder.icmp_unsigned("==", value, ir.Constant(value.type, None))

    @unless_finished
    def is_not_null(self, value: Any) -> ir.Instruction:
        if not isinstance(value, ir.Value):
            raise_error("CE0107", op="is_not_null", actual=type_name(value))
        return self.builder.icmp_unsigned("!=", value, ir.Constant(value.type, None))

    @unless_finished
    def opr(self, op: str, lhs: Any, rhs: Any) -> ir.Instruction:
        """Bitwise operation or comparison named by its LLVM mnemonic.

        ``and``/``or``/``xor``, integer predicates (``eq`` ``ne`` ``ugt`` ``uge``
        ``ult`` ``ule`` ``sgt`` ``sge`` ``slt`` ``sle``) and float predicates
        (``ord`` ``uno`` ``oeq`` ``ogt`` ``oge`` ``olt`` ``ole`` ``one`` ``ueq``
        ``une``). The right operand is coerced to the left operand's type.

        Raises:
            ArgumentError CE0206: For an unknown mnemonic.
        """
        if op not in _BITWISE and op not in _ICMP and op not in _FCMP:
            raise_error("CE0206", op=op)
        left, right = self._operands(lhs, rhs)
        if op in _BITWISE:
            return getattr(self.builder, _BITWISE[op])(left, right)
        if op in _ICMP:
            signed, cmp = _ICMP[op]
            if signed:
                return self.builder.icmp_signed(cmp, left, right)
            return self.builder.icmp_unsigned(cmp, left, right)
        ordered, cmp = _FCMP[op]
        if ordered:
            return self.builder.fcmp_ordered(cmp, left, right)
        return self.builder.fcmp_unordered(cmp, left, right)

    # --- Blocks and control flow ---------------------------------------------

    @unless_finished
    def block(self, name: str = "block", body: Optional[Callable[['Generator'], Any]] = None) -> 'Generator':
        """Append a new block to the function and return a generator on it.

        A finished generator appends nothing and returns None.
        """
        generator = self.child(self.function.append_block(name))
        if body is not None:
            body(generator)
        return generator

    @unless_finished
    def br(self, block: Any) -> None:
        """Branch unconditionally and finish."""
        target = block.start_block if isinstance(block, Generator) else block
        self.builder.branch(target)
        self.finish()

    @unless_finished
    def _cbranch(self, condition: ir.Value, then_block: ir.Block, else_block: ir.Block) -> None:
        self.builder.cbranch(condition, then_block, else_block)
        self.finish()

    @unless_finished
    def brk(self) -> None:
        """Leave the enclosing loop."""
        if self.loop_exit is None:
            raise_error("CE0211", op="brk")
        self.br(self.loop_exit)

    @unless_finished
    def cont(self) -> None:
        """Jump to the enclosing loop's next iteration."""
        if self.loop_block is None:
            raise_error("CE0211", op="cont")
        self.br(self.loop_block)

    @unless_finished
    def cond(
        self,
        condition: Any,
        then_body: Optional[Callable[['Generator'], Any]] = None,
        else_body: Optional[Callable[['Generator'], Any]] = None,
        exit_block: Optional[ir.Block] = None,
    ) -> None:
        """Emit an if/else; see :func:`irscript.generator.control_flow.emit_cond`."""
        control_flow.emit_cond(self, condition, then_body, else_body, exit_block)

    @unless_finished
    def lp(
        self,
        variables: Any = None,
        compare: Optional[Callable[..., Any]] = None,
        increment: Optional[Callable[..., Any]] = None,
        exit_block: Optional[ir.Block] = None,
        body: Optional[Callable[..., Any]] = None,
    ) -> Any:
        """Emit a loop; see :func:`irscript.generator.control_flow.emit_loop`."""
        return control_flow.emit_loop(self, variables, compare, increment, exit_block, body)

    # --- Returns -------------------------------------------------------------

    @unless_finished
    def ret(self, value: Any = None) -> None:
        returns.emit_ret(self, value)

    @unless_finished
    def cret(self, condition: Any, value: Any = None, continuation: Optional[ir.Block] = None) -> None:
        returns.emit_cret(self, condition, value, continuation)

    @unless_finished
    def sret(self, value: Any = None) -> None:
        returns.emit_sret(self, value)

    @unless_finished
    def pret(self, value: Any = None) -> None:
        returns.emit_pret(self, value)
