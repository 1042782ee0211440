"""Libraries: namespaces of functions, macros, globals and strings.

A :class:`Library` owns one ``ir.Module`` and four symbol maps:

- functions: name -> :class:`~irscript.function.Function`
- macros: name -> :class:`~irscript.macro.Macro`
- globals: name -> ``ir.GlobalVariable``
- strings: text -> pooled string global

Declarations take the library's current default visibility. Accessors show
public entries unless asked for private ones too, so a Generator sees its
own library's private symbols while importers only get the public surface.

Import merges another library's public surface. The source library's prefix
policy decides the imported names:

- ``none``: names are kept as they are
- ``all``: names become ``<source>_<name>``
- ``smart``: names are kept unless they collide, then prefixed

A name collides with anything the importer already resolves under it,
whether a function, a macro or a global.

Imported functions and globals become external declarations in the
importer's module; macros are shared; strings are re-pooled by content.
"""
from __future__ import annotations
import itertools
import re
import sys
from typing import Any, Callable, Dict, Optional, TYPE_CHECKING

from llvmlite import ir

from irscript.backend.convert import convert
from irscript.backend.strings import StringPool
from irscript.backend.types import VOID, split_signature, type_name, validate_type
from irscript.function import Function
from irscript.internals.errors import ERR, emit, raise_error
from irscript.internals.report import Reporter
from irscript.macro import Macro
from irscript.symbols import NOT_FOUND, Resolution, SymbolInfo, SymbolTable, SymbolType
from irscript.visibility import Prefix, Visibility, parse_prefix, parse_visibility

if TYPE_CHECKING:
    from irscript.registry import LibraryRegistry


_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_.]*$")
_anonymous = itertools.count(1)


class Library:
    """Namespace of IR functions, macros, globals and string constants."""

    def __init__(
        self,
        name: str = "",
        *,
        visibility: Any = "public",
        prefix: Any = "smart",
        registry: Optional['LibraryRegistry'] = None,
        body: Optional[Callable[['Library'], Any]] = None,
        echo: bool = True,
    ):
        """Create a library and its module.

        Invalid arguments never fail: an empty name is replaced by a generated
        ``library<N>``, and a malformed name, visibility or prefix falls back
        to its default with a warning.

        Args:
            name: Library name, also used to prefix IR symbol names.
            visibility: Default visibility, "public" or "private".
            prefix: Prefix policy for importers, "smart", "none" or "all".
            registry: Registry to register with, for import by name.
            body: Callback run with the library once it is set up.
            echo: Echo warnings to stderr as they are recorded.

        Raises:
            ArgumentError CE0505: If the registry already has a library with
                this name.
        """
        self.reporter = Reporter(echo=echo)
        self.name = self._check_name(name)
        self.reporter.source = self.name

        self._visibility = parse_visibility(visibility)
        if self._visibility is None:
            self._visibility = Visibility.PUBLIC
            emit(self.reporter, ERR.CW0001, value=visibility, fallback=self._visibility.value)

        self.prefix = parse_prefix(prefix)
        if self.prefix is None:
            self.prefix = Prefix.SMART
            emit(self.reporter, ERR.CW0002, value=prefix, fallback=self.prefix.value)

        self.module = ir.Module(name=self.name)
        self.registry = registry
        self._functions: Dict[str, Function] = {}
        self._macros: Dict[str, Macro] = {}
        self._globals: Dict[str, ir.GlobalVariable] = {}
        self._global_visibility: Dict[str, Visibility] = {}
        self._strings = StringPool(self.module, self.name)

        if registry is not None:
            registry.register(self)
        if body is not None:
            self.build(body)

    def __repr__(self) -> str:
        return (f"Library({self.name!r}, {self._visibility.value}, prefix={self.prefix.value}, "
                f"{len(self._functions)} functions, {len(self._macros)} macros, "
                f"{len(self._globals)} globals, {len(self._strings)} strings)")

    def _check_name(self, name: Any) -> str:
        if isinstance(name, str) and _NAME_RE.match(name):
            return name
        generated = f"library{next(_anonymous)}"
        if name != "" and name is not None:
            emit(self.reporter, ERR.CW0003, value=name, fallback=generated)
        return generated

    def ir_name(self, name: str) -> str:
        """IR symbol name for a definition declared as ``name``."""
        if self.prefix is Prefix.NONE:
            return name
        return f"{self.name}_{name}"

    def _check_unique(self, kind: str, name: str, table: Dict[str, Any]) -> None:
        if name in table:
            raise_error("CE0503", kind=kind, name=name, library=self.name)

    # --- Declarations --------------------------------------------------------

    def _function_type(self, arg_types, return_type) -> ir.FunctionType:
        types, varargs = split_signature(arg_types)
        return ir.FunctionType(validate_type(return_type, "function signature"), types, var_arg=varargs)

    def function(
        self,
        name: str,
        arg_types=(),
        return_type: Any = VOID,
        body: Optional[Callable[..., Any]] = None,
    ) -> Function:
        """Define a function.

        Args:
            name: Function name inside the library.
            arg_types: Parameter types (llvmlite types or type strings),
                optionally ending with ``VARARGS``.
            return_type: Return type, VOID by default.
            body: Callback receiving a Generator bound to the entry block.

        Returns:
            The new Function, linked by the current default visibility.

        Raises:
            ArgumentError CE0503: If a function with this name exists.
        """
        self._check_unique("function", name, self._functions)
        function = Function(self, name, self._function_type(arg_types, return_type),
                            self.ir_name(name), self._visibility)
        self._functions[name] = function
        if body is not None:
            body(function.generator())
        return function

    def extern(self, name: str, arg_types=(), return_type: Any = VOID) -> Function:
        """Declare an external function under its raw name, always public."""
        self._check_unique("function", name, self._functions)
        function = Function(self, name, self._function_type(arg_types, return_type), name,
                            Visibility.PUBLIC, declaration=True)
        self._functions[name] = function
        return function

    def macro(self, name: str, body: Callable[..., Any]) -> Macro:
        """Declare a macro; ``body(generator, *args)`` is inlined at each call."""
        self._check_unique("macro", name, self._macros)
        macro = Macro(name, body, self._visibility)
        self._macros[name] = macro
        return macro

    def _global_variable(self, ir_name: str, value_type: ir.Type) -> ir.GlobalVariable:
        existing = self.module.globals.get(ir_name)
        if isinstance(existing, ir.GlobalVariable):
            return existing
        return ir.GlobalVariable(self.module, value_type, name=ir_name)

    def global_(self, name: str, value_or_type: Any) -> ir.GlobalVariable:
        """Declare a global.

        A type (llvmlite type or type string) makes an external declaration
        under the raw name, always public. Any other value is converted and
        becomes the initializer of a definition linked by the current default
        visibility.

        Raises:
            ArgumentError CE0503: If a global with this name exists.
        """
        self._check_unique("global", name, self._globals)
        if isinstance(value_or_type, (ir.Type, str)):
            variable = self._global_variable(name, validate_type(value_or_type, "global"))
            visibility = Visibility.PUBLIC
        else:
            initializer = convert(value_or_type, None, self)
            variable = self._global_variable(self.ir_name(name), initializer.type)
            variable.initializer = initializer
            visibility = self._visibility
            if visibility is Visibility.PRIVATE:
                variable.linkage = "private"
        self._globals[name] = variable
        self._global_visibility[name] = visibility
        return variable

    def constant(self, name: str, value: Any) -> ir.GlobalVariable:
        """Declare an immutable global."""
        variable = self.global_(name, value)
        variable.global_constant = True
        return variable

    def string(self, text: str) -> ir.GlobalVariable:
        """The pooled global holding ``text``, created on first use."""
        return self._strings.get_or_create(text)

    # --- Visibility -----------------------------------------------------------

    @property
    def default_visibility(self) -> Visibility:
        return self._visibility

    def set_visibility(self, visibility: Any, symbol: Optional[str] = None,
                       body: Optional[Callable[['Library'], Any]] = None) -> None:
        """Relink a symbol, scope a callback, or change the default visibility.

        Args:
            visibility: "public" or "private". Invalid values are ignored
                with a warning.
            symbol: Relink only this symbol (every kind carrying the name).
            body: Run ``body(library)`` with ``visibility`` as a temporary
                default.

        Raises:
            ArgumentError CE0504: If ``symbol`` names nothing in the library.
        """
        parsed = parse_visibility(visibility)
        if parsed is None:
            emit(self.reporter, ERR.CW0001, value=visibility, fallback=self._visibility.value)
            return
        if symbol is not None:
            self._relink(symbol, parsed)
        elif body is not None:
            previous = self._visibility
            self._visibility = parsed
            try:
                body(self)
            finally:
                self._visibility = previous
        else:
            self._visibility = parsed

    def public(self, *symbols: str) -> None:
        """Make ``symbols`` public, or make public the default if none are given."""
        self._apply(Visibility.PUBLIC, symbols)

    def private(self, *symbols: str) -> None:
        """Make ``symbols`` private, or make private the default if none are given."""
        self._apply(Visibility.PRIVATE, symbols)

    def _apply(self, visibility: Visibility, symbols: tuple) -> None:
        if not symbols:
            self._visibility = visibility
        for symbol in symbols:
            self._relink(symbol, visibility)

    def _relink(self, name: str, visibility: Visibility) -> None:
        found = False
        function = self._functions.get(name)
        if function is not None:
            found = True
            if not function.relink(visibility):
                emit(self.reporter, ERR.CW0004, name=name)
        macro = self._macros.get(name)
        if macro is not None:
            found = True
            macro.relink(visibility)
        variable = self._globals.get(name)
        if variable is not None:
            found = True
            if variable.initializer is None and visibility is Visibility.PRIVATE:
                emit(self.reporter, ERR.CW0004, name=name)
            else:
                variable.linkage = "private" if visibility is Visibility.PRIVATE else ""
                self._global_visibility[name] = visibility
        if not found:
            raise_error("CE0504", library=self.name, name=name)

    # --- Accessors ------------------------------------------------------------

    def functions(self, include_private: bool = False) -> Dict[str, Function]:
        return {name: fn for name, fn in self._functions.items()
                if include_private or fn.visibility is Visibility.PUBLIC}

    def macros(self, include_private: bool = False) -> Dict[str, Macro]:
        return {name: m for name, m in self._macros.items()
                if include_private or m.visibility is Visibility.PUBLIC}

    def globals(self, include_private: bool = False) -> Dict[str, ir.GlobalVariable]:
        return {name: gv for name, gv in self._globals.items()
                if include_private or self._global_visibility[name] is Visibility.PUBLIC}

    def strings(self) -> Dict[str, ir.GlobalVariable]:
        """Every pooled string, keyed by its text."""
        return self._strings.as_dict()

    def resolve(self, name: str, include_private: bool = True) -> Resolution:
        """Resolve a name as a macro, then a function, then a global."""
        macro = self.macros(include_private).get(name)
        if macro is not None:
            return Resolution(SymbolType.MACRO, macro)
        function = self.functions(include_private).get(name)
        if function is not None:
            return Resolution(SymbolType.FUNCTION, function)
        variable = self.globals(include_private).get(name)
        if variable is not None:
            return Resolution(SymbolType.GLOBAL_VARIABLE, variable)
        return NOT_FOUND

    def symbol_table(self) -> SymbolTable:
        """Describe the public functions and globals for program assembly."""
        table = SymbolTable(self.name)
        for name, function in self.functions().items():
            table.add_symbol(SymbolInfo(
                name=name,
                ir_name=function.ir_name,
                symbol_type=SymbolType.FUNCTION,
                is_declaration=function.is_declaration,
                linkage=function.linkage,
                library_name=self.name,
                ir_type=str(function.function_type),
            ))
        for name, variable in self.globals().items():
            table.add_symbol(SymbolInfo(
                name=name,
                ir_name=variable.name,
                symbol_type=SymbolType.GLOBAL_VARIABLE,
                is_declaration=variable.initializer is None,
                linkage=Visibility.PUBLIC.linkage,
                library_name=self.name,
                ir_type=str(variable.type.pointee),
            ))
        return table

    def callee(self, function: Function) -> ir.Function:
        """The IR function to call for ``function`` from this library's module.

        Functions of other libraries are declared in this module first.
        """
        if function.ir.module is self.module:
            return function.ir
        existing = self.module.globals.get(function.ir_name)
        if isinstance(existing, ir.Function):
            return existing
        return ir.Function(self.module, function.function_type, name=function.ir_name)

    # --- Building -------------------------------------------------------------

    def build(self, body: Callable[['Library'], Any]) -> 'Library':
        """Run ``body(library)`` to declare symbols in bulk."""
        body(self)
        return self

    def dump(self, stream=None) -> None:
        """Write the module IR to ``stream`` (stderr by default)."""
        stream = stream or sys.stderr
        stream.write(str(self.module))
        stream.write("\n")

    # --- Import ---------------------------------------------------------------

    def _resolve_import(self, source: Any) -> 'Library':
        if isinstance(source, Library):
            return source
        if isinstance(source, str):
            library = self.registry.get(source) if self.registry is not None else None
            if library is None:
                raise_error("CE0501", name=source)
            return library
        raise_error("CE0502", actual=type_name(source))

    def _import_name(self, kind: str, name: str, source: 'Library', table: Dict[str, Any],
                     taken: set[str]) -> Optional[str]:
        """Name an imported symbol by the source's prefix policy.

        A name collides when ``resolve`` would already find something under
        it, whatever its kind.

        Args:
            kind: "function", "macro" or "global", for diagnostics.
            name: The symbol's name in the source library.
            source: The library being imported.
            table: The importer's map the symbol goes into.
            taken: Names the importer defined before the import started.

        Returns:
            The name to import under, or None if it still collides.
        """
        prefixed = f"{source.name}_{name}"
        if source.prefix is Prefix.ALL:
            key = prefixed
        elif source.prefix is Prefix.SMART and name in taken:
            key = prefixed
            emit(self.reporter, ERR.CW0102, kind=kind, name=name, source=source.name, alias=key)
        else:
            key = name
        if key in taken or key in table:
            emit(self.reporter, ERR.CW0101, kind=kind, name=key, source=source.name)
            return None
        return key

    def import_(self, source: Any) -> None:
        """Merge the public surface of another library into this one.

        Args:
            source: A Library, or the name of one in this library's registry.

        Raises:
            ArgumentError CE0501: If no library has that name.
            ArgumentError CE0502: If ``source`` is neither a Library nor a name.
            ArgumentError CE0506: If ``source`` is this library.
        """
        library = self._resolve_import(source)
        if library is self:
            raise_error("CE0506", name=self.name)

        taken = set(self._functions) | set(self._macros) | set(self._globals)
        for name, function in library.functions().items():
            key = self._import_name("function", name, library, self._functions, taken)
            if key is not None:
                self._functions[key] = Function(self, key, function.function_type, function.ir_name,
                                                Visibility.PUBLIC, declaration=True)

        for name, macro in library.macros().items():
            key = self._import_name("macro", name, library, self._macros, taken)
            if key is not None:
                self._macros[key] = macro.copy(key)

        for name, variable in library.globals().items():
            key = self._import_name("global", name, library, self._globals, taken)
            if key is not None:
                declared = self._global_variable(variable.name, variable.type.pointee)
                declared.global_constant = variable.global_constant
                self._globals[key] = declared
                self._global_visibility[key] = Visibility.PUBLIC

        for text in library.strings():
            self.string(text)
