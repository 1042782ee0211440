"""Macros: code fragments inlined into the calling generator."""
from __future__ import annotations
import inspect
from typing import TYPE_CHECKING, Any, Callable, Optional

from irscript.internals.errors import raise_error
from irscript.visibility import Visibility

if TYPE_CHECKING:
    from irscript.generator import Generator


def positional_arity(callback: Callable) -> Optional[int]:
    """Count the positional parameters of a callback.

    Returns:
        The number of positional parameters, or None if the callback takes
        ``*args`` (or its signature cannot be inspected).
    """
    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        return None
    count = 0
    for param in signature.parameters.values():
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return None
        if param.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            count += 1
    return count


class Macro:
    """A named body expanded in place of a call.

    The body is called as ``body(generator, *args)`` with the caller's
    generator, so whatever it emits lands in the caller's current block.
    """

    def __init__(self, name: str, body: Callable[..., Any], visibility: Visibility = Visibility.PUBLIC):
        self.name = name
        self.body = body
        self.visibility = visibility

    def __repr__(self) -> str:
        return f"Macro({self.name!r}, arity={self.arity})"

    @property
    def arity(self) -> Optional[int]:
        """Number of arguments after the generator; None if variadic."""
        count = positional_arity(self.body)
        return None if count is None else max(count - 1, 0)

    def relink(self, visibility: Visibility) -> bool:
        self.visibility = visibility
        return True

    def expand(self, generator: 'Generator', *args: Any) -> Any:
        """Inline the macro into ``generator``.

        Raises:
            ArgumentError CE0201: If the argument count does not match.
        """
        arity = self.arity
        if arity is not None and len(args) != arity:
            raise_error("CE0201", name=self.name, got=len(args), expected=arity)
        return self.body(generator, *args)

    def copy(self, name: str) -> 'Macro':
        return Macro(name, self.body, self.visibility)
