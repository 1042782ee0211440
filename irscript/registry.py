"""Registry of libraries for import by name.

Libraries register themselves when constructed with a registry; importing
by name looks the source up here. A registry is owned by a
:class:`~irscript.program.Program` or passed around explicitly.
"""
from __future__ import annotations
from typing import TYPE_CHECKING, Iterator, Optional

from irscript.internals.errors import raise_error

if TYPE_CHECKING:
    from irscript.library import Library


class LibraryRegistry:
    """Maps library names to libraries."""

    def __init__(self):
        self._libraries: dict[str, 'Library'] = {}

    def register(self, library: 'Library') -> 'Library':
        """Register a library under its name.

        Raises:
            ArgumentError CE0505: If the name is already taken.
        """
        if library.name in self._libraries:
            raise_error("CE0505", name=library.name)
        self._libraries[library.name] = library
        return library

    def unregister(self, name: str) -> Optional['Library']:
        return self._libraries.pop(name, None)

    def get(self, name: str) -> Optional['Library']:
        return self._libraries.get(name)

    def names(self) -> list[str]:
        return list(self._libraries)

    def __contains__(self, name: object) -> bool:
        return name in self._libraries

    def __iter__(self) -> Iterator['Library']:
        return iter(list(self._libraries.values()))

    def __len__(self) -> int:
        return len(self._libraries)

    def __repr__(self) -> str:
        return f"LibraryRegistry({', '.join(self._libraries)})"
