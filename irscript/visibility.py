"""Visibility and prefix policy values accepted by libraries."""
from __future__ import annotations
from enum import Enum


class Visibility(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    @property
    def linkage(self) -> str:
        """Linkage name reported for symbols of this visibility."""
        return "external" if self is Visibility.PUBLIC else "private"


class Prefix(str, Enum):
    SMART = "smart"  # prefix imported names only when they collide
    NONE = "none"    # never prefix
    ALL = "all"      # always prefix imported names


def parse_visibility(value) -> Visibility | None:
    """Return the Visibility for ``value``, or None if it is not one."""
    try:
        return Visibility(value)
    except ValueError:
        return None


def parse_prefix(value) -> Prefix | None:
    """Return the Prefix policy for ``value``, or None if it is not one."""
    try:
        return Prefix(value)
    except ValueError:
        return None
