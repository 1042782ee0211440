"""Instruction generation for library functions.

- core: the Generator class and its instruction helpers
- control_flow: cond/lp block structure
- returns: shared-block and direct returns
"""

from .core import Generator

__all__ = ['Generator']
