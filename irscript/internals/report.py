from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional


class C:
    """ANSI color/style escape codes."""
    RESET = "\x1b[0m"
    BOLD  = "\x1b[1m"
    DIM   = "\x1b[2m"
    RED   = "\x1b[31m"
    YELLOW = "\x1b[33m"
    CYAN  = "\x1b[36m"


@dataclass
class Diagnostic:
    kind: str
    code: str
    message: str
    source: Optional[str] = None  # Library (or program) the diagnostic belongs to


class Reporter:
    """Collects diagnostics for one library.

    With ``echo`` set, every diagnostic is also printed to stderr as soon as it
    is recorded, so soft failures are visible while a library is being built.
    """

    def __init__(self, source: str = "<library>", echo: bool = True) -> None:
        self.source = source
        self.echo = echo
        self.items: List[Diagnostic] = []

    def warn(self, code: str, msg: str) -> None:
        self._add(Diagnostic("warning", code, msg, source=self.source))

    def _add(self, d: Diagnostic) -> None:
        self.items.append(d)
        if self.echo:
            self.print(items=[d])

    def codes(self) -> List[str]:
        return [d.code for d in self.items]

    def format(self, use_color: bool = True, items: Optional[List[Diagnostic]] = None) -> str:
        """Render diagnostics, one ``source: kind [code]: message.`` line each."""
        out: List[str] = []
        for d in self.items if items is None else items:
            loc = d.source or self.source

            # Ensure message ends with period
            message = d.message if d.message.endswith('.') else f"{d.message}."

            if use_color:
                kind = f"{C.BOLD}{C.RED}error{C.RESET}" if d.kind == "error" else f"{C.BOLD}{C.YELLOW}warning{C.RESET}"
                out.append(f"{C.CYAN}{loc}{C.RESET}: {kind} [{C.DIM}{d.code}{C.RESET}]: {message}")
            else:
                out.append(f"{loc}: {d.kind} [{d.code}]: {message}")
        return "\n".join(out)

    def print(self, stream=None, use_color: Optional[bool] = None,
              items: Optional[List[Diagnostic]] = None) -> None:
        """Print diagnostics to `stream` (default: sys.stderr).

        Color is auto-enabled for TTY unless NO_COLOR or TERM=dumb.
        """
        import os, sys
        stream = stream or sys.stderr

        if use_color is None:
            is_tty = getattr(stream, "isatty", lambda: False)()
            no_color = os.getenv("NO_COLOR") is not None
            dumb = os.getenv("TERM") == "dumb"
            use_color = bool(is_tty and not no_color and not dumb)

        text = self.format(use_color=use_color, items=items)
        if text:
            print(text, file=stream)
