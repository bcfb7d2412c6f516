"""Accumulation of generated lines in nested, indented blocks."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

INDENT = "    "


class IndentingWriter:
    """Collects lines of generated code, tracking the indentation of nested blocks."""

    def __init__(self, indent: str = INDENT) -> None:
        self._indent = indent
        self._depth = 0
        self.lines: list[str] = []

    def println(self, line: str = "") -> None:
        """Add a line at the current depth. Empty lines carry no indentation."""
        if line:
            self.lines.append(f"{self._indent * self._depth}{line}")
        else:
            self.lines.append("")

    @contextmanager
    def block(self, heading: str) -> Iterator[IndentingWriter]:
        """Add a heading line and indent everything written inside the context.

        Args:
            heading (str): The line that opens the block, e.g. `class Foo:`.
        """
        self.println(heading)
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1

    def dumps(self) -> str:
        """The accumulated text, terminated by a newline."""
        assert self._depth == 0, "Cannot dump a writer with open blocks."
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"
