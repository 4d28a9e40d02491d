"""Syntax highlighting of the target file for terminal output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from pygments import highlight
from pygments.formatters import Terminal256Formatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from covterm.config import DEFAULT_HIGHLIGHT_STYLE
from covterm.errors import ConfigurationError
from covterm.model import split_source_lines


class Highlighter(Protocol):
    def __call__(self, source_text: str, *, filename: str = "") -> list[str]: ...


@dataclass(frozen=True, slots=True)
class PygmentsHighlighter:
    """Highlight with Pygments' 256-color terminal formatter, one string per line."""

    style: str = DEFAULT_HIGHLIGHT_STYLE

    def __call__(self, source_text: str, *, filename: str = "") -> list[str]:
        try:
            formatter = Terminal256Formatter(style=self.style)
        except ClassNotFound as exc:
            msg = f"unknown highlight style {self.style!r}"
            raise ConfigurationError(msg) from exc

        # stripnl=False keeps leading blank lines so indices match line numbers
        try:
            lexer = get_lexer_for_filename(filename, source_text, stripnl=False)
        except ClassNotFound:
            lexer = TextLexer(stripnl=False)

        lines = highlight(source_text, lexer, formatter).split("\n")
        # Pygments appends a final newline
        if lines and lines[-1] == "":
            lines.pop()
        return lines


@dataclass(frozen=True, slots=True)
class PlainHighlighter:
    """Return the source lines untouched."""

    def __call__(self, source_text: str, *, filename: str = "") -> list[str]:
        return split_source_lines(source_text)


__all__ = ["Highlighter", "PlainHighlighter", "PygmentsHighlighter"]
