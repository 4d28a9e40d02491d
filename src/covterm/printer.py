"""Per-line classification and rendering of the coverage gutter."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from covterm.branches import missed_branch_info, uncovered_branches
from covterm.colors import Color, colorize

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covterm.model import Branch, Line, SourceFile

LINE_NUMBER_WIDTH = 3
DEBUG_LINE_NUMBER_WIDTH = 6
DEBUG_LINE_NUMBER_PREFIX = ":::"


class LineState(StrEnum):
    """Visual state of a rendered line, in classification order."""

    SKIPPED = "skipped"
    UNCOVERED = "uncovered"
    BRANCH_MISS = "branch-miss"
    UNTRACKED = "untracked"
    COVERED = "covered"


GUTTER_COLORS: dict[LineState, Color] = {
    LineState.SKIPPED: Color.WHITE,
    LineState.UNCOVERED: Color.WHITE_ON_RED,
    LineState.BRANCH_MISS: Color.RED_ON_YELLOW,
    LineState.UNTRACKED: Color.WHITE,
    LineState.COVERED: Color.GREEN,
}


@dataclass(frozen=True, slots=True)
class RenderOptions:
    """Presentation flags shared by every rendered line."""

    debug_numbering: bool = False
    hyperlink_pattern: str | None = None
    absolute_path: str = ""

    @property
    def line_number_width(self) -> int:
        return DEBUG_LINE_NUMBER_WIDTH if self.debug_numbering else LINE_NUMBER_WIDTH


@dataclass(frozen=True, slots=True)
class RenderLine:
    line_number: int
    state: LineState
    text: str


def classify(line: Line, branch_info: str | None) -> LineState:
    """Return the visual state of *line*; the first matching rule wins."""
    if line.skipped:
        return LineState.SKIPPED
    if line.coverage == 0:
        return LineState.UNCOVERED
    if branch_info:
        return LineState.BRANCH_MISS
    if line.coverage is None:
        return LineState.UNTRACKED
    return LineState.COVERED


def _line_number_text(line_number: int | None, options: RenderOptions) -> str:
    width = options.line_number_width
    if line_number is None:
        return " " * width

    if options.debug_numbering:
        link_text = f"{DEBUG_LINE_NUMBER_PREFIX}{line_number}".rjust(width)
    else:
        link_text = str(line_number).rjust(width)

    if not options.hyperlink_pattern:
        return link_text
    target = options.hyperlink_pattern.replace("%f", options.absolute_path, 1).replace("%l", str(line_number), 1)
    return f"\x1b]8;;{target}\x1b\\{link_text}\x1b]8;;\x1b\\"


def numbered_line_output(
    line_number: int | None,
    color: Color,
    source_code: str,
    options: RenderOptions,
    branch_info: str | None = None,
) -> str:
    """Return one output line: gutter, source and optional branch annotation.

    A ``None`` line number leaves the number field blank.
    """
    pad_color = color if color in {Color.RED_ON_YELLOW, Color.WHITE_ON_RED} else Color.WHITE_ON_GREEN
    pad = colorize(" ", pad_color)

    output = pad + colorize(_line_number_text(line_number, options), color) + pad + " " + source_code
    if branch_info:
        output += " " + colorize(branch_info, Color.WHITE_ON_RED)
    return output


def render_line(
    line: Line,
    source_file: SourceFile,
    highlighted_text: str,
    options: RenderOptions,
    *,
    uncovered: Sequence[Branch] | None = None,
) -> str:
    return _render(line, source_file, highlighted_text, options, uncovered=uncovered).text


def _render(
    line: Line,
    source_file: SourceFile,
    highlighted_text: str,
    options: RenderOptions,
    *,
    uncovered: Sequence[Branch] | None,
) -> RenderLine:
    info = missed_branch_info(line, source_file, uncovered=uncovered)
    state = classify(line, info)
    annotation = info if state is LineState.BRANCH_MISS else None
    text = numbered_line_output(line.line_number, GUTTER_COLORS[state], highlighted_text, options, annotation)
    return RenderLine(line_number=line.line_number, state=state, text=text)


class LinePrinter:
    """Render lines of one source file with its highlighted text."""

    def __init__(
        self,
        source_file: SourceFile,
        highlighted_lines: Sequence[str],
        options: RenderOptions,
        *,
        uncovered: Sequence[Branch] | None = None,
    ) -> None:
        self.source_file = source_file
        self.highlighted_lines = highlighted_lines
        self.options = options
        self.uncovered = uncovered_branches(source_file) if uncovered is None else uncovered

    def colored_line(self, line: Line) -> RenderLine:
        idx = line.line_number - 1
        code = self.highlighted_lines[idx] if 0 <= idx < len(self.highlighted_lines) else ""
        return _render(line, self.source_file, code, self.options, uncovered=self.uncovered)

    def blank_numbered_line(self, text: str) -> str:
        return numbered_line_output(None, Color.WHITE, text, self.options)


__all__ = [
    "GUTTER_COLORS",
    "LineState",
    "LinePrinter",
    "RenderLine",
    "RenderOptions",
    "classify",
    "numbered_line_output",
    "render_line",
]
