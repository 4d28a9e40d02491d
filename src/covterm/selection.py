"""Choice of the lines a detailed report prints, and summaries of the rest."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covterm.branches import lines_with_missed_branches
from covterm.config import LinesToPrint

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from covterm.config import LineRange
    from covterm.model import Branch, Line, SourceFile
    from covterm.printer import LinePrinter

CONTEXT_LINES = 2
REPORT_WIDTH = 80
DIVIDER = " -" * (REPORT_WIDTH // 2)


def lines_to_print(
    source_file: SourceFile,
    mode: LinesToPrint = LinesToPrint.UNCOVERED,
    explicit_ranges: Sequence[LineRange] | None = None,
    *,
    uncovered: Sequence[Branch] | None = None,
) -> set[int]:
    """Return the line numbers a detailed report should show.

    Explicit ranges win over *mode*.  In ``UNCOVERED`` mode every line that
    never ran, or ran with a missed branch, is shown together with
    ``CONTEXT_LINES`` lines on either side.
    """
    max_line = source_file.max_line_number
    if explicit_ranges is not None:
        return {
            n
            for start, end in explicit_ranges
            for n in range(max(1, start), min(max_line, end) + 1)
        }

    if mode is LinesToPrint.ALL:
        return set(range(1, max_line + 1))

    branch_lines = set(lines_with_missed_branches(source_file, uncovered=uncovered))
    selected: set[int] = set()
    for line in source_file.lines:
        if line.coverage is None:
            continue
        if line.coverage > 0 and line.line_number not in branch_lines:
            continue
        first = max(1, line.line_number - CONTEXT_LINES)
        last = min(max_line, line.line_number + CONTEXT_LINES)
        selected.update(range(first, last + 1))
    return selected


@dataclass(frozen=True, slots=True)
class Omission:
    """A run of consecutive lines left out of the report."""

    line_numbers: tuple[int, ...]

    def __len__(self) -> int:
        return len(self.line_numbers)


def segments(lines: Sequence[Line], selected: set[int]) -> Iterator[Line | Omission]:
    """Yield selected lines in order, collapsing the others into :class:`Omission` runs."""
    skipped: list[int] = []
    for line in lines:
        if line.line_number in selected:
            if skipped:
                yield Omission(tuple(skipped))
                skipped = []
            yield line
        else:
            skipped.append(line.line_number)
    if skipped:
        yield Omission(tuple(skipped))


def omission_message(count: int, *, explicit_ranges: bool) -> str:
    # lines outside explicit ranges may or may not be covered
    adjective = "" if explicit_ranges else "covered "
    return f"{count} {adjective}line(s) omitted".center(REPORT_WIDTH)


def omission_block(omission: Omission, printer: LinePrinter, *, explicit_ranges: bool) -> list[str]:
    return [
        printer.blank_numbered_line(DIVIDER),
        printer.blank_numbered_line(omission_message(len(omission), explicit_ranges=explicit_ranges)),
        printer.blank_numbered_line(DIVIDER),
    ]


__all__ = [
    "CONTEXT_LINES",
    "DIVIDER",
    "Omission",
    "lines_to_print",
    "omission_block",
    "omission_message",
    "segments",
]
