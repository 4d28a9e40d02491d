"""Selection of the branches worth reporting for a source file."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covterm.model import Branch, Line, SourceFile


def _suppression_pattern(branch_type: str) -> re.Pattern[str]:
    return re.compile(rf"# :nocov-({re.escape(branch_type)}):")


def uncovered_branches(source_file: SourceFile) -> tuple[Branch, ...]:
    """Return the uncovered branches of *source_file* that deserve a report.

    A branch is left out when it was taken, when its whole line never ran
    (the line itself already shows the miss), or when the line carries a
    ``# :nocov-<type>:`` comment for that branch type.
    """
    out: list[Branch] = []
    for branch in source_file.branches:
        if branch.covered:
            continue
        line = source_file.line(branch.start_line)
        if line is not None:
            if line.coverage == 0:
                continue
            if _suppression_pattern(branch.type).search(line.source_text):
                continue
        out.append(branch)
    return tuple(out)


def missed_branch_info(
    line: Line,
    source_file: SourceFile,
    *,
    uncovered: Sequence[Branch] | None = None,
) -> str | None:
    """Return the comma-joined types of the uncovered branches on *line*."""
    if uncovered is None:
        uncovered = uncovered_branches(source_file)
    types = [b.type for b in uncovered if b.start_line == line.line_number]
    return ", ".join(types) or None


def lines_with_missed_branches(
    source_file: SourceFile,
    *,
    uncovered: Sequence[Branch] | None = None,
) -> list[int]:
    if uncovered is None:
        uncovered = uncovered_branches(source_file)
    return sorted({b.start_line for b in uncovered})


__all__ = ["lines_with_missed_branches", "missed_branch_info", "uncovered_branches"]
