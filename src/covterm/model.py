"""Coverage data model and the test-run snapshot handed to the report."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from covterm.errors import InvalidRunStateError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

_NOCOV_RE = re.compile(r"^\s*#\s*:nocov:")
_FULL_PERCENT = 100.0


@dataclass(frozen=True, slots=True)
class Line:
    """One physical source line and its coverage.

    ``coverage`` is ``None`` for lines that are not executable, ``0`` for
    lines that never ran and the hit count otherwise.
    """

    line_number: int
    coverage: int | None
    skipped: bool = False
    source_text: str = ""


@dataclass(frozen=True, slots=True)
class Branch:
    """A branch of a conditional; a miss is reported on ``start_line``."""

    start_line: int
    type: str
    covered: bool


@dataclass(frozen=True, slots=True)
class FileCoverage:
    """Raw per-file coverage as read from a coverage data source."""

    filename: str
    lines: tuple[int | None, ...]
    branches: tuple[Branch, ...] = ()


@dataclass(frozen=True, slots=True)
class SourceFile:
    """Coverage of one file joined with its source text."""

    filename: str
    covered_percent: float
    lines: tuple[Line, ...]
    branches: tuple[Branch, ...] = ()

    @property
    def max_line_number(self) -> int:
        return max((ln.line_number for ln in self.lines), default=0)

    def line(self, line_number: int) -> Line | None:
        idx = line_number - 1
        if 0 <= idx < len(self.lines) and self.lines[idx].line_number == line_number:
            return self.lines[idx]
        return next((ln for ln in self.lines if ln.line_number == line_number), None)

    @classmethod
    def build(cls, record: FileCoverage, source_text: str) -> SourceFile:
        """Join *record* with *source_text*.

        Every physical line gets a :class:`Line`; lines inside ``# :nocov:``
        blocks are skipped and branches starting on them are dropped.
        """
        source_lines = split_source_lines(source_text)
        count = max(len(record.lines), len(source_lines))
        skipped = _nocov_line_numbers(source_lines)

        lines: list[Line] = []
        for idx in range(count):
            number = idx + 1
            lines.append(
                Line(
                    line_number=number,
                    coverage=record.lines[idx] if idx < len(record.lines) else None,
                    skipped=number in skipped,
                    source_text=source_lines[idx] if idx < len(source_lines) else "",
                )
            )

        branches = tuple(b for b in record.branches if b.start_line not in skipped)
        return cls(
            filename=record.filename,
            covered_percent=covered_percent(lines),
            lines=tuple(lines),
            branches=branches,
        )


def split_source_lines(source_text: str) -> list[str]:
    """Split *source_text* on ``\\n`` only, the way coverage tools number lines.

    Unlike :meth:`str.splitlines`, form feeds and other Unicode line
    boundaries stay inside their line.
    """
    if not source_text:
        return []
    lines = source_text.replace("\r\n", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def covered_percent(lines: Iterable[Line]) -> float:
    """Return the share of relevant lines that ran, as a percentage."""
    relevant = [ln for ln in lines if not ln.skipped and ln.coverage is not None]
    if not relevant:
        return _FULL_PERCENT
    covered = sum(1 for ln in relevant if ln.coverage)
    return _FULL_PERCENT * covered / len(relevant)


def _nocov_line_numbers(source_lines: Sequence[str]) -> set[int]:
    skipped: set[int] = set()
    inside = False
    for number, text in enumerate(source_lines, start=1):
        marker = bool(_NOCOV_RE.match(text))
        if marker or inside:
            skipped.add(number)
        if marker:
            inside = not inside
    return skipped


@dataclass(frozen=True, slots=True)
class CoverageResult:
    """All file records of one coverage run."""

    files: tuple[FileCoverage, ...]
    branch_coverage_enabled: bool = False

    def find(self, target: str) -> FileCoverage | None:
        """Return the first record whose filename ends with *target*."""
        return next((f for f in self.files if f.filename.endswith(target)), None)


@dataclass(frozen=True, slots=True)
class RunState:
    """Snapshot of the test run, assembled once by the test-framework integration."""

    executed_test_files: tuple[str, ...] | None = None
    failure_occurred: bool = False

    def to_dict(self) -> dict[str, Any]:
        files = None if self.executed_test_files is None else list(self.executed_test_files)
        return {"executed_test_files": files, "failure_occurred": self.failure_occurred}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RunState:
        files = data.get("executed_test_files")
        if files is not None and not isinstance(files, list):
            msg = f"executed_test_files must be a list, got {type(files).__name__}"
            raise InvalidRunStateError(msg)
        return cls(
            executed_test_files=None if files is None else tuple(str(f) for f in files),
            failure_occurred=bool(data.get("failure_occurred", False)),
        )

    @classmethod
    def load(cls, path: Path) -> RunState:
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            msg = f"run state file {path} is not valid JSON: {exc}"
            raise InvalidRunStateError(msg) from exc
        if not isinstance(data, dict):
            msg = f"run state file {path} must contain a JSON object"
            raise InvalidRunStateError(msg)
        return cls.from_dict(data)

    def dump(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(self.to_dict(), indent=2) + "\n", encoding="utf-8")


__all__ = [
    "Branch",
    "CoverageResult",
    "FileCoverage",
    "Line",
    "RunState",
    "SourceFile",
    "covered_percent",
    "split_source_lines",
]
