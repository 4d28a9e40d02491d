"""Reader for SimpleCov ``.resultset.json`` files."""

from __future__ import annotations

import json
import re
from collections import defaultdict
from typing import TYPE_CHECKING, Any

from covterm.errors import InvalidCoverageDataError
from covterm.model import Branch, CoverageResult, FileCoverage

if TYPE_CHECKING:
    from pathlib import Path

# "[:then, 4, 6, 6, 6, 10]" -> type, id, start_line, start_col, end_line, end_col
_BRANCH_KEY_RE = re.compile(r"^\[:(?P<type>\w+),\s*(?P<id>-?\d+),\s*(?P<start>\d+)")


def parse_branch_key(key: str) -> tuple[str, int]:
    """Return ``(type, start_line)`` of a serialized SimpleCov branch key."""
    m = _BRANCH_KEY_RE.match(key.strip())
    if m is None:
        msg = f"unrecognized branch key {key!r}"
        raise InvalidCoverageDataError(msg)
    return m.group("type"), int(m.group("start"))


class _FileAccumulator:
    def __init__(self) -> None:
        self.lines: list[int | None] = []
        self.branches: dict[tuple[str, str], int] = defaultdict(int)

    def add_lines(self, lines: list[Any]) -> None:
        if len(lines) > len(self.lines):
            self.lines.extend([None] * (len(lines) - len(self.lines)))
        for idx, hits in enumerate(lines):
            if not isinstance(hits, int) or isinstance(hits, bool):
                continue
            prev = self.lines[idx]
            self.lines[idx] = hits if prev is None else prev + hits

    def add_branches(self, branches: dict[str, Any]) -> None:
        for condition, inner in branches.items():
            if not isinstance(inner, dict):
                msg = f"branch data for {condition!r} must be an object"
                raise InvalidCoverageDataError(msg)
            for branch_key, hits in inner.items():
                self.branches[condition, branch_key] += int(hits)

    def build(self, filename: str) -> FileCoverage:
        branches: list[Branch] = []
        for (_condition, branch_key), hits in self.branches.items():
            branch_type, start_line = parse_branch_key(branch_key)
            branches.append(Branch(start_line=start_line, type=branch_type, covered=hits > 0))
        return FileCoverage(filename=filename, lines=tuple(self.lines), branches=tuple(branches))


def parse_resultset(data: object) -> CoverageResult:
    """Merge every command entry of a decoded resultset into one result."""
    if not isinstance(data, dict):
        msg = "SimpleCov resultset must be a JSON object"
        raise InvalidCoverageDataError(msg)

    files: dict[str, _FileAccumulator] = {}
    branch_coverage = False
    for command, entry in data.items():
        coverage = entry.get("coverage") if isinstance(entry, dict) else None
        if not isinstance(coverage, dict):
            msg = f"resultset entry {command!r} has no coverage object"
            raise InvalidCoverageDataError(msg)
        for filename, file_data in coverage.items():
            acc = files.setdefault(filename, _FileAccumulator())
            # legacy resultsets store the line array directly
            if isinstance(file_data, list):
                acc.add_lines(file_data)
                continue
            if not isinstance(file_data, dict):
                msg = f"coverage for {filename!r} must be an object or array"
                raise InvalidCoverageDataError(msg)
            acc.add_lines(file_data.get("lines") or [])
            if "branches" in file_data:
                branch_coverage = True
                acc.add_branches(file_data["branches"] or {})

    return CoverageResult(
        files=tuple(acc.build(name) for name, acc in files.items()),
        branch_coverage_enabled=branch_coverage,
    )


def read_resultset(path: Path) -> CoverageResult:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        msg = f"{path} is not valid JSON: {exc}"
        raise InvalidCoverageDataError(msg) from exc
    return parse_resultset(data)


__all__ = ["parse_branch_key", "parse_resultset", "read_resultset"]
