"""Reader for Cobertura-style coverage XML (e.g. ``coverage xml`` output)."""

from __future__ import annotations

import re
from collections import defaultdict
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from defusedxml import ElementTree

from covterm.errors import InvalidCoverageDataError
from covterm.model import Branch, CoverageResult, FileCoverage

if TYPE_CHECKING:
    from collections.abc import Iterator

_COND_RE = re.compile(r"(?P<pct>\d+)\s*%\s*\(\s*(?P<covered>\d+)\s*/\s*(?P<total>\d+)\s*\)")


class ElementLike(Protocol):
    """Simplified Element protocol that matches the subset of behavior we consume."""

    tag: str | None

    def findall(self, path: str) -> list[ElementLike]: ...

    def get(self, key: str, default: str | None = None) -> str | None: ...


def read_root(path: Path) -> ElementLike:
    """Parse coverage XML and return the ``<coverage>`` root element."""
    try:
        root = ElementTree.parse(path).getroot()
    except ElementTree.ParseError as exc:
        msg = f"failed to parse coverage XML {path}: {exc}"
        raise InvalidCoverageDataError(msg) from exc
    tag = (root.tag or "").split("}")[-1]  # tolerate namespaces
    if tag.lower() != "coverage":
        msg = f"unexpected root tag {root.tag!r} in {path}"
        raise InvalidCoverageDataError(msg)
    return root


def parse_condition_coverage(text: str) -> tuple[int, int] | None:
    """Parse Cobertura condition-coverage: '50% (1/2)' -> (covered,total)."""
    if not text:
        return None
    m = _COND_RE.search(text.strip())
    if not m:
        return None
    return int(m.group("covered")), int(m.group("total"))


def _parse_missing_branches(text: str | None) -> list[str]:
    if not text:
        return []
    return [part for part in text.replace(" ", "").split(",") if part]


def _parse_percent(raw: str | None) -> float | None:
    if not raw:
        return None
    try:
        return float(raw.strip().rstrip("%"))
    except ValueError:
        return None


def line_branches(line_elem: ElementLike, line_number: int) -> list[Branch]:
    """Return the branches that start on one ``<line>`` element.

    Explicit ``<condition>`` children win.  Otherwise the counts of
    ``condition-coverage`` are used and uncovered branches are named after
    their ``missing-branches`` destinations (``->12``, ``->exit``).
    """
    conditions = line_elem.findall(".//condition")
    if conditions:
        out: list[Branch] = []
        for cond in conditions:
            pct = _parse_percent(cond.get("coverage"))
            out.append(
                Branch(
                    start_line=line_number,
                    type=cond.get("type") or "branch",
                    covered=bool(pct),
                )
            )
        return out

    counts = parse_condition_coverage(line_elem.get("condition-coverage", "") or "")
    if counts is None:
        return []
    covered, total = counts
    missing = _parse_missing_branches(line_elem.get("missing-branches"))
    uncovered = max(total - covered, 0)

    out = [Branch(start_line=line_number, type="branch", covered=True) for _ in range(covered)]
    for idx in range(uncovered):
        branch_type = f"->{missing[idx]}" if idx < len(missing) else "branch"
        out.append(Branch(start_line=line_number, type=branch_type, covered=False))
    return out


def _source_root(root: ElementLike) -> Path | None:
    for source in root.findall("./sources/source"):
        text = getattr(source, "text", None)
        if text and text.strip():
            return Path(text.strip())
    return None


def _iter_classes(root: ElementLike) -> Iterator[tuple[str, ElementLike]]:
    # Cobertura: coverage/packages/package/classes/class@filename and class/lines/line
    for cls in root.findall(".//class"):
        filename = cls.get("filename")
        if filename:
            yield filename, cls


def parse_root(root: ElementLike) -> CoverageResult:
    source_root = _source_root(root)
    hits_by_file: dict[str, dict[int, int]] = defaultdict(dict)
    branches_by_file: dict[str, list[Branch]] = defaultdict(list)
    branch_coverage = (_parse_percent(root.get("branches-valid")) or 0) > 0

    for filename, cls in _iter_classes(root):
        path = Path(filename)
        if source_root is not None and not path.is_absolute():
            path = source_root / path
        name = path.as_posix()
        hits = hits_by_file[name]

        for line_elem in cls.findall("./lines/line"):
            n_raw = line_elem.get("number")
            hits_raw = line_elem.get("hits")
            if not n_raw or hits_raw is None:
                continue
            try:
                number = int(n_raw)
                count = int(hits_raw)
            except ValueError:
                continue
            hits[number] = hits.get(number, 0) + count

            if (line_elem.get("branch") or "").lower() == "true":
                branch_coverage = True
                branches_by_file[name].extend(line_branches(line_elem, number))

    files: list[FileCoverage] = []
    for name, hits in hits_by_file.items():
        max_line = max(hits, default=0)
        lines = tuple(hits.get(n) for n in range(1, max_line + 1))
        files.append(FileCoverage(filename=name, lines=lines, branches=tuple(branches_by_file[name])))
    return CoverageResult(files=tuple(files), branch_coverage_enabled=branch_coverage)


def read_cobertura(path: Path) -> CoverageResult:
    return parse_root(read_root(path))


__all__ = [
    "ElementLike",
    "line_branches",
    "parse_condition_coverage",
    "parse_root",
    "read_cobertura",
    "read_root",
]
