"""Coverage data sources."""

from __future__ import annotations

from typing import TYPE_CHECKING

from covterm import logger
from covterm.coverage.cobertura import read_cobertura
from covterm.coverage.discover import resolve_coverage_path
from covterm.coverage.simplecov import read_resultset
from covterm.errors import InvalidCoverageDataError

if TYPE_CHECKING:
    from pathlib import Path

    from covterm.model import CoverageResult


def detect_format(path: Path) -> str:
    """Return ``"simplecov"`` or ``"cobertura"`` for *path*."""
    suffix = path.suffix.lower()
    if suffix == ".json":
        return "simplecov"
    if suffix == ".xml":
        return "cobertura"
    with path.open(encoding="utf-8") as f:
        head = f.read(512).lstrip()
    if head.startswith("{"):
        return "simplecov"
    if head.startswith("<"):
        return "cobertura"
    msg = f"cannot tell the coverage format of {path}"
    raise InvalidCoverageDataError(msg)


def load_coverage(path: Path) -> CoverageResult:
    fmt = detect_format(path)
    logger.debug("reading %s coverage from %s", fmt, path)
    if fmt == "simplecov":
        return read_resultset(path)
    return read_cobertura(path)


__all__ = ["detect_format", "load_coverage", "resolve_coverage_path"]
