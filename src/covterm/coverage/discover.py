from __future__ import annotations

from pathlib import Path

from covterm.errors import CoverageDataNotFoundError

DEFAULT_CANDIDATES: tuple[Path, ...] = (
    Path("coverage/.resultset.json"),
    Path("coverage.xml"),
    Path(".coverage.xml"),
)


def resolve_coverage_path(cov_path: Path | None, *, cwd: Path | None = None) -> Path:
    """Resolve the coverage data input.

    Rules
    -----
    - If `cov_path` is provided: it must exist.
    - Else: the first existing entry of `DEFAULT_CANDIDATES` under `cwd`.
    """
    base = Path.cwd() if cwd is None else cwd
    if cov_path is not None:
        if not cov_path.exists():
            msg = f"coverage data not found: {cov_path}"
            raise CoverageDataNotFoundError(msg)
        return cov_path.resolve()

    for candidate in DEFAULT_CANDIDATES:
        path = base / candidate
        if path.exists():
            return path.resolve()

    tried = ", ".join(str(c) for c in DEFAULT_CANDIDATES)
    msg = f"no coverage data provided and none discovered. Tried: {tried} in {base}"
    raise CoverageDataNotFoundError(msg)


__all__ = ["DEFAULT_CANDIDATES", "resolve_coverage_path"]
