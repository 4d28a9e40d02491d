"""Central configuration and constants for ``covterm``.

Values come from defaults, then the ``[tool.covterm]`` table of the
project's ``pyproject.toml``, then environment variables.
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from enum import StrEnum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from covterm.errors import ConfigurationError
from covterm.mapping import MappingRule, RuleSet, compile_pattern

if TYPE_CHECKING:
    from collections.abc import Mapping

# Default logging format used by the CLI entry point.
LOG_FORMAT = "%(levelname)s: %(message)s"

ENV_TARGET_FILE = "SIMPLECOV_TARGET_FILE"
ENV_FORCE_DETAILS = "SIMPLECOV_FORCE_DETAILS"
ENV_WRITE_TARGET_TO_FILE = "SIMPLECOV_WRITE_TARGET_TO_FILE"
ENV_TERMINAL_LINES = "SIMPLECOV_TERMINAL_LINES"
ENV_DISABLE = "DISABLE_SIMPLECOV_TERMINAL"
ENV_LINES_TO_PRINT = "SIMPLECOV_TERMINAL_LINES_TO_PRINT"
ENV_HYPERLINK_PATTERN = "SIMPLECOV_TERMINAL_HYPERLINK_PATTERN"

# Debug file holding the resolved target, relative to the project root.
TARGET_INFO_FILE = Path("tmp/covterm/target.txt")

DEFAULT_HIGHLIGHT_STYLE = "monokai"

LineRange = tuple[int, int]


class LinesToPrint(StrEnum):
    """Which lines a detailed report shows when no explicit ranges are given."""

    UNCOVERED = "uncovered"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class TerminalConfig:
    """Resolved configuration for one report."""

    rule_set: RuleSet = field(default_factory=RuleSet)
    project_root: Path = field(default_factory=Path)
    target_file_override: str | None = None
    force_details: bool = False
    write_target_info_file: bool = False
    line_ranges: tuple[LineRange, ...] | None = None
    disabled: bool = False
    lines_to_print: LinesToPrint = LinesToPrint.UNCOVERED
    hyperlink_pattern: str | None = None
    highlight_style: str = DEFAULT_HIGHLIGHT_STYLE

    @property
    def target_info_path(self) -> Path:
        return self.project_root / TARGET_INFO_FILE

    @classmethod
    def load(
        cls,
        environ: Mapping[str, str] | None = None,
        project_root: Path | None = None,
    ) -> TerminalConfig:
        env = os.environ if environ is None else environ
        root = Path.cwd() if project_root is None else project_root
        table = read_pyproject_table(root)

        rule_set = _rule_set_from_table(table, root)

        lines_to_print = _parse_lines_to_print(
            env.get(ENV_LINES_TO_PRINT) or table.get("lines-to-print") or LinesToPrint.UNCOVERED
        )

        return cls(
            rule_set=rule_set,
            project_root=root,
            target_file_override=env.get(ENV_TARGET_FILE) or None,
            force_details=env.get(ENV_FORCE_DETAILS) == "1",
            write_target_info_file=env.get(ENV_WRITE_TARGET_TO_FILE) == "1",
            line_ranges=parse_line_ranges(env.get(ENV_TERMINAL_LINES)),
            disabled=ENV_DISABLE in env,
            lines_to_print=lines_to_print,
            hyperlink_pattern=env.get(ENV_HYPERLINK_PATTERN) or table.get("hyperlink-pattern") or None,
            highlight_style=str(table.get("highlight-style") or DEFAULT_HIGHLIGHT_STYLE),
        )


def read_pyproject_table(project_root: Path) -> dict[str, Any]:
    """Return the ``[tool.covterm]`` table of *project_root*'s pyproject.toml."""
    pp = project_root / "pyproject.toml"
    if not pp.exists():
        return {}
    try:
        data = tomllib.loads(pp.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        msg = f"cannot parse {pp}: {exc}"
        raise ConfigurationError(msg) from exc
    table = data.get("tool", {}).get("covterm", {})
    if not isinstance(table, dict):
        msg = f"[tool.covterm] in {pp} must be a table"
        raise ConfigurationError(msg)
    return table


def _rule_set_from_table(table: Mapping[str, Any], root: Path) -> RuleSet:
    default = RuleSet.default(root)

    rules = default.rules
    if "rules" in table:
        raw_rules = table["rules"]
        if not isinstance(raw_rules, list):
            msg = "tool.covterm.rules must be an array of {pattern, replacement} tables"
            raise ConfigurationError(msg)
        rules = tuple(_rule_from_entry(entry) for entry in raw_rules)

    unmappable = default.unmappable
    if "unmappable" in table:
        raw_unmappable = table["unmappable"]
        if not isinstance(raw_unmappable, list) or not all(isinstance(p, str) for p in raw_unmappable):
            msg = "tool.covterm.unmappable must be an array of regex strings"
            raise ConfigurationError(msg)
        unmappable = tuple(compile_pattern(p) for p in raw_unmappable)

    test_suffix = default.test_suffix
    if "test-suffix" in table:
        test_suffix = MappingRule.compile(
            str(table["test-suffix"]),
            str(table.get("test-suffix-replacement", "")),
        )

    return RuleSet(rules=rules, unmappable=unmappable, test_suffix=test_suffix)


def _rule_from_entry(entry: object) -> MappingRule:
    if not isinstance(entry, dict) or "pattern" not in entry or "replacement" not in entry:
        msg = f"invalid mapping rule {entry!r}: expected a table with pattern and replacement"
        raise ConfigurationError(msg)
    return MappingRule.compile(str(entry["pattern"]), str(entry["replacement"]))


def _parse_lines_to_print(value: str) -> LinesToPrint:
    try:
        return LinesToPrint(str(value).strip().lower())
    except ValueError as exc:
        choices = ", ".join(m.value for m in LinesToPrint)
        msg = f"unsupported lines-to-print value {value!r}. Available values: {choices}"
        raise ConfigurationError(msg) from exc


def parse_line_ranges(value: str | None) -> tuple[LineRange, ...] | None:
    """Parse ``"1-3,7,10-12"`` into inclusive ranges.

    Blank values mean "not set" and return ``None``.
    """
    if value is None or not value.strip():
        return None

    ranges: list[LineRange] = []
    for token in value.split(","):
        entry = token.strip()
        start_raw, sep, end_raw = entry.partition("-")
        try:
            start = int(start_raw)
            end = int(end_raw) if sep else start
        except ValueError as exc:
            msg = f"invalid line range {entry!r} in {ENV_TERMINAL_LINES}"
            raise ConfigurationError(msg) from exc
        if start > end:
            msg = f"descending line range {entry!r} in {ENV_TERMINAL_LINES}"
            raise ConfigurationError(msg)
        ranges.append((start, end))
    return tuple(ranges)


__all__ = [
    "DEFAULT_HIGHLIGHT_STYLE",
    "ENV_DISABLE",
    "ENV_FORCE_DETAILS",
    "ENV_HYPERLINK_PATTERN",
    "ENV_LINES_TO_PRINT",
    "ENV_TARGET_FILE",
    "ENV_TERMINAL_LINES",
    "ENV_WRITE_TARGET_TO_FILE",
    "LOG_FORMAT",
    "TARGET_INFO_FILE",
    "LineRange",
    "LinesToPrint",
    "TerminalConfig",
    "parse_line_ranges",
    "read_pyproject_table",
]
