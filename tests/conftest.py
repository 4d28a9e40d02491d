from __future__ import annotations

import json
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from covterm.config import TerminalConfig
from covterm.mapping import RuleSet
from covterm.model import Branch, CoverageResult, FileCoverage

USER_SOURCE = """\
class User
  ROLES = %i[admin member].freeze

  attr_reader :role, :first, :last

  def initialize(role, first, last)
    @role = role
    @first = first
    @last = last
    @admin = role == :admin ? true : false
  end

  def admin?
    @admin
  end

  def name
    "#{first} #{last}"
  end

  def initials
    first[0] + last[0]
  end

  def to_s
    name
  end

  def role_label
    ROLES.include?(role) ? role.to_s : "guest"
  end

  def inspect
    "#<User #{name}>"
  end
end
"""

# 20 relevant lines, 17 of them covered: 85%
USER_LINES: list[int | None] = [
    1, 1, None, 1, None, 1, 1, 1, 1, 1,
    None, None, 1, 1, None, None, 1, 1, None, None,
    1, 0, None, None, 1, 0, None, None, 1, 1,
    None, None, 1, 0, None, None,
]  # fmt: skip

# the ternary on line 10 never took its else branch
USER_BRANCHES: dict[str, dict[str, int]] = {
    "[:if, 0, 10, 13, 10, 42]": {"[:then, 1, 10, 36, 10, 40]": 1, "[:else, 2, 10, 43, 10, 48]": 0},
    "[:if, 3, 30, 4, 30, 46]": {"[:then, 4, 30, 27, 30, 36]": 1, "[:else, 5, 30, 39, 30, 46]": 1},
}


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Click CLI runner for invoking the command-line interface."""
    return CliRunner()


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """A project root holding ``app/models/user.rb``."""
    target = tmp_path / "app" / "models" / "user.rb"
    target.parent.mkdir(parents=True)
    target.write_text(USER_SOURCE, encoding="utf-8")
    return tmp_path


def _user_branches(*, else_covered: bool) -> tuple[Branch, ...]:
    return (
        Branch(10, "then", covered=True),
        Branch(10, "else", covered=else_covered),
        Branch(30, "then", covered=True),
        Branch(30, "else", covered=True),
    )


def _user_result(project: Path, lines: Sequence[int | None], *, else_covered: bool) -> CoverageResult:
    record = FileCoverage(
        str(project / "app" / "models" / "user.rb"),
        tuple(lines),
        _user_branches(else_covered=else_covered),
    )
    return CoverageResult(files=(record,), branch_coverage_enabled=True)


@pytest.fixture
def partial_result(project: Path) -> CoverageResult:
    """85% line coverage and one missed ``else`` branch on line 10."""
    return _user_result(project, USER_LINES, else_covered=False)


@pytest.fixture
def full_result(project: Path) -> CoverageResult:
    lines = [None if c is None else 1 for c in USER_LINES]
    return _user_result(project, lines, else_covered=True)


@pytest.fixture
def branch_miss_result(project: Path) -> CoverageResult:
    """Every line ran, but the ``else`` branch on line 10 did not."""
    lines = [None if c is None else 1 for c in USER_LINES]
    return _user_result(project, lines, else_covered=False)


@pytest.fixture
def make_config(project: Path) -> Callable[..., TerminalConfig]:
    def build(**overrides: Any) -> TerminalConfig:
        overrides.setdefault("project_root", project)
        overrides.setdefault("rule_set", RuleSet.default(project))
        return TerminalConfig(**overrides)

    return build


@pytest.fixture
def resultset_content() -> Callable[..., dict[str, Any]]:
    def build(
        files: Mapping[str, Sequence[int | None]],
        *,
        branches: Mapping[str, Mapping[str, Mapping[str, int]]] | None = None,
        command: str = "RSpec",
    ) -> dict[str, Any]:
        coverage: dict[str, Any] = {}
        for name, lines in files.items():
            entry: dict[str, Any] = {"lines": list(lines)}
            if branches is not None:
                entry["branches"] = dict(branches.get(name, {}))
            coverage[name] = entry
        return {command: {"coverage": coverage, "timestamp": 1700000000}}

    return build


@pytest.fixture
def resultset_file(tmp_path: Path, resultset_content: Callable[..., dict[str, Any]]) -> Callable[..., Path]:
    def write(
        files: Mapping[str, Sequence[int | None]],
        *,
        branches: Mapping[str, Mapping[str, Mapping[str, int]]] | None = None,
        filename: str = "coverage/.resultset.json",
    ) -> Path:
        path = tmp_path / filename
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(resultset_content(files, branches=branches)), encoding="utf-8")
        return path

    return write


@pytest.fixture
def user_resultset(project: Path, resultset_file: Callable[..., Path]) -> Path:
    """SimpleCov resultset for ``app/models/user.rb`` at the default discovery path."""
    name = str(project / "app" / "models" / "user.rb")
    return resultset_file({name: USER_LINES}, branches={name: USER_BRANCHES})


@pytest.fixture
def coverage_xml_content() -> Callable[..., str]:
    def build(mapping: Mapping[str, Mapping[int, int | str]], *, sources: Path | None = None) -> str:
        classes: list[str] = []
        for file, lines in mapping.items():
            parts: list[str] = []
            for ln, spec in lines.items():
                # "3:1/2:7" -> 3 hits, 1 of 2 branches taken, destination 7 missing
                if isinstance(spec, str):
                    hits, cond, missing = spec.split(":")
                    covered, total = (int(x) for x in cond.split("/"))
                    pct = 100 * covered // total
                    parts.append(
                        f'<line number="{ln}" hits="{hits}" branch="true" '
                        f'condition-coverage="{pct}% ({covered}/{total})" missing-branches="{missing}"/>'
                    )
                else:
                    parts.append(f'<line number="{ln}" hits="{spec}"/>')
            classes.append(f'<class filename="{file}"><lines>{"".join(parts)}</lines></class>')
        sources_xml = f"<sources><source>{sources}</source></sources>" if sources else ""
        return (
            "<coverage>"
            f"{sources_xml}"
            f"<packages><package><classes>{''.join(classes)}</classes></package></packages>"
            "</coverage>"
        )

    return build


@pytest.fixture
def coverage_xml_file(tmp_path: Path, coverage_xml_content: Callable[..., str]) -> Callable[..., Path]:
    def write(
        mapping: Mapping[str, Mapping[int, int | str]],
        *,
        sources: Path | None = None,
        filename: str = "coverage.xml",
    ) -> Path:
        xml_file = tmp_path / filename
        xml_file.write_text(coverage_xml_content(mapping, sources=sources), encoding="utf-8")
        return xml_file

    return write
