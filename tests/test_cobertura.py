from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
from defusedxml import ElementTree

from covterm.coverage import detect_format, load_coverage, resolve_coverage_path
from covterm.coverage.cobertura import line_branches, parse_condition_coverage, read_cobertura, read_root
from covterm.errors import CoverageDataNotFoundError, InvalidCoverageDataError
from covterm.model import Branch


def test_read_cobertura_lines_and_branches(coverage_xml_file: Callable[..., Path], tmp_path: Path) -> None:
    xml = coverage_xml_file({"pkg/mod.py": {1: 1, 2: "3:1/2:7", 4: 0}}, sources=tmp_path)
    result = read_cobertura(xml)
    assert result.branch_coverage_enabled
    (record,) = result.files
    assert record.filename == (tmp_path / "pkg/mod.py").as_posix()
    assert record.lines == (1, 3, None, 0)
    assert record.branches == (Branch(2, "branch", covered=True), Branch(2, "->7", covered=False))


def test_read_cobertura_without_branches(coverage_xml_file: Callable[..., Path]) -> None:
    result = read_cobertura(coverage_xml_file({"a.py": {1: 1, 3: 2}}))
    assert not result.branch_coverage_enabled
    assert result.files[0].lines == (1, None, 2)
    assert result.find("a.py") is result.files[0]


def test_line_branches_prefers_conditions() -> None:
    elem = ElementTree.fromstring(
        '<line number="5" hits="1" branch="true" condition-coverage="50% (1/2)">'
        '<conditions><condition number="0" type="jump" coverage="0%"/>'
        '<condition number="1" type="jump" coverage="100%"/></conditions></line>'
    )
    assert line_branches(elem, 5) == [Branch(5, "jump", covered=False), Branch(5, "jump", covered=True)]


def test_parse_condition_coverage() -> None:
    assert parse_condition_coverage("50% (1/2)") == (1, 2)
    assert parse_condition_coverage("") is None
    assert parse_condition_coverage("n/a") is None


def test_read_root_rejects_non_coverage_root(tmp_path: Path) -> None:
    p = tmp_path / "coverage.xml"
    p.write_text("<notcoverage />\n", encoding="utf-8")
    with pytest.raises(InvalidCoverageDataError):
        read_root(p)


def test_read_root_rejects_broken_xml(tmp_path: Path) -> None:
    p = tmp_path / "coverage.xml"
    p.write_text("<coverage>", encoding="utf-8")
    with pytest.raises(InvalidCoverageDataError, match="failed to parse"):
        read_root(p)


def test_detect_format_sniffs_content(tmp_path: Path) -> None:
    json_file = tmp_path / "resultset"
    json_file.write_text('  {"RSpec": {}}', encoding="utf-8")
    xml_file = tmp_path / "report"
    xml_file.write_text("<coverage/>", encoding="utf-8")
    other = tmp_path / "other"
    other.write_text("plain", encoding="utf-8")
    assert detect_format(json_file) == "simplecov"
    assert detect_format(xml_file) == "cobertura"
    with pytest.raises(InvalidCoverageDataError):
        detect_format(other)


def test_load_coverage_dispatches(resultset_file: Callable[..., Path]) -> None:
    result = load_coverage(resultset_file({"a.rb": [1]}))
    assert result.files[0].filename == "a.rb"


def test_resolve_coverage_path_explicit_missing(tmp_path: Path) -> None:
    with pytest.raises(CoverageDataNotFoundError):
        resolve_coverage_path(tmp_path / "nope.xml", cwd=tmp_path)


def test_resolve_coverage_path_prefers_resultset(tmp_path: Path) -> None:
    (tmp_path / "coverage.xml").write_text("<coverage/>", encoding="utf-8")
    assert resolve_coverage_path(None, cwd=tmp_path) == (tmp_path / "coverage.xml").resolve()
    resultset = tmp_path / "coverage" / ".resultset.json"
    resultset.parent.mkdir()
    resultset.write_text("{}", encoding="utf-8")
    assert resolve_coverage_path(None, cwd=tmp_path) == resultset.resolve()


def test_resolve_coverage_path_nothing_found(tmp_path: Path) -> None:
    with pytest.raises(CoverageDataNotFoundError, match="none discovered"):
        resolve_coverage_path(None, cwd=tmp_path)
