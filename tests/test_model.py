from __future__ import annotations

from pathlib import Path

import pytest

from covterm.errors import InvalidRunStateError
from covterm.model import (
    Branch,
    CoverageResult,
    FileCoverage,
    Line,
    RunState,
    SourceFile,
    covered_percent,
    split_source_lines,
)

NOCOV_SOURCE = """\
def a
  1
  # :nocov:
  raise "never"
  # :nocov:
  2
end
"""


def test_build_covers_every_physical_line() -> None:
    record = FileCoverage("a.rb", (1, 1))
    sf = SourceFile.build(record, "x = 1\ny = 2\n\n# tail\n")
    assert sf.max_line_number == 4
    assert [ln.coverage for ln in sf.lines] == [1, 1, None, None]
    assert sf.line(4) == Line(4, None, skipped=False, source_text="# tail")
    assert sf.line(5) is None


def test_build_keeps_form_feeds_inside_their_line() -> None:
    record = FileCoverage("a.rb", (1, 1), (Branch(2, "else", covered=False),))
    sf = SourceFile.build(record, "x = 1  # \x0c section\ny = a or b  # :nocov-else:\n")
    assert sf.max_line_number == 2
    assert sf.line(1).source_text == "x = 1  # \x0c section"
    assert sf.line(2).source_text == "y = a or b  # :nocov-else:"


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("", []),
        ("a\nb\n", ["a", "b"]),
        ("a\nb", ["a", "b"]),
        ("a\r\nb\r\n", ["a", "b"]),
        ("a\x0cb\x1cc d\n", ["a\x0cb\x1cc d"]),
        ("a\n\n", ["a", ""]),
    ],
)
def test_split_source_lines(text: str, expected: list[str]) -> None:
    assert split_source_lines(text) == expected


def test_nocov_blocks_are_skipped() -> None:
    record = FileCoverage("a.rb", (1, 1, None, 0, None, 1, None), (Branch(4, "else", covered=False),))
    sf = SourceFile.build(record, NOCOV_SOURCE)
    assert [ln.line_number for ln in sf.lines if ln.skipped] == [3, 4, 5]
    assert sf.branches == ()
    assert sf.covered_percent == 100.0


def test_covered_percent() -> None:
    lines = [Line(1, 1), Line(2, 0), Line(3, None), Line(4, 5), Line(5, 0, skipped=True)]
    assert covered_percent(lines) == pytest.approx(200 / 3)


def test_covered_percent_without_relevant_lines() -> None:
    assert covered_percent([Line(1, None)]) == 100.0


def test_coverage_result_find_by_suffix() -> None:
    result = CoverageResult(files=(FileCoverage("/srv/app/models/user.rb", (1,)),))
    assert result.find("app/models/user.rb") is result.files[0]
    assert result.find("app/models/admin.rb") is None


def test_run_state_round_trip(tmp_path: Path) -> None:
    path = tmp_path / "nested" / "run.json"
    state = RunState(executed_test_files=("spec/models/user_spec.rb",), failure_occurred=True)
    state.dump(path)
    assert RunState.load(path) == state


def test_run_state_keeps_unknown_file_list() -> None:
    assert RunState.from_dict({}) == RunState(executed_test_files=None, failure_occurred=False)


@pytest.mark.parametrize("content", ["not json", "[1, 2]", '{"executed_test_files": "a_spec.rb"}'])
def test_run_state_rejects_malformed_files(tmp_path: Path, content: str) -> None:
    path = tmp_path / "run.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(InvalidRunStateError):
        RunState.load(path)
