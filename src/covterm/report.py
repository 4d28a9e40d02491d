"""Report orchestration: from a finished test run to the printed coverage view.

One :class:`TerminalFormatter.format` call walks the outcome states in a
fixed order and ends in exactly one of them:

``NO_SPECS_EXECUTED`` -> (ambiguous run raises) -> ``UNMAPPABLE`` ->
(unmapped test file raises) -> ``TARGET_MISSING`` -> ``NO_COVERAGE_RECORD``
-> ``SUMMARY_ONLY`` / ``DETAILED``.

Derived values live on a :class:`ReportContext` created per report, so
repeated reports in one process never share cached state.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from functools import cached_property
from pathlib import Path
from typing import TYPE_CHECKING

from covterm import logger
from covterm.branches import uncovered_branches
from covterm.colors import FULL_COVERAGE, colorized_coverage, colorized_uncovered_branches
from covterm.config import ENV_TARGET_FILE
from covterm.errors import AmbiguousExecutionError
from covterm.highlight import PygmentsHighlighter
from covterm.mapping import resolve
from covterm.model import SourceFile
from covterm.printer import LinePrinter, RenderOptions
from covterm.selection import REPORT_WIDTH, Omission, lines_to_print, omission_block, segments
from covterm.target_file import TargetFileWriter

if TYPE_CHECKING:
    from covterm.config import TerminalConfig
    from covterm.highlight import Highlighter
    from covterm.model import Branch, CoverageResult, FileCoverage, RunState

FAILURE_ADDENDUM = "Not showing detailed coverage because an example failed."


class Outcome(StrEnum):
    """Terminal state reached by one report."""

    DISABLED = "disabled"
    NO_SPECS_EXECUTED = "no-specs-executed"
    UNMAPPABLE = "unmappable"
    TARGET_MISSING = "target-missing"
    NO_COVERAGE_RECORD = "no-coverage-record"
    SUMMARY_ONLY = "summary-only"
    DETAILED = "detailed"


@dataclass(frozen=True, slots=True)
class ReportResult:
    outcome: Outcome
    text: str
    target_file: str | None = None


class ReportContext:
    """Lazily computed values scoped to a single report."""

    def __init__(
        self,
        config: TerminalConfig,
        run_state: RunState,
        result: CoverageResult,
        highlighter: Highlighter,
    ) -> None:
        self.config = config
        self.run_state = run_state
        self.result = result
        self.highlighter = highlighter

    @cached_property
    def test_file(self) -> str:
        files = self.run_state.executed_test_files or ()
        if len(files) != 1:
            raise AmbiguousExecutionError(files)
        return files[0]

    @cached_property
    def target_file(self) -> str | None:
        return resolve(self.test_file, self.config.rule_set, override=self.config.target_file_override)

    @property
    def target(self) -> str:
        target = self.target_file
        if target is None:
            msg = "no target file was resolved for this report"
            raise RuntimeError(msg)
        return target

    @cached_property
    def target_path(self) -> Path:
        return self.config.project_root / self.target

    @cached_property
    def record(self) -> FileCoverage | None:
        return self.result.find(self.target)

    @cached_property
    def source_text(self) -> str:
        return self.target_path.read_text(encoding="utf-8")

    @cached_property
    def source_file(self) -> SourceFile:
        record = self.record
        if record is None:
            msg = f"no coverage record for {self.target}"
            raise RuntimeError(msg)
        return SourceFile.build(record, self.source_text)

    @cached_property
    def uncovered(self) -> tuple[Branch, ...]:
        return uncovered_branches(self.source_file)

    @cached_property
    def highlighted_lines(self) -> list[str]:
        return self.highlighter(self.source_text, filename=self.target)

    @cached_property
    def selected_lines(self) -> set[int]:
        return lines_to_print(
            self.source_file,
            self.config.lines_to_print,
            self.config.line_ranges,
            uncovered=self.uncovered,
        )

    @cached_property
    def printer(self) -> LinePrinter:
        options = RenderOptions(
            debug_numbering=self.config.write_target_info_file,
            hyperlink_pattern=self.config.hyperlink_pattern,
            absolute_path=str(self.target_path.resolve()),
        )
        return LinePrinter(self.source_file, self.highlighted_lines, options, uncovered=self.uncovered)


class TerminalFormatter:
    """Entry point called once after a test run has finished."""

    def __init__(
        self,
        config: TerminalConfig,
        run_state: RunState,
        *,
        highlighter: Highlighter | None = None,
    ) -> None:
        self.config = config
        self.run_state = run_state
        self.highlighter = highlighter or PygmentsHighlighter(style=config.highlight_style)

    def format(self, result: CoverageResult) -> ReportResult:
        if self.config.disabled:
            return ReportResult(Outcome.DISABLED, "")

        ctx = ReportContext(self.config, self.run_state, result, self.highlighter)
        outcome, lines = self._evaluate(ctx)
        logger.debug("report outcome: %s", outcome.value)
        target = None if outcome is Outcome.NO_SPECS_EXECUTED else ctx.target_file
        return ReportResult(outcome, "\n".join(lines), target)

    def _evaluate(self, ctx: ReportContext) -> tuple[Outcome, list[str]]:
        if not self.run_state.executed_test_files:
            return Outcome.NO_SPECS_EXECUTED, [
                "Not showing test coverage details because no specs were executed successfully."
            ]

        if ctx.target_file is None:
            return Outcome.UNMAPPABLE, [
                f'Not showing test coverage details because "{ctx.test_file}" cannot be '
                "mapped to a single application file.",
                f"Tip: you can specify a file manually via a {ENV_TARGET_FILE} environment variable.",
            ]

        if self.config.write_target_info_file:
            TargetFileWriter(ctx.target, self.config.target_info_path).write_target_info_file()

        if not ctx.target_path.exists():
            return Outcome.TARGET_MISSING, [
                f'Cannot show code coverage. Looked for application file "{ctx.target}", '
                "but it does not exist."
            ]

        if ctx.record is None:
            return Outcome.NO_COVERAGE_RECORD, [
                f'No code coverage info was found for "{ctx.target}". Try stopping and disabling '
                "any preloader or caching layer (such as spring), if you are using one, and then "
                "rerun the tests."
            ]

        force = self.config.force_details
        if self.run_state.failure_occurred and not force:
            return Outcome.SUMMARY_ONLY, self._summary(ctx, FAILURE_ADDENDUM)
        if ctx.source_file.covered_percent < FULL_COVERAGE or ctx.uncovered or force:
            return Outcome.DETAILED, self._details(ctx)
        return Outcome.SUMMARY_ONLY, self._summary(ctx)

    def _coverage_line(self, ctx: ReportContext) -> str:
        text = f"Line coverage: {colorized_coverage(ctx.source_file.covered_percent)}"
        if ctx.result.branch_coverage_enabled:
            text += f" | Uncovered branches: {colorized_uncovered_branches(len(ctx.uncovered))}"
        return text

    def _summary(self, ctx: ReportContext, addendum: str | None = None) -> list[str]:
        out = [f"-- Coverage for {ctx.target} --", self._coverage_line(ctx)]
        if addendum:
            out.append(addendum)
        return out

    def _details(self, ctx: ReportContext) -> list[str]:
        out = [f"---- Coverage for {ctx.target} ".ljust(REPORT_WIDTH, "-").rstrip()]
        explicit = self.config.line_ranges is not None
        for segment in segments(ctx.source_file.lines, ctx.selected_lines):
            if isinstance(segment, Omission):
                out.extend(omission_block(segment, ctx.printer, explicit_ranges=explicit))
            else:
                out.append(ctx.printer.colored_line(segment).text)
        out.append(f"---- {self._coverage_line(ctx)} ----")
        return out


def format_report(
    result: CoverageResult,
    config: TerminalConfig,
    run_state: RunState,
    *,
    highlighter: Highlighter | None = None,
) -> ReportResult:
    """Build a fresh :class:`TerminalFormatter` and run it once."""
    return TerminalFormatter(config, run_state, highlighter=highlighter).format(result)


__all__ = [
    "FAILURE_ADDENDUM",
    "Outcome",
    "ReportContext",
    "ReportResult",
    "TerminalFormatter",
    "format_report",
]
