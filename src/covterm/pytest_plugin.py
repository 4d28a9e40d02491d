"""pytest integration: records the run snapshot that ``covterm report`` reads.

The plugin is inert unless ``--covterm-run-state=PATH`` is given.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from covterm import logger
from covterm.model import RunState

if TYPE_CHECKING:
    import pytest

_RECORDER_NAME = "covterm-run-recorder"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("covterm", "terminal coverage for single test files")
    group.addoption(
        "--covterm-run-state",
        action="store",
        dest="covterm_run_state",
        metavar="PATH",
        default=None,
        help="Write the executed test files and failure flag to PATH as JSON.",
    )


def pytest_configure(config: pytest.Config) -> None:
    path = config.getoption("covterm_run_state")
    if path and not config.pluginmanager.has_plugin(_RECORDER_NAME):
        config.pluginmanager.register(RunRecorder(Path(path)), _RECORDER_NAME)


def nodeid_test_file(nodeid: str) -> str:
    """Return the file part of a pytest node id, without a leading ``./``."""
    return nodeid.split("::", 1)[0].removeprefix("./")


class RunRecorder:
    """Collect executed test files and failures over one session."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self.executed: dict[str, None] = {}
        self.failure_occurred = False

    def pytest_collectreport(self, report: pytest.CollectReport) -> None:
        if report.failed:
            self.failure_occurred = True

    def pytest_runtest_logreport(self, report: pytest.TestReport) -> None:
        self.executed.setdefault(nodeid_test_file(report.nodeid), None)
        if report.failed:
            self.failure_occurred = True

    def snapshot(self) -> RunState:
        return RunState(executed_test_files=tuple(self.executed), failure_occurred=self.failure_occurred)

    def pytest_sessionfinish(self, session: pytest.Session, exitstatus: int) -> None:
        self.snapshot().dump(self.path)
        logger.debug("wrote run state to %s", self.path)


__all__ = ["RunRecorder", "nodeid_test_file", "pytest_addoption", "pytest_configure"]
