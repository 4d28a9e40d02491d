"""Centralised exception hierarchy for covterm."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class CovtermError(Exception):
    """Base class for all custom covterm exceptions."""


class ConfigurationError(CovtermError):
    """The run or the project is set up in a way the report cannot work with."""


class MappingError(ConfigurationError):
    """An executed test file matched neither a mapping rule nor an unmappable pattern."""

    def __init__(self, test_file: str) -> None:
        self.test_file = test_file
        super().__init__(f"Could not map executed test file {test_file} to an application file!")


class AmbiguousExecutionError(ConfigurationError):
    """More than one test file was executed, so there is no single target."""

    def __init__(self, test_files: Sequence[str]) -> None:
        self.test_files = tuple(test_files)
        listed = ", ".join(self.test_files)
        super().__init__(
            f"Multiple test files were executed ({listed}), but covterm only works "
            "when a single test file is executed."
        )


class InvalidRunStateError(ConfigurationError):
    """The test-run snapshot file is not a valid run-state document."""


class UnknownColorError(CovtermError, ValueError):
    """A color token outside of the color table was requested."""


class CoverageDataError(CovtermError):
    """Base class for errors related to coverage data handling."""


class CoverageDataNotFoundError(CoverageDataError):
    """Coverage data file could not be located on disk."""


class InvalidCoverageDataError(CoverageDataError):
    """Coverage data file was found but does not contain a valid report."""


__all__ = [
    "AmbiguousExecutionError",
    "ConfigurationError",
    "CoverageDataError",
    "CoverageDataNotFoundError",
    "CovtermError",
    "InvalidCoverageDataError",
    "InvalidRunStateError",
    "MappingError",
    "UnknownColorError",
]
