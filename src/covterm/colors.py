"""ANSI color table and the threshold-based colorizers built on it."""

from __future__ import annotations

from enum import StrEnum

from covterm.errors import UnknownColorError

_RESET = "\x1b[0m"

FULL_COVERAGE = 100.0
WARN_COVERAGE = 80.0
WARN_BRANCHES = 3


class Color(StrEnum):
    """Named colors understood by :func:`colorize`."""

    WHITE = "white"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    WHITE_ON_GREEN = "white_on_green"
    RED_ON_YELLOW = "red_on_yellow"
    WHITE_ON_RED = "white_on_red"


_ESCAPES: dict[str, str] = {
    Color.WHITE: "\x1b[0;37;49m",
    Color.RED: "\x1b[0;31m",
    Color.GREEN: "\x1b[1;32;49m",
    Color.YELLOW: "\x1b[0;33m",
    Color.WHITE_ON_GREEN: "\x1b[1;39;102m",
    Color.RED_ON_YELLOW: "\x1b[0;31;103m",
    Color.WHITE_ON_RED: "\x1b[1;37;41m",
}


def colorize(text: str, color: Color | str) -> str:
    """Wrap *text* in the escape sequence for *color*.

    Raises :class:`UnknownColorError` for a token outside of :class:`Color`.
    """
    try:
        start = _ESCAPES[color]
    except KeyError as exc:
        msg = f"Unknown color format {str(color)!r}."
        raise UnknownColorError(msg) from exc
    return f"{start}{text}{_RESET}"


def colorized_coverage(covered_percent: float) -> str:
    text = f"{round(covered_percent, 2):g}%"
    if covered_percent >= FULL_COVERAGE:
        return colorize(text, Color.GREEN)
    if covered_percent >= WARN_COVERAGE:
        return colorize(text, Color.YELLOW)
    return colorize(text, Color.RED)


def colorized_uncovered_branches(count: int) -> str:
    if count == 0:
        return colorize(str(count), Color.GREEN)
    if count <= WARN_BRANCHES:
        return colorize(str(count), Color.YELLOW)
    return colorize(str(count), Color.RED)


__all__ = [
    "Color",
    "colorize",
    "colorized_coverage",
    "colorized_uncovered_branches",
]
