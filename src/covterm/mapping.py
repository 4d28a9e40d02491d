"""Mapping of an executed test file to the application file it exercises.

Rules are ``(pattern, replacement)`` pairs tried in declaration order.  The
first rule whose pattern matches rewrites the matched part of the test path
(``\\1``-style group references only), then the test naming convention is
undone, e.g. ``spec/models/user_spec.rb`` -> ``app/models/user_spec.rb`` ->
``app/models/user.rb``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covterm import logger
from covterm.errors import ConfigurationError, MappingError

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

_GROUP_REF = re.compile(r"\\(\d+)")


def expand_template(template: str, match: re.Match[str]) -> str:
    """Replace ``\\N`` placeholders in *template* with groups of *match*.

    Unmatched groups expand to the empty string; nothing else in the
    template is interpreted.
    """

    def _group(ref: re.Match[str]) -> str:
        index = int(ref.group(1))
        if index > (match.re.groups or 0):
            msg = f"replacement {template!r} refers to missing group {index}"
            raise ConfigurationError(msg)
        return match.group(index) or ""

    return _GROUP_REF.sub(_group, template)


@dataclass(frozen=True, slots=True)
class MappingRule:
    """A compiled pattern and the template that replaces what it matches."""

    pattern: re.Pattern[str]
    replacement: str

    @classmethod
    def compile(cls, pattern: str, replacement: str, flags: int = 0) -> MappingRule:
        return cls(pattern=compile_pattern(pattern, flags), replacement=replacement)

    def apply(self, path: str) -> str | None:
        """Return *path* with its first match rewritten, or ``None`` if no match."""
        m = self.pattern.search(path)
        if m is None:
            return None
        return path[: m.start()] + expand_template(self.replacement, m) + path[m.end() :]


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern[str]:
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        msg = f"invalid pattern {pattern!r}: {exc}"
        raise ConfigurationError(msg) from exc


# ---------------------------------------------------------------------------
# Default tables
# ---------------------------------------------------------------------------

_APP_DIRECTORIES = (
    "actions",
    "channels",
    "controllers",
    "decorators",
    "helpers",
    "mailboxes",
    "mailers",
    "models",
    "policies",
    "serializers",
    "views",
    "workers",
)

APP_DEFAULT_RULES: tuple[MappingRule, ...] = (
    MappingRule.compile(r"\Aspec/lib/", "lib/"),
    MappingRule.compile(r"\Aspec/controllers/admin/(.*)_controller_spec.rb", r"app/admin/\1.rb"),
    MappingRule.compile(rf"\Aspec/({'|'.join(_APP_DIRECTORIES)})/", r"app/\1/"),
)
GEM_DEFAULT_RULES: tuple[MappingRule, ...] = (MappingRule.compile(r"\Aspec/", "lib/"),)
DEFAULT_UNMAPPABLE: tuple[re.Pattern[str], ...] = (re.compile(r"\Aspec/features/"),)
DEFAULT_TEST_SUFFIX = MappingRule.compile(r"_spec\.rb\Z", ".rb")


def is_gem_project(project_root: Path) -> bool:
    """Return ``True`` when *project_root* holds a ``.gemspec`` file."""
    return any(project_root.glob("*.gemspec"))


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Everything :func:`resolve` needs besides the test path and override."""

    rules: tuple[MappingRule, ...] = APP_DEFAULT_RULES
    unmappable: tuple[re.Pattern[str], ...] = DEFAULT_UNMAPPABLE
    test_suffix: MappingRule = field(default=DEFAULT_TEST_SUFFIX)

    @classmethod
    def default(cls, project_root: Path) -> RuleSet:
        rules = GEM_DEFAULT_RULES if is_gem_project(project_root) else APP_DEFAULT_RULES
        return cls(rules=rules)

    def is_unmappable(self, test_file: str) -> bool:
        return any(p.search(test_file) for p in self.unmappable)

    def first_match(self, test_file: str) -> tuple[int, str] | None:
        """Return ``(index, rewritten path)`` for the first matching rule."""
        for index, rule in enumerate(self.rules):
            mapped = rule.apply(test_file)
            if mapped is not None:
                return index, mapped
        return None


def resolve(
    test_file: str,
    rule_set: RuleSet,
    *,
    override: str | None = None,
) -> str | None:
    """Return the application file targeted by *test_file*.

    ``None`` means the test file is declared unmappable.  A test file that
    matches no rule raises :class:`MappingError`.
    """
    if override is not None:
        logger.info("Determined targeted application file from SIMPLECOV_TARGET_FILE environment variable")
        return override

    if rule_set.is_unmappable(test_file):
        logger.debug("%s matches an unmappable pattern", test_file)
        return None

    found = rule_set.first_match(test_file)
    if found is None:
        raise MappingError(test_file)
    index, mapped = found
    logger.debug("%s mapped by rule %d (%s)", test_file, index, rule_set.rules[index].pattern.pattern)
    return rule_set.test_suffix.apply(mapped) or mapped


def rules_from_pairs(pairs: Iterable[Sequence[str]]) -> tuple[MappingRule, ...]:
    return tuple(MappingRule.compile(pattern, replacement) for pattern, replacement in pairs)


__all__ = [
    "APP_DEFAULT_RULES",
    "DEFAULT_TEST_SUFFIX",
    "DEFAULT_UNMAPPABLE",
    "GEM_DEFAULT_RULES",
    "MappingRule",
    "RuleSet",
    "compile_pattern",
    "expand_template",
    "is_gem_project",
    "resolve",
    "rules_from_pairs",
]
