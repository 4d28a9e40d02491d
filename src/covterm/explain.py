"""Tabular explanation of how a test file is mapped."""

from __future__ import annotations

from io import StringIO
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from covterm.mapping import RuleSet


def _render_rich_table(table: Table, *, color: bool) -> str:
    buf = StringIO()
    console = Console(
        file=buf,
        force_terminal=color,
        color_system="standard" if color else None,
        no_color=not color,
        width=10_000,
    )
    console.print(table)
    return buf.getvalue().rstrip()


def build_rule_table(rule_set: RuleSet, test_file: str) -> Table:
    """Return a table of unmappable patterns and rules, in evaluation order."""
    table = Table(title=f"Mapping rules for {escape(test_file)}", box=box.SIMPLE_HEAVY, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Pattern", style="cyan", overflow="fold")
    table.add_column("Replacement", overflow="fold")
    table.add_column("Result", overflow="fold")

    unmappable_hit = False
    for pattern in rule_set.unmappable:
        hit = bool(pattern.search(test_file))
        unmappable_hit = unmappable_hit or hit
        table.add_row("-", escape(pattern.pattern), "(unmappable)", "[yellow]unmappable[/yellow]" if hit else "")

    found = None if unmappable_hit else rule_set.first_match(test_file)
    for index, rule in enumerate(rule_set.rules):
        if unmappable_hit:
            result = "[dim]skipped[/dim]"
        elif found is not None and found[0] == index:
            result = f"[green]{escape(found[1])}[/green]"
        elif found is not None and index > found[0]:
            result = "[dim]not reached[/dim]"
        else:
            result = "[dim]no match[/dim]"
        table.add_row(str(index), escape(rule.pattern.pattern), escape(rule.replacement), result)
    return table


def render_rule_table(rule_set: RuleSet, test_file: str, *, color: bool = False) -> str:
    return _render_rich_table(build_rule_table(rule_set, test_file), color=color)


__all__ = ["build_rule_table", "render_rule_table"]
