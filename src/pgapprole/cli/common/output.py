"""Output formatting utilities for the CLI."""

from __future__ import annotations

import sys
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterable

import questionary
from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.theme import Theme

from pgapprole.cli.common.tui_style import QUESTIONARY_STYLE_CONFIRM
from pgapprole.core.models import ActionOutcome, ActionRecord, MappingRow
from pgapprole.core.report import ActionReport

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)

_MAX_CELL_WIDTH = 30
_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_OUTCOME_STYLE = {
    ActionOutcome.CREATED: "ok",
    ActionOutcome.UPDATED: "title",
    ActionOutcome.SKIPPED: "meta",
    ActionOutcome.REMOVED: "warn",
    ActionOutcome.NOT_FOUND: "warn",
}


def _truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def _fmt_ts(value) -> str:
    return value.strftime(_TIMESTAMP_FORMAT) if value is not None else ""


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages and tables.

    Messages are printed literally: database, schema and role names may
    contain square brackets that rich would otherwise read as markup.
    """

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to be PG-ROLES consistent."""
        return f"[PG-ROLES] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        console.print(f"[title]›[/] {escape(msg)}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with console.status(escape(msg), spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        console.print(f"[ok]✓[/] {escape(msg)}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        console.print(f"[warn]⚠[/] {escape(msg)}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        console.print(f"[err]✗[/] {escape(msg)}")

    def header(self, title: str) -> None:
        """Print a header message."""
        console.print(f"[title]{escape(title)}[/]")

    def can_prompt(self) -> bool:
        """Return True when stdin is attached to a terminal."""
        return sys.stdin.isatty()

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        console.print("[meta]Use y/n then Enter[/]")

        prompt = questionary.confirm(
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def action(self, record: ActionRecord) -> None:
        """Print one report line as soon as a step completes."""
        style = _OUTCOME_STYLE[record.outcome]
        console.print(f"[{style}]{record.outcome.value}[/{style}]: {escape(record.description)}")

    def report_summary(self, report: ActionReport) -> None:
        """Print the outcome tally for a finished command."""
        console.print()
        self.header(f"=== {report.command_name} Summary ===")
        console.print(f"Total actions: {len(report)}")
        for outcome, count in report.tally().items():
            style = _OUTCOME_STYLE[outcome]
            console.print(f"  [{style}]{outcome.value}[/{style}]: {count}")

    def statements(self, statements: Iterable[str]) -> None:
        """Print SQL statements separated by blank lines."""
        for sql in statements:
            console.print(f"[meta]{escape(sql)};[/]")
            console.print()

    def mappings_table(self, rows: Iterable[MappingRow], title: str = "Mappings") -> None:
        """
        Render schema-to-role mappings.

        Role names and member lists longer than the column width are
        truncated; an empty member list is shown as `(none)`.
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Database", style="ok", no_wrap=True)
        t.add_column("Schema", style="ok", no_wrap=True)
        t.add_column("Target Role")
        t.add_column("Granted To", style="meta")
        t.add_column("Created At", style="meta", no_wrap=True)
        t.add_column("Updated At", style="meta", no_wrap=True)

        for r in rows:
            granted = ", ".join(r.granted_to) if r.granted_to else "(none)"
            t.add_row(
                escape(r.database),
                escape(r.schema_name),
                escape(_truncate(r.target_role, _MAX_CELL_WIDTH)),
                escape(_truncate(granted, _MAX_CELL_WIDTH)),
                _fmt_ts(r.created_at),
                _fmt_ts(r.updated_at),
            )

        console.print(t)


out = Out()
