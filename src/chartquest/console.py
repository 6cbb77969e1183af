"""Rich console output utilities for the chartquest CLI.

Messages and table cells carry user data (chart references, file names,
question labels), so they are escaped before Rich parses markup.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, LiteralString

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

if TYPE_CHECKING:
    from chartquest.catalog import Repository
    from chartquest.models import QuestionSet, Session

CHARTQUEST_THEME = Theme(
    {
        "success": "green",
        "warning": "yellow",
        "error": "bold red",
        "heading": "bold magenta",
        "muted": "dim",
        "chart": "bold blue",
        "variable": "bold green",
        "group": "yellow",
        "version": "cyan",
        "path": "dim cyan",
    }
)


console = Console(theme=CHARTQUEST_THEME)
err_console = Console(theme=CHARTQUEST_THEME, stderr=True)


def print_success(message: str, prefix: str = "✓") -> None:
    """Print a success message."""
    console.print(f"[success]{prefix}[/success] {escape(message)}")


def print_error(message: str, prefix: str = "✗") -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]{prefix}[/error] {escape(message)}")


def print_warning(message: str, prefix: str = "⚠") -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[warning]{prefix}[/warning] {escape(message)}")


def print_header(title: str) -> None:
    """Print a section header."""
    console.print(f"\n[heading]{escape(title)}[/heading]")
    console.print(f"[muted]{'─' * len(title)}[/muted]")


def print_key_value(key: str, value: str, indent: int = 0) -> None:
    """Print a key-value pair. ``value`` may carry markup from the format helpers."""
    spaces: LiteralString = "  " * indent
    console.print(f"{spaces}[muted]{escape(key)}:[/muted] {value}")


def print_hint(message: str) -> None:
    """Print a hint for the user."""
    console.print(f"  [muted]Hint:[/muted] [dim]{escape(message)}[/dim]")


def format_chart(name: str) -> str:
    return f"[chart]{escape(name)}[/chart]"


def format_path(path: str) -> str:
    return f"[path]{escape(path)}[/path]"


def create_table(title: str | None = None, show_header: bool = True) -> Table:
    """Create a styled table."""
    return Table(
        title=title,
        show_header=show_header,
        header_style="bold",
        border_style="muted",
        title_style="heading",
    )


def print_question_table(questions: QuestionSet) -> None:
    """Print a question set as a table, one row per question."""
    table: Table = create_table()
    table.add_column("Variable", style="variable")
    table.add_column("Label")
    table.add_column("Type", style="muted")
    table.add_column("Default")
    table.add_column("Group", style="group")
    table.add_column("Show If", style="muted")

    for q in questions.questions:
        default: str = "" if q.default is None else escape(str(q.default))
        if q.required:
            default = f"{default} [error]*[/error]".strip()
        table.add_row(
            escape(q.variable),
            escape(q.label),
            escape(q.type or ""),
            default,
            escape(q.group or ""),
            escape(q.show_if or ""),
        )

    console.print(table)


def print_session_list(sessions: list[Session]) -> None:
    """Print stored sessions."""
    table: Table = create_table()
    table.add_column("ID", style="muted")
    table.add_column("Chart", style="chart")
    table.add_column("Questions", justify="right")
    table.add_column("Updated")

    for session in sessions:
        table.add_row(
            session.id,
            escape(session.chart_reference),
            str(len(session.questions.questions)),
            session.updated_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)


def print_repository_list(repositories: list[Repository]) -> None:
    """Print the repository catalog."""
    table: Table = create_table()
    table.add_column("Name", style="chart")
    table.add_column("Type", justify="center")
    table.add_column("URL", style="path")
    table.add_column("Description", style="muted")

    for repo in repositories:
        table.add_row(escape(repo.name), repo.type, escape(repo.url), escape(repo.description))

    console.print(table)


def print_yaml(content: str, title: str | None = None) -> None:
    """Print YAML content with syntax highlighting."""
    syntax = Syntax(content, "yaml", theme="monokai", line_numbers=False)
    if title:
        console.print(Panel(syntax, title=title, border_style="muted"))
    else:
        console.print(syntax)


def print_json(content: str, title: str | None = None) -> None:
    """Print JSON content with syntax highlighting."""
    syntax = Syntax(content, "json", theme="monokai", line_numbers=False)
    if title:
        console.print(Panel(syntax, title=title, border_style="muted"))
    else:
        console.print(syntax)
