"""Session commands for reviewing and editing processed charts."""

from __future__ import annotations

from pathlib import Path

import rich_click as click
import yaml

from chartquest import console as con
from chartquest.config import load_config
from chartquest.errors import ChartQuestError
from chartquest.models import QuestionSet, Session
from chartquest.sessions import SessionStore, create_session_store


def _get_store() -> SessionStore:
    try:
        return create_session_store(load_config())
    except (ValueError, yaml.YAMLError) as e:
        con.print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e


def _get_session(store: SessionStore, session_id: str) -> Session:
    try:
        return store.get(session_id)
    except ChartQuestError as e:
        con.print_error(str(e))
        raise SystemExit(1) from e


@click.group()
def session() -> None:
    """Manage stored chart sessions."""
    pass


@session.command("list")
def session_list() -> None:
    """List stored sessions."""
    sessions: list[Session] = _get_store().list_sessions()
    if not sessions:
        con.print_warning("No sessions found.")
        con.print_hint("Create one with: chartquest process REFERENCE --save-session")
        return

    con.print_header("Sessions")
    con.print_session_list(sessions)


@session.command("show")
@click.argument("session_id")
def session_show(session_id: str) -> None:
    """Show a session's questions."""
    s: Session = _get_session(_get_store(), session_id)

    con.print_header(f"Session {s.id}")
    con.print_key_value("Chart", con.format_chart(s.chart_reference))
    con.print_key_value("Created", s.created_at.isoformat())
    con.print_key_value("Updated", s.updated_at.isoformat())
    con.console.print()
    con.print_question_table(s.questions)


@session.command("export")
@click.argument("session_id")
@click.option(
    "--output", "-o", "output_path", type=click.Path(dir_okay=False), help="Write to a file instead of stdout."
)
def session_export(session_id: str, output_path: str | None) -> None:
    """Export a session's questions as YAML."""
    s: Session = _get_session(_get_store(), session_id)
    content: str = s.questions.to_yaml()

    if output_path:
        dest = Path(output_path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        con.print_success(f"Exported questions to {dest}")
    else:
        click.echo(content, nl=False)


@session.command("update")
@click.argument("session_id")
@click.argument("questions_file", type=click.Path(exists=True, dir_okay=False))
def session_update(session_id: str, questions_file: str) -> None:
    """Replace a session's questions with the contents of QUESTIONS_FILE."""
    try:
        questions: QuestionSet = QuestionSet.from_yaml(
            Path(questions_file).read_text(encoding="utf-8")
        )
    except yaml.YAMLError as e:
        con.print_error(f"{Path(questions_file).name} is not valid YAML")
        raise SystemExit(1) from e
    except (ValueError, TypeError) as e:
        con.print_error(f"{Path(questions_file).name} is not a valid questions document: {e}")
        raise SystemExit(1) from e

    store: SessionStore = _get_store()
    try:
        s: Session = store.update(session_id, questions)
    except ChartQuestError as e:
        con.print_error(str(e))
        raise SystemExit(1) from e

    con.print_success(f"Updated session {s.id} ({len(s.questions.questions)} questions)")


@session.command("delete")
@click.argument("session_id")
def session_delete(session_id: str) -> None:
    """Delete a session."""
    try:
        _get_store().delete(session_id)
    except ChartQuestError as e:
        con.print_error(str(e))
        raise SystemExit(1) from e

    con.print_success(f"Deleted session {session_id}")
