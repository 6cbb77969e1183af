"""Process command: turn a chart into a questions document."""

from __future__ import annotations

import json
from pathlib import Path

import rich_click as click
import yaml

from chartquest import console as con
from chartquest.catalog import RepositoryCatalog
from chartquest.config import ChartQuestConfig, load_config
from chartquest.errors import ChartQuestError, FetchError
from chartquest.models import ChartResult, Session
from chartquest.pipeline import ChartProcessor
from chartquest.sessions import create_session_store


@click.command("process")
@click.argument("reference", required=False)
@click.option("--repo", "-r", "repo_name", help="Repository name from the catalog.")
@click.option("--chart", "-c", "chart_name", help="Chart name within --repo.")
@click.option("--version", "-v", "chart_version", help="Chart version (default: latest).")
@click.option(
    "--output", "-o", "output_path", type=click.Path(dir_okay=False), help="Write the questions document to a file."
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    show_default=True,
    help="Output format.",
)
@click.option("--show-values", is_flag=True, help="Also print the chart's values.")
@click.option("--save-session", is_flag=True, help="Store the result as an editable session.")
def process(
    reference: str | None,
    repo_name: str | None,
    chart_name: str | None,
    chart_version: str | None,
    output_path: str | None,
    output_format: str,
    show_values: bool,
    save_session: bool,
) -> None:
    """Generate a questions document for a Helm chart.

    REFERENCE is an http(s) URL to a packaged chart (.tgz) or an
    oci://host/path[:version] reference. Alternatively pick a chart from the
    repository catalog with --repo and --chart.
    """
    try:
        cfg: ChartQuestConfig = load_config()
    except (ValueError, yaml.YAMLError) as e:
        con.print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e

    reference = _resolve_reference(cfg, reference, repo_name, chart_name, chart_version)
    processor = ChartProcessor(config=cfg)

    try:
        if save_session:
            session: Session = processor.open_session(reference, create_session_store(cfg))
            result = ChartResult(values=session.values, questions=session.questions)
        else:
            result = processor.process(reference)
    except FetchError as e:
        con.print_error(str(e))
        if e.details:
            con.err_console.print(e.details, style="muted", markup=False)
        raise SystemExit(1) from e
    except ChartQuestError as e:
        con.print_error(str(e))
        raise SystemExit(1) from e

    if output_format == "json":
        content: str = result.questions.to_json()
    else:
        content = result.questions.to_yaml()

    if output_path:
        dest = Path(output_path)
        dest.parent.mkdir(parents=True, exist_ok=True)
        dest.write_text(content, encoding="utf-8")
        con.print_success(f"Wrote {len(result.questions.questions)} questions to {dest}")
    elif output_format == "json":
        click.echo(content)
    else:
        click.echo(content, nl=False)

    if show_values:
        con.print_header("Values")
        if output_format == "json":
            con.print_json(json.dumps(result.values, indent=2, default=str))
        else:
            con.print_yaml(
                yaml.safe_dump(result.values, default_flow_style=False, sort_keys=False)
            )

    if save_session:
        con.print_success(f"Saved session {session.id}")
        con.print_hint(f"Edit with: chartquest session export {session.id}")


def _resolve_reference(
    cfg: ChartQuestConfig,
    reference: str | None,
    repo_name: str | None,
    chart_name: str | None,
    chart_version: str | None,
) -> str:
    if reference and (repo_name or chart_name):
        con.print_error("Pass either REFERENCE or --repo/--chart, not both.")
        raise SystemExit(1)

    if reference:
        return reference

    if not (repo_name and chart_name):
        con.print_error("Missing chart: pass REFERENCE or both --repo and --chart.")
        raise SystemExit(1)

    try:
        return RepositoryCatalog(cfg).resolve(repo_name, chart_name, chart_version)
    except ChartQuestError as e:
        con.print_error(str(e))
        con.print_hint("List repositories with: chartquest repo list")
        raise SystemExit(1) from e
