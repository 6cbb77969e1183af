"""Repository catalog commands."""

from __future__ import annotations

import rich_click as click
import yaml

from chartquest import console as con
from chartquest.catalog import RepositoryCatalog
from chartquest.config import load_config
from chartquest.errors import ChartQuestError


def _get_catalog() -> RepositoryCatalog:
    try:
        return RepositoryCatalog(load_config())
    except (ValueError, yaml.YAMLError) as e:
        con.print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e


@click.group()
def repo() -> None:
    """Browse known chart repositories."""
    pass


@repo.command("list")
def repo_list() -> None:
    """List repositories in the catalog."""
    con.print_header("Repositories")
    con.print_repository_list(_get_catalog().list_repositories())


@repo.command("resolve")
@click.argument("repository")
@click.argument("chart")
@click.option("--version", "-v", "chart_version", help="Chart version (default: latest).")
def repo_resolve(repository: str, chart: str, chart_version: str | None) -> None:
    """Print the chart reference for CHART in REPOSITORY."""
    try:
        reference: str = _get_catalog().resolve(repository, chart, chart_version)
    except ChartQuestError as e:
        con.print_error(str(e))
        raise SystemExit(1) from e

    click.echo(reference)
