"""chartquest CLI - questions.yaml generation for Helm charts."""

from __future__ import annotations

import rich_click as click

from chartquest import __version__
from chartquest.commands import config, process, repo, session
from chartquest.log import setup_logging

click.rich_click.USE_RICH_MARKUP = True
click.rich_click.USE_MARKDOWN = False
click.rich_click.SHOW_ARGUMENTS = True
click.rich_click.GROUP_ARGUMENTS_OPTIONS = True
click.rich_click.STYLE_ERRORS_SUGGESTION = "magenta italic"
click.rich_click.ERRORS_SUGGESTION = (
    "Try running the '--help' flag for more information."
)
click.rich_click.STYLE_OPTION = "cyan"
click.rich_click.STYLE_ARGUMENT = "green"
click.rich_click.STYLE_COMMAND = "bold yellow"
click.rich_click.STYLE_SWITCH = "cyan"
click.rich_click.HEADER_TEXT = "chartquest - Helm chart questions generator"
click.rich_click.STYLE_HEADER_TEXT = "bold magenta"
click.rich_click.ALIGN_COMMANDS_PANEL = "left"
click.rich_click.ALIGN_OPTIONS_PANEL = "left"
click.rich_click.MAX_WIDTH = 100

CLI_HELP = """Generate Rancher questions.yaml documents from Helm charts.

\b
[bold cyan]Quick Start:[/bold cyan]
  [bold yellow]chartquest process URL[/bold yellow]                     Questions for a .tgz chart
  [bold yellow]chartquest process oci://HOST/CHART:1.0[/bold yellow]    Questions for an OCI chart
  [bold yellow]chartquest process -r bitnami -c nginx[/bold yellow]     Chart from the catalog
  [bold yellow]chartquest session list[/bold yellow]                    Saved sessions
  [bold yellow]chartquest repo list[/bold yellow]                       Known repositories
"""


@click.group(help=CLI_HELP)
@click.version_option(__version__, prog_name="chartquest")
@click.option("--verbose", is_flag=True, help="Show debug logging on stderr.")
def cli(verbose: bool) -> None:
    """chartquest CLI entry point."""
    setup_logging(verbose)


cli.add_command(config)
cli.add_command(process)
cli.add_command(repo)
cli.add_command(session)


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
