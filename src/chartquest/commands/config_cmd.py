"""Configuration management commands."""

from __future__ import annotations

from pathlib import Path

import rich_click as click
import yaml

from chartquest import console as con
from chartquest.config import (
    CONFIG_FILE_NAME,
    find_config_file,
    generate_default_config,
    load_config,
)


@click.group()
def config() -> None:
    """Manage chartquest configuration."""
    pass


@config.command("init")
@click.option("--force", is_flag=True, help="Overwrite existing config file.")
def config_init(force: bool) -> None:
    """Create a .chartquest.yaml in the current directory."""
    config_path: Path = Path.cwd() / CONFIG_FILE_NAME

    if config_path.exists() and not force:
        con.print_warning(f"Config file already exists: {config_path}")
        con.print_hint("Use --force to overwrite.")
        return

    config_content: str = generate_default_config()
    config_path.write_text(config_content, encoding="utf-8")

    con.print_success(f"Created {config_path}")
    con.print_yaml(config_content, title="Default configuration")


@config.command("show")
def config_show() -> None:
    """Show the effective configuration."""
    config_path: Path | None = find_config_file()
    try:
        cfg = load_config(config_path)
    except (ValueError, yaml.YAMLError) as e:
        con.print_error(f"Invalid configuration: {e}")
        raise SystemExit(1) from e

    if config_path:
        con.print_key_value("Config file", con.format_path(str(config_path)))
    else:
        con.print_key_value("Config file", "(using defaults)")

    click.echo(yaml.safe_dump(cfg.to_dict(), default_flow_style=False, sort_keys=False))
