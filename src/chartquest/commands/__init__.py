"""CLI command groups for chartquest."""

from chartquest.commands.config_cmd import config
from chartquest.commands.process import process
from chartquest.commands.repo import repo
from chartquest.commands.session_cmd import session

__all__ = [
    "config",
    "process",
    "repo",
    "session",
]
