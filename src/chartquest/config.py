"""Configuration management for chartquest.

Configuration is read from a ``.chartquest.yaml`` file found by walking up
from the working directory. Missing files fall back to defaults, and a few
settings can be overridden from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from chartquest.models import validate_show_if

CONFIG_FILE_NAME = ".chartquest.yaml"

OCI_STRATEGIES = ("auto", "helm", "synthetic")
SESSION_STORE_TYPES = ("memory", "local")


@dataclass
class FetchConfig:
    """Configuration for downloading chart archives over HTTP(S)."""

    timeout_seconds: float | None = 60.0
    """Timeout for connecting and reading. None waits forever."""

    user_agent: str = "chartquest"
    """User-Agent header sent with every download."""


@dataclass
class OciConfig:
    """Configuration for OCI chart references."""

    strategy: str = "auto"
    """'auto' (helm when installed, else synthetic), 'helm' or 'synthetic'."""

    helm_binary: str = "helm"
    """Name or path of the helm executable."""


@dataclass
class SessionConfig:
    """Configuration for the session store."""

    type: str = "local"
    """Store type: 'memory' or 'local'."""

    path: str = ".chartquest/sessions"
    """Directory holding one YAML file per session (local store only)."""


@dataclass
class RepositoryConfig:
    """A chart repository added on top of the built-in catalog."""

    name: str
    """Repository name used on the command line."""

    url: str
    """Base URL: 'https://...' for classic repos, 'oci://...' for registries."""

    description: str = ""
    """Free-text description."""


@dataclass
class RuleConfig:
    """An extra question rule applied after the built-in ones."""

    path: str
    """Dotted path into values.yaml, e.g. 'metrics.serviceMonitor.enabled'."""

    label: str | None = None
    description: str | None = None
    type: str | None = None
    """Question type. Inferred from the value when omitted."""

    group: str = "Settings"
    options: list[str] = field(default_factory=list)
    default: Any = None
    show_if: str | None = None


@dataclass
class ChartQuestConfig:
    """Main configuration for chartquest."""

    workdir: str | None = None
    """Directory for temporary downloads and extractions (system temp dir if unset)."""

    fetch: FetchConfig = field(default_factory=FetchConfig)
    """HTTP download configuration."""

    oci: OciConfig = field(default_factory=OciConfig)
    """OCI resolution configuration."""

    sessions: SessionConfig = field(default_factory=SessionConfig)
    """Session store configuration."""

    repositories: list[RepositoryConfig] = field(default_factory=list)
    """Repositories added to the built-in catalog."""

    rules: list[RuleConfig] = field(default_factory=list)
    """Extra question rules."""

    @classmethod
    def get_default(cls) -> ChartQuestConfig:
        """Get default configuration."""
        return cls()

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChartQuestConfig:
        """Create config from a dictionary."""
        fetch_data = data.get("fetch", {}) or {}
        fetch = FetchConfig(
            timeout_seconds=fetch_data.get("timeout_seconds", 60.0),
            user_agent=fetch_data.get("user_agent", "chartquest"),
        )

        oci_data = data.get("oci", {}) or {}
        oci = OciConfig(
            strategy=oci_data.get("strategy", "auto"),
            helm_binary=oci_data.get("helm_binary", "helm"),
        )
        if oci.strategy not in OCI_STRATEGIES:
            raise ValueError(
                f"Unknown OCI strategy '{oci.strategy}'. "
                f"Expected one of: {', '.join(OCI_STRATEGIES)}"
            )

        sessions_data = data.get("sessions", {}) or {}
        sessions = SessionConfig(
            type=sessions_data.get("type", "local"),
            path=sessions_data.get("path", ".chartquest/sessions"),
        )
        if sessions.type not in SESSION_STORE_TYPES:
            raise ValueError(
                f"Unknown session store type '{sessions.type}'. "
                f"Expected one of: {', '.join(SESSION_STORE_TYPES)}"
            )

        repositories = []
        for repo_data in data.get("repositories", []) or []:
            repositories.append(
                RepositoryConfig(
                    name=repo_data.get("name", ""),
                    url=repo_data.get("url", ""),
                    description=repo_data.get("description", ""),
                )
            )

        rules = []
        for rule_data in data.get("rules", []) or []:
            path = rule_data.get("path", "")
            show_if = rule_data.get("show_if")
            if show_if is not None and not isinstance(show_if, str):
                raise ValueError(f"Rule '{path}': show_if must be a string")
            try:
                validate_show_if(show_if)
            except ValueError as e:
                raise ValueError(f"Rule '{path}': {e}") from e

            rules.append(
                RuleConfig(
                    path=path,
                    label=rule_data.get("label"),
                    description=rule_data.get("description"),
                    type=rule_data.get("type"),
                    group=rule_data.get("group", "Settings"),
                    options=rule_data.get("options", []),
                    default=rule_data.get("default"),
                    show_if=show_if,
                )
            )

        return cls(
            workdir=data.get("workdir"),
            fetch=fetch,
            oci=oci,
            sessions=sessions,
            repositories=repositories,
            rules=rules,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to a dictionary."""
        data: dict[str, Any] = {}
        if self.workdir:
            data["workdir"] = self.workdir

        data["fetch"] = {
            "timeout_seconds": self.fetch.timeout_seconds,
            "user_agent": self.fetch.user_agent,
        }
        data["oci"] = {
            "strategy": self.oci.strategy,
            "helm_binary": self.oci.helm_binary,
        }
        data["sessions"] = {
            "type": self.sessions.type,
            "path": self.sessions.path,
        }
        data["repositories"] = [
            {
                k: v
                for k, v in {
                    "name": repo.name,
                    "url": repo.url,
                    "description": repo.description,
                }.items()
                if v
            }
            for repo in self.repositories
        ]
        data["rules"] = [
            {
                k: v
                for k, v in {
                    "path": rule.path,
                    "label": rule.label,
                    "description": rule.description,
                    "type": rule.type,
                    "group": rule.group,
                    "options": rule.options,
                    "default": rule.default,
                    "show_if": rule.show_if,
                }.items()
                if v not in (None, [])
            }
            for rule in self.rules
        ]
        return data


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find the config file by walking up the directory tree.

    Starts from start_path (or cwd) and walks up looking for .chartquest.yaml.
    """
    if start_path is None:
        start_path = Path.cwd()

    current: Path = start_path
    while current != current.parent:
        config_path: Path = current / CONFIG_FILE_NAME
        if config_path.exists():
            return config_path
        current = current.parent

    return None


def load_config(config_path: Path | None = None) -> ChartQuestConfig:
    """Load configuration from file or return defaults.

    If config_path is None, searches for .chartquest.yaml in the directory tree.
    Environment overrides are applied last.
    """
    if config_path is None:
        config_path = find_config_file()

    if config_path is None or not config_path.exists():
        config = ChartQuestConfig.get_default()
    else:
        with config_path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        config = ChartQuestConfig.from_dict(data)

    return apply_env_overrides(config)


def apply_env_overrides(config: ChartQuestConfig) -> ChartQuestConfig:
    """Apply CHARTQUEST_* environment variables on top of a config."""
    workdir: str | None = os.environ.get("CHARTQUEST_WORKDIR")
    if workdir:
        config.workdir = workdir

    strategy: str | None = os.environ.get("CHARTQUEST_OCI_STRATEGY")
    if strategy:
        if strategy not in OCI_STRATEGIES:
            raise ValueError(
                f"Unknown OCI strategy '{strategy}' in CHARTQUEST_OCI_STRATEGY."
            )
        config.oci.strategy = strategy

    helm_binary: str | None = os.environ.get("CHARTQUEST_HELM_BINARY")
    if helm_binary:
        config.oci.helm_binary = helm_binary

    if config.workdir:
        config.workdir = resolve_env_var(config.workdir)

    return config


def save_config(config: ChartQuestConfig, config_path: Path) -> None:
    """Save configuration to a file."""
    with config_path.open("w", encoding="utf-8") as f:
        yaml.safe_dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)


def generate_default_config() -> str:
    """Generate default configuration as YAML string."""
    config: ChartQuestConfig = ChartQuestConfig.get_default()
    return yaml.safe_dump(config.to_dict(), default_flow_style=False, sort_keys=False)


def resolve_env_var(value: str | None) -> str | None:
    """Resolve environment variable references in a string.

    Supports:
    - $VAR_NAME -> os.environ.get("VAR_NAME")
    - ${VAR_NAME} -> os.environ.get("VAR_NAME")
    - Plain values returned as-is

    Returns None if the value is None or if the env var is not set.
    """
    if value is None:
        return None

    if value.startswith("$"):
        var_name: str = value[1:]
        if var_name.startswith("{") and var_name.endswith("}"):
            var_name = var_name[1:-1]
        return os.environ.get(var_name)

    return value
