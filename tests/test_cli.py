from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from chartquest import console as con
from chartquest.cli import cli
from chartquest.config import CONFIG_FILE_NAME


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    # wide enough that table cells never wrap
    monkeypatch.setattr(con.console, "width", 200)
    monkeypatch.setattr(con.err_console, "width", 200)
    monkeypatch.delenv("CHARTQUEST_OCI_STRATEGY", raising=False)
    monkeypatch.delenv("CHARTQUEST_WORKDIR", raising=False)
    (tmp_path / CONFIG_FILE_NAME).write_text(
        yaml.safe_dump(
            {
                "workdir": str(tmp_path / "work"),
                "oci": {"strategy": "synthetic"},
                "sessions": {"type": "local", "path": str(tmp_path / "sessions")},
            }
        )
    )
    return tmp_path


def _session_ids(workspace: Path) -> list[str]:
    return sorted(p.stem for p in (workspace / "sessions").glob("*.yaml"))


class TestProcessCommand:
    def test_oci_reference_yaml(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process", "oci://host/charts/x:1.0.0"])

        assert result.exit_code == 0, result.output
        data = yaml.safe_load(result.output)
        variables = [q["variable"] for q in data["questions"]]
        assert variables[:3] == ["name", "namespace", "service.type"]

    def test_json_format(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process", "oci://host/charts/ollama", "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert "ollama.gpu.enabled" in [q["variable"] for q in data["questions"]]

    def test_catalog_chart_to_file(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(
            cli,
            [
                "process",
                "--repo",
                "suse-application-collection",
                "--chart",
                "grafana",
                "--version",
                "1.0.0",
                "-o",
                "out/questions.yaml",
            ],
        )

        assert result.exit_code == 0, result.output
        written = yaml.safe_load((workspace / "out" / "questions.yaml").read_text())
        assert written["questions"][0]["variable"] == "name"

    def test_invalid_reference(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process", "file:///etc/passwd"])

        assert result.exit_code == 1
        assert "http, https or oci" in result.output

    def test_missing_reference(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process"])

        assert result.exit_code == 1

    def test_unknown_repository(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process", "--repo", "nope", "--chart", "x"])

        assert result.exit_code == 1
        assert "Repository not found" in result.output

    def test_repository_name_with_brackets(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["process", "--repo", "[/x]", "--chart", "x"])

        assert result.exit_code == 1
        assert "[/x]" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_config_rule_with_bad_show_if(self, workspace: Path):
        config_path: Path = workspace / CONFIG_FILE_NAME
        data = yaml.safe_load(config_path.read_text())
        data["rules"] = [{"path": "adminUser", "show_if": "no equals sign"}]
        config_path.write_text(yaml.safe_dump(data))
        runner = CliRunner()

        result = runner.invoke(cli, ["process", "oci://host/charts/grafana"])

        assert result.exit_code == 1
        assert "Invalid configuration" in result.output
        assert isinstance(result.exception, SystemExit)

    def test_no_session_saved_by_default(self, workspace: Path):
        runner = CliRunner()
        runner.invoke(cli, ["process", "oci://host/charts/x"])
        assert _session_ids(workspace) == []


class TestSessionCommands:
    def test_session_lifecycle(self, workspace: Path):
        runner = CliRunner()

        result = runner.invoke(cli, ["process", "oci://host/charts/x:1.0.0", "--save-session"])
        assert result.exit_code == 0, result.output
        [session_id] = _session_ids(workspace)

        result = runner.invoke(cli, ["session", "list"])
        assert result.exit_code == 0
        assert "oci://host/charts/x:1.0.0" in result.output

        result = runner.invoke(cli, ["session", "show", session_id])
        assert result.exit_code == 0

        export_path: Path = workspace / "exported.yaml"
        result = runner.invoke(cli, ["session", "export", session_id, "-o", str(export_path)])
        assert result.exit_code == 0
        exported = yaml.safe_load(export_path.read_text())
        assert exported["questions"][0]["variable"] == "name"

        edited: Path = workspace / "edited.yaml"
        edited.write_text("questions:\n  - variable: custom.key\n    label: Custom\n")
        result = runner.invoke(cli, ["session", "update", session_id, str(edited)])
        assert result.exit_code == 0, result.output

        result = runner.invoke(cli, ["session", "export", session_id])
        assert yaml.safe_load(result.output)["questions"] == [
            {"variable": "custom.key", "label": "Custom"}
        ]

        result = runner.invoke(cli, ["session", "delete", session_id])
        assert result.exit_code == 0
        assert _session_ids(workspace) == []

    def test_show_unknown_session(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["session", "show", "missing"])

        assert result.exit_code == 1
        assert "Session not found" in result.output

    def test_update_with_invalid_document(self, workspace: Path):
        runner = CliRunner()
        runner.invoke(cli, ["process", "oci://host/charts/x", "--save-session"])
        [session_id] = _session_ids(workspace)
        bad: Path = workspace / "bad.yaml"
        bad.write_text("questions:\n  - label: no variable\n")

        result = runner.invoke(cli, ["session", "update", session_id, str(bad)])

        assert result.exit_code == 1

    def test_list_empty(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["session", "list"])

        assert result.exit_code == 0
        assert "No sessions found" in result.output


class TestRepoCommands:
    def test_list(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["repo", "list"])

        assert result.exit_code == 0
        assert "bitnami" in result.output

    def test_resolve(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["repo", "resolve", "bitnami", "nginx", "--version", "15.0.0"])

        assert result.exit_code == 0
        assert result.output.strip() == "https://charts.bitnami.com/bitnami/nginx-15.0.0.tgz"

    def test_resolve_unknown(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["repo", "resolve", "nope", "nginx"])

        assert result.exit_code == 1


class TestConfigCommands:
    def test_init(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "init"])

        assert result.exit_code == 0
        data = yaml.safe_load((tmp_path / CONFIG_FILE_NAME).read_text())
        assert data["oci"]["strategy"] == "auto"

    def test_init_existing_without_force(self, workspace: Path):
        before: str = (workspace / CONFIG_FILE_NAME).read_text()
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "init"])

        assert result.exit_code == 0
        assert (workspace / CONFIG_FILE_NAME).read_text() == before

    def test_init_force(self, workspace: Path):
        runner = CliRunner()

        result = runner.invoke(cli, ["config", "init", "--force"])

        assert result.exit_code == 0
        data = yaml.safe_load((workspace / CONFIG_FILE_NAME).read_text())
        assert data["oci"]["strategy"] == "auto"

    def test_show(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show"])

        assert result.exit_code == 0
        assert "synthetic" in result.output


class TestGlobalOptions:
    def test_help(self):
        runner = CliRunner()
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "process" in result.output

    def test_verbose(self, workspace: Path):
        runner = CliRunner()
        result = runner.invoke(cli, ["--verbose", "repo", "resolve", "bitnami", "nginx"])

        assert result.exit_code == 0
        assert "nginx-latest.tgz" in result.output
