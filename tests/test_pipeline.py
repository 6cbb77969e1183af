from __future__ import annotations

import io
import tarfile
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from chartquest.config import ChartQuestConfig, OciConfig, SessionConfig
from chartquest.errors import FetchError, InvalidReferenceError, ParseError
from chartquest.models import ChartResult, Session
from chartquest.pipeline import ChartProcessor, process_chart
from chartquest.questions import QuestionRule
from chartquest.sessions import MemorySessionStore
from chartquest.sources import SourceResolver


def _chart_tgz(files: dict[str, str]) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for name, content in files.items():
            data: bytes = content.encode()
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def _response(body: bytes) -> MagicMock:
    response = MagicMock()
    response.ok = True
    response.status_code = 200
    response.iter_content.return_value = [body]
    return response


@pytest.fixture
def config(tmp_path: Path) -> ChartQuestConfig:
    return ChartQuestConfig(
        workdir=str(tmp_path / "work"),
        oci=OciConfig(strategy="synthetic"),
        sessions=SessionConfig(type="memory"),
    )


class TestChartProcessor:
    @patch("chartquest.sources.requests.get")
    def test_defaults_without_existing_questions(
        self, mock_get: MagicMock, config: ChartQuestConfig, tmp_path: Path
    ):
        mock_get.return_value = _response(
            _chart_tgz({"mychart/values.yaml": "service:\n  type: LoadBalancer\n"})
        )

        result: ChartResult = ChartProcessor(config=config).process(
            "https://charts.example.com/mychart-1.0.0.tgz"
        )

        assert result.values == {"service": {"type": "LoadBalancer"}}
        assert result.questions.variables == ["name", "namespace", "service.type"]
        assert not result.existing_found
        assert list((tmp_path / "work").iterdir()) == []

    @patch("chartquest.sources.requests.get")
    def test_merges_existing_questions(self, mock_get: MagicMock, config: ChartQuestConfig):
        mock_get.return_value = _response(
            _chart_tgz(
                {
                    "mychart/values.yaml": "service:\n  type: ClusterIP\n",
                    "mychart/questions.yaml": (
                        "questions:\n"
                        "  - variable: service.type\n"
                        "    label: Exposure\n"
                        "    type: enum\n"
                        "    options: [NodePort]\n"
                    ),
                }
            )
        )

        result: ChartResult = ChartProcessor(config=config).process(
            "https://charts.example.com/mychart-1.0.0.tgz"
        )

        assert result.existing_found
        assert result.questions.variables == ["service.type", "name", "namespace"]
        assert result.questions.get("service.type").label == "Exposure"

    @patch("chartquest.sources.requests.get")
    def test_parse_error_propagates_and_cleans_up(
        self, mock_get: MagicMock, config: ChartQuestConfig, tmp_path: Path
    ):
        mock_get.return_value = _response(_chart_tgz({"mychart/values.yaml": "- not\n- a mapping\n"}))

        with pytest.raises(ParseError):
            ChartProcessor(config=config).process("https://charts.example.com/mychart.tgz")

        assert list((tmp_path / "work").iterdir()) == []

    @patch("chartquest.sources.requests.get")
    def test_fetch_error_propagates(self, mock_get: MagicMock, config: ChartQuestConfig, tmp_path: Path):
        response = MagicMock()
        response.ok = False
        response.status_code = 404
        response.reason = "Not Found"
        mock_get.return_value = response

        with pytest.raises(FetchError):
            ChartProcessor(config=config).process("https://bad.example/nope.tgz")

        assert list((tmp_path / "work").iterdir()) == []

    def test_synthetic_oci_chart(self, config: ChartQuestConfig, tmp_path: Path):
        result: ChartResult = ChartProcessor(config=config).process("oci://host/charts/x:1.0.0")

        assert result.values["image"]["repository"] == "x"
        assert result.questions.variables[:3] == ["name", "namespace", "service.type"]
        assert list((tmp_path / "work").iterdir()) == []

    def test_custom_rules(self, config: ChartQuestConfig):
        processor = ChartProcessor(config=config, rules=[QuestionRule(path="adminUser")])

        result: ChartResult = processor.process("oci://host/charts/grafana")

        assert result.questions.variables == ["name", "namespace", "adminUser"]

    def test_injected_resolver(self, config: ChartQuestConfig):
        resolver = SourceResolver(config)
        processor = ChartProcessor(resolver=resolver)
        assert processor.resolver is resolver
        assert processor.config is config


class TestOpenSession:
    def test_records_result(self, config: ChartQuestConfig):
        store = MemorySessionStore()

        session: Session = ChartProcessor(config=config).open_session("oci://host/charts/ollama:1.0.0", store)

        stored: Session = store.get(session.id)
        assert stored.chart_reference == "oci://host/charts/ollama:1.0.0"
        assert "ollama.gpu.enabled" in stored.questions.variables

    def test_failure_creates_no_session(self, config: ChartQuestConfig):
        store = MemorySessionStore()

        with pytest.raises(InvalidReferenceError):
            ChartProcessor(config=config).open_session("file:///etc/passwd", store)

        assert store.list_sessions() == []


class TestProcessChart:
    def test_uses_given_config(self, config: ChartQuestConfig):
        result: ChartResult = process_chart("oci://host/charts/prometheus", config)
        assert result.values["image"]["repository"] == "prom/prometheus"
