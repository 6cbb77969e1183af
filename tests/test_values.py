from __future__ import annotations

import datetime
from pathlib import Path

import pytest

from chartquest.errors import ParseError
from chartquest.models import QuestionSet
from chartquest.questions import synthesize_defaults
from chartquest.values import (
    QUESTIONS_FILE_NAMES,
    VALUES_FILE_NAMES,
    find_chart_file,
    load_configuration,
    load_existing_questions,
    normalize_tree,
)


class TestFindChartFile:
    def test_shallowest_match_wins(self, tmp_path: Path):
        subchart: Path = tmp_path / "mychart" / "charts" / "aaa-sub"
        subchart.mkdir(parents=True)
        (subchart / "values.yaml").write_text("sub: true\n")
        (tmp_path / "mychart" / "values.yaml").write_text("parent: true\n")

        found: Path | None = find_chart_file(tmp_path, VALUES_FILE_NAMES)
        assert found == tmp_path / "mychart" / "values.yaml"

    def test_name_priority(self, tmp_path: Path):
        (tmp_path / "values.yml").write_text("a: 1\n")
        nested: Path = tmp_path / "nested"
        nested.mkdir()
        (nested / "values.yaml").write_text("b: 2\n")

        found: Path | None = find_chart_file(tmp_path, VALUES_FILE_NAMES)
        assert found == nested / "values.yaml"

    def test_not_found(self, tmp_path: Path):
        assert find_chart_file(tmp_path, QUESTIONS_FILE_NAMES) is None


class TestLoadConfiguration:
    def test_missing_file(self, tmp_path: Path):
        assert load_configuration(tmp_path) == {}

    def test_empty_file(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text("")
        assert load_configuration(tmp_path) == {}

    def test_comment_only_file(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text("# nothing configured\n")
        assert load_configuration(tmp_path) == {}

    def test_nested_values(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text(
            "service:\n  type: ClusterIP\n  port: 80\npersistence:\n  storageClass: null\n"
        )
        tree = load_configuration(tmp_path)
        assert tree == {
            "service": {"type": "ClusterIP", "port": 80},
            "persistence": {"storageClass": None},
        }

    def test_yml_fallback(self, tmp_path: Path):
        (tmp_path / "values.yml").write_text("replicaCount: 3\n")
        assert load_configuration(tmp_path) == {"replicaCount": 3}

    def test_malformed_yaml(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text("service:\n  type: [unclosed\n")

        with pytest.raises(ParseError) as exc_info:
            load_configuration(tmp_path)

        assert "values.yaml" in str(exc_info.value)
        assert str(tmp_path) not in str(exc_info.value)

    def test_non_mapping_top_level(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text("- a\n- b\n")

        with pytest.raises(ParseError, match="mapping"):
            load_configuration(tmp_path)

    def test_set_tag_is_a_sequence(self, tmp_path: Path):
        (tmp_path / "values.yaml").write_text("replicaCount: !!set {b: null, a: null}\n")

        tree = load_configuration(tmp_path)
        assert tree == {"replicaCount": ["a", "b"]}

        questions: QuestionSet = synthesize_defaults(tree)
        assert questions.variables == ["name", "namespace", "replicaCount"]
        assert questions.get("replicaCount").default is None


class TestNormalizeTree:
    def test_non_string_keys(self):
        assert normalize_tree({1: "a", False: {"x": 2}}) == {"1": "a", "False": {"x": 2}}

    def test_dates_become_strings(self):
        assert normalize_tree({"d": datetime.date(2024, 1, 2)}) == {"d": "2024-01-02"}

    def test_sets_become_sorted_sequences(self):
        assert normalize_tree({"hosts": {"b", "a"}}) == {"hosts": ["a", "b"]}
        assert normalize_tree(frozenset({2, 1})) == [1, 2]

    def test_unsupported_value(self):
        with pytest.raises(ParseError, match="complex"):
            normalize_tree({"x": complex(1, 2)})


class TestLoadExistingQuestions:
    def test_absent(self, tmp_path: Path):
        assert load_existing_questions(tmp_path) is None

    def test_present(self, tmp_path: Path):
        (tmp_path / "questions.yaml").write_text(
            "questions:\n"
            "  - variable: service.type\n"
            "    label: Custom Service\n"
            "    type: enum\n"
            "    options: [ClusterIP, NodePort]\n"
        )
        questions: QuestionSet | None = load_existing_questions(tmp_path)

        assert questions is not None
        assert questions.variables == ["service.type"]
        assert questions.questions[0].label == "Custom Service"

    def test_malformed_is_treated_as_absent(self, tmp_path: Path):
        (tmp_path / "questions.yaml").write_text("questions: [unclosed\n")
        assert load_existing_questions(tmp_path) is None

    def test_structurally_invalid_is_treated_as_absent(self, tmp_path: Path):
        (tmp_path / "questions.yaml").write_text("questions:\n  - label: no variable\n")
        assert load_existing_questions(tmp_path) is None

    def test_empty_document(self, tmp_path: Path):
        (tmp_path / "questions.yaml").write_text("")
        questions: QuestionSet | None = load_existing_questions(tmp_path)
        assert questions is not None
        assert questions.questions == []
