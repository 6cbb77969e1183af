"""Loading values.yaml and questions.yaml from a resolved chart directory."""

from __future__ import annotations

import logging
from collections import deque
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from chartquest.errors import ParseError
from chartquest.models import ConfigurationTree, QuestionSet

logger = logging.getLogger(__name__)

VALUES_FILE_NAMES = ("values.yaml", "values.yml")
QUESTIONS_FILE_NAMES = ("questions.yaml", "questions.yml")


def find_chart_file(directory: Path, names: tuple[str, ...]) -> Path | None:
    """Find the first file matching one of ``names`` under ``directory``.

    Names are tried in priority order. For each name the tree is walked
    breadth-first in lexical order, so the shallowest match wins and a
    subchart's file never shadows the parent chart's. Symlinked directories
    are not followed.
    """
    for name in names:
        found: Path | None = _find_shallowest(directory, name)
        if found is not None:
            return found
    return None


def _find_shallowest(directory: Path, name: str) -> Path | None:
    queue: deque[Path] = deque([directory])
    while queue:
        current: Path = queue.popleft()
        try:
            entries: list[Path] = sorted(current.iterdir(), key=lambda p: p.name)
        except OSError:
            continue

        for entry in entries:
            if entry.name == name and entry.is_file():
                return entry

        for entry in entries:
            if entry.is_dir() and not entry.is_symlink():
                queue.append(entry)
    return None


def normalize_tree(value: Any) -> Any:
    """Coerce a parsed YAML document into plain configuration values.

    Mapping keys become strings, dates become ISO strings and ``!!set``
    collections become sorted sequences.

    Raises:
        ParseError: for a value that is none of the configuration value kinds.
    """
    if isinstance(value, dict):
        return {str(k): normalize_tree(v) for k, v in value.items()}
    if isinstance(value, list):
        return [normalize_tree(v) for v in value]
    if isinstance(value, (set, frozenset)):
        return [normalize_tree(v) for v in sorted(value, key=str)]
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    raise ParseError(f"Unsupported value of type {type(value).__name__} in chart values")


def load_configuration(directory: Path) -> ConfigurationTree:
    """Load the chart's values.yaml as a configuration tree.

    A missing or empty file yields an empty tree.

    Raises:
        ParseError: if the file exists but is not a YAML mapping.
    """
    values_path: Path | None = find_chart_file(directory, VALUES_FILE_NAMES)
    if values_path is None:
        logger.debug("No values file found in chart")
        return {}

    try:
        content: str = values_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"{values_path.name} could not be read") from e

    try:
        data: Any = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ParseError(_describe_yaml_error(values_path.name, e)) from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ParseError(
            f"{values_path.name} must contain a mapping at the top level, "
            f"got {type(data).__name__}"
        )

    return normalize_tree(data)


def load_existing_questions(directory: Path) -> QuestionSet | None:
    """Load a questions.yaml shipped with the chart.

    Returns None when the chart has no questions file. A file that cannot
    be parsed is reported as a warning and also treated as absent.
    """
    questions_path: Path | None = find_chart_file(directory, QUESTIONS_FILE_NAMES)
    if questions_path is None:
        return None

    try:
        data: Any = yaml.safe_load(questions_path.read_text(encoding="utf-8"))
        return QuestionSet.from_dict(data)
    except (OSError, yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning(
            "Ignoring %s: %s", questions_path.name, type(e).__name__
        )
        return None


def _describe_yaml_error(file_name: str, error: yaml.YAMLError) -> str:
    mark = getattr(error, "problem_mark", None)
    problem = getattr(error, "problem", None)
    if mark is not None:
        detail: str = f" ({problem})" if problem else ""
        return (
            f"{file_name} is not valid YAML at line {mark.line + 1}, "
            f"column {mark.column + 1}{detail}"
        )
    return f"{file_name} is not valid YAML"
