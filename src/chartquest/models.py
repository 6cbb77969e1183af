"""Domain models for chartquest."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

ConfigurationTree = dict[str, Any]
"""Parsed values.yaml: nested mapping of string keys to scalars, mappings and sequences."""

SHOW_IF_CLAUSE = re.compile(r"^[^=&\s]+=[^&]*$")


def validate_show_if(value: str | None) -> str | None:
    """Check a ``variable=value`` expression, allowing ``&&`` conjunctions.

    Raises:
        ValueError: if any clause is malformed.
    """
    if value is None:
        return None
    for clause in value.split("&&"):
        if not SHOW_IF_CLAUSE.match(clause.strip()):
            raise ValueError(f"show_if must look like 'variable=value', got {value!r}")
    return value


class ValueKind(StrEnum):
    """Kind of a single value in a configuration tree."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    MAPPING = "mapping"
    SEQUENCE = "sequence"
    NULL = "null"


def value_kind(value: Any) -> ValueKind:
    """Classify a configuration value.

    ``bool`` is checked before numbers since it subclasses ``int``.
    """
    if value is None:
        return ValueKind.NULL
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, Mapping):
        return ValueKind.MAPPING
    if isinstance(value, (list, tuple)):
        return ValueKind.SEQUENCE
    raise TypeError(f"Unsupported configuration value type: {type(value).__name__}")


class QuestionType(StrEnum):
    """Question types emitted by the synthesizer."""

    STRING = "string"
    INT = "int"
    BOOLEAN = "boolean"
    ENUM = "enum"


class Question(BaseModel):
    """A single configuration item exposed to the installer UI.

    Unknown keys (``min``, ``max``, ``valid_chars``...) found in an existing
    questions.yaml are kept as extras so they survive a round trip.
    """

    model_config = ConfigDict(extra="allow")

    variable: str = Field(
        description="Dotted path into values.yaml, e.g. 'ollama.gpu.enabled'.",
    )
    label: str = ""
    description: str | None = None
    type: str | None = None
    required: bool = False
    default: Any = None
    group: str | None = None
    options: list[str] = Field(default_factory=list)
    show_if: str | None = Field(
        default=None,
        description="Conditional display expression of the form '<variable>=<value>'.",
    )
    subquestions: list[Question] = Field(default_factory=list)

    @field_validator("variable")
    @classmethod
    def _check_variable(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("variable must not be empty")
        return value

    @field_validator("type", mode="before")
    @classmethod
    def _plain_type(cls, value: Any) -> Any:
        # QuestionType members become plain strings so safe_dump accepts them
        if isinstance(value, StrEnum):
            return value.value
        return value

    @field_validator("options", mode="before")
    @classmethod
    def _coerce_options(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [str(opt) for opt in value]
        return value

    @field_validator("show_if")
    @classmethod
    def _check_show_if(cls, value: str | None) -> str | None:
        return validate_show_if(value)

    def to_dict(self) -> dict[str, Any]:
        """Serialize, omitting unset fields except ``variable`` and ``label``."""
        data: dict[str, Any] = {"variable": self.variable, "label": self.label}
        data.update(
            self.model_dump(
                exclude_defaults=True,
                exclude={"variable", "label", "subquestions"},
            )
        )
        if self.subquestions:
            data["subquestions"] = [q.to_dict() for q in self.subquestions]
        return data


class QuestionSet(BaseModel):
    """Ordered list of questions; order is display order."""

    model_config = ConfigDict(extra="allow")

    questions: list[Question] = Field(default_factory=list)

    @field_validator("questions", mode="before")
    @classmethod
    def _none_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def variables(self) -> list[str]:
        return [q.variable for q in self.questions]

    def get(self, variable: str) -> Question | None:
        return next((q for q in self.questions if q.variable == variable), None)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"questions": [q.to_dict() for q in self.questions]}
        if self.model_extra:
            data.update(self.model_extra)
        return data

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), default_flow_style=False, sort_keys=False)

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, default=str)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | list | None) -> QuestionSet:
        """Build a QuestionSet from a parsed document.

        A bare list is accepted as the ``questions`` sequence.
        """
        if data is None:
            return cls()
        if isinstance(data, list):
            return cls(questions=data)
        return cls.model_validate(dict(data))

    @classmethod
    def from_yaml(cls, content: str) -> QuestionSet:
        return cls.from_dict(yaml.safe_load(content))


@dataclass
class ChartResult:
    """Result of processing a single chart reference."""

    values: ConfigurationTree
    questions: QuestionSet
    existing_found: bool = False
    """Whether the chart shipped its own questions.yaml."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Session:
    """A processed chart kept around for editing its questions."""

    id: str
    chart_reference: str
    values: ConfigurationTree = field(default_factory=dict)
    questions: QuestionSet = field(default_factory=QuestionSet)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chart_reference": self.chart_reference,
            "values": self.values,
            "questions": self.questions.to_dict(),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Session:
        return cls(
            id=data["id"],
            chart_reference=data.get("chart_reference", ""),
            values=data.get("values") or {},
            questions=QuestionSet.from_dict(data.get("questions")),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
        )
