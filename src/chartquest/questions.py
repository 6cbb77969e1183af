"""Question synthesis from a chart's configuration tree.

Recognized patterns are described by a table of ``QuestionRule`` entries, not
by code branches. Each rule names a dotted path; when the path exists in the
tree, one question is emitted. Rule order is display order.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from chartquest.models import (
    ConfigurationTree,
    Question,
    QuestionSet,
    QuestionType,
    ValueKind,
    value_kind,
)

if TYPE_CHECKING:
    from chartquest.config import ChartQuestConfig

logger = logging.getLogger(__name__)

SERVICE_TYPES = ["ClusterIP", "NodePort", "LoadBalancer"]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")


@dataclass(frozen=True)
class QuestionRule:
    """Emit one question when ``path`` exists in the configuration tree."""

    path: str
    label: str | None = None
    """Display label. Derived from the last path segment when None."""
    description: str | None = None
    type: QuestionType | str | None = None
    """Question type. Inferred from the tree value when None."""
    group: str = "Settings"
    options: tuple[str, ...] = ()
    default: Any = None
    """Explicit default. Inferred rules fall back to the tree value."""
    show_if: str | None = None

    @property
    def keys(self) -> list[str]:
        return self.path.split(".")


MANDATORY_QUESTIONS: tuple[Question, ...] = (
    Question(
        variable="name",
        label="Application Name",
        description="Name for the application",
        type=QuestionType.STRING,
        required=True,
        group="General",
    ),
    Question(
        variable="namespace",
        label="Namespace",
        description="Kubernetes namespace for the application",
        type=QuestionType.STRING,
        required=True,
        group="General",
    ),
)

DEFAULT_RULES: tuple[QuestionRule, ...] = (
    QuestionRule(
        path="service.type",
        label="Service Type",
        description="Kubernetes service type",
        type=QuestionType.ENUM,
        group="Networking",
        options=tuple(SERVICE_TYPES),
        default="ClusterIP",
    ),
    QuestionRule(
        path="persistence.storageClass",
        label="Storage Class",
        description="Storage class for persistent volumes",
        type=QuestionType.STRING,
        group="Storage",
    ),
    QuestionRule(
        path="replicaCount",
        description="Number of pod replicas",
        group="Workload",
    ),
    QuestionRule(
        path="image.repository",
        label="Image Repository",
        description="Container image repository",
        group="Workload",
    ),
    QuestionRule(
        path="image.tag",
        label="Image Tag",
        description="Container image tag",
        group="Workload",
    ),
    QuestionRule(
        path="persistence.enabled",
        label="Enable Persistence",
        description="Store data on a persistent volume",
        group="Storage",
    ),
    QuestionRule(
        path="persistence.size",
        label="Volume Size",
        description="Size of the persistent volume",
        group="Storage",
        show_if="persistence.enabled=true",
    ),
    QuestionRule(
        path="ingress.enabled",
        label="Enable Ingress",
        description="Expose the application through an Ingress",
        group="Networking",
    ),
    QuestionRule(
        path="ingress.host",
        label="Ingress Host",
        description="Hostname served by the Ingress",
        group="Networking",
        show_if="ingress.enabled=true",
    ),
    QuestionRule(
        path="autoscaling.enabled",
        label="Enable Autoscaling",
        description="Scale replicas with a HorizontalPodAutoscaler",
        group="Autoscaling",
    ),
    QuestionRule(
        path="autoscaling.minReplicas",
        description="Lower bound for the autoscaler",
        group="Autoscaling",
        show_if="autoscaling.enabled=true",
    ),
    QuestionRule(
        path="autoscaling.maxReplicas",
        description="Upper bound for the autoscaler",
        group="Autoscaling",
        show_if="autoscaling.enabled=true",
    ),
    QuestionRule(
        path="resources.requests.cpu",
        label="CPU Request",
        description="CPU reserved for each pod",
        group="Resources",
    ),
    QuestionRule(
        path="resources.requests.memory",
        label="Memory Request",
        description="Memory reserved for each pod",
        group="Resources",
    ),
    QuestionRule(
        path="resources.limits.cpu",
        label="CPU Limit",
        description="Maximum CPU for each pod",
        group="Resources",
    ),
    QuestionRule(
        path="resources.limits.memory",
        label="Memory Limit",
        description="Maximum memory for each pod",
        group="Resources",
    ),
    QuestionRule(
        path="ollama.gpu.enabled",
        label="Enable GPU",
        description="Schedule on GPU nodes",
        group="GPU",
    ),
    QuestionRule(
        path="ollama.gpu.count",
        label="GPU Count",
        description="Number of GPUs per pod",
        group="GPU",
        show_if="ollama.gpu.enabled=true",
    ),
    QuestionRule(
        path="metrics.enabled",
        label="Enable Metrics",
        description="Expose Prometheus metrics",
        group="Monitoring",
    ),
    QuestionRule(
        path="metrics.serviceMonitor.enabled",
        label="Enable ServiceMonitor",
        description="Create a Prometheus Operator ServiceMonitor",
        group="Monitoring",
        show_if="metrics.enabled=true",
    ),
)


def lookup_path(tree: Mapping[str, Any], keys: Sequence[str]) -> tuple[bool, Any]:
    """Walk ``keys`` into ``tree``.

    Every intermediate segment must resolve to a mapping. The final key only
    has to exist, whatever its value (None included), so a single-segment
    path is found whenever the top-level key exists.

    Returns (found, value).
    """
    if not keys:
        return False, None

    current: Any = tree
    for index, key in enumerate(keys):
        if not isinstance(current, Mapping) or key not in current:
            return False, None
        if index == len(keys) - 1:
            return True, current[key]
        current = current[key]
    return False, None


def has_nested_key(tree: Mapping[str, Any], *keys: str) -> bool:
    found, _ = lookup_path(tree, keys)
    return found


def infer_question_type(value: Any) -> QuestionType:
    """boolean -> boolean, numeric -> int, anything else -> string."""
    kind: ValueKind = value_kind(value)
    if kind is ValueKind.BOOLEAN:
        return QuestionType.BOOLEAN
    if kind is ValueKind.NUMBER:
        return QuestionType.INT
    return QuestionType.STRING


def derive_label(path: str) -> str:
    """Human label from the last path segment: 'minReplicas' -> 'Min Replicas'."""
    segment: str = path.split(".")[-1]
    words: list[str] = _CAMEL_BOUNDARY.sub(" ", segment).replace("_", " ").replace("-", " ").split()
    return " ".join(word[:1].upper() + word[1:] for word in words)


def build_question(rule: QuestionRule, value: Any) -> Question:
    """Build the question for a rule whose path holds ``value``."""
    question_type: str = str(rule.type) if rule.type else str(infer_question_type(value))

    default: Any = rule.default
    if default is None and rule.type is None and _is_default_candidate(value):
        default = value

    return Question(
        variable=rule.path,
        label=rule.label or derive_label(rule.path),
        description=rule.description,
        type=question_type,
        default=default,
        group=rule.group,
        options=list(rule.options),
        show_if=rule.show_if,
    )


def _is_default_candidate(value: Any) -> bool:
    kind: ValueKind = value_kind(value)
    if kind in (ValueKind.BOOLEAN, ValueKind.NUMBER):
        return True
    return kind is ValueKind.STRING and value != ""


def synthesize_defaults(
    tree: ConfigurationTree, rules: Iterable[QuestionRule] = DEFAULT_RULES
) -> QuestionSet:
    """Build the default question set for a configuration tree.

    ``name`` and ``namespace`` always come first, followed by one question
    per matching rule in rule order.
    """
    questions: list[Question] = [q.model_copy(deep=True) for q in MANDATORY_QUESTIONS]
    seen: set[str] = {q.variable for q in questions}

    for rule in rules:
        if rule.path in seen:
            continue
        found, value = lookup_path(tree, rule.keys)
        if not found:
            continue
        questions.append(build_question(rule, value))
        seen.add(rule.path)

    return QuestionSet(questions=questions)


def merge_questions(existing: QuestionSet, defaults: QuestionSet) -> QuestionSet:
    """Left-biased union keyed by ``variable``.

    Existing questions come first, unchanged and in order. Defaults whose
    variable is not already present follow in synthesis order. A repeated
    variable inside ``existing`` keeps only its first occurrence.
    """
    merged: list[Question] = []
    seen: set[str] = set()

    for question in existing.questions:
        if question.variable in seen:
            logger.warning("Dropping duplicate question '%s'", question.variable)
            continue
        merged.append(question.model_copy(deep=True))
        seen.add(question.variable)

    for question in defaults.questions:
        if question.variable not in seen:
            merged.append(question.model_copy(deep=True))
            seen.add(question.variable)

    extra: dict[str, Any] = dict(existing.model_extra or {})
    return QuestionSet(questions=merged, **extra)


def rules_from_config(config: ChartQuestConfig) -> tuple[QuestionRule, ...]:
    """Built-in rules followed by the rules declared in the config file."""
    extra: list[QuestionRule] = [
        QuestionRule(
            path=rule.path,
            label=rule.label,
            description=rule.description,
            type=rule.type,
            group=rule.group,
            options=tuple(rule.options),
            default=rule.default,
            show_if=rule.show_if,
        )
        for rule in config.rules
        if rule.path
    ]
    return DEFAULT_RULES + tuple(extra)
