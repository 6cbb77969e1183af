"""Chart ingestion pipeline.

resolve -> load values -> load existing questions -> synthesize -> merge,
with the resolved directory removed on every exit path.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from chartquest.config import ChartQuestConfig, load_config
from chartquest.models import ChartResult, ConfigurationTree, QuestionSet, Session
from chartquest.questions import QuestionRule, merge_questions, rules_from_config, synthesize_defaults
from chartquest.sources import SourceResolver
from chartquest.values import load_configuration, load_existing_questions

if TYPE_CHECKING:
    from chartquest.sessions import SessionStore

logger = logging.getLogger(__name__)


class ChartProcessor:
    """Turn chart references into values and a merged question set."""

    def __init__(
        self,
        resolver: SourceResolver | None = None,
        rules: Iterable[QuestionRule] | None = None,
        config: ChartQuestConfig | None = None,
    ):
        self.config: ChartQuestConfig = config or (
            resolver.config if resolver is not None else load_config()
        )
        self.resolver: SourceResolver = resolver or SourceResolver(self.config)
        self.rules: tuple[QuestionRule, ...] = (
            tuple(rules) if rules is not None else rules_from_config(self.config)
        )

    def process(self, reference: str) -> ChartResult:
        """Process a chart reference.

        Errors from resolution and parsing propagate unchanged.
        """
        with self.resolver.resolve(reference) as chart_dir:
            values: ConfigurationTree = load_configuration(chart_dir)
            existing: QuestionSet | None = load_existing_questions(chart_dir)
            return self._build_result(chart_dir, values, existing)

    def _build_result(
        self,
        chart_dir: Path,
        values: ConfigurationTree,
        existing: QuestionSet | None,
    ) -> ChartResult:
        defaults: QuestionSet = synthesize_defaults(values, self.rules)

        if existing is None:
            logger.debug("No questions file in %s, using defaults", chart_dir.name)
            return ChartResult(values=values, questions=defaults)

        logger.debug(
            "Merging %d existing questions with %d defaults",
            len(existing.questions),
            len(defaults.questions),
        )
        return ChartResult(
            values=values,
            questions=merge_questions(existing, defaults),
            existing_found=True,
        )

    def open_session(self, reference: str, store: SessionStore) -> Session:
        """Process a chart and record the result as a new session."""
        result: ChartResult = self.process(reference)
        return store.create(reference, result.values, result.questions)


def process_chart(reference: str, config: ChartQuestConfig | None = None) -> ChartResult:
    """Process a chart reference with a default processor."""
    return ChartProcessor(config=config).process(reference)
