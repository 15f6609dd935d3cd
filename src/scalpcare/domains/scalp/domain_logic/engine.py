"""Scalp knowledge engine: normalize, classify, compose, format.

This is the main entry point for the deterministic part of a report request:

    assessment -> NormalizedIndices -> diagnoses -> RecommendationSet -> text

No I/O and no shared mutable state; one engine can serve concurrent requests.
"""

from __future__ import annotations

import logging

from scalpcare.domains.scalp.domain_logic.catalogs import Catalogs, default_catalogs
from scalpcare.domains.scalp.domain_logic.classifier import classify
from scalpcare.domains.scalp.domain_logic.composer import RecommendationComposer
from scalpcare.domains.scalp.domain_logic.formatter import format_recommendations
from scalpcare.domains.scalp.domain_logic.models import AnalysisResult, AssessmentInput
from scalpcare.domains.scalp.domain_logic.normalizer import normalize

logger = logging.getLogger(__name__)


class ScalpAnalysisEngine:
    """Expert-rule engine over a fixed set of catalogs."""

    def __init__(self, catalogs: Catalogs | None = None) -> None:
        self.catalogs = catalogs if catalogs is not None else default_catalogs()
        self.composer = RecommendationComposer(self.catalogs)

    def run_analysis(self, assessment: AssessmentInput) -> AnalysisResult:
        observation = assessment.observation
        indices = normalize(assessment.machine_metrics, observation.color)
        diagnoses = classify(indices, observation.pore_status)
        recommendations = self.composer.compose(diagnoses)

        logger.debug(
            "Scalp analysis: metrics=%s, diagnoses=%s",
            "machine" if assessment.machine_metrics else "baseline",
            [d.id.value for d in diagnoses],
        )
        return AnalysisResult(
            diagnoses=tuple(diagnoses),
            recommendations=recommendations,
            normalized=indices,
        )

    def format_for_generation(self, result: AnalysisResult) -> str:
        return format_recommendations(result.recommendations, self.catalogs)


def run_analysis(assessment: AssessmentInput) -> AnalysisResult:
    """Run the engine with the bundled catalogs."""
    return ScalpAnalysisEngine().run_analysis(assessment)


def format_for_generation(result: AnalysisResult) -> str:
    """Format a result with the bundled catalogs."""
    return ScalpAnalysisEngine().format_for_generation(result)
