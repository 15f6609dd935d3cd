"""Recommendation composer: active diagnoses -> one bundle per category.

Each category keeps its own tie-break policy:

* home-care products: first match in SENSITIVE > THINNING > CLOGGED
* lifestyle tips:     first match in SENSITIVE > CLOGGED > THINNING
* treatment course:   overwrite chain CLOGGED -> THINNING -> SENSITIVE,
                      the last matching step wins

The treatment chain is deliberately not harmonized with the other two.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from scalpcare.domains.scalp.domain_logic.catalogs import (
    LIFESTYLE_GENERAL,
    LIFESTYLE_OILY,
    LIFESTYLE_SENSITIVE,
    LIFESTYLE_THINNING,
    Catalogs,
)
from scalpcare.domains.scalp.domain_logic.models import (
    Diagnosis,
    DiagnosisId,
    Recommendation,
    RecommendationSet,
    RecommendationType,
)

logger = logging.getLogger(__name__)

PRODUCT_TITLE = "【居家保養處方】"
LIFESTYLE_TITLE = "【日常改善指引】"
TREATMENT_TITLE = "【專業護理規劃】"
TREATMENT_CONTENT = "建議回店進行高階護理，加速改善進度。"


@dataclass(frozen=True)
class ProductBundle:
    product_ids: tuple[str, ...]
    rationale: str


PRODUCT_PRIORITY: tuple[tuple[DiagnosisId, ProductBundle], ...] = (
    (
        DiagnosisId.SH_SENSITIVE,
        ProductBundle(
            ("V_CALM_SHAMPOO", "V_CALM_ESSENCE"),
            "首要任務為修復受損屏障，降低頭皮發炎與過敏反應。",
        ),
    ),
    (
        DiagnosisId.HL_THINNING,
        ProductBundle(
            ("V_REVITALIZE_SHAMPOO", "V_REVITALIZE_ESSENCE"),
            "需要注入生長因子並活絡微循環，逆轉毛囊萎縮。",
        ),
    ),
    (
        DiagnosisId.SH_CLOGGED,
        ProductBundle(
            ("V_PURIFY_DEW", "V_AIRY_SHAMPOO"),
            "建議進行週期性深層清潔，移除毛孔栓塞，預防毛囊炎。",
        ),
    ),
)
DEFAULT_PRODUCT_BUNDLE = ProductBundle(
    ("V_AIRY_SHAMPOO", "V_GOLD_COND"),
    "目前狀況良好，建議維持基礎清潔與適度滋養。",
)

LIFESTYLE_PRIORITY: tuple[tuple[DiagnosisId, str], ...] = (
    (DiagnosisId.SH_SENSITIVE, LIFESTYLE_SENSITIVE),
    (DiagnosisId.SH_CLOGGED, LIFESTYLE_OILY),
    (DiagnosisId.HL_THINNING, LIFESTYLE_THINNING),
)

# Checked in this order; each match replaces the previous choice.
TREATMENT_OVERWRITE_CHAIN: tuple[tuple[DiagnosisId, str], ...] = (
    (DiagnosisId.SH_CLOGGED, "COURSE_O2_PURIFY"),
    (DiagnosisId.HL_THINNING, "COURSE_LASER_GROW"),
    (DiagnosisId.SH_SENSITIVE, "COURSE_CALM_SPA"),
)
DEFAULT_COURSE = "COURSE_DETOX_SCALP"


class RecommendationComposer:
    """Maps a diagnosis set to product, lifestyle and treatment advice."""

    def __init__(self, catalogs: Catalogs) -> None:
        self.catalogs = catalogs

    def compose(self, diagnoses: Iterable[Diagnosis]) -> RecommendationSet:
        active = {d.id for d in diagnoses}
        return RecommendationSet(
            product=self._product(active),
            lifestyle=self._lifestyle(active),
            treatment=self._treatment(active),
        )

    def _product(self, active: set[DiagnosisId]) -> Recommendation:
        bundle = next(
            (b for diag_id, b in PRODUCT_PRIORITY if diag_id in active),
            DEFAULT_PRODUCT_BUNDLE,
        )
        return Recommendation(
            type=RecommendationType.PRODUCT,
            title=PRODUCT_TITLE,
            content=bundle.rationale,
            catalog_ids=bundle.product_ids,
        )

    def _lifestyle(self, active: set[DiagnosisId]) -> Recommendation:
        category = next(
            (key for diag_id, key in LIFESTYLE_PRIORITY if diag_id in active),
            LIFESTYLE_GENERAL,
        )
        tips = self.catalogs.tips(category)
        if not tips:
            logger.debug("Lifestyle category %s has no tips in catalog", category)
        return Recommendation(
            type=RecommendationType.LIFESTYLE,
            title=LIFESTYLE_TITLE,
            content="\n".join(tips),
        )

    def _treatment(self, active: set[DiagnosisId]) -> Recommendation:
        courses: list[str] = []
        for diag_id, course_id in TREATMENT_OVERWRITE_CHAIN:
            if diag_id in active:
                courses = [course_id]
        if not courses:
            courses = [DEFAULT_COURSE]
        return Recommendation(
            type=RecommendationType.TREATMENT,
            title=TREATMENT_TITLE,
            content=TREATMENT_CONTENT,
            catalog_ids=tuple(courses),
        )
