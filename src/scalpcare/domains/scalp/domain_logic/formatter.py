"""Prompt formatter: recommendations -> text block for the report generator.

Output is byte-stable for identical input. Catalog ids that cannot be resolved
are skipped.
"""

from __future__ import annotations

import logging
from typing import Iterable

from scalpcare.domains.scalp.domain_logic.catalogs import Catalogs
from scalpcare.domains.scalp.domain_logic.models import (
    Recommendation,
    RecommendationType,
)

logger = logging.getLogger(__name__)

HEADER = "【專家核心診斷與處方內容】\n\n"


def _product_lines(rec: Recommendation, catalogs: Catalogs) -> list[str]:
    lines = [f"- 保養邏輯: {rec.content}\n", "- 推薦商品:\n"]
    for product_id in rec.catalog_ids:
        p = catalogs.product(product_id)
        if p is None:
            logger.debug("Skipping unknown product id %s", product_id)
            continue
        lines.append(f"  * **{p.name}**: {p.efficacy} (用法：{p.usage})\n")
    lines.append("\n")
    return lines


def _treatment_lines(rec: Recommendation, catalogs: Catalogs) -> list[str]:
    lines = [f"- 護理策略: {rec.content}\n", "- 建議課程:\n"]
    for course_id in rec.catalog_ids:
        c = catalogs.course(course_id)
        if c is None:
            logger.debug("Skipping unknown course id %s", course_id)
            continue
        lines.append(f"  * **{c.name}**: {c.description} (時長：{c.duration})\n")
    lines.append("\n")
    return lines


def format_recommendations(
    recommendations: Iterable[Recommendation],
    catalogs: Catalogs,
) -> str:
    parts = [HEADER]
    for rec in recommendations:
        parts.append(f"### {rec.title}\n")
        if rec.type == RecommendationType.LIFESTYLE:
            parts.append(f"- 改善策略: {rec.content}\n\n")
        elif rec.type == RecommendationType.PRODUCT:
            parts.extend(_product_lines(rec, catalogs))
        elif rec.type == RecommendationType.TREATMENT:
            parts.extend(_treatment_lines(rec, catalogs))
    return "".join(parts)
