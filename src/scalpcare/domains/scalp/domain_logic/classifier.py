"""Diagnosis classifier: fixed thresholds over normalized indices.

Rules are independent; several diagnoses may co-occur. The evaluation order
below is also the order of the returned list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable

from scalpcare.domains.scalp.domain_logic.models import (
    Diagnosis,
    DiagnosisId,
    NormalizedIndices,
    PoreStatus,
    Severity,
)

REDNESS_THRESHOLD = 1.5
CLOG_RATE_THRESHOLD = 0.2
MINI_RATE_THRESHOLD = 0.2
DENSITY_THRESHOLD = 110

# Every finding is reported at this severity for now.
DEFAULT_SEVERITY = Severity.MODERATE


@dataclass(frozen=True)
class DiagnosisRule:
    id: DiagnosisId
    name: str
    description: str
    matches: Callable[[NormalizedIndices, PoreStatus], bool]

    def to_diagnosis(self) -> Diagnosis:
        return Diagnosis(
            id=self.id,
            name=self.name,
            description=self.description,
            severity=DEFAULT_SEVERITY,
        )


DIAGNOSIS_RULES: tuple[DiagnosisRule, ...] = (
    DiagnosisRule(
        id=DiagnosisId.SH_SENSITIVE,
        name="敏感發炎",
        description="頭皮底色偏紅且微血管擴張。",
        matches=lambda idx, pores: idx.redness_score >= REDNESS_THRESHOLD,
    ),
    DiagnosisRule(
        id=DiagnosisId.SH_CLOGGED,
        name="油脂阻塞",
        description="毛孔被固態油脂填平，缺乏漏斗狀凹槽。",
        matches=lambda idx, pores: (
            idx.clog_rate >= CLOG_RATE_THRESHOLD or pores == PoreStatus.CLOGGED
        ),
    ),
    DiagnosisRule(
        id=DiagnosisId.HL_THINNING,
        name="毛囊萎縮徵兆",
        description="髮徑變細且密度低於健康基準。",
        matches=lambda idx, pores: (
            idx.mini_rate >= MINI_RATE_THRESHOLD or idx.density < DENSITY_THRESHOLD
        ),
    ),
)


def classify(indices: NormalizedIndices, pore_status: PoreStatus) -> list[Diagnosis]:
    """Return matching diagnoses in rule evaluation order (possibly empty)."""
    return [
        rule.to_diagnosis()
        for rule in DIAGNOSIS_RULES
        if rule.matches(indices, pore_status)
    ]
