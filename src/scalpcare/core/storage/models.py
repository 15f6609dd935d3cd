"""Data models for the customer record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from scalpcare.domains.scalp.domain_logic.models import (
    AssessmentInput,
    CustomerBasicInfo,
    LifestyleInfo,
)


@dataclass
class ScalpReportRecord:
    """One generated report in a customer's history.

    The narrative text and the generator's panel are stored; the structured
    engine output is recomputed on demand and never persisted.
    """

    id: str
    date: str             # display date, e.g. '2026-10-19'
    timestamp: int        # epoch milliseconds
    data: AssessmentInput
    report_content: str
    ai_analysis: dict[str, Any] | None = None
    diagnosis_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> ScalpReportRecord:
        return cls(
            id=raw["id"],
            date=raw.get("date", ""),
            timestamp=int(raw.get("timestamp", 0)),
            data=AssessmentInput.from_dict(raw["data"]),
            report_content=raw.get("reportContent", ""),
            ai_analysis=raw.get("aiAnalysis"),
            diagnosis_ids=list(raw.get("diagnosisIds") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "date": self.date,
            "timestamp": self.timestamp,
            "data": self.data.to_dict(),
            "reportContent": self.report_content,
        }
        if self.ai_analysis is not None:
            out["aiAnalysis"] = self.ai_analysis
        if self.diagnosis_ids:
            out["diagnosisIds"] = list(self.diagnosis_ids)
        return out


@dataclass
class CustomerProfile:
    """A clinic customer keyed by phone number."""

    id: str
    basic: CustomerBasicInfo
    lifestyle: LifestyleInfo = field(default_factory=LifestyleInfo)
    history: list[ScalpReportRecord] = field(default_factory=list)

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> CustomerProfile:
        basic = CustomerBasicInfo.from_dict(raw.get("basic") or {})
        return cls(
            id=raw.get("id") or basic.phone,
            basic=basic,
            lifestyle=LifestyleInfo.from_dict(raw.get("lifestyle")),
            history=[ScalpReportRecord.from_dict(r) for r in raw.get("history") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "basic": self.basic.to_dict(),
            "lifestyle": self.lifestyle.to_dict(),
            "history": [r.to_dict() for r in self.history],
        }
