"""Scalp assessment records and knowledge-engine result types.

Input records mirror the JSON the clinic front-end produces (camelCase keys).
Engine outputs are frozen so a computed analysis can be shared freely between
concurrent requests.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator


def _section(data: dict[str, Any], key: str) -> dict[str, Any] | None:
    """Return the nested object at ``key``, rejecting non-object values."""
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a JSON object")
    return value


def _number(data: dict[str, Any], key: str) -> float:
    value = data[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"machineMetrics.{key} must be a number, got {value!r}")
    return value


# ---------------------------------------------------------------------------
# Enumerations (values are the clinic's wire values)
# ---------------------------------------------------------------------------

class ScalpColor(str, Enum):
    NORMAL = "正常"
    REDDISH = "偏紅"


class PoreStatus(str, Enum):
    CLEAR = "清晰"
    CLOGGED = "有附著物"


class OilLevel(str, Enum):
    LOW = "低"
    MEDIUM = "中"
    HIGH = "高"


class Severity(str, Enum):
    MILD = "輕度"
    MODERATE = "中度"
    SEVERE = "重度"


class RecommendationType(str, Enum):
    PRODUCT = "PRODUCT"
    LIFESTYLE = "LIFESTYLE"
    TREATMENT = "TREATMENT"


class DiagnosisId(str, Enum):
    SH_SENSITIVE = "SH_SENSITIVE"
    SH_CLOGGED = "SH_CLOGGED"
    HL_THINNING = "HL_THINNING"


# ---------------------------------------------------------------------------
# Assessment input
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CustomerBasicInfo:
    """Identity fields. Not read by the knowledge engine."""

    name: str
    phone: str
    age_range: str = ""
    gender: str = ""
    has_chemical_history: str = "無"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CustomerBasicInfo:
        return cls(
            name=data.get("name", ""),
            phone=data.get("phone", ""),
            age_range=data.get("ageRange", ""),
            gender=data.get("gender", ""),
            has_chemical_history=data.get("hasChemicalHistory", "無"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "ageRange": self.age_range,
            "gender": self.gender,
            "hasChemicalHistory": self.has_chemical_history,
        }


@dataclass(frozen=True)
class LifestyleInfo:
    """Self-reported habits collected at intake."""

    wash_frequency: str = ""
    oil_onset_time: str = ""
    itchiness: str = "無"
    dandruff: str = "無"
    hair_loss_perception: str = "正常"
    stress_level: str = "低"

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> LifestyleInfo:
        data = data or {}
        return cls(
            wash_frequency=data.get("washFrequency", ""),
            oil_onset_time=data.get("oilOnsetTime", ""),
            itchiness=data.get("itchiness", "無"),
            dandruff=data.get("dandruff", "無"),
            hair_loss_perception=data.get("hairLossPerception", "正常"),
            stress_level=data.get("stressLevel", "低"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "washFrequency": self.wash_frequency,
            "oilOnsetTime": self.oil_onset_time,
            "itchiness": self.itchiness,
            "dandruff": self.dandruff,
            "hairLossPerception": self.hair_loss_perception,
            "stressLevel": self.stress_level,
        }


@dataclass(frozen=True)
class ScalpImages:
    """Encoded image blobs (data URLs or storage URLs) from the capture flow."""

    white_light: str | None = None
    polarized_light: str | None = None
    custom: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> ScalpImages:
        data = data or {}
        return cls(
            white_light=data.get("whiteLight"),
            polarized_light=data.get("polarizedLight"),
            custom=data.get("custom"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "whiteLight": self.white_light,
            "polarizedLight": self.polarized_light,
            "custom": self.custom,
        }

    def first_available(self) -> str | None:
        """Return the first captured image, preferring white light."""
        return self.white_light or self.polarized_light or self.custom


@dataclass(frozen=True)
class ScalpObservation:
    """Consultant's manual observation of the scalp."""

    color: ScalpColor = ScalpColor.NORMAL
    pore_status: PoreStatus = PoreStatus.CLEAR
    oil_level: OilLevel = OilLevel.MEDIUM
    location: str = ""
    images: ScalpImages = field(default_factory=ScalpImages)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScalpObservation:
        return cls(
            color=ScalpColor(data.get("color", ScalpColor.NORMAL.value)),
            pore_status=PoreStatus(data.get("poreStatus", PoreStatus.CLEAR.value)),
            oil_level=OilLevel(data.get("oilLevel", OilLevel.MEDIUM.value)),
            location=data.get("location", ""),
            images=ScalpImages.from_dict(_section(data, "images")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "location": self.location,
            "color": self.color.value,
            "oilLevel": self.oil_level.value,
            "poreStatus": self.pore_status.value,
            "images": self.images.to_dict(),
        }


@dataclass(frozen=True)
class MachineMetrics:
    """Output contract of the image-metric producer."""

    hair_density: float        # count-like, clinically ~60-180
    hair_diameter: float       # ~50-110, proxy for miniaturization
    sebum_percentage: float    # 0-100
    follicle_health: float     # 0-100
    dandruff_level: float      # 1-5

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MachineMetrics:
        return cls(
            hair_density=_number(data, "hairDensity"),
            hair_diameter=_number(data, "hairDiameter"),
            sebum_percentage=_number(data, "sebumPercentage"),
            follicle_health=_number(data, "follicleHealth"),
            dandruff_level=_number(data, "dandruffLevel"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "hairDensity": self.hair_density,
            "hairDiameter": self.hair_diameter,
            "sebumPercentage": self.sebum_percentage,
            "dandruffLevel": self.dandruff_level,
            "follicleHealth": self.follicle_health,
        }


# Substituted when no machine metrics exist. Must classify as "no findings".
BASELINE_METRICS = MachineMetrics(
    hair_density=120,
    hair_diameter=80,
    sebum_percentage=10,
    follicle_health=80,
    dandruff_level=1,
)


@dataclass(frozen=True)
class AssessmentInput:
    """One assessment session as produced by the capture flow."""

    basic: CustomerBasicInfo
    observation: ScalpObservation
    lifestyle: LifestyleInfo = field(default_factory=LifestyleInfo)
    observation_after: ScalpObservation | None = None
    machine_metrics: MachineMetrics | None = None
    consultant_notes: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AssessmentInput:
        """Build from the clinic's JSON shape.

        Raises:
            ValueError: If an enumerated field holds an unknown value, a
                nested section is not an object, or a metric is not numeric.
            KeyError: If machine metrics are present but incomplete.
        """
        after = _section(data, "observationAfter")
        metrics = _section(data, "machineMetrics")
        return cls(
            basic=CustomerBasicInfo.from_dict(_section(data, "basic") or {}),
            observation=ScalpObservation.from_dict(_section(data, "observation") or {}),
            lifestyle=LifestyleInfo.from_dict(_section(data, "lifestyle")),
            observation_after=ScalpObservation.from_dict(after) if after else None,
            machine_metrics=MachineMetrics.from_dict(metrics) if metrics else None,
            consultant_notes=data.get("consultantNotes"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "basic": self.basic.to_dict(),
            "lifestyle": self.lifestyle.to_dict(),
            "observation": self.observation.to_dict(),
        }
        if self.observation_after is not None:
            out["observationAfter"] = self.observation_after.to_dict()
        if self.machine_metrics is not None:
            out["machineMetrics"] = self.machine_metrics.to_dict()
        if self.consultant_notes is not None:
            out["consultantNotes"] = self.consultant_notes
        return out


# ---------------------------------------------------------------------------
# Engine outputs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NormalizedIndices:
    """Clinical indices derived from machine metrics and the observation."""

    density: float
    mini_rate: float       # follicle miniaturization, higher is worse
    clog_rate: float       # sebum fraction
    redness_score: float   # 2.5 (reddish) or 1.0

    def to_dict(self) -> dict[str, float]:
        return {
            "density": self.density,
            "miniRate": self.mini_rate,
            "clogRate": self.clog_rate,
            "rednessScore": self.redness_score,
        }


@dataclass(frozen=True)
class Diagnosis:
    id: DiagnosisId
    name: str
    description: str
    severity: Severity = Severity.MODERATE

    def to_dict(self) -> dict[str, str]:
        return {
            "id": self.id.value,
            "name": self.name,
            "description": self.description,
            "severity": self.severity.value,
        }


@dataclass(frozen=True)
class Recommendation:
    type: RecommendationType
    title: str
    content: str
    catalog_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type.value,
            "title": self.title,
            "content": self.content,
        }
        if self.catalog_ids:
            out["productIds"] = list(self.catalog_ids)
        return out


@dataclass(frozen=True)
class RecommendationSet:
    """Exactly one recommendation per category."""

    product: Recommendation
    lifestyle: Recommendation
    treatment: Recommendation

    def __iter__(self) -> Iterator[Recommendation]:
        return iter((self.product, self.lifestyle, self.treatment))

    def to_list(self) -> list[dict[str, Any]]:
        return [r.to_dict() for r in self]


@dataclass(frozen=True)
class AnalysisResult:
    """Output of one knowledge-engine run."""

    diagnoses: tuple[Diagnosis, ...]
    recommendations: RecommendationSet
    normalized: NormalizedIndices

    @property
    def diagnosis_ids(self) -> list[str]:
        return [d.id.value for d in self.diagnoses]

    def to_dict(self) -> dict[str, Any]:
        return {
            "diagnoses": [d.to_dict() for d in self.diagnoses],
            "recommendations": self.recommendations.to_list(),
            "normalizedData": self.normalized.to_dict(),
        }
