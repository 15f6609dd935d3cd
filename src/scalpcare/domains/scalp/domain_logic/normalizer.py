"""Metric normalization: raw machine metrics + observation -> clinical indices.

Pure and deterministic. Out-of-range inputs are passed through, never clamped.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from scalpcare.domains.scalp.domain_logic.models import (
    BASELINE_METRICS,
    MachineMetrics,
    NormalizedIndices,
    ScalpColor,
)

STANDARD_DIAMETER = 80
# Floor for "negligible miniaturization"; never report literally zero risk.
MINI_RATE_FLOOR = 0.05

REDNESS_REDDISH = 2.5
REDNESS_NORMAL = 1.0


def round_half_up(value: float, places: int = 2) -> float:
    """Round on the exact binary value, ties away from zero (0.125 -> 0.13)."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def miniaturization_rate(diameter: float) -> float:
    if diameter >= STANDARD_DIAMETER:
        return MINI_RATE_FLOOR
    return round_half_up((STANDARD_DIAMETER - diameter) / STANDARD_DIAMETER)


def redness_score(color: ScalpColor) -> float:
    return REDNESS_REDDISH if color == ScalpColor.REDDISH else REDNESS_NORMAL


def normalize(
    machine_metrics: MachineMetrics | None,
    observed_color: ScalpColor,
) -> NormalizedIndices:
    """Compute normalized indices.

    Missing metrics are replaced by the healthy baseline; this is policy,
    not an error.
    """
    raw = machine_metrics or BASELINE_METRICS
    return NormalizedIndices(
        density=raw.hair_density,
        mini_rate=miniaturization_rate(raw.hair_diameter),
        clog_rate=raw.sebum_percentage / 100,
        redness_score=redness_score(observed_color),
    )
