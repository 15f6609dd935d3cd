"""Calibration of raw image ratios into real-world scalp metrics.

The pixel pass itself (red/specular/dark/edge counting) is done by an external
extractor. This module only validates exposure and maps ratios onto the
clinical ranges the knowledge engine expects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from scalpcare.domains.scalp.domain_logic.models import MachineMetrics

# Exposure validation (lens cap on / pointed at a light source)
MIN_AVG_BRIGHTNESS = 15
MAX_AVG_BRIGHTNESS = 250

DENSITY_RANGE = (60, 180)
DIAMETER_RANGE = (50, 110)
SEBUM_MAX = 90
HEALTH_FLOOR = 40
DANDRUFF_MAX = 5


@dataclass(frozen=True)
class ImageRatios:
    """Per-image pixel ratios reported by the extractor (all in [0, 1])."""

    red_ratio: float
    oil_ratio: float
    density_ratio: float
    coverage_ratio: float
    avg_brightness: float


def _clamp(value: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, value))


def is_exposure_valid(ratios: ImageRatios) -> bool:
    return MIN_AVG_BRIGHTNESS <= ratios.avg_brightness <= MAX_AVG_BRIGHTNESS


def calibrate(ratios: ImageRatios) -> MachineMetrics:
    """Map raw ratios to MachineMetrics.

    density  = floor(density_ratio * 450), clamped to 60-180
    sebum    = floor(oil_ratio * 400), capped at 90
    health   = 100 - floor(red_ratio * 200), floored at 40
    diameter = floor(60 + coverage_ratio * 50), clamped to 50-110
    dandruff = stepped from sebum, +1 when raw health < 60, capped at 5
    """
    density = _clamp(math.floor(ratios.density_ratio * 450), *DENSITY_RANGE)
    sebum = min(math.floor(ratios.oil_ratio * 400), SEBUM_MAX)
    health = 100 - math.floor(ratios.red_ratio * 200)
    diameter = _clamp(math.floor(60 + ratios.coverage_ratio * 50), *DIAMETER_RANGE)

    dandruff = 1
    if sebum > 30:
        dandruff = 2
    if sebum > 50:
        dandruff = 3
    if health < 60:
        dandruff += 1
    dandruff = min(dandruff, DANDRUFF_MAX)

    return MachineMetrics(
        hair_density=density,
        hair_diameter=diameter,
        sebum_percentage=sebum,
        follicle_health=max(health, HEALTH_FLOOR),
        dandruff_level=dandruff,
    )
