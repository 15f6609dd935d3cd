"""Concrete MetricProducer implementations."""

from __future__ import annotations

import inspect
import logging
from typing import Awaitable, Callable, Union

from scalpcare.domains.scalp.connectors.calibration import (
    ImageRatios,
    calibrate,
    is_exposure_valid,
)
from scalpcare.domains.scalp.domain_logic.models import MachineMetrics, ScalpImages

logger = logging.getLogger(__name__)

RatioExtractor = Callable[[str], Union[ImageRatios, Awaitable[ImageRatios]]]


class StaticMetricProducer:
    """Returns a fixed metric set. Used for demos and tests."""

    def __init__(self, metrics: MachineMetrics | None) -> None:
        self._metrics = metrics

    async def produce(self, images: ScalpImages) -> MachineMetrics | None:
        return self._metrics

    @property
    def source(self) -> str:
        return "static"


class CalibratedMetricProducer:
    """Runs an external ratio extractor on the first captured image and calibrates.

    The extractor receives the encoded image blob and may be sync or async.
    Any failure (no image, bad exposure, extractor error) yields None.
    """

    def __init__(self, extractor: RatioExtractor) -> None:
        self._extractor = extractor

    async def produce(self, images: ScalpImages) -> MachineMetrics | None:
        source = images.first_available()
        if not source:
            return None

        try:
            ratios = self._extractor(source)
            if inspect.isawaitable(ratios):
                ratios = await ratios
        except Exception as exc:
            logger.warning("Image analysis error: %s", exc)
            return None

        if not is_exposure_valid(ratios):
            logger.warning(
                "Image rejected by validator: exposure issue (avg brightness %.1f)",
                ratios.avg_brightness,
            )
            return None

        metrics = calibrate(ratios)
        logger.info("Calibrated image metrics: %s", metrics.to_dict())
        return metrics

    @property
    def source(self) -> str:
        return "calibrated"
