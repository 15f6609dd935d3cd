"""Tests for image-ratio calibration and the metric producers."""

from __future__ import annotations

import asyncio

import pytest

from scalpcare.domains.scalp.connectors import MetricProducer
from scalpcare.domains.scalp.connectors.calibration import (
    ImageRatios,
    calibrate,
    is_exposure_valid,
)
from scalpcare.domains.scalp.connectors.providers import (
    CalibratedMetricProducer,
    StaticMetricProducer,
)
from scalpcare.domains.scalp.domain_logic.models import MachineMetrics, ScalpImages


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _ratios(red=0.125, oil=0.125, density=0.25, coverage=0.5, brightness=120.0) -> ImageRatios:
    return ImageRatios(
        red_ratio=red,
        oil_ratio=oil,
        density_ratio=density,
        coverage_ratio=coverage,
        avg_brightness=brightness,
    )


class TestCalibrate:
    def test_typical_image(self):
        m = calibrate(_ratios())
        assert m.hair_density == 112
        assert m.sebum_percentage == 50
        assert m.follicle_health == 75
        assert m.hair_diameter == 85
        assert m.dandruff_level == 2

    def test_upper_clamps(self):
        m = calibrate(_ratios(red=0.25, oil=0.25, density=0.5, coverage=1.0))
        assert m.hair_density == 180
        assert m.sebum_percentage == 90
        assert m.follicle_health == 50
        assert m.hair_diameter == 110
        assert m.dandruff_level == 4

    def test_lower_clamps(self):
        m = calibrate(_ratios(red=0.5, oil=0.0, density=0.0, coverage=0.0))
        assert m.hair_density == 60
        assert m.sebum_percentage == 0
        assert m.follicle_health == 40
        assert m.hair_diameter == 60
        assert m.dandruff_level == 2


@pytest.mark.parametrize(
    "brightness, valid",
    [(10, False), (15, True), (120, True), (250, True), (251, False)],
)
def test_exposure_window(brightness, valid):
    assert is_exposure_valid(_ratios(brightness=brightness)) is valid


class TestCalibratedProducer:
    def test_sync_extractor(self):
        seen = []

        def extractor(image: str) -> ImageRatios:
            seen.append(image)
            return _ratios()

        producer = CalibratedMetricProducer(extractor)
        metrics = _run(producer.produce(ScalpImages(polarized_light="img-b", custom="img-c")))

        assert seen == ["img-b"]
        assert metrics == calibrate(_ratios())
        assert producer.source == "calibrated"

    def test_async_extractor(self):
        async def extractor(image: str) -> ImageRatios:
            return _ratios()

        producer = CalibratedMetricProducer(extractor)
        assert _run(producer.produce(ScalpImages(white_light="img-a"))) == calibrate(_ratios())

    def test_no_images(self):
        producer = CalibratedMetricProducer(lambda image: _ratios())
        assert _run(producer.produce(ScalpImages())) is None

    def test_bad_exposure(self):
        producer = CalibratedMetricProducer(lambda image: _ratios(brightness=3))
        assert _run(producer.produce(ScalpImages(white_light="dark"))) is None

    def test_extractor_failure(self):
        def extractor(image: str) -> ImageRatios:
            raise RuntimeError("decoder crashed")

        producer = CalibratedMetricProducer(extractor)
        assert _run(producer.produce(ScalpImages(white_light="broken"))) is None


def test_static_producer():
    metrics = MachineMetrics(100, 70, 30, 80, 2)
    producer = StaticMetricProducer(metrics)
    assert _run(producer.produce(ScalpImages())) is metrics
    assert producer.source == "static"


def test_producers_satisfy_protocol():
    assert isinstance(StaticMetricProducer(None), MetricProducer)
    assert isinstance(CalibratedMetricProducer(lambda image: _ratios()), MetricProducer)
