"""Image metric connectors: abstraction over the machine-vision producer."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from scalpcare.domains.scalp.domain_logic.models import MachineMetrics, ScalpImages


@runtime_checkable
class MetricProducer(Protocol):
    """Abstract interface for turning captured images into machine metrics.

    Producers never raise for bad images: they return None and the engine
    falls back to its baseline.
    """

    async def produce(self, images: ScalpImages) -> MachineMetrics | None:
        """Metrics for the captured images, or None when none can be derived."""
        ...

    @property
    def source(self) -> str:
        """Label for the producer: 'calibrated', 'static', ..."""
        ...
