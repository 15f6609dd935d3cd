"""Report generator client: the bridge between the knowledge engine and the LLM."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any

from scalpcare.core.llm.provider import LLMProvider, ProviderResponse
from scalpcare.core.llm.response import (
    ResponseParseError,
    extract_report_text,
    parse_generation_payload,
    sanitize_analysis_panel,
)
from scalpcare.core.llm.system_prompt import build_full_system_prompt

logger = logging.getLogger(__name__)

REASON_TIMEOUT = "timeout"
REASON_INVALID_RESPONSE = "invalid response"
REASON_PROVIDER_ERROR = "provider error"


class GenerationError(Exception):
    """The external report generation failed; callers treat it as 'analysis failed'."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"generation failed: {reason}")
        self.reason = reason


@dataclass
class GeneratedReport:
    """Narrative report plus the sanitized self-reported panel."""

    report_text: str
    analysis: dict[str, Any]
    model: str = ""
    usage: dict[str, int] = field(default_factory=dict)


class ReportGenerator:
    """Sends one prompt to the provider and validates what comes back."""

    def __init__(
        self,
        provider: LLMProvider,
        *,
        timeout_s: float = 60.0,
        max_tokens: int = 4096,
        temperature: float = 0.2,
        clinic_name: str = "",
    ) -> None:
        self.provider = provider
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.clinic_name = clinic_name

    @property
    def provider_name(self) -> str:
        return getattr(self.provider, "name", type(self.provider).__name__)

    async def generate(self, prompt_text: str) -> GeneratedReport:
        """Generate a narrative report for an assembled prompt.

        Raises:
            GenerationError: On timeout, provider failure, or unparseable output.
        """
        system_message = build_full_system_prompt(self.clinic_name)
        try:
            provider_response: ProviderResponse = await asyncio.wait_for(
                self.provider.generate(
                    system_message=system_message,
                    user_message=prompt_text,
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            logger.warning(
                "Report generation timed out after %.1fs (provider=%s)",
                self.timeout_s,
                self.provider_name,
            )
            raise GenerationError(REASON_TIMEOUT) from exc
        except Exception as exc:
            logger.exception("Report generation provider call failed")
            raise GenerationError(REASON_PROVIDER_ERROR) from exc

        logger.info(
            "Report generation: provider=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            self.provider_name,
            provider_response.model,
            provider_response.input_tokens,
            provider_response.output_tokens,
            provider_response.latency_ms,
        )

        try:
            payload = parse_generation_payload(provider_response.content)
        except ResponseParseError as exc:
            logger.warning("Discarding generator output: %s", exc)
            raise GenerationError(REASON_INVALID_RESPONSE) from exc

        return GeneratedReport(
            report_text=extract_report_text(payload),
            analysis=sanitize_analysis_panel(payload.get("analysis")),
            model=provider_response.model,
            usage={
                "input_tokens": provider_response.input_tokens,
                "output_tokens": provider_response.output_tokens,
            },
        )
