"""MCP tools for scalp analysis and consultation report generation."""

from __future__ import annotations

import dataclasses
import json
import logging
import time
from datetime import datetime
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from scalpcare.core.audit.logger import AuditLogger
    from scalpcare.core.llm.client import ReportGenerator
    from scalpcare.core.storage.repository import CustomerRepository
    from scalpcare.domains.scalp.connectors import MetricProducer
    from scalpcare.domains.scalp.domain_logic.engine import ScalpAnalysisEngine

from scalpcare.core.llm.client import GenerationError
from scalpcare.core.storage.models import CustomerProfile, ScalpReportRecord
from scalpcare.domains.scalp.domain_logic.models import AssessmentInput
from scalpcare.domains.scalp.prompts.report_prompt import build_report_prompt

logger = logging.getLogger(__name__)


def parse_assessment(assessment_json: str) -> AssessmentInput:
    """Decode an assessment payload from the capture flow.

    Raises:
        ValueError: If the payload is not valid JSON, not an object, or
            holds an unknown enumerated value, a non-object section, or
            incomplete or non-numeric metrics.
    """
    try:
        raw = json.loads(assessment_json)
    except (json.JSONDecodeError, TypeError) as exc:
        raise ValueError(f"assessment_json is not valid JSON: {exc}") from exc
    if not isinstance(raw, dict):
        raise ValueError("assessment_json must be a JSON object")
    try:
        return AssessmentInput.from_dict(raw)
    except KeyError as exc:
        raise ValueError(f"machineMetrics is missing field {exc}") from exc


def _error(message: str) -> str:
    return json.dumps({"status": "error", "message": message}, ensure_ascii=False)


def register_scalp_report_tools(
    mcp: FastMCP,
    engine: ScalpAnalysisEngine,
    generator: ReportGenerator,
    metric_producer: MetricProducer | None = None,
    repository: CustomerRepository | None = None,
    audit_logger: AuditLogger | None = None,
    clinic_name: str = "",
) -> None:
    """Register scalp analysis tools on the MCP server.

    When a repository is provided, generated reports are appended to the
    customer's encrypted history.
    """

    @mcp.tool
    async def run_scalp_analysis(ctx: Context, assessment_json: str) -> str:
        """Run the expert rules on one assessment without calling the LLM.

        Args:
            assessment_json: The assessment as produced by the capture flow
                (camelCase JSON with basic, observation, optional machineMetrics).
        """
        try:
            assessment = parse_assessment(assessment_json)
        except ValueError as exc:
            return _error(str(exc))

        result = engine.run_analysis(assessment)
        return json.dumps({"status": "ok", **result.to_dict()}, ensure_ascii=False)

    @mcp.tool
    async def format_scalp_analysis(ctx: Context, assessment_json: str) -> str:
        """Return the expert block that is handed to the report generator.

        Args:
            assessment_json: The assessment as produced by the capture flow.
        """
        try:
            assessment = parse_assessment(assessment_json)
        except ValueError as exc:
            return _error(str(exc))

        result = engine.run_analysis(assessment)
        return json.dumps(
            {"status": "ok", "text": engine.format_for_generation(result)},
            ensure_ascii=False,
        )

    @mcp.tool
    async def generate_scalp_report(
        ctx: Context,
        assessment_json: str,
        store_report: bool = True,
    ) -> str:
        """Generate a full consultation report for one assessment.

        Runs the expert rules, hands the result to the report generator, and
        (when storage is enabled) appends the report to the customer's history.

        Args:
            assessment_json: The assessment as produced by the capture flow.
            store_report: Persist the report to the customer record.
        """
        start_time = time.monotonic()
        report_id: str | None = None
        tool_input = {"assessment_json": assessment_json, "store_report": store_report}

        def _audit(**kwargs: Any) -> None:
            if audit_logger is None:
                return
            audit_logger.log_tool_call(
                "generate_scalp_report",
                tool_input,
                llm_provider=generator.provider_name,
                duration_ms=(time.monotonic() - start_time) * 1000,
                **kwargs,
            )

        try:
            assessment = parse_assessment(assessment_json)
        except ValueError as exc:
            _audit(status="failure", error_type="ValueError")
            return _error(str(exc))

        # 1. Fill machine metrics from the captured images when missing
        metrics_source = "input" if assessment.machine_metrics else "baseline"
        if assessment.machine_metrics is None and metric_producer is not None:
            metrics = await metric_producer.produce(assessment.observation.images)
            if metrics is not None:
                assessment = dataclasses.replace(assessment, machine_metrics=metrics)
                metrics_source = metric_producer.source

        # 2. Deterministic analysis and prompt assembly
        result = engine.run_analysis(assessment)
        kb_text = engine.format_for_generation(result)
        prompt = build_report_prompt(assessment, kb_text, clinic_name)

        # 3. External generation
        disclosed = generator.provider_name != "mock"
        try:
            report = await generator.generate(prompt)
        except GenerationError as exc:
            _audit(
                llm_disclosed=disclosed,
                status="failure",
                error_type=type(exc).__name__,
                metadata={"reason": exc.reason},
            )
            return json.dumps(
                {"status": "analysis_failed", "reason": exc.reason},
                ensure_ascii=False,
            )

        # 4. Persist to the customer record (if storage enabled)
        if repository is not None and store_report:
            phone = assessment.basic.phone
            if not phone:
                logger.warning("Assessment has no phone number; report not stored")
            else:
                try:
                    if repository.find_customer_by_phone(phone) is None:
                        repository.save_customer(CustomerProfile(
                            id=phone,
                            basic=assessment.basic,
                            lifestyle=assessment.lifestyle,
                        ))
                    now = datetime.now()
                    record = ScalpReportRecord(
                        id="",
                        date=now.strftime("%Y-%m-%d"),
                        timestamp=int(now.timestamp() * 1000),
                        data=assessment,
                        report_content=report.report_text,
                        ai_analysis=report.analysis,
                        diagnosis_ids=result.diagnosis_ids,
                    )
                    report_id = repository.add_report_to_customer(phone, record)
                except Exception:
                    logger.exception("Failed to persist scalp report, continuing")

        _audit(
            llm_disclosed=disclosed,
            report_id=report_id,
            metadata={
                "metrics_source": metrics_source,
                "diagnoses": result.diagnosis_ids,
                "model": report.model,
            },
        )

        return json.dumps(
            {
                "status": "ok",
                "reportText": report.report_text,
                "aiAnalysis": report.analysis,
                **result.to_dict(),
                "reportId": report_id,
            },
            ensure_ascii=False,
        )
