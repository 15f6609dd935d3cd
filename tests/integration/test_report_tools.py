"""Integration tests for the scalp analysis, report and customer tools."""

from __future__ import annotations

import asyncio
import json

import pytest
from fastmcp import Client

from scalpcare.core.llm.providers.mock import MockProvider
from scalpcare.core.server.app import create_app
from scalpcare.domains.scalp.connectors.providers import StaticMetricProducer
from scalpcare.domains.scalp.domain_logic.models import MachineMetrics

PHONE = "0912345678"


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _call(mcp, tool: str, args: dict) -> dict:
    async def _go():
        async with Client(mcp) as client:
            result = await client.call_tool(tool, args)
            return json.loads(getattr(result, "content", result)[0].text)
    return _run(_go())


class _BrokenProvider:
    name = "broken"

    async def generate(self, system_message, user_message, max_tokens=4096, temperature=0.2):
        raise ConnectionError("upstream unavailable")


@pytest.fixture
def provider() -> MockProvider:
    return MockProvider()


@pytest.fixture
def app(provider, customer_repository, audit_logger):
    return create_app(
        provider_override=provider,
        repository_override=customer_repository,
        audit_logger_override=audit_logger,
    )


# ---------------------------------------------------------------------------
# Deterministic analysis tools
# ---------------------------------------------------------------------------

def test_run_analysis_all_findings(assessment_dict_factory, metrics_factory):
    payload = assessment_dict_factory(
        color="偏紅", metrics=metrics_factory(sebumPercentage=25, hairDiameter=60)
    )
    data = _call(create_app(), "run_scalp_analysis",
                 {"assessment_json": json.dumps(payload, ensure_ascii=False)})

    assert data["status"] == "ok"
    assert [d["id"] for d in data["diagnoses"]] == ["SH_SENSITIVE", "SH_CLOGGED", "HL_THINNING"]
    assert data["normalizedData"] == {
        "density": 120,
        "miniRate": 0.25,
        "clogRate": 0.25,
        "rednessScore": 2.5,
    }
    assert data["recommendations"][2]["productIds"] == ["COURSE_CALM_SPA"]


def test_format_analysis_matches_engine(assessment_dict_factory, assessment_factory, scalp_engine):
    payload = json.dumps(assessment_dict_factory(pore_status="有附著物"), ensure_ascii=False)
    data = _call(create_app(), "format_scalp_analysis", {"assessment_json": payload})

    expected = scalp_engine.format_for_generation(
        scalp_engine.run_analysis(assessment_factory(pore_status="有附著物"))
    )
    assert data["text"] == expected
    assert "甦活髮根頭皮淨化露" in data["text"]


@pytest.mark.parametrize(
    "raw, fragment",
    [
        ("{not json", "not valid JSON"),
        ("[1, 2]", "JSON object"),
        (json.dumps({"observation": {"color": "藍色"}}), "藍色"),
        (json.dumps({"machineMetrics": {"hairDensity": 100}}), "machineMetrics"),
        (json.dumps({"observation": "reddish"}), "observation must be a JSON object"),
        (json.dumps({"machineMetrics": [1, 2]}), "machineMetrics must be a JSON object"),
        (
            json.dumps({"machineMetrics": {
                "hairDensity": 120, "hairDiameter": 80, "sebumPercentage": "25",
                "follicleHealth": 80, "dandruffLevel": 1,
            }}),
            "sebumPercentage must be a number",
        ),
        (json.dumps({"basic": ["王小明"]}), "basic must be a JSON object"),
    ],
)
def test_bad_assessment_payloads(raw, fragment):
    data = _call(create_app(), "run_scalp_analysis", {"assessment_json": raw})
    assert data["status"] == "error"
    assert fragment in data["message"]


def test_bad_payload_is_audited_on_generation(audit_logger):
    mcp = create_app(audit_logger_override=audit_logger)
    data = _call(mcp, "generate_scalp_report",
                 {"assessment_json": json.dumps({"machineMetrics": [1, 2]})})

    assert data["status"] == "error"
    (event,) = audit_logger.get_events(tool_name="generate_scalp_report")
    assert event["status"] == "failure"
    assert event["error_type"] == "ValueError"


# ---------------------------------------------------------------------------
# Report generation
# ---------------------------------------------------------------------------

class TestGenerateReport:
    def test_generates_and_stores(self, app, provider, customer_repository, audit_logger,
                                  assessment_dict_factory, metrics_factory):
        payload = assessment_dict_factory(metrics=metrics_factory(sebumPercentage=25),
                                          notes="頭頂出油明顯")
        data = _call(app, "generate_scalp_report",
                     {"assessment_json": json.dumps(payload, ensure_ascii=False)})

        assert data["status"] == "ok"
        assert data["reportText"].startswith("[專業診斷]")
        assert data["aiAnalysis"]["estimatedAge"] == 30
        assert [d["id"] for d in data["diagnoses"]] == ["SH_CLOGGED"]

        # Prompt carried customer context and the expert block
        assert "- 姓名：王小明 / 年齡層：30-39" in provider.last_user_message
        assert "頭頂出油明顯" in provider.last_user_message
        assert "高壓氧頭皮淨化療程" in provider.last_user_message

        profile = customer_repository.find_customer_by_phone(PHONE)
        assert profile is not None
        (record,) = profile.history
        assert record.id == data["reportId"]
        assert record.diagnosis_ids == ["SH_CLOGGED"]
        assert record.report_content == data["reportText"]

        (event,) = audit_logger.get_events(tool_name="generate_scalp_report")
        assert event["status"] == "success"
        assert event["report_id"] == data["reportId"]
        assert event["llm_provider"] == "mock"
        assert event["llm_disclosed"] == 0

    def test_appends_to_existing_customer(self, app, customer_repository, assessment_dict_factory):
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        _call(app, "generate_scalp_report", {"assessment_json": payload})
        _call(app, "generate_scalp_report", {"assessment_json": payload})

        assert customer_repository.count_customers() == 1
        assert customer_repository.count_reports() == 2

    def test_store_report_false(self, app, customer_repository, assessment_dict_factory):
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        data = _call(app, "generate_scalp_report",
                     {"assessment_json": payload, "store_report": False})

        assert data["status"] == "ok"
        assert data["reportId"] is None
        assert customer_repository.count_customers() == 0

    def test_without_storage(self, assessment_dict_factory):
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        data = _call(create_app(), "generate_scalp_report", {"assessment_json": payload})
        assert data["status"] == "ok"
        assert data["reportId"] is None

    def test_generation_failure(self, customer_repository, audit_logger, assessment_dict_factory):
        mcp = create_app(
            provider_override=_BrokenProvider(),
            repository_override=customer_repository,
            audit_logger_override=audit_logger,
        )
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        data = _call(mcp, "generate_scalp_report", {"assessment_json": payload})

        assert data == {"status": "analysis_failed", "reason": "provider error"}
        assert customer_repository.count_reports() == 0
        (event,) = audit_logger.get_events()
        assert event["status"] == "failure"
        assert event["error_type"] == "GenerationError"

    def test_invalid_generator_output(self, assessment_dict_factory):
        mcp = create_app(provider_override=MockProvider(response_content="not json at all"))
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        data = _call(mcp, "generate_scalp_report", {"assessment_json": payload})
        assert data == {"status": "analysis_failed", "reason": "invalid response"}

    def test_metric_producer_fills_missing_metrics(self, audit_logger, assessment_dict_factory):
        producer = StaticMetricProducer(MachineMetrics(120, 80, 40, 80, 2))
        mcp = create_app(metric_producer_override=producer, audit_logger_override=audit_logger)
        payload = json.dumps(assessment_dict_factory(), ensure_ascii=False)
        data = _call(mcp, "generate_scalp_report", {"assessment_json": payload})

        assert [d["id"] for d in data["diagnoses"]] == ["SH_CLOGGED"]
        (event,) = audit_logger.get_events()
        assert json.loads(event["metadata_json"])["metrics_source"] == "static"

    def test_supplied_metrics_win_over_producer(self, assessment_dict_factory, metrics_factory):
        producer = StaticMetricProducer(MachineMetrics(120, 80, 40, 80, 2))
        mcp = create_app(metric_producer_override=producer)
        payload = json.dumps(assessment_dict_factory(metrics=metrics_factory()), ensure_ascii=False)
        data = _call(mcp, "generate_scalp_report", {"assessment_json": payload})
        assert data["diagnoses"] == []


# ---------------------------------------------------------------------------
# Customer record tools
# ---------------------------------------------------------------------------

class TestCustomerTools:
    def test_save_then_find(self, app, assessment_dict_factory):
        profile = {"basic": assessment_dict_factory()["basic"]}
        saved = _call(app, "save_customer",
                      {"profile_json": json.dumps(profile, ensure_ascii=False)})
        assert saved == {"status": "saved", "customer_id": PHONE, "reports": 0}

        found = _call(app, "find_customer", {"phone": PHONE})
        assert found["status"] == "found"
        assert found["customer"]["basic"]["name"] == "王小明"

    def test_find_unknown(self, app, audit_logger):
        assert _call(app, "find_customer", {"phone": "0000"})["status"] == "not_found"
        (event,) = audit_logger.get_events(action="data_access")
        assert json.loads(event["metadata_json"]) == {"found": False}

    def test_save_invalid_profile(self, app):
        data = _call(app, "save_customer", {"profile_json": json.dumps({"basic": {"name": "無電話"}},
                                                                       ensure_ascii=False)})
        assert data["status"] == "error"

    def test_list_reports(self, app, assessment_dict_factory):
        payload = json.dumps(assessment_dict_factory(color="偏紅"), ensure_ascii=False)
        _call(app, "generate_scalp_report", {"assessment_json": payload})

        data = _call(app, "list_customer_reports", {"phone": PHONE, "limit": 5})
        assert data["count"] == 1
        assert data["reports"][0]["diagnosisIds"] == ["SH_SENSITIVE"]

    def test_list_reports_rejects_bad_limit(self, app):
        assert _call(app, "list_customer_reports", {"phone": PHONE, "limit": 0})["status"] == "error"
