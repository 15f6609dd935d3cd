"""Scalp consultation MCP server: application factory.

This module provides:
- create_app() for testability (integration tests create fresh server instances)
- Module-level `mcp` variable for FastMCP discovery
"""

from __future__ import annotations

import logging
import sqlite3

from fastmcp import FastMCP

from scalpcare.core.audit.logger import AuditLogger
from scalpcare.core.config.settings import get_settings
from scalpcare.core.llm.client import ReportGenerator
from scalpcare.core.llm.provider import LLMProvider, create_provider
from scalpcare.core.storage.database import ClinicDatabase
from scalpcare.core.storage.encryption import EncryptionError, FieldEncryptor
from scalpcare.core.storage.repository import CustomerRepository
from scalpcare.domains.scalp.connectors import MetricProducer
from scalpcare.domains.scalp.domain_logic.catalogs import Catalogs, default_catalogs
from scalpcare.domains.scalp.domain_logic.engine import ScalpAnalysisEngine
from scalpcare.domains.scalp.prompts.report_prompt import register_scalp_prompts
from scalpcare.domains.scalp.resources.catalogs import register_catalog_resources
from scalpcare.domains.scalp.tools.scalp_report_tools import register_scalp_report_tools

logger = logging.getLogger(__name__)

SERVER_NAME = "Scalp Care Consultation"
SERVER_VERSION = "0.1.0"


def _build_provider(settings) -> LLMProvider:
    if settings.llm_provider == "mock":
        provider_name, api_key, model = "mock", "", ""
    elif settings.llm_provider == "anthropic":
        api_key = settings.anthropic_api_key
        model = settings.anthropic_model
        provider_name = "anthropic" if api_key else "mock"
    elif settings.llm_provider == "openai":
        api_key = settings.openai_api_key
        model = settings.openai_model
        provider_name = "openai" if api_key else "mock"
    else:  # pragma: no cover
        raise ValueError(f"Unknown LLM provider: {settings.llm_provider!r}")

    if provider_name == "mock" and settings.llm_provider != "mock":
        logger.warning(
            "No API key configured for provider '%s'; falling back to mock provider",
            settings.llm_provider,
        )
    return create_provider(provider_name=provider_name, api_key=api_key, model=model)


def create_app(
    *,
    provider_override: LLMProvider | None = None,
    repository_override: CustomerRepository | None = None,
    metric_producer_override: MetricProducer | None = None,
    catalogs_override: Catalogs | None = None,
    audit_logger_override: AuditLogger | None = None,
) -> FastMCP:
    """Create and configure the scalp consultation MCP server.

    This is the main application factory. It:
    1. Creates the FastMCP server instance
    2. Loads the catalogs and builds the analysis engine
    3. Creates the report generator
    4. Opens the clinic database (audit trail, and customer records when
       an encryption key is configured)
    5. Registers all tools, resources, and prompts
    """
    settings = get_settings()

    server = FastMCP(
        SERVER_NAME,
        instructions=(
            "Scalp assessment server for hair-care clinics. Runs expert rules "
            "over a consultant's observation and machine metrics, recommends "
            "home-care products, lifestyle changes and in-store courses, and "
            "writes a customer-facing consultation report."
        ),
    )

    # --- Knowledge engine ---
    catalogs = catalogs_override if catalogs_override is not None else default_catalogs()
    engine = ScalpAnalysisEngine(catalogs)

    # --- Report generator ---
    provider = provider_override if provider_override is not None else _build_provider(settings)
    generator = ReportGenerator(
        provider,
        timeout_s=settings.generation_timeout_s,
        max_tokens=settings.generation_max_tokens,
        temperature=settings.generation_temperature,
        clinic_name=settings.clinic_name,
    )

    # --- Clinic database: audit trail always, customer records with a key ---
    database: ClinicDatabase | None = None
    if repository_override is None or audit_logger_override is None:
        try:
            database = ClinicDatabase(settings.db_path)
            database.initialize()
            logger.info(
                "Clinic database ready: %s (schema v%d)",
                settings.db_path,
                database.get_schema_version(),
            )
        except (sqlite3.Error, OSError) as exc:
            logger.error("Failed to open clinic database %s: %s", settings.db_path, exc)
            database = None

    audit_logger = audit_logger_override
    if audit_logger is None and database is not None:
        audit_logger = AuditLogger(database)

    repository: CustomerRepository | None = None
    if repository_override is not None:
        repository = repository_override
    elif settings.encryption_key and database is not None:
        try:
            repository = CustomerRepository(database, FieldEncryptor(settings.encryption_key))
            logger.info("Customer records enabled")
        except EncryptionError as exc:
            logger.error("Failed to initialize customer storage: %s", exc)
            logger.warning("Continuing without persistence, reports will not be stored")
    else:
        logger.info(
            "No ENCRYPTION_KEY configured, running without customer persistence. "
            "Set ENCRYPTION_KEY to store customer records."
        )

    # --- Register tools ---
    @server.tool
    async def health_check() -> dict:
        """Check server health and return basic status information."""
        status = {
            "status": "ok",
            "server": SERVER_NAME,
            "version": SERVER_VERSION,
            "catalog_version": catalogs.version,
            "llm_provider": generator.provider_name,
            "metric_producer": (
                metric_producer_override.source if metric_producer_override else None
            ),
            "storage_enabled": repository is not None,
            "audit_enabled": audit_logger is not None,
        }
        if repository is not None:
            status["customers_stored"] = repository.count_customers()
            status["reports_stored"] = repository.count_reports()
        return status

    register_scalp_report_tools(
        server,
        engine,
        generator,
        metric_producer=metric_producer_override,
        repository=repository,
        audit_logger=audit_logger,
        clinic_name=settings.clinic_name,
    )
    logger.info("Scalp report tools registered")

    # --- Customer record tools (requires storage) ---
    if repository is not None:
        from scalpcare.domains.scalp.tools.customer_tools import register_customer_tools

        register_customer_tools(server, repository, audit_logger)
        logger.info("Customer record tools registered")

    # --- Resources and prompts ---
    register_catalog_resources(server, catalogs)
    register_scalp_prompts(server)

    return server


# Module-level instance for FastMCP discovery.
# Lazy: only created when this attribute is accessed (not when tests import create_app).
def __getattr__(name: str):
    if name == "mcp":
        global mcp  # noqa: PLW0603
        mcp = create_app()
        return mcp
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
