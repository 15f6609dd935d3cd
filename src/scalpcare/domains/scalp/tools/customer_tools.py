"""MCP tools for the clinic's customer records.

Registered only when storage is enabled. Records are encrypted at rest.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

if TYPE_CHECKING:
    from scalpcare.core.audit.logger import AuditLogger
    from scalpcare.core.storage.repository import CustomerRepository

from scalpcare.core.storage.models import CustomerProfile
from scalpcare.core.storage.repository import RepositoryError

logger = logging.getLogger(__name__)


def register_customer_tools(
    mcp: FastMCP,
    repository: CustomerRepository,
    audit_logger: AuditLogger | None = None,
) -> None:
    """Register customer record tools on the MCP server."""

    @mcp.tool
    async def find_customer(ctx: Context, phone: str) -> str:
        """Look up a customer and their report history by phone number.

        Args:
            phone: The customer's phone number (their record id).
        """
        profile = repository.find_customer_by_phone(phone)
        if audit_logger is not None:
            audit_logger.log_data_access("find_customer", found=profile is not None)
        if profile is None:
            return json.dumps({"status": "not_found", "phone": phone})
        return json.dumps({"status": "found", "customer": profile.to_dict()}, ensure_ascii=False)

    @mcp.tool
    async def save_customer(ctx: Context, profile_json: str) -> str:
        """Create or replace a customer profile.

        Args:
            profile_json: JSON object with ``basic`` (name, phone, ageRange,
                gender, hasChemicalHistory), optional ``lifestyle`` and ``history``.
        """
        try:
            raw = json.loads(profile_json)
            if not isinstance(raw, dict):
                raise ValueError("profile_json must be a JSON object")
            profile = CustomerProfile.from_dict(raw)
            customer_id = repository.save_customer(profile)
        except (ValueError, KeyError, RepositoryError) as exc:
            return json.dumps({"status": "error", "message": str(exc)}, ensure_ascii=False)

        return json.dumps({
            "status": "saved",
            "customer_id": customer_id,
            "reports": len(profile.history),
        })

    @mcp.tool
    async def list_customer_reports(ctx: Context, phone: str, limit: int = 10) -> str:
        """List a customer's most recent reports, oldest first.

        Args:
            phone: The customer's phone number.
            limit: Maximum number of reports to return.
        """
        if limit < 1:
            return json.dumps({"status": "error", "message": "limit must be at least 1"})

        reports = repository.get_reports(phone, limit=limit)
        if audit_logger is not None:
            audit_logger.log_data_access("list_customer_reports", found=bool(reports))
        return json.dumps(
            {
                "status": "ok",
                "phone": phone,
                "count": len(reports),
                "reports": [
                    {
                        "id": r.id,
                        "date": r.date,
                        "timestamp": r.timestamp,
                        "diagnosisIds": r.diagnosis_ids,
                        "reportContent": r.report_content,
                        "aiAnalysis": r.ai_analysis,
                    }
                    for r in reports
                ],
            },
            ensure_ascii=False,
        )
