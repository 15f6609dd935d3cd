"""Audit logger for report generation and customer-record access.

Every tool invocation is written to a trail that holds no personal data:

* ``tool_input_hash`` is the SHA-256 of canonical JSON input.
* ``llm_disclosed`` records whether customer data was sent to an external LLM.
* ``report_id`` links a generation event to the stored report, if any.
"""

from __future__ import annotations

import hashlib
import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from scalpcare.core.storage.database import ClinicDatabase

logger = logging.getLogger(__name__)

ACTION_TOOL_INVOCATION = "tool_invocation"
ACTION_DATA_ACCESS = "data_access"


def _hash_input(data: Any) -> str:
    """SHA-256 of canonical JSON, or '' if the input is not serializable."""
    try:
        canonical = json.dumps(data, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(canonical.encode()).hexdigest()
    except (TypeError, ValueError):
        return ""


@dataclass
class AuditEvent:
    """A single audit log entry."""

    action: str                          # 'tool_invocation' | 'data_access'
    tool_name: str = ""
    tool_input_hash: str = ""
    llm_provider: str | None = None      # 'anthropic' | 'openai' | 'mock'
    llm_disclosed: bool = False
    report_id: str | None = None
    duration_ms: float | None = None
    status: str = "success"              # 'success' | 'failure'
    error_type: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


class AuditLogger:
    """Records audit events to the ``audit_log`` table.

    Writes are committed immediately. A failed write is logged and reported
    by an empty event id; it never breaks the tool call being audited.

    Usage::

        audit = AuditLogger(clinic_db)
        audit.log_tool_call(
            "generate_scalp_report",
            {"assessment": payload},
            llm_provider="anthropic",
            llm_disclosed=True,
        )
    """

    def __init__(self, database: ClinicDatabase) -> None:
        self._db = database

    def log_event(self, event: AuditEvent) -> str:
        """Insert an audit event and return its id ('' if the write failed)."""
        event_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc).isoformat()
        metadata_json = (
            json.dumps(event.metadata, separators=(",", ":"))
            if event.metadata
            else None
        )

        try:
            conn = self._db.connection
            conn.execute(
                """INSERT INTO audit_log
                   (id, timestamp, action, tool_name, tool_input_hash,
                    llm_provider, llm_disclosed, report_id,
                    duration_ms, status, error_type, metadata_json)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    event_id,
                    now,
                    event.action,
                    event.tool_name or None,
                    event.tool_input_hash or None,
                    event.llm_provider,
                    1 if event.llm_disclosed else 0,
                    event.report_id,
                    event.duration_ms,
                    event.status,
                    event.error_type,
                    metadata_json,
                ),
            )
            conn.commit()
        except Exception:
            logger.exception("Failed to write audit event, event lost")
            return ""

        return event_id

    def log_tool_call(
        self,
        tool_name: str,
        tool_input: Any = None,
        *,
        llm_provider: str | None = None,
        llm_disclosed: bool = False,
        report_id: str | None = None,
        duration_ms: float | None = None,
        status: str = "success",
        error_type: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> str:
        """Log a tool invocation. ``tool_input`` is hashed, never stored raw."""
        return self.log_event(AuditEvent(
            action=ACTION_TOOL_INVOCATION,
            tool_name=tool_name,
            tool_input_hash=_hash_input(tool_input) if tool_input else "",
            llm_provider=llm_provider,
            llm_disclosed=llm_disclosed,
            report_id=report_id,
            duration_ms=duration_ms,
            status=status,
            error_type=error_type,
            metadata=metadata or {},
        ))

    def log_data_access(self, tool_name: str, *, found: bool) -> str:
        """Log a customer-record lookup."""
        return self.log_event(AuditEvent(
            action=ACTION_DATA_ACCESS,
            tool_name=tool_name,
            metadata={"found": found},
        ))

    # ---------------------------------------------------------------
    # Read
    # ---------------------------------------------------------------

    def get_events(
        self,
        *,
        action: str | None = None,
        tool_name: str | None = None,
        limit: int = 50,
    ) -> list[dict[str, Any]]:
        """Query audit events, newest first."""
        conditions: list[str] = []
        params: list[Any] = []

        if action:
            conditions.append("action = ?")
            params.append(action)
        if tool_name:
            conditions.append("tool_name = ?")
            params.append(tool_name)

        where = (" WHERE " + " AND ".join(conditions)) if conditions else ""
        query = f"SELECT * FROM audit_log{where} ORDER BY timestamp DESC LIMIT ?"
        params.append(limit)

        rows = self._db.connection.execute(query, params).fetchall()
        return [dict(row) for row in rows]

    def count_events(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM audit_log").fetchone()
        return row[0]

    def count_disclosures(self) -> int:
        """Count events where customer data was sent to an external LLM."""
        row = self._db.connection.execute(
            "SELECT COUNT(*) FROM audit_log WHERE llm_disclosed = 1"
        ).fetchone()
        return row[0]
