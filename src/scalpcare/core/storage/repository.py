"""Customer repository: CRUD for encrypted customer profiles and report history.

The repository mediates between domain objects (CustomerProfile,
ScalpReportRecord) and the SQLite database, using FieldEncryptor for every
personal field.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from scalpcare.core.storage.database import ClinicDatabase
from scalpcare.core.storage.encryption import FieldEncryptor
from scalpcare.core.storage.models import CustomerProfile, ScalpReportRecord
from scalpcare.domains.scalp.domain_logic.models import (
    AssessmentInput,
    CustomerBasicInfo,
    LifestyleInfo,
)

logger = logging.getLogger(__name__)


class RepositoryError(Exception):
    """Raised when repository operations fail."""


class CustomerRepository:
    """CRUD repository for customer profiles keyed by phone number.

    Usage::

        db = ClinicDatabase(":memory:")
        db.initialize()
        repo = CustomerRepository(db, FieldEncryptor(key="..."))

        repo.save_customer(profile)
        repo.add_report_to_customer("0912345678", report)
        profile = repo.find_customer_by_phone("0912345678")
    """

    def __init__(self, database: ClinicDatabase, encryptor: FieldEncryptor) -> None:
        self._db = database
        self._enc = encryptor

    @staticmethod
    def new_report_id() -> str:
        return str(uuid.uuid4())

    @staticmethod
    def _now_iso() -> str:
        return datetime.now(timezone.utc).isoformat()

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    def save_customer(self, profile: CustomerProfile) -> str:
        """Insert or replace a customer profile together with its history.

        Returns:
            The customer id (the phone number).

        Raises:
            RepositoryError: If the profile has neither an id nor a phone.
        """
        cid = profile.id or profile.basic.phone
        if not cid:
            raise RepositoryError("Customer profile needs a phone number")

        conn = self._db.connection
        conn.execute(
            """INSERT INTO customers (id, basic_enc, lifestyle_enc, updated_at)
               VALUES (?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                   basic_enc = excluded.basic_enc,
                   lifestyle_enc = excluded.lifestyle_enc,
                   updated_at = excluded.updated_at""",
            (
                cid,
                self._enc.encrypt(profile.basic.to_dict()),
                self._enc.encrypt(profile.lifestyle.to_dict()),
                self._now_iso(),
            ),
        )
        # Stored reports absent from the new history are dropped
        kept_ids = [r.id for r in profile.history if r.id]
        placeholders = ", ".join("?" for _ in kept_ids)
        conn.execute(
            f"DELETE FROM scalp_reports WHERE customer_id = ? AND id NOT IN ({placeholders})",
            [cid, *kept_ids],
        )
        for report in profile.history:
            self._upsert_report(cid, report)
        conn.commit()
        logger.info("Saved customer profile (%d reports)", len(profile.history))
        return cid

    def find_customer_by_phone(self, phone: str) -> CustomerProfile | None:
        """Load a customer with their full history, oldest report first.

        Returns:
            The decrypted profile, or None if no customer has this phone.
        """
        row = self._db.connection.execute(
            "SELECT * FROM customers WHERE id = ?", (phone,)
        ).fetchone()
        if row is None:
            return None

        return CustomerProfile(
            id=row["id"],
            basic=CustomerBasicInfo.from_dict(self._enc.decrypt(row["basic_enc"]) or {}),
            lifestyle=LifestyleInfo.from_dict(self._enc.decrypt(row["lifestyle_enc"])),
            history=self.get_reports(phone),
        )

    def count_customers(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM customers").fetchone()
        return row[0]

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def add_report_to_customer(self, phone: str, report: ScalpReportRecord) -> str:
        """Append a report to an existing customer's history.

        Raises:
            RepositoryError: If no customer has this phone.
        """
        if not self._customer_exists(phone):
            raise RepositoryError("Customer not found")

        report_id = report.id or self.new_report_id()
        report.id = report_id
        self._upsert_report(phone, report)
        self._touch_customer(phone)
        self._db.connection.commit()
        logger.info("Added report %s (diagnoses=%s)", report_id, report.diagnosis_ids)
        return report_id

    def update_customer_report(
        self, phone: str, report_id: str, report: ScalpReportRecord
    ) -> bool:
        """Replace a stored report in place, keeping its id.

        Returns:
            True if the report existed and was updated, False otherwise.
        """
        row = self._db.connection.execute(
            "SELECT id FROM scalp_reports WHERE id = ? AND customer_id = ?",
            (report_id, phone),
        ).fetchone()
        if row is None:
            return False

        report.id = report_id
        self._upsert_report(phone, report)
        self._touch_customer(phone)
        self._db.connection.commit()
        logger.info("Updated report %s", report_id)
        return True

    def get_reports(self, phone: str, *, limit: int | None = None) -> list[ScalpReportRecord]:
        """Return a customer's reports in timestamp order (oldest first).

        With ``limit`` only the most recent ``limit`` reports are returned,
        still oldest first.
        """
        query = "SELECT * FROM scalp_reports WHERE customer_id = ? ORDER BY timestamp DESC, rowid DESC"
        params: list[Any] = [phone]
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        rows = self._db.connection.execute(query, params).fetchall()
        return [self._row_to_report(row) for row in reversed(rows)]

    def count_reports(self) -> int:
        row = self._db.connection.execute("SELECT COUNT(*) FROM scalp_reports").fetchone()
        return row[0]

    def find_customers_with_diagnosis(self, diagnosis_id: str) -> list[str]:
        """Phones of customers with at least one report carrying ``diagnosis_id``."""
        rows = self._db.connection.execute(
            """SELECT DISTINCT customer_id FROM scalp_reports
               WHERE instr(',' || diagnosis_ids || ',', ?) > 0
               ORDER BY customer_id""",
            (f",{diagnosis_id},",),
        ).fetchall()
        return [row[0] for row in rows]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _customer_exists(self, phone: str) -> bool:
        row = self._db.connection.execute(
            "SELECT 1 FROM customers WHERE id = ?", (phone,)
        ).fetchone()
        return row is not None

    def _touch_customer(self, phone: str) -> None:
        self._db.connection.execute(
            "UPDATE customers SET updated_at = ? WHERE id = ?", (self._now_iso(), phone)
        )

    def _upsert_report(self, phone: str, report: ScalpReportRecord) -> None:
        rid = report.id or self.new_report_id()
        report.id = rid
        self._db.connection.execute(
            """INSERT INTO scalp_reports (
                id, customer_id, timestamp, report_date,
                data_enc, report_enc, ai_analysis_enc, diagnosis_ids
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET
                timestamp = excluded.timestamp,
                report_date = excluded.report_date,
                data_enc = excluded.data_enc,
                report_enc = excluded.report_enc,
                ai_analysis_enc = excluded.ai_analysis_enc,
                diagnosis_ids = excluded.diagnosis_ids""",
            (
                rid,
                phone,
                report.timestamp,
                report.date,
                self._enc.encrypt(report.data.to_dict()),
                self._enc.encrypt(report.report_content),
                self._enc.encrypt(report.ai_analysis),
                ",".join(report.diagnosis_ids),
            ),
        )

    def _row_to_report(self, row: Any) -> ScalpReportRecord:
        diagnosis_ids = row["diagnosis_ids"]
        return ScalpReportRecord(
            id=row["id"],
            date=row["report_date"],
            timestamp=row["timestamp"],
            data=AssessmentInput.from_dict(self._enc.decrypt(row["data_enc"]) or {}),
            report_content=self._enc.decrypt(row["report_enc"]) or "",
            ai_analysis=self._enc.decrypt(row["ai_analysis_enc"]),
            diagnosis_ids=diagnosis_ids.split(",") if diagnosis_ids else [],
        )
