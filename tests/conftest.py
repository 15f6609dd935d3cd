"""Shared test fixtures for the scalp consultation tests."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Callable

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")
    monkeypatch.setenv("DB_PATH", ":memory:")
    monkeypatch.setenv("CLINIC_NAME", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from scalpcare.domains.scalp.domain_logic.catalogs import (  # noqa: E402
    Catalogs,
    default_catalogs,
)
from scalpcare.domains.scalp.domain_logic.engine import ScalpAnalysisEngine  # noqa: E402
from scalpcare.domains.scalp.domain_logic.models import AssessmentInput  # noqa: E402


def make_assessment_dict(
    *,
    color: str = "正常",
    pore_status: str = "清晰",
    metrics: dict[str, Any] | None = None,
    name: str = "王小明",
    phone: str = "0912345678",
    notes: str | None = None,
) -> dict[str, Any]:
    """Assessment payload in the capture flow's camelCase shape."""
    data: dict[str, Any] = {
        "basic": {
            "name": name,
            "phone": phone,
            "ageRange": "30-39",
            "gender": "男",
            "hasChemicalHistory": "無",
        },
        "lifestyle": {
            "washFrequency": "每天",
            "oilOnsetTime": "當天晚上",
            "itchiness": "無",
            "dandruff": "無",
            "hairLossPerception": "正常",
            "stressLevel": "中",
        },
        "observation": {
            "location": "頭頂",
            "color": color,
            "oilLevel": "中",
            "poreStatus": pore_status,
            "images": {},
        },
    }
    if metrics is not None:
        data["machineMetrics"] = metrics
    if notes is not None:
        data["consultantNotes"] = notes
    return data


def make_metrics(**overrides: Any) -> dict[str, Any]:
    """Healthy machine metrics; override individual fields per test."""
    metrics = {
        "hairDensity": 120,
        "hairDiameter": 80,
        "sebumPercentage": 10,
        "follicleHealth": 80,
        "dandruffLevel": 1,
    }
    metrics.update(overrides)
    return metrics


@pytest.fixture
def catalogs() -> Catalogs:
    return default_catalogs()


@pytest.fixture
def scalp_engine(catalogs: Catalogs) -> ScalpAnalysisEngine:
    return ScalpAnalysisEngine(catalogs)


@pytest.fixture
def assessment_factory() -> Callable[..., AssessmentInput]:
    """Build an AssessmentInput from the same keywords as make_assessment_dict."""
    def _make(**kwargs: Any) -> AssessmentInput:
        return AssessmentInput.from_dict(make_assessment_dict(**kwargs))
    return _make


@pytest.fixture
def metrics_factory() -> Callable[..., dict[str, Any]]:
    return make_metrics


@pytest.fixture
def assessment_dict_factory() -> Callable[..., dict[str, Any]]:
    return make_assessment_dict


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def clinic_db():
    """Create an in-memory ClinicDatabase for testing."""
    from scalpcare.core.storage.database import ClinicDatabase

    db = ClinicDatabase(":memory:")
    db.initialize()
    yield db
    db.close()


@pytest.fixture
def field_encryptor():
    """Create a FieldEncryptor with a test key."""
    from cryptography.fernet import Fernet

    from scalpcare.core.storage.encryption import FieldEncryptor

    return FieldEncryptor(Fernet.generate_key().decode())


@pytest.fixture
def customer_repository(clinic_db, field_encryptor):
    """Create a CustomerRepository backed by in-memory SQLite."""
    from scalpcare.core.storage.repository import CustomerRepository

    return CustomerRepository(clinic_db, field_encryptor)


@pytest.fixture
def audit_logger(clinic_db):
    """Create an AuditLogger backed by in-memory SQLite."""
    from scalpcare.core.audit.logger import AuditLogger

    return AuditLogger(clinic_db)
