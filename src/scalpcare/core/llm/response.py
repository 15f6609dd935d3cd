"""Parsing and sanitization of report-generator output.

The generator is asked for a JSON object with ``reportText`` and an
``analysis`` panel of self-reported scores. Nothing it returns is trusted:
scores are coerced and clamped, missing text fields get fixed defaults.
"""

from __future__ import annotations

import json
import logging
import math
import re
from typing import Any

logger = logging.getLogger(__name__)

PANEL_KEYS = ("color", "pores", "density", "diameter", "sebum")

DEFAULT_SCORE = 70
DEFAULT_STATUS = "狀態良好"
DEFAULT_SUGGESTION = "建議保持清潔"
DEFAULT_ESTIMATED_AGE = 30
FALLBACK_REPORT_TEXT = "報告生成異常，請重新嘗試。"

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL | re.IGNORECASE)


class ResponseParseError(ValueError):
    """Raised when generator output is not a JSON object."""


def _to_number(value: Any) -> float:
    """Coerce like a lenient form field: non-numeric, NaN and zero become 0."""
    if isinstance(value, bool):
        return float(value)
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _score(value: Any) -> float:
    number = _to_number(value) or DEFAULT_SCORE
    return min(max(number, 0), 100)


def _text(value: Any, default: str) -> str:
    return str(value) if value else default


def parse_generation_payload(content: str) -> dict[str, Any]:
    """Decode the generator's JSON object, tolerating a Markdown code fence.

    Raises:
        ResponseParseError: If the content is not a JSON object.
    """
    text = content.strip()
    fenced = _FENCE_RE.match(text)
    if fenced:
        text = fenced.group(1)
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ResponseParseError(f"Generator output is not valid JSON: {exc}") from exc
    if not isinstance(payload, dict):
        raise ResponseParseError("Generator output is not a JSON object")
    return payload


def sanitize_analysis_panel(raw: Any) -> dict[str, Any]:
    """Normalize the self-reported panel into a fixed, bounded shape."""
    raw = raw if isinstance(raw, dict) else {}
    panel: dict[str, Any] = {}
    for key in PANEL_KEYS:
        item = raw.get(key)
        item = item if isinstance(item, dict) else {}
        panel[key] = {
            "score": _score(item.get("score")),
            "status": _text(item.get("status"), DEFAULT_STATUS),
            "suggestion": _text(item.get("suggestion"), DEFAULT_SUGGESTION),
        }
    panel["estimatedAge"] = _to_number(raw.get("estimatedAge")) or DEFAULT_ESTIMATED_AGE
    return panel


def extract_report_text(payload: dict[str, Any]) -> str:
    text = payload.get("reportText")
    if not text or not isinstance(text, str):
        logger.warning("Generator returned no reportText; using fallback text")
        return FALLBACK_REPORT_TEXT
    return text
