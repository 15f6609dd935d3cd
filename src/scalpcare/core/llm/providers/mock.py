"""Mock report generator for offline use and tests."""

from __future__ import annotations

import json

from scalpcare.core.llm.provider import ProviderResponse

_DEFAULT_PAYLOAD = {
    "reportText": (
        "[專業診斷]\n頭皮狀態穩定。\n\n"
        "[居家保養處方]\n依專家系統建議使用推薦商品。\n\n"
        "[日常習慣建議]\n保持規律作息。\n\n"
        "[門市課程規劃]\n建議定期回店護理。"
    ),
    "analysis": {
        "color": {"score": 80, "status": "狀態良好", "suggestion": "建議保持清潔"},
        "pores": {"score": 78, "status": "狀態良好", "suggestion": "建議保持清潔"},
        "density": {"score": 75, "status": "狀態良好", "suggestion": "建議保持清潔"},
        "diameter": {"score": 74, "status": "狀態良好", "suggestion": "建議保持清潔"},
        "sebum": {"score": 82, "status": "狀態良好", "suggestion": "建議保持清潔"},
        "estimatedAge": 30,
    },
}


class MockProvider:
    """Returns a canned JSON report and records what it was sent."""

    name = "mock"

    def __init__(self, response_content: str | None = None) -> None:
        self.response_content = (
            response_content
            if response_content is not None
            else json.dumps(_DEFAULT_PAYLOAD, ensure_ascii=False)
        )
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.call_count: int = 0

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 4096,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.call_count += 1
        return ProviderResponse(
            content=self.response_content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(self.response_content.split()),
            model="mock",
            latency_ms=0.0,
        )
