"""Report prompt template and MCP prompts for consultant journeys."""

from __future__ import annotations

from fastmcp import FastMCP

from scalpcare.domains.scalp.domain_logic.models import AssessmentInput

DEFAULT_CLINIC_NAME = "頭皮管理中心"
NO_NOTES = "無特殊備註"

REPORT_TEMPLATE = """
你現在是一位「{clinic_name}」的首席頭皮管理顧問，具備豐富的臨床觀察與護理規劃經驗。
請根據下方提供的【專家系統核心數據】與顧客資料，產出一份「深度定制化」的專業報告。

### 【報告必備四大版塊】
1. **[專業診斷]**：結合觀察到的特徵（如：微血管擴張、角質栓阻塞程度），用專業且易懂的語言分析成因。
2. **[居家保養處方]**：針對問題推薦具體的產品（需包含產品名稱、功效、及顧問級的使用小撇步）。
3. **[日常習慣建議]**：列出 3-5 點生活中必須改善的細節（水溫、飲食、睡眠、洗頭手法）。
4. **[門市課程規劃]**：推薦最合適的專業課程，說明該課程如何從根本解決目前的問題。

### 【顧客資料】
- 姓名：{name} / 年齡層：{age_range}
- 顧問現場觀察：{consultant_notes}

### 【專家系統參考數據】
{kb_result}
"""


def build_report_prompt(
    assessment: AssessmentInput,
    kb_text: str,
    clinic_name: str = "",
) -> str:
    """Fill the report template with customer context and the engine's text block."""
    return REPORT_TEMPLATE.format(
        clinic_name=clinic_name or DEFAULT_CLINIC_NAME,
        name=assessment.basic.name,
        age_range=assessment.basic.age_range,
        consultant_notes=assessment.consultant_notes or NO_NOTES,
        kb_result=kb_text,
    )


def register_scalp_prompts(mcp: FastMCP) -> None:
    """Register scalp-consultation MCP prompts."""

    @mcp.prompt()
    def scalp_assessment_prompt(customer_name: str = "顧客") -> str:
        """Prompt template guiding a consultant through a scalp assessment."""
        return f"""請協助我為 {customer_name} 完成一次頭皮檢測：

1. 確認頭皮底色（正常 / 偏紅）與毛孔狀態（清晰 / 有附著物）
2. 若有檢測儀數據，填入髮量密度、髮徑、油脂比例、毛囊健康度與頭皮屑等級
3. 執行專家系統分析，列出診斷與三類處方
4. 產生完整的顧客報告並存入顧客紀錄"""
