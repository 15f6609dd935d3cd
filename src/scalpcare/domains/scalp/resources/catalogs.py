"""MCP resources exposing the clinic's reference catalogs."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import FastMCP

if TYPE_CHECKING:
    from scalpcare.domains.scalp.domain_logic.catalogs import Catalogs


def register_catalog_resources(mcp: FastMCP, catalogs: Catalogs) -> None:
    """Register read-only catalog resources on the MCP server."""
    exported = catalogs.to_dict()

    @mcp.resource("catalog://scalp/products")
    def scalp_product_catalog() -> str:
        """Home-care products with efficacy and usage notes."""
        return json.dumps(
            {"version": catalogs.version, "products": exported["products"]},
            ensure_ascii=False,
            indent=2,
        )

    @mcp.resource("catalog://scalp/courses")
    def scalp_course_catalog() -> str:
        """In-store treatment courses."""
        return json.dumps(
            {"version": catalogs.version, "courses": exported["courses"]},
            ensure_ascii=False,
            indent=2,
        )

    @mcp.resource("catalog://scalp/lifestyle")
    def scalp_lifestyle_catalog() -> str:
        """Lifestyle tips grouped by category."""
        return json.dumps(
            {"version": catalogs.version, "lifestyle": exported["lifestyle"]},
            ensure_ascii=False,
            indent=2,
        )
