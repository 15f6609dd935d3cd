"""Server entry point: ``python -m scalpcare.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from scalpcare.core.config.settings import get_settings
from scalpcare.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the scalp consultation MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.scalp_log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.scalp_allow_insecure_bind and not _is_loopback_host(settings.scalp_host):
        raise RuntimeError(
            "Refusing to bind the scalp server to a non-loopback host without an auth layer. "
            "Set SCALP_ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info(
        "Starting scalp consultation server on %s:%d",
        settings.scalp_host,
        settings.scalp_port,
    )

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.scalp_host,
        port=settings.scalp_port,
    )


if __name__ == "__main__":
    run()
