"""Server entry point: ``python -m healthcoach.core.server.main``."""

from __future__ import annotations

import logging
from ipaddress import ip_address

from healthcoach.core.config.settings import get_settings
from healthcoach.core.server.app import create_app


def _is_loopback_host(host: str) -> bool:
    if host in {"localhost"}:
        return True
    try:
        return ip_address(host).is_loopback
    except ValueError:
        return False


def run() -> None:
    """Start the Health Coach MCP server with Streamable HTTP transport."""
    settings = get_settings()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    logger = logging.getLogger(__name__)
    if not settings.allow_insecure_bind and not _is_loopback_host(settings.host):
        raise RuntimeError(
            "Refusing to bind the health coach server to a non-loopback host without an auth layer. "
            "Set ALLOW_INSECURE_BIND=true to override (unsafe)."
        )
    logger.info("Starting Health Coach server on %s:%d", settings.host, settings.port)

    mcp = create_app()
    mcp.run(
        transport="streamable-http",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
