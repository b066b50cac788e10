"""Slides server - stdio entrypoint."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional, Tuple

# Add project root to path to support direct execution
if __name__ == "__main__":
    sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from mcp.server import Server

from shared.logging_utils import setup_logging
from slidesServer.context import SessionContextStore
from slidesServer.registry import ToolRegistry
from slidesServer.server import build_server, serve
from slidesServer.settings import SlidesServerSettings, get_settings
from slidesServer.slides_service import GoogleSlidesService, InMemorySlidesService, SlidesService
from slidesServer.tools import SlidesToolkit

LOGGER = logging.getLogger("slidesServer.main")


def build_slides_service(settings: SlidesServerSettings) -> SlidesService:
    if settings.backend == "memory":
        LOGGER.warning("Using in-memory slides backend; nothing is written to Google Drive")
        return InMemorySlidesService()
    return GoogleSlidesService()


def build_application(
    service: Optional[SlidesService] = None,
    settings: Optional[SlidesServerSettings] = None,
) -> Tuple[Server, ToolRegistry]:
    """Assemble registry, tools and MCP server.

    Args:
        service: Slides backend (default: chosen by ``settings.backend``)
        settings: Server settings (default: cached environment settings)

    Returns:
        (server, registry) tuple
    """
    settings = settings or get_settings()
    registry = ToolRegistry(SessionContextStore())
    SlidesToolkit(service or build_slides_service(settings)).register(registry)
    LOGGER.info(f"Registered tools: {[descriptor.name for descriptor in registry.list_tools()]}")
    return build_server(registry, settings.server_name, settings.server_version), registry


def main() -> None:
    settings = get_settings()
    setup_logging("slidesServer", settings.log_level, Path(settings.log_dir))
    try:
        app, _ = build_application(settings=settings)
        asyncio.run(serve(app))
    except KeyboardInterrupt:
        LOGGER.info("Slides server interrupted")
    except Exception:
        LOGGER.exception("Fatal error in slides server main()")
        sys.exit(1)


if __name__ == "__main__":
    main()
