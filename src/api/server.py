"""API server: runs uvicorn inside the existing asyncio event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import Settings


async def run_api_server(settings: Settings) -> None:
    """Start uvicorn serving the webhook API.

    Uses ``uvicorn.Server.serve()`` which is fully async, so it can run as a
    task next to the shutdown watcher in ``src.main``.
    """
    from src.api.app import create_app

    app = create_app(settings)
    config = uvicorn.Config(
        app=app,
        host=settings.api_host,
        port=settings.api_port,
        log_level="warning",
        loop="none",  # use the existing event loop
    )
    server = uvicorn.Server(config)
    logger.info(f"Webhook API starting on http://{settings.api_host}:{settings.api_port}")
    await server.serve()
