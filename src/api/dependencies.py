"""FastAPI dependency injection: services built by ``create_app`` live on app.state."""

from __future__ import annotations

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.notifications.dispatcher import NotificationDispatcher
from src.webhooks.pipeline import WebhookIngestor


async def get_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield an async DB session (auto-closes)."""
    async with request.app.state.session_factory() as session:
        yield session


def get_ingestor(request: Request) -> WebhookIngestor:
    return request.app.state.ingestor


def get_dispatcher(request: Request) -> NotificationDispatcher:
    return request.app.state.dispatcher
