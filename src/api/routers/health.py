"""Health check: no auth required."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_dispatcher, get_session
from src.notifications.dispatcher import NotificationDispatcher

router = APIRouter(prefix="/api/v1", tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    db_ok: bool
    notifications_ok: bool
    notifications_sent: int
    notifications_failed: int


@router.get("/health", response_model=HealthResponse)
async def health_check(
    session: AsyncSession = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
) -> HealthResponse:
    """Check DB connectivity and notification channel configuration."""
    db_ok = False
    try:
        await session.execute(text("SELECT 1"))
        db_ok = True
    except (SQLAlchemyError, OSError):
        pass

    return HealthResponse(
        status="ok" if db_ok else "degraded",
        version="0.1.0",
        db_ok=db_ok,
        notifications_ok=dispatcher.channel_available,
        notifications_sent=dispatcher.sent,
        notifications_failed=dispatcher.failed,
    )
