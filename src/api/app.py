"""FastAPI application factory for the webhook receiver."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from loguru import logger
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config.settings import Settings
from src.api.middleware import SecurityHeadersMiddleware
from src.db.database import create_engine, create_session_factory
from src.notifications.dispatcher import NotificationChannel, NotificationDispatcher
from src.notifications.telegram import TelegramNotifier
from src.webhooks.classifier import TokenTable
from src.webhooks.pipeline import WebhookIngestor


def create_app(
    settings: Settings,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    notifier: NotificationChannel | None = None,
) -> FastAPI:
    """Build the app and wire its services.

    ``session_factory`` and ``notifier`` are built from ``settings`` unless
    given (tests inject in-memory / fake ones).
    """
    engine = None
    if session_factory is None:
        engine = create_engine(settings.database_url)
        session_factory = create_session_factory(engine)
    if notifier is None:
        notifier = TelegramNotifier(
            bot_token=settings.telegram_bot_token,
            chat_id=settings.telegram_chat_id,
        )

    dispatcher = NotificationDispatcher(
        notifier,
        explorer_tx_url=settings.explorer_tx_url,
        network_labels=settings.network_labels,
    )
    tokens = TokenTable.from_settings(settings)
    ingestor = WebhookIngestor(
        session_factory=session_factory,
        dispatcher=dispatcher,
        tokens=tokens,
        secret=settings.webhook_secret,
        require_signature=settings.webhook_require_signature,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            f"[API] Webhook receiver ready: {len(tokens)} tracked token(s), "
            f"signature required={settings.webhook_require_signature}, "
            f"notifications={'on' if notifier.is_available() else 'off'}"
        )
        yield
        close = getattr(notifier, "close", None)
        if close is not None:
            await close()
        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title="Copy-Trade Webhook API",
        version="0.1.0",
        docs_url="/api/docs" if settings.api_debug else None,
        redoc_url=None,
        openapi_url="/api/openapi.json" if settings.api_debug else None,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.session_factory = session_factory
    app.state.dispatcher = dispatcher
    app.state.ingestor = ingestor

    # Rate limiting (per remote address, on the webhook routes)
    limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Security headers
    app.add_middleware(SecurityHeadersMiddleware)

    from src.api.routers.health import router as health_router
    from src.api.routers.webhooks import build_router

    app.include_router(build_router(limiter, settings.webhook_rate_limit))
    app.include_router(health_router)

    return app
