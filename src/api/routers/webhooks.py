"""Activity webhook receivers: no auth beyond the HMAC signature policy."""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi import Limiter

from src.api.dependencies import get_ingestor
from src.webhooks.pipeline import WebhookIngestor


async def _receive(request: Request, ingestor: WebhookIngestor) -> JSONResponse:
    # Raw bytes: the signature covers exactly what the sender put on the wire
    raw_body = await request.body()
    result = await ingestor.handle(raw_body, request.headers)
    return JSONResponse(status_code=result.status_code, content=result.body)


def build_router(limiter: Limiter, rate_limit: str) -> APIRouter:
    """Webhook routes, each limited per remote address by ``limiter``."""
    router = APIRouter(tags=["webhooks"])

    @router.post("/callback/")
    @router.post("/callback", include_in_schema=False)
    @limiter.limit(rate_limit)
    async def activity_callback(
        request: Request,
        ingestor: WebhookIngestor = Depends(get_ingestor),
    ) -> JSONResponse:
        """Native and ERC-20 transfer callbacks for tracked wallets."""
        return await _receive(request, ingestor)

    @router.post("/webhooks/cdp/")
    @router.post("/webhooks/cdp", include_in_schema=False)
    @limiter.limit(rate_limit)
    async def cdp_webhook(
        request: Request,
        ingestor: WebhookIngestor = Depends(get_ingestor),
    ) -> JSONResponse:
        """Same pipeline, mounted where CDP webhook subscriptions point."""
        return await _receive(request, ingestor)

    return router
