"""Webhook ingestion pipeline: verify, classify, fan out, persist, notify.

Flow per request:
  RECEIVED
    → signature policy            (fail → REJECTED, 401, no side effects)
    → VERIFIED → parse + classify (not tracked → IGNORED, 200)
    → MATCHED: active configs watching from/to
        per config, own session:
          upsert (duplicate = success, DB error = branch failed)
          → newly inserted rows get one best-effort notification
    → ACKNOWLEDGED: one structured response summarising all branches

A failing branch never aborts its siblings; only authentication failures stop
the whole request.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.copy_trading.store import PendingEvent, find_active_configs_by_wallet, upsert_event
from src.models.copy_trade import CopyTradeConfig
from src.notifications.dispatcher import NotificationDispatcher
from src.webhooks.classifier import ClassifiedEvent, Ignored, TokenTable, classify, parse_payload
from src.webhooks.exceptions import WebhookError
from src.webhooks.signature import extract_webhook_signature, process_webhook


class IngestStage(StrEnum):
    """Terminal stage a request ended in."""

    REJECTED = "rejected"
    MALFORMED = "malformed"
    IGNORED = "ignored"
    ACKNOWLEDGED = "acknowledged"


@dataclass
class BranchOutcome:
    """Result of one matched config's persist + notify branch."""

    config_id: int
    status: str  # "inserted" | "duplicate" | "failed"
    event_id: int | None = None
    notified: bool = False
    error: str | None = None


@dataclass
class IngestResult:
    status_code: int
    body: dict[str, Any]
    stage: IngestStage
    branches: list[BranchOutcome] = field(default_factory=list)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class WebhookIngestor:
    """Handles one inbound activity webhook end to end.

    Holds no per-request state; concurrent requests share only the session
    factory and the dispatcher.
    """

    def __init__(
        self,
        *,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: NotificationDispatcher,
        tokens: TokenTable,
        secret: str = "",
        require_signature: bool = False,
    ) -> None:
        self._session_factory = session_factory
        self._dispatcher = dispatcher
        self._tokens = tokens
        self._secret = secret
        self._require_signature = require_signature

    async def handle(self, raw_body: bytes, headers: Mapping[str, str]) -> IngestResult:
        signature = extract_webhook_signature(headers)
        try:
            processed = process_webhook(raw_body, signature, self._secret, self._require_signature)
        except WebhookError as e:
            logger.warning(f"[WEBHOOK] Rejected: {e}")
            return IngestResult(
                status_code=401,
                body={
                    "message": "Webhook authentication failed",
                    "error": str(e),
                    "timestamp": _now_iso(),
                },
                stage=IngestStage.REJECTED,
            )

        try:
            data = json.loads(raw_body) if raw_body else {}
        except ValueError:
            logger.warning(f"[WEBHOOK] Body is not valid JSON ({len(raw_body)} bytes)")
            return IngestResult(
                status_code=400,
                body={"message": "Invalid JSON body", "timestamp": _now_iso()},
                stage=IngestStage.MALFORMED,
            )

        payload = parse_payload(data)
        result = classify(payload, self._tokens)
        if isinstance(result, Ignored):
            logger.debug(
                f"[WEBHOOK] Ignored {result.event_type} on {result.network}: {result.reason}"
            )
            return IngestResult(
                status_code=200,
                body={
                    "message": "Data received (non-target token ignored)",
                    "timestamp": _now_iso(),
                    "event_type": result.event_type,
                    "network": result.network,
                },
                stage=IngestStage.IGNORED,
            )

        logger.info(
            f"[WEBHOOK] {result.token.symbol} transfer {result.from_address} → "
            f"{result.to_address} ({result.human_value} {result.token.symbol}) "
            f"tx={result.transaction_hash} network={result.network} "
            f"verified={processed.verified}"
        )

        errors: list[str] = []
        branches: list[BranchOutcome] = []
        try:
            configs = await self._match_configs(result)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[WEBHOOK] Config lookup failed tx={result.transaction_hash[:16]}: {e}")
            configs = []
            errors.append("config_lookup_failed")

        for config in configs:
            branches.append(await self._run_branch(result, config))

        body = {
            "message": "Target token event received",
            "received_data": data,
            "timestamp": _now_iso(),
            "event_type": result.event_type,
            "network": result.network,
            "token_info": {
                "address": result.token.address,
                "symbol": result.token.symbol,
                "name": result.token.name,
                "decimals": result.token.decimals,
                "raw_value": result.raw_value,
                "human_value": result.human_value,
            },
            "token_type": result.token.symbol,
            "matches": {
                "matched": len(configs),
                "inserted": sum(1 for b in branches if b.status == "inserted"),
                "duplicates": sum(1 for b in branches if b.status == "duplicate"),
                "failed": sum(1 for b in branches if b.status == "failed"),
            },
        }
        if errors:
            body["errors"] = errors
        return IngestResult(
            status_code=200,
            body=body,
            stage=IngestStage.ACKNOWLEDGED,
            branches=branches,
        )

    async def _match_configs(self, event: ClassifiedEvent) -> list[CopyTradeConfig]:
        async with self._session_factory() as session:
            configs = await find_active_configs_by_wallet(session, event.observed_addresses)
        if configs:
            logger.info(
                f"[WEBHOOK] tx={event.transaction_hash[:16]} matched "
                f"{len(configs)} config(s): {[c.id for c in configs]}"
            )
        return configs

    async def _run_branch(self, event: ClassifiedEvent, config: CopyTradeConfig) -> BranchOutcome:
        pending = PendingEvent(
            config_id=config.id,
            account_name=config.account_name,
            target_wallet_address=config.target_wallet_address,
            original_tx_hash=event.transaction_hash,
            network=event.network,
            token_address=event.token.address,
            token_symbol=event.token.symbol,
            token_name=event.token.name,
            original_amount=event.raw_value,
            # No copy transformation has happened yet
            copied_amount=event.raw_value,
        )

        try:
            async with self._session_factory() as session:
                upserted = await upsert_event(session, pending)
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                f"[WEBHOOK] Persist failed config=#{config.id} "
                f"tx={event.transaction_hash[:16]}: {e}"
            )
            return BranchOutcome(config_id=config.id, status="failed", error=str(e))

        if not upserted.inserted:
            # Re-delivery: already recorded and already notified
            return BranchOutcome(config_id=config.id, status="duplicate")

        notified = await self._dispatcher.notify(event, config)
        return BranchOutcome(
            config_id=config.id,
            status="inserted",
            event_id=upserted.event_id,
            notified=notified,
        )
