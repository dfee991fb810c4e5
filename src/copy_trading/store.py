"""Copy-trade event store: idempotent writes keyed by (config_id, original_tx_hash).

The unique key is the only protection against re-delivered webhooks, so a
conflicting insert is a normal outcome (``inserted=False``), not an error.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.copy_trade import EVENT_STATUSES, CopyTradeConfig, CopyTradeEvent

_EVENT_KEY = ["config_id", "original_tx_hash"]


@dataclass(frozen=True)
class PendingEvent:
    """Values for a new ``pending`` event row."""

    config_id: int
    account_name: str
    target_wallet_address: str
    original_tx_hash: str
    network: str
    token_address: str
    token_symbol: str
    token_name: str
    original_amount: str
    copied_amount: str


@dataclass(frozen=True)
class UpsertResult:
    inserted: bool
    event_id: int | None = None


def _insert_for(session: AsyncSession):
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return pg_insert
    if dialect == "sqlite":
        return sqlite_insert
    raise NotImplementedError(f"Idempotent insert not supported on {dialect}")


async def upsert_event(session: AsyncSession, event: PendingEvent) -> UpsertResult:
    """Insert the event unless its (config_id, tx hash) row already exists."""
    insert = _insert_for(session)
    stmt = (
        insert(CopyTradeEvent)
        .values(
            config_id=event.config_id,
            account_name=event.account_name,
            target_wallet_address=event.target_wallet_address.lower(),
            original_tx_hash=event.original_tx_hash,
            network=event.network,
            token_address=event.token_address.lower(),
            token_symbol=event.token_symbol,
            token_name=event.token_name,
            original_amount=event.original_amount,
            copied_amount=event.copied_amount,
            transaction_hash=None,
            status="pending",
        )
        .on_conflict_do_nothing(index_elements=_EVENT_KEY)
        .returning(CopyTradeEvent.id)
    )
    result = await session.execute(stmt)
    event_id = result.scalar_one_or_none()
    await session.commit()

    if event_id is None:
        logger.debug(
            f"[STORE] Duplicate event config=#{event.config_id} tx={event.original_tx_hash[:16]}"
        )
        return UpsertResult(inserted=False)
    return UpsertResult(inserted=True, event_id=event_id)


async def find_active_configs_by_wallet(
    session: AsyncSession, addresses: Iterable[str]
) -> list[CopyTradeConfig]:
    """Active configs whose target wallet is any of ``addresses`` (case-insensitive)."""
    wanted = sorted({a.strip().lower() for a in addresses if a and a.lower() != "unknown"})
    if not wanted:
        return []
    stmt = (
        select(CopyTradeConfig)
        .where(
            CopyTradeConfig.target_wallet_address.in_(wanted),
            CopyTradeConfig.is_active.is_(True),
        )
        .order_by(CopyTradeConfig.id)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_events_for_config(
    session: AsyncSession, config_id: int, *, limit: int = 100
) -> list[CopyTradeEvent]:
    stmt = (
        select(CopyTradeEvent)
        .where(CopyTradeEvent.config_id == config_id)
        .order_by(CopyTradeEvent.id.desc())
        .limit(limit)
    )
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def update_event_status(
    session: AsyncSession,
    event_id: int,
    status: str,
    *,
    transaction_hash: str | None = None,
    error_message: str | None = None,
) -> CopyTradeEvent:
    """Move an event out of ``pending`` once the execution side reports back."""
    if status not in EVENT_STATUSES:
        raise ValueError(f"Unknown event status: {status}")
    event = await session.get(CopyTradeEvent, event_id)
    if event is None:
        raise LookupError(f"Copy trade event {event_id} not found")

    event.status = status
    if transaction_hash is not None:
        event.transaction_hash = transaction_hash
    if error_message is not None:
        event.error_message = error_message
    await session.commit()
    return event
