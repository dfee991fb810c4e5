"""Tests for the idempotent event store."""

import pytest
from sqlalchemy import func, select

from src.copy_trading.registry import create_config, deactivate_config
from src.copy_trading.store import (
    PendingEvent,
    find_active_configs_by_wallet,
    get_events_for_config,
    update_event_status,
    upsert_event,
)
from src.models.copy_trade import CopyTradeEvent
from tests.helpers import BENEFICIARY, TX_HASH, USDC, WALLET_A, WALLET_B


async def _config(session, account="alice", target=WALLET_A):
    return await create_config(
        session,
        account_name=account,
        target_wallet_address=target,
        beneficiary_addresses=[BENEFICIARY],
        delegation_amount="0.5",
    )


def _pending(config, tx_hash=TX_HASH) -> PendingEvent:
    return PendingEvent(
        config_id=config.id,
        account_name=config.account_name,
        target_wallet_address=config.target_wallet_address,
        original_tx_hash=tx_hash,
        network="base-mainnet",
        token_address=USDC,
        token_symbol="USDC",
        token_name="USD Coin",
        original_amount="1000000",
        copied_amount="1000000",
    )


async def _count_events(session) -> int:
    return (await session.execute(select(func.count()).select_from(CopyTradeEvent))).scalar_one()


class TestUpsertEvent:
    @pytest.mark.asyncio
    async def test_first_insert_is_pending(self, db_session):
        config = await _config(db_session)
        result = await upsert_event(db_session, _pending(config))

        assert result.inserted is True
        assert result.event_id is not None
        event = await db_session.get(CopyTradeEvent, result.event_id)
        assert event.status == "pending"
        assert event.transaction_hash is None
        assert event.network == "base-mainnet"
        assert event.original_amount == "1000000"

    @pytest.mark.asyncio
    async def test_redelivery_keeps_one_row(self, db_session):
        config = await _config(db_session)
        results = [await upsert_event(db_session, _pending(config)) for _ in range(4)]

        assert [r.inserted for r in results] == [True, False, False, False]
        assert all(r.event_id is None for r in results[1:])
        assert await _count_events(db_session) == 1

    @pytest.mark.asyncio
    async def test_same_tx_different_configs_both_inserted(self, db_session):
        alice = await _config(db_session, "alice")
        bob = await _config(db_session, "bob")

        assert (await upsert_event(db_session, _pending(alice))).inserted is True
        assert (await upsert_event(db_session, _pending(bob))).inserted is True
        assert await _count_events(db_session) == 2

    @pytest.mark.asyncio
    async def test_separate_sessions_keep_one_row(self, session_factory):
        async with session_factory() as session:
            config = await _config(session)

        outcomes = []
        for _ in range(3):
            async with session_factory() as session:
                outcomes.append(await upsert_event(session, _pending(config)))

        assert sum(o.inserted for o in outcomes) == 1
        async with session_factory() as session:
            assert await _count_events(session) == 1


class TestFindActiveConfigs:
    @pytest.mark.asyncio
    async def test_matches_case_insensitively(self, db_session):
        mixed = "0xABCDEF0000000000000000000000000000000001"
        config = await _config(db_session, target=mixed)
        assert config.target_wallet_address == mixed.lower()
        found = await find_active_configs_by_wallet(db_session, [mixed.lower()])
        assert [c.id for c in found] == [config.id]
        found = await find_active_configs_by_wallet(db_session, [mixed])
        assert [c.id for c in found] == [config.id]

    @pytest.mark.asyncio
    async def test_matches_from_or_to(self, db_session):
        a = await _config(db_session, "alice", WALLET_A)
        b = await _config(db_session, "bob", WALLET_B)
        found = await find_active_configs_by_wallet(db_session, [WALLET_A, WALLET_B])
        assert [c.id for c in found] == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_inactive_excluded(self, db_session):
        config = await _config(db_session)
        await deactivate_config(db_session, config.id)
        assert await find_active_configs_by_wallet(db_session, [WALLET_A]) == []

    @pytest.mark.asyncio
    async def test_unknown_and_empty_addresses(self, db_session):
        await _config(db_session)
        assert await find_active_configs_by_wallet(db_session, []) == []
        assert await find_active_configs_by_wallet(db_session, ["unknown", ""]) == []


class TestEventQueries:
    @pytest.mark.asyncio
    async def test_events_newest_first(self, db_session):
        config = await _config(db_session)
        await upsert_event(db_session, _pending(config, "0x" + "01" * 32))
        await upsert_event(db_session, _pending(config, "0x" + "02" * 32))

        events = await get_events_for_config(db_session, config.id)
        assert [e.original_tx_hash for e in events] == ["0x" + "02" * 32, "0x" + "01" * 32]
        assert len(await get_events_for_config(db_session, config.id, limit=1)) == 1

    @pytest.mark.asyncio
    async def test_update_status(self, db_session):
        config = await _config(db_session)
        result = await upsert_event(db_session, _pending(config))

        event = await update_event_status(
            db_session, result.event_id, "success", transaction_hash="0x" + "cd" * 32
        )
        assert event.status == "success"
        assert event.transaction_hash == "0x" + "cd" * 32

    @pytest.mark.asyncio
    async def test_update_status_failed_records_error(self, db_session):
        config = await _config(db_session)
        result = await upsert_event(db_session, _pending(config))

        event = await update_event_status(
            db_session, result.event_id, "failed", error_message="slippage exceeded"
        )
        assert event.status == "failed"
        assert event.error_message == "slippage exceeded"

    @pytest.mark.asyncio
    async def test_update_status_rejects_unknown_status(self, db_session):
        with pytest.raises(ValueError):
            await update_event_status(db_session, 1, "done")

    @pytest.mark.asyncio
    async def test_update_status_missing_event(self, db_session):
        with pytest.raises(LookupError):
            await update_event_status(db_session, 999, "success")
