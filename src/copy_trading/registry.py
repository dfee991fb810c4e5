"""Copy-trade config registry: the set of wallets each account follows.

Configs are never deleted: deactivation stops future matching while keeping
historical event rows pointing at a valid config.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.copy_trading.exceptions import (
    ConfigAlreadyExistsError,
    ConfigNotFoundError,
    InvalidConfigError,
)
from src.models.copy_trade import CopyTradeConfig


def _parse_eth_amount(value: str, field: str) -> Decimal:
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        raise InvalidConfigError(f"{field} must be a decimal string, got {value!r}")
    if not amount.is_finite() or amount < 0:
        raise InvalidConfigError(f"{field} must be a non-negative amount, got {value!r}")
    return amount


def _unique_lower(addresses: Iterable[str]) -> list[str]:
    result: list[str] = []
    for addr in addresses:
        addr = addr.strip().lower()
        if addr and addr not in result:
            result.append(addr)
    return result


async def create_config(
    session: AsyncSession,
    *,
    account_name: str,
    target_wallet_address: str,
    beneficiary_addresses: Iterable[str],
    delegation_amount: str,
    max_slippage: float = 0.05,
    buy_only: bool = True,
    router_allowlist: Iterable[str] = (),
) -> CopyTradeConfig:
    """Register a new active config.

    Raises:
        ConfigAlreadyExistsError: ``(account_name, target_wallet_address)`` exists,
            active or not.
        InvalidConfigError: empty beneficiaries, bad amount or slippage.
    """
    account_name = account_name.strip()
    target = target_wallet_address.strip().lower()
    beneficiaries = _unique_lower(beneficiary_addresses)

    if not account_name or not target:
        raise InvalidConfigError("account_name and target_wallet_address are required")
    if not beneficiaries:
        raise InvalidConfigError("An active config needs at least one beneficiary address")
    if not 0 <= max_slippage <= 1:
        raise InvalidConfigError(f"max_slippage must be a fraction in [0, 1], got {max_slippage}")
    _parse_eth_amount(delegation_amount, "delegation_amount")

    config = CopyTradeConfig(
        account_name=account_name,
        target_wallet_address=target,
        beneficiary_addresses=beneficiaries,
        delegation_amount=str(delegation_amount).strip(),
        max_slippage=max_slippage,
        buy_only=buy_only,
        router_allowlist=_unique_lower(router_allowlist),
        is_active=True,
        total_executed_trades=0,
        total_spent="0",
    )
    session.add(config)
    try:
        await session.commit()
    except IntegrityError:
        await session.rollback()
        raise ConfigAlreadyExistsError(
            f"Account {account_name!r} already tracks wallet {target}"
        )

    logger.info(f"[REGISTRY] Config #{config.id} created: {account_name} → {target}")
    return config


async def get_config(session: AsyncSession, config_id: int) -> CopyTradeConfig:
    config = await session.get(CopyTradeConfig, config_id)
    if config is None:
        raise ConfigNotFoundError(f"Copy trade config {config_id} not found")
    return config


async def list_configs(
    session: AsyncSession, account_name: str | None = None, *, active_only: bool = False
) -> list[CopyTradeConfig]:
    stmt = select(CopyTradeConfig).order_by(CopyTradeConfig.id)
    if account_name is not None:
        stmt = stmt.where(CopyTradeConfig.account_name == account_name)
    if active_only:
        stmt = stmt.where(CopyTradeConfig.is_active.is_(True))
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def deactivate_config(session: AsyncSession, config_id: int) -> CopyTradeConfig:
    """Soft-delete: stop matching new events, keep the row."""
    config = await get_config(session, config_id)
    if config.is_active:
        config.is_active = False
        await session.commit()
        logger.info(f"[REGISTRY] Config #{config_id} deactivated")
    return config


async def record_execution(
    session: AsyncSession, config_id: int, amount: str
) -> CopyTradeConfig:
    """Hook for the execution side: count one executed trade spending ``amount`` ETH."""
    spent = _parse_eth_amount(amount, "amount")
    config = await get_config(session, config_id)
    config.total_executed_trades += 1
    config.total_spent = str(Decimal(config.total_spent) + spent)
    config.last_executed_at = datetime.now(UTC)
    await session.commit()
    return config
