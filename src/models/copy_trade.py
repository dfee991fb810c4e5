from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, validates

from src.models.base import Base

EVENT_STATUSES = ("pending", "success", "failed")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class CopyTradeConfig(Base):
    """A tracked "follow" relationship: one account copying one wallet."""

    __tablename__ = "copy_trade_configs"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_name: Mapped[str] = mapped_column(String(128), index=True)
    target_wallet_address: Mapped[str] = mapped_column(String(64), index=True)
    beneficiary_addresses: Mapped[list[str]] = mapped_column(JSON, default=list)
    delegation_amount: Mapped[str] = mapped_column(String(78))  # ETH, decimal string
    max_slippage: Mapped[float] = mapped_column(Float, default=0.05)  # 0.05 = 5%
    buy_only: Mapped[bool] = mapped_column(Boolean, default=True)
    router_allowlist: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    last_executed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    total_executed_trades: Mapped[int] = mapped_column(Integer, default=0)
    total_spent: Mapped[str] = mapped_column(String(78), default="0")  # ETH, decimal string

    __table_args__ = (
        UniqueConstraint(
            "account_name", "target_wallet_address", name="uq_copy_config_account_wallet"
        ),
        Index("idx_copy_config_wallet_active", "target_wallet_address", "is_active"),
    )

    @validates("target_wallet_address")
    def _lower_target(self, _key: str, value: str) -> str:
        return value.strip().lower()

    @validates("beneficiary_addresses", "router_allowlist")
    def _lower_addresses(self, _key: str, value: list[str]) -> list[str]:
        return [addr.strip().lower() for addr in value]


class CopyTradeEvent(Base):
    """One qualifying transfer seen on a tracked wallet, recorded per config."""

    __tablename__ = "copy_trade_events"

    id: Mapped[int] = mapped_column(primary_key=True)
    config_id: Mapped[int] = mapped_column(ForeignKey("copy_trade_configs.id"), index=True)
    account_name: Mapped[str] = mapped_column(String(128), index=True)
    target_wallet_address: Mapped[str] = mapped_column(String(64), index=True)
    original_tx_hash: Mapped[str] = mapped_column(String(128), index=True)
    network: Mapped[str] = mapped_column(String(64), default="unknown")
    token_address: Mapped[str] = mapped_column(String(64))
    token_symbol: Mapped[str] = mapped_column(String(32))
    token_name: Mapped[str] = mapped_column(String(128))
    original_amount: Mapped[str] = mapped_column(String(78))  # raw integer string
    copied_amount: Mapped[str] = mapped_column(String(78))  # raw integer string
    transaction_hash: Mapped[str | None] = mapped_column(String(128))
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    error_message: Mapped[str | None] = mapped_column(Text)

    __table_args__ = (
        # Per-config key: several configs can watch the same wallet
        UniqueConstraint("config_id", "original_tx_hash", name="uq_copy_event_config_tx"),
        CheckConstraint(
            "status IN ('pending', 'success', 'failed')", name="ck_copy_event_status"
        ),
    )

    @validates("target_wallet_address")
    def _lower_target(self, _key: str, value: str) -> str:
        return value.strip().lower()
