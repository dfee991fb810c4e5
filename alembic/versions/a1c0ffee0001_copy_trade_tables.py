"""Create copy_trade_configs and copy_trade_events.

Configs are unique per (account_name, target_wallet_address); events are
unique per (config_id, original_tx_hash), which is what makes webhook
re-delivery idempotent.

Revision ID: a1c0ffee0001
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa

revision = "a1c0ffee0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "copy_trade_configs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("account_name", sa.String(128), nullable=False),
        sa.Column("target_wallet_address", sa.String(64), nullable=False),
        sa.Column("beneficiary_addresses", sa.JSON(), nullable=False),
        sa.Column("delegation_amount", sa.String(78), nullable=False),
        sa.Column("max_slippage", sa.Float(), nullable=False, server_default="0.05"),
        sa.Column("buy_only", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("router_allowlist", sa.JSON(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_executed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("total_executed_trades", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_spent", sa.String(78), nullable=False, server_default="0"),
        sa.UniqueConstraint(
            "account_name", "target_wallet_address", name="uq_copy_config_account_wallet"
        ),
    )
    op.create_index("ix_copy_trade_configs_account_name", "copy_trade_configs", ["account_name"])
    op.create_index(
        "ix_copy_trade_configs_target_wallet_address", "copy_trade_configs", ["target_wallet_address"]
    )
    op.create_index("ix_copy_trade_configs_is_active", "copy_trade_configs", ["is_active"])
    op.create_index(
        "idx_copy_config_wallet_active", "copy_trade_configs", ["target_wallet_address", "is_active"]
    )

    op.create_table(
        "copy_trade_events",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("config_id", sa.Integer(), sa.ForeignKey("copy_trade_configs.id"), nullable=False),
        sa.Column("account_name", sa.String(128), nullable=False),
        sa.Column("target_wallet_address", sa.String(64), nullable=False),
        sa.Column("original_tx_hash", sa.String(128), nullable=False),
        sa.Column("network", sa.String(64), nullable=False, server_default="unknown"),
        sa.Column("token_address", sa.String(64), nullable=False),
        sa.Column("token_symbol", sa.String(32), nullable=False),
        sa.Column("token_name", sa.String(128), nullable=False),
        sa.Column("original_amount", sa.String(78), nullable=False),
        sa.Column("copied_amount", sa.String(78), nullable=False),
        sa.Column("transaction_hash", sa.String(128), nullable=True),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.UniqueConstraint("config_id", "original_tx_hash", name="uq_copy_event_config_tx"),
        sa.CheckConstraint(
            "status IN ('pending', 'success', 'failed')", name="ck_copy_event_status"
        ),
    )
    op.create_index("ix_copy_trade_events_config_id", "copy_trade_events", ["config_id"])
    op.create_index("ix_copy_trade_events_account_name", "copy_trade_events", ["account_name"])
    op.create_index(
        "ix_copy_trade_events_target_wallet_address", "copy_trade_events", ["target_wallet_address"]
    )
    op.create_index("ix_copy_trade_events_original_tx_hash", "copy_trade_events", ["original_tx_hash"])


def downgrade() -> None:
    op.drop_table("copy_trade_events")
    op.drop_table("copy_trade_configs")
