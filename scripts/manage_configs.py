"""Operator CLI for copy-trade configs.

Usage:
    python scripts/manage_configs.py create --account alice --target 0xABC... \
        --beneficiary 0xDEF... --delegation 0.5 [--max-slippage 0.03] [--router 0x...]
    python scripts/manage_configs.py list [--account alice] [--active-only]
    python scripts/manage_configs.py deactivate 12
    python scripts/manage_configs.py events 12 [--limit 20]
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from config.settings import settings  # noqa: E402
from src.copy_trading.exceptions import CopyTradeError  # noqa: E402
from src.copy_trading.registry import (  # noqa: E402
    create_config,
    deactivate_config,
    list_configs,
)
from src.copy_trading.store import get_events_for_config  # noqa: E402
from src.db.database import create_engine, create_session_factory  # noqa: E402


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage copy-trade configs")
    sub = parser.add_subparsers(dest="command", required=True)

    create = sub.add_parser("create", help="Track a wallet for an account")
    create.add_argument("--account", required=True)
    create.add_argument("--target", required=True, help="Wallet to follow")
    create.add_argument("--beneficiary", action="append", required=True)
    create.add_argument("--delegation", required=True, help="ETH amount, e.g. 0.5")
    create.add_argument("--max-slippage", type=float, default=0.05)
    create.add_argument("--allow-sells", action="store_true", help="Disable buy-only mode")
    create.add_argument("--router", action="append", default=[])

    lst = sub.add_parser("list", help="List configs")
    lst.add_argument("--account")
    lst.add_argument("--active-only", action="store_true")

    deactivate = sub.add_parser("deactivate", help="Stop matching a config")
    deactivate.add_argument("config_id", type=int)

    events = sub.add_parser("events", help="Recent events for a config")
    events.add_argument("config_id", type=int)
    events.add_argument("--limit", type=int, default=20)
    return parser


async def run(args: argparse.Namespace) -> int:
    engine = create_engine(settings.database_url)
    factory = create_session_factory(engine)
    try:
        async with factory() as session:
            if args.command == "create":
                config = await create_config(
                    session,
                    account_name=args.account,
                    target_wallet_address=args.target,
                    beneficiary_addresses=args.beneficiary,
                    delegation_amount=args.delegation,
                    max_slippage=args.max_slippage,
                    buy_only=not args.allow_sells,
                    router_allowlist=args.router,
                )
                print(f"Created config #{config.id}: {config.account_name} → {config.target_wallet_address}")
            elif args.command == "list":
                configs = await list_configs(session, args.account, active_only=args.active_only)
                print(f"{'ID':>5} {'Account':<20} {'Target':<44} {'Active':<7} {'Trades':>6} {'Spent':>12}")
                print("-" * 100)
                for c in configs:
                    print(
                        f"{c.id:>5} {c.account_name:<20} {c.target_wallet_address:<44} "
                        f"{'yes' if c.is_active else 'no':<7} {c.total_executed_trades:>6} {c.total_spent:>12}"
                    )
            elif args.command == "deactivate":
                config = await deactivate_config(session, args.config_id)
                print(f"Config #{config.id} is inactive")
            elif args.command == "events":
                rows = await get_events_for_config(session, args.config_id, limit=args.limit)
                for e in rows:
                    print(
                        f"#{e.id} {e.timestamp:%Y-%m-%d %H:%M:%S} {e.status:<8} "
                        f"{e.token_symbol:<6} {e.original_amount:>28} tx={e.original_tx_hash}"
                    )
    except CopyTradeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        await engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(run(_build_parser().parse_args())))
