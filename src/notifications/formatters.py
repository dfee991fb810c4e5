"""Format copy-trade events into Telegram HTML messages."""

import html

from src.webhooks.classifier import ClassifiedEvent


def shorten(value: str, head: int = 6, tail: int = 4) -> str:
    """``0x1234...abcd`` style shortening; short values come back unchanged."""
    if len(value) <= head + tail + 3:
        return value
    return f"{value[:head]}...{value[-tail:]}"


def network_label(network: str, labels: dict[str, str]) -> str:
    return labels.get(network, network)


def _transfer_lines(
    event: ClassifiedEvent,
    *,
    account_name: str,
    network_name: str,
    explorer_tx_url: str,
) -> list[str]:
    symbol = html.escape(event.token.symbol)
    lines = [
        f"💰 <b>Amount:</b> {event.human_value} {symbol}",
        f"👤 <b>From:</b> <code>{html.escape(shorten(event.from_address))}</code>",
        f"📥 <b>To:</b> <code>{html.escape(shorten(event.to_address))}</code>",
        f"🔗 <b>Transaction:</b> <code>{html.escape(shorten(event.transaction_hash))}</code>",
        f"🌐 <b>Network:</b> {html.escape(network_name)}",
        f"📋 <b>Copy config:</b> {html.escape(account_name)}",
    ]
    if explorer_tx_url:
        url = html.escape(explorer_tx_url.format(tx_hash=event.transaction_hash), quote=True)
        lines.append(f'\n<a href="{url}">View transaction</a>')
    return lines


def format_native_transfer(
    event: ClassifiedEvent,
    *,
    account_name: str,
    network_name: str,
    explorer_tx_url: str = "",
) -> str:
    """Native asset (ETH) transfer on a tracked wallet."""
    header = f"🪙 <b>{html.escape(event.token.symbol)} Transfer</b>\n"
    lines = _transfer_lines(
        event,
        account_name=account_name,
        network_name=network_name,
        explorer_tx_url=explorer_tx_url,
    )
    return "\n".join([header, *lines])


def format_token_transfer(
    event: ClassifiedEvent,
    *,
    account_name: str,
    network_name: str,
    explorer_tx_url: str = "",
) -> str:
    """ERC-20 transfer of a tracked token on a tracked wallet."""
    header = f"💵 <b>{html.escape(event.token.symbol)} Transfer</b>"
    if event.token.name and event.token.name != event.token.symbol:
        header += f" ({html.escape(event.token.name)})"
    lines = _transfer_lines(
        event,
        account_name=account_name,
        network_name=network_name,
        explorer_tx_url=explorer_tx_url,
    )
    lines.insert(0, f"🏷 <b>Token:</b> <code>{html.escape(shorten(event.token.address))}</code>")
    return "\n".join([header + "\n", *lines])
