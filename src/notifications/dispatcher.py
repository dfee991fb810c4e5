"""Best-effort notification dispatch for newly recorded copy-trade events.

Nothing here may fail the caller: an unavailable channel is a logged skip, a
transport error is a logged failure. No queueing and no retries: the event row
is already committed and stays authoritative.
"""

from __future__ import annotations

from typing import Protocol

from loguru import logger

from src.models.copy_trade import CopyTradeConfig
from src.notifications.formatters import (
    format_native_transfer,
    format_token_transfer,
    network_label,
)
from src.webhooks.classifier import ClassifiedEvent


class NotificationChannel(Protocol):
    """Outbound channel used by the dispatcher."""

    def is_available(self) -> bool:
        ...

    async def send(self, text: str) -> None:
        ...


class NotificationDispatcher:
    def __init__(
        self,
        channel: NotificationChannel,
        *,
        explorer_tx_url: str = "",
        network_labels: dict[str, str] | None = None,
    ) -> None:
        self._channel = channel
        self._explorer_tx_url = explorer_tx_url
        self._network_labels = network_labels or {}
        self._sent = 0
        self._skipped = 0
        self._failed = 0

    @property
    def sent(self) -> int:
        return self._sent

    @property
    def skipped(self) -> int:
        return self._skipped

    @property
    def failed(self) -> int:
        return self._failed

    @property
    def channel_available(self) -> bool:
        return self._channel.is_available()

    def format(self, event: ClassifiedEvent, config: CopyTradeConfig) -> str:
        formatter = format_native_transfer if event.is_native else format_token_transfer
        return formatter(
            event,
            account_name=config.account_name,
            network_name=network_label(event.network, self._network_labels),
            explorer_tx_url=self._explorer_tx_url,
        )

    async def notify(self, event: ClassifiedEvent, config: CopyTradeConfig) -> bool:
        """Send one alert for ``event`` on ``config``. Returns True if delivered."""
        kind = event.token.symbol
        tx_short = event.transaction_hash[:16]

        if not self._channel.is_available():
            self._skipped += 1
            logger.info(f"[NOTIFY] {kind} notification skipped (channel unavailable) tx={tx_short}")
            return False

        try:
            await self._channel.send(self.format(event, config))
        except Exception as e:
            self._failed += 1
            logger.warning(
                f"[NOTIFY] {kind} notification failed for config #{config.id} tx={tx_short}: {e}"
            )
            return False

        self._sent += 1
        logger.info(f"[NOTIFY] {kind} notification sent for config #{config.id} tx={tx_short}")
        return True
