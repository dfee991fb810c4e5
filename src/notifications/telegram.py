"""Telegram transport for copy-trade notifications (aiogram 3.x).

The Bot is created lazily on first send, so a missing token never breaks
startup; ``is_available()`` reports whether sending is possible at all.
"""

from __future__ import annotations

from aiogram import Bot
from loguru import logger


class TelegramNotifier:
    """Sends HTML messages to a single configured chat."""

    def __init__(self, *, bot_token: str = "", chat_id: int = 0) -> None:
        self._token = bot_token
        self._chat_id = chat_id
        self._bot: Bot | None = None

    def is_available(self) -> bool:
        return bool(self._token and self._chat_id)

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._token)
        return self._bot

    async def send(self, text: str) -> None:
        """Send ``text``; transport errors propagate to the caller."""
        if not self.is_available():
            raise RuntimeError("Telegram notifier not configured")
        bot = self._get_bot()
        await bot.send_message(
            chat_id=self._chat_id,
            text=text,
            parse_mode="HTML",
            disable_web_page_preview=True,
        )
        logger.debug(f"[NOTIFY] Telegram message sent to chat {self._chat_id}")

    async def close(self) -> None:
        """Close the underlying HTTP session. Safe to call repeatedly."""
        if self._bot is not None:
            await self._bot.session.close()
            self._bot = None
