"""Tests for the aiogram-backed Telegram notifier."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.notifications.telegram import TelegramNotifier


def _mock_bot() -> MagicMock:
    bot = MagicMock()
    bot.send_message = AsyncMock()
    bot.session.close = AsyncMock()
    return bot


class TestTelegramNotifier:
    def test_availability(self):
        assert TelegramNotifier(bot_token="123:abc", chat_id=42).is_available() is True
        assert TelegramNotifier(bot_token="", chat_id=42).is_available() is False
        assert TelegramNotifier(bot_token="123:abc", chat_id=0).is_available() is False

    @pytest.mark.asyncio
    async def test_send_unconfigured_raises(self):
        with pytest.raises(RuntimeError):
            await TelegramNotifier().send("hello")

    @pytest.mark.asyncio
    async def test_send_uses_configured_chat(self):
        bot = _mock_bot()
        with patch("src.notifications.telegram.Bot", return_value=bot) as bot_cls:
            notifier = TelegramNotifier(bot_token="123:abc", chat_id=42)
            await notifier.send("<b>hi</b>")
            await notifier.send("again")

        bot_cls.assert_called_once()
        bot.send_message.assert_any_await(
            chat_id=42, text="<b>hi</b>", parse_mode="HTML", disable_web_page_preview=True
        )
        assert bot.send_message.await_count == 2

    @pytest.mark.asyncio
    async def test_transport_error_propagates(self):
        bot = _mock_bot()
        bot.send_message.side_effect = ConnectionError("down")
        with patch("src.notifications.telegram.Bot", return_value=bot):
            notifier = TelegramNotifier(bot_token="123:abc", chat_id=42)
            with pytest.raises(ConnectionError):
                await notifier.send("hi")

    @pytest.mark.asyncio
    async def test_close_releases_session(self):
        bot = _mock_bot()
        with patch("src.notifications.telegram.Bot", return_value=bot):
            notifier = TelegramNotifier(bot_token="123:abc", chat_id=42)
            await notifier.send("hi")
            await notifier.close()
            await notifier.close()

        bot.session.close.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_close_without_bot_is_noop(self):
        await TelegramNotifier().close()
