import pytest
from unittest.mock import AsyncMock

from accessbot.core.config import Settings
from accessbot.flow.context import BotContext
from accessbot.flow.dispatcher import Dispatcher
from accessbot.services.telegram_service import TelegramService

from factories import CHANNEL_ID, REVIEWER_ID


@pytest.fixture
def test_settings():
    return Settings(
        _env_file=None,
        BOT_TOKEN="123456:test-token",
        ADMIN_CHAT_ID=str(REVIEWER_ID),
        CHANNEL_ID=CHANNEL_ID,
    )


@pytest.fixture
def bot():
    """Telegram client double; every API method is an AsyncMock."""
    mock = AsyncMock(spec=TelegramService)
    mock.send_message.return_value = {"message_id": 1}
    mock.create_chat_invite_link.return_value = "https://t.me/+invite123"
    return mock


@pytest.fixture
def ctx(test_settings, bot):
    return BotContext.from_settings(test_settings, bot)


@pytest.fixture
def dispatcher(ctx):
    return Dispatcher(ctx)


@pytest.fixture
def store(ctx):
    return ctx.store
