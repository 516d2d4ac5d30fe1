"""
accessbot/polling.py

Purpose: Long-polling entry point

- Validates configuration (exits with status 1 on failure)
- Removes any registered webhook so getUpdates is allowed
- Feeds updates to the dispatcher one at a time, in arrival order

Run with: python -m accessbot.polling
"""

import asyncio
import signal
import sys
from typing import Optional

from accessbot.core.config import settings, validate_settings, Settings
from accessbot.core.exceptions import ConfigurationError, TelegramAPIError, ValidationError
from accessbot.core.logging import setup_logging, get_logger
from accessbot.flow.context import BotContext
from accessbot.flow.dispatcher import Dispatcher
from accessbot.services.telegram_service import TelegramService

logger = get_logger(__name__)

ERROR_BACKOFF_SECONDS = 2.0


class Poller:
    """Runs the getUpdates loop until stopped."""

    def __init__(self, dispatcher: Dispatcher, poll_timeout: int = 30):
        self.dispatcher = dispatcher
        self.poll_timeout = poll_timeout
        self.offset = 0
        self._stopped = asyncio.Event()

    @property
    def bot(self) -> TelegramService:
        return self.dispatcher.ctx.bot

    def stop(self):
        self._stopped.set()

    async def poll_once(self) -> int:
        """
        Fetches one batch of updates and dispatches them.

        Returns:
            Number of updates received
        """
        updates = await self.bot.get_updates(offset=self.offset, poll_timeout=self.poll_timeout)

        for payload in updates:
            update_id = payload.get("update_id")
            if isinstance(update_id, int):
                self.offset = max(self.offset, update_id + 1)
            try:
                await self.dispatcher.feed_raw_update(payload)
            except ValidationError as e:
                logger.warning(f"Skipping malformed update {update_id}: {e.details}")

        return len(updates)

    async def run(self):
        logger.info("📡 Polling for updates...")

        while not self._stopped.is_set():
            try:
                await self.poll_once()
            except TelegramAPIError as e:
                logger.error(f"getUpdates failed: {e.message}")
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=ERROR_BACKOFF_SECONDS)
                except asyncio.TimeoutError:
                    pass

        logger.info("Polling stopped")


async def run_polling(config: Optional[Settings] = None, bot: Optional[TelegramService] = None):
    config = config or settings
    telegram = bot or TelegramService(config)
    dispatcher = Dispatcher(BotContext.from_settings(config, telegram))
    poller = Poller(dispatcher, poll_timeout=config.POLLING_TIMEOUT)

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poller.stop)
        except NotImplementedError:
            # Windows event loops do not support signal handlers
            pass

    try:
        me = await telegram.get_me()
        logger.info(f"🤖 Connected as @{me.get('username')}")
        await telegram.delete_webhook()
        await poller.run()
    finally:
        await telegram.close()
        logger.info("👋 Bot shut down")


def main() -> int:
    setup_logging()

    try:
        validate_settings()
    except ConfigurationError as e:
        logger.critical(e.message)
        return 1

    try:
        asyncio.run(run_polling())
    except TelegramAPIError as e:
        logger.critical(f"Failed to start bot: {e.message}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
