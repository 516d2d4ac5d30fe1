"""
accessbot/flow/dispatcher.py

Purpose: Central update dispatcher

- Receives Telegram updates from the webhook or the polling loop
- Routes commands, contacts, poll answers, text and button callbacks
  to the matching flow handler
- Processes one update at a time
- Answers unexpected failures with a generic error message
"""

import asyncio
from functools import partial
from typing import Any, Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from accessbot.flow.context import BotContext
from accessbot.flow.handlers.contact import handle_contact
from accessbot.flow.handlers.poll import handle_poll_answer
from accessbot.flow.handlers.review import handle_callback_query, handle_review_command
from accessbot.flow.handlers.text import handle_text
from accessbot.flow.handlers.welcome import handle_cancel, handle_help, handle_request, handle_start
from accessbot.flow.reviewer import ReviewAction
from accessbot.schemas.telegram import Message, Update, UpdateKind, classify_update, parse_command
from accessbot.core.exceptions import TelegramAPIError, ValidationError
from accessbot.utils.constants import GENERIC_ERROR_MESSAGE
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)

CommandHandler = Callable[[BotContext, Message, List[str]], Awaitable[None]]


class Dispatcher:
    """
    Owns the bot context (and with it the session store) and routes updates.
    """

    def __init__(self, ctx: BotContext):
        self.ctx = ctx
        self._lock = asyncio.Lock()
        self.commands: Dict[str, CommandHandler] = {
            "start": handle_start,
            "cancel": handle_cancel,
            "help": handle_help,
            "request": handle_request,
            "approve": partial(handle_review_command, action=ReviewAction.APPROVE),
            "deny": partial(handle_review_command, action=ReviewAction.REJECT),
        }

    @property
    def store(self):
        return self.ctx.store

    def parse_update(self, payload: Dict[str, Any]) -> Update:
        """
        Validates a raw update dict.

        Raises:
            ValidationError: If the payload is not a Telegram update
        """
        try:
            return Update.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(
                "Invalid Telegram update",
                details=[{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
            ) from e

    async def feed_raw_update(self, payload: Dict[str, Any]) -> Update:
        update = self.parse_update(payload)
        await self.feed_update(update)
        return update

    async def feed_update(self, update: Update):
        """
        Handles one update. Concurrent callers are serialized so handlers
        never observe a half-updated session.
        """
        async with self._lock:
            with LogContext(update_id=update.update_id):
                try:
                    await self.route(update)
                except Exception as e:
                    logger.error(f"❌ Dispatcher error: {e}", exc_info=True)
                    await self._notify_failure(update)

    async def route(self, update: Update):
        kind = classify_update(update)
        logger.debug(f"🚦 Routing update {update.update_id}: {kind.value}")

        if kind == UpdateKind.CALLBACK_QUERY:
            await handle_callback_query(self.ctx, update.callback_query)
        elif kind == UpdateKind.POLL_ANSWER:
            await handle_poll_answer(self.ctx, update.poll_answer)
        elif kind == UpdateKind.CONTACT:
            await handle_contact(self.ctx, update.message)
        elif kind == UpdateKind.COMMAND:
            await self.route_command(update.message)
        elif kind == UpdateKind.TEXT:
            await handle_text(self.ctx, update.message)
        else:
            logger.debug(f"Ignoring unsupported update {update.update_id}")

    async def route_command(self, message: Message):
        command, args = parse_command(message.text)
        handler = self.commands.get(command)

        if handler is None:
            logger.debug(f"Ignoring unknown command /{command}")
            return

        logger.info(f"📞 Command /{command} from {message.from_user.id if message.from_user else 'unknown'}")
        await handler(self.ctx, message, args)

    async def _notify_failure(self, update: Update):
        chat_id = _reply_chat_id(update)
        if update.callback_query is not None:
            try:
                await self.ctx.bot.answer_callback_query(update.callback_query.id, GENERIC_ERROR_MESSAGE, show_alert=True)
                return
            except TelegramAPIError as e:
                logger.error(f"Failed to answer callback after error: {e.message}")
        if chat_id is None:
            return
        try:
            await self.ctx.bot.send_message(chat_id, GENERIC_ERROR_MESSAGE)
        except TelegramAPIError as e:
            logger.error(f"Failed to send error message to {chat_id}: {e.message}")


def _reply_chat_id(update: Update) -> Optional[int]:
    if update.message is not None:
        return update.message.chat.id
    if update.poll_answer is not None and update.poll_answer.user is not None:
        return update.poll_answer.user.id
    if update.callback_query is not None and update.callback_query.message is not None:
        return update.callback_query.message.chat.id
    return None
