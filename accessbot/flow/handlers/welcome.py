"""
accessbot/flow/handlers/welcome.py

Handles: general commands

- /start: resets the session and asks for the phone number
- /cancel: discards the session
- /help: lists commands (reviewer sees admin commands too)
- /request: sends the requester's details to the reviewer
"""

from typing import List, Optional

from accessbot.flow.context import BotContext
from accessbot.flow.states import SessionStep, get_progress_message
from accessbot.schemas.telegram import Message
from accessbot.core.exceptions import TelegramAPIError
from accessbot.utils.constants import (
    ACCESS_REQUEST_TEMPLATE,
    ASK_PHONE_MESSAGE,
    CANCELLED_MESSAGE,
    HELP_MESSAGE,
    REQUEST_FAILED_MESSAGE,
    REQUEST_SUBMITTED_MESSAGE,
    REVIEWER_HELP_MESSAGE,
    UNKNOWN_USER_MESSAGE,
    WELCOME_MESSAGE,
)
from accessbot.utils.formatting import format_user_info
from accessbot.utils.telegram_utils import create_contact_keyboard
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def handle_start(ctx: BotContext, message: Message, args: Optional[List[str]] = None):
    """
    Starts (or restarts) the questionnaire for the sender.

    Any previous session is overwritten.
    """
    user = message.from_user
    if user is None:
        await ctx.bot.send_message(message.chat.id, UNKNOWN_USER_MESSAGE)
        return

    with LogContext(user_id=user.id, step=SessionStep.AWAITING_PHONE.value):
        logger.info("Processing /start")

        ctx.store.create(
            user.id,
            username=user.username,
            first_name=user.first_name,
            last_name=user.last_name,
        )

        await ctx.bot.send_message(message.chat.id, WELCOME_MESSAGE)
        await ctx.bot.send_message(
            message.chat.id,
            ASK_PHONE_MESSAGE.format(progress=get_progress_message(SessionStep.AWAITING_PHONE)),
            reply_markup=create_contact_keyboard()
        )


async def handle_cancel(ctx: BotContext, message: Message, args: Optional[List[str]] = None):
    """Deletes the sender's session if any. Always acknowledged."""
    user = message.from_user
    if user is None:
        await ctx.bot.send_message(message.chat.id, UNKNOWN_USER_MESSAGE)
        return

    with LogContext(user_id=user.id):
        existed = ctx.store.delete(user.id)
        logger.info(f"Processing /cancel (session existed: {existed})")
        await ctx.bot.send_message(message.chat.id, CANCELLED_MESSAGE)


async def handle_help(ctx: BotContext, message: Message, args: Optional[List[str]] = None):
    user = message.from_user
    help_text = HELP_MESSAGE

    if user is not None and ctx.gate.is_reviewer(user.id):
        help_text += REVIEWER_HELP_MESSAGE

    await ctx.bot.send_message(message.chat.id, help_text)


async def handle_request(ctx: BotContext, message: Message, args: Optional[List[str]] = None):
    """
    Forwards a plain access request (user details only) to the reviewer.
    """
    user = message.from_user
    if user is None:
        await ctx.bot.send_message(message.chat.id, UNKNOWN_USER_MESSAGE)
        return

    with LogContext(user_id=user.id):
        try:
            await ctx.bot.send_message(
                ctx.reviewer_chat_id,
                ACCESS_REQUEST_TEMPLATE.format(user_info=format_user_info(user), user_id=user.id)
            )
        except TelegramAPIError as e:
            logger.error(f"Error sending request to reviewer: {e.message}")
            await ctx.bot.send_message(message.chat.id, REQUEST_FAILED_MESSAGE)
            return

        logger.info("Access request sent to reviewer")
        await ctx.bot.send_message(message.chat.id, REQUEST_SUBMITTED_MESSAGE)
