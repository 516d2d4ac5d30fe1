"""
accessbot/flow/handlers/contact.py

Handles: STEP 1 – Phone number

- Accepts the sender's own shared contact
- Removes the contact keyboard
- Sends the step 2 poll
"""

from accessbot.flow.context import BotContext
from accessbot.flow.handlers.common import advance_session, is_accepted, send_rejection
from accessbot.flow.machine import FlowEvent
from accessbot.flow.states import SessionStep, get_progress_message
from accessbot.schemas.telegram import Message
from accessbot.utils.constants import (
    ASK_POLL_MESSAGE,
    PHONE_RECEIVED_MESSAGE,
    START_REQUIRED_MESSAGE,
    UNKNOWN_USER_MESSAGE,
)
from accessbot.utils.telegram_utils import remove_keyboard
from accessbot.core.logging import get_logger, LogContext

logger = get_logger(__name__)


async def handle_contact(ctx: BotContext, message: Message):
    user = message.from_user
    if user is None or message.contact is None:
        await ctx.bot.send_message(message.chat.id, UNKNOWN_USER_MESSAGE)
        return

    session = ctx.store.get(user.id)
    if session is None:
        await ctx.bot.send_message(message.chat.id, START_REQUIRED_MESSAGE)
        return

    with LogContext(user_id=user.id, step=session.step.value):
        event = FlowEvent.contact(
            sender_id=user.id,
            phone_number=message.contact.phone_number,
            contact_user_id=message.contact.user_id,
        )
        result, session = advance_session(ctx, session, event)

        if not is_accepted(result):
            await send_rejection(ctx, message.chat.id, result)
            return

        logger.info("Phone number saved")

        await ctx.bot.send_message(message.chat.id, PHONE_RECEIVED_MESSAGE, reply_markup=remove_keyboard())
        await ctx.bot.send_message(
            message.chat.id,
            ASK_POLL_MESSAGE.format(progress=get_progress_message(SessionStep.AWAITING_POLL))
        )
        await ctx.bot.send_poll(
            message.chat.id,
            question=ctx.config.POLL_QUESTION,
            options=list(ctx.limits.poll_options),
            is_anonymous=False
        )
